"""
Utility modules for WineLens.

Cross-cutting concerns:
- Errors: ParseError and ExternalServiceError
- Storage: File I/O helpers for data persistence
"""
