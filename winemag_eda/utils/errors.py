"""
Pipeline error types.

Missing values are not errors: they travel through the tables as NaN / pd.NA
and are excluded by the aggregations. Only the two fatal conditions below
are raised.
"""


class ParseError(ValueError):
    """Input file is unreadable or has no header row."""


class ExternalServiceError(RuntimeError):
    """Dataset download or tagger invocation failed."""
