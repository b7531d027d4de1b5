"""
Pipeline stages for WineLens.

Contains the modules that process the review table in order:
- Ingestion (download + load)
- Vintage Extractor
- Text Normalization
- Tokenization (tagger contract + token filter)
- Aggregation (grouped summaries + word frequencies)
"""
