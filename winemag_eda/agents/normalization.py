"""
Text Normalization Agent.

Expands English contractions and lowercases review descriptions
before tokenization.
"""

import logging
import re
from typing import Optional

import pandas as pd

logger = logging.getLogger(__name__)

_APOSTROPHE = "['’]"

# Applied in order: later rules must not see text produced by earlier ones.
# "'s" is dropped rather than expanded, since possessive and "is" cannot be
# told apart without parsing.
CONTRACTION_RULES = [
    (re.compile(f"won{_APOSTROPHE}t", re.IGNORECASE), "will not"),
    (re.compile(f"can{_APOSTROPHE}t", re.IGNORECASE), "can not"),
    (re.compile(f"n{_APOSTROPHE}t", re.IGNORECASE), " not"),
    (re.compile(f"{_APOSTROPHE}ll", re.IGNORECASE), " will"),
    (re.compile(f"{_APOSTROPHE}re", re.IGNORECASE), " are"),
    (re.compile(f"{_APOSTROPHE}ve", re.IGNORECASE), " have"),
    (re.compile(f"{_APOSTROPHE}m", re.IGNORECASE), " am"),
    (re.compile(f"{_APOSTROPHE}d", re.IGNORECASE), " would"),
    (re.compile(f"{_APOSTROPHE}s", re.IGNORECASE), ""),
]


def normalize_text(text: Optional[str]) -> str:
    """
    Expand contractions, then lowercase.

    Args:
        text: Raw description (None or NaN allowed)

    Returns:
        Normalized text; empty string for absent input
    """
    if not isinstance(text, str) or not text:
        return ""

    for pattern, replacement in CONTRACTION_RULES:
        text = pattern.sub(replacement, text)
    return text.lower()


class TextNormalizer:
    """
    Appends the normalized description to the review table.
    """

    def __init__(self, source_column: str = "description", target_column: str = "clean_description"):
        self.source_column = source_column
        self.target_column = target_column

    def transform(self, table: pd.DataFrame) -> pd.DataFrame:
        """
        Normalize every description.

        Args:
            table: Review table

        Returns:
            New table with the normalized text in target_column;
            absent descriptions stay absent
        """
        normalized = table[self.source_column].map(normalize_text, na_action="ignore")
        result = table.assign(**{self.target_column: normalized})

        logger.info(f"Normalized {int(normalized.notna().sum())} descriptions")
        return result
