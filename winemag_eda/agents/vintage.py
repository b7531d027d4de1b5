"""
Vintage Extractor.

Derives the vintage year and decade bucket of each review from its title.
"""

import logging
import re
from typing import Optional

import pandas as pd

from winemag_eda.models.vintage import Decade
import config.settings as settings

logger = logging.getLogger(__name__)

# A run of exactly four ASCII digits, not part of a longer run
_YEAR_PATTERN = re.compile(r"(?<![0-9])[0-9]{4}(?![0-9])")


def extract_vintage(
    title: Optional[str],
    min_year: int = settings.VINTAGE_MIN_YEAR,
    max_year: int = settings.VINTAGE_MAX_YEAR
) -> Optional[int]:
    """
    Extract the vintage year from a wine title.

    Only the first four-digit run is considered. A numeric appellation
    appearing before the year will be taken as the vintage; that
    mislabeling is a known limitation of the heuristic.

    Args:
        title: Review title (may be absent)
        min_year: Lowest accepted year
        max_year: Highest accepted year

    Returns:
        The year, or None when there is no match or it is out of bounds
    """
    if not isinstance(title, str):
        return None

    match = _YEAR_PATTERN.search(title)
    if not match:
        return None

    year = int(match.group(0))
    if year < min_year or year > max_year:
        return None
    return year


class VintageExtractor:
    """
    Appends vintage and decade columns to the review table.
    """

    def __init__(
        self,
        min_year: int = settings.VINTAGE_MIN_YEAR,
        max_year: int = settings.VINTAGE_MAX_YEAR
    ):
        self.min_year = min_year
        self.max_year = max_year

    def transform(self, table: pd.DataFrame) -> pd.DataFrame:
        """
        Derive vintage and decade from the title column.

        Args:
            table: Review table

        Returns:
            New table with nullable-integer vintage and categorical decade
        """
        vintage = pd.array(
            [extract_vintage(t, self.min_year, self.max_year) for t in table["title"]],
            dtype="Int64"
        )
        decade_labels = [
            None if pd.isna(year) else Decade.from_year(int(year)).value
            for year in vintage
        ]
        decade = pd.Categorical(decade_labels, categories=Decade.labels(), ordered=True)

        result = table.assign(vintage=vintage, decade=decade)

        absent = int(result["vintage"].isna().sum())
        logger.info(
            f"Extracted vintage for {len(result) - absent}/{len(result)} reviews "
            f"({absent} absent)"
        )
        return result
