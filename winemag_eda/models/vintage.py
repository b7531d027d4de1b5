"""
Decade data model.

Ten-year vintage buckets. The absent decade is represented by None,
never by an empty string or a zero bucket.
"""

from enum import Enum
from typing import Optional


class Decade(str, Enum):
    """Decade bucket of a vintage year."""
    D1900S = "1900s"
    D1910S = "1910s"
    D1920S = "1920s"
    D1930S = "1930s"
    D1940S = "1940s"
    D1950S = "1950s"
    D1960S = "1960s"
    D1970S = "1970s"
    D1980S = "1980s"
    D1990S = "1990s"
    D2000S = "2000s"
    D2010S = "2010s"

    @classmethod
    def from_year(cls, year: Optional[int]) -> Optional["Decade"]:
        """
        Bucket a year into its decade.

        Args:
            year: Vintage year, or None when absent

        Returns:
            Decade member, or None when year is absent

        Raises:
            ValueError: If the bucket falls outside 1900s..2010s
        """
        if year is None:
            return None
        return cls(f"{(int(year) // 10) * 10}s")

    @classmethod
    def labels(cls) -> list:
        """Bucket labels in chronological order."""
        return [member.value for member in cls]
