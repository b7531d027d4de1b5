"""
Review data model.

Represents one row of the wine review table, plus the derived fields
appended by the pipeline.
"""

from dataclasses import dataclass, fields
from typing import Optional

import pandas as pd


def _present(value):
    """Map pandas missing markers (NaN, pd.NA, NaT) to None."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


@dataclass
class Review:
    """
    Row view of the review table.
    Every field except id may be absent (None).
    """
    id: int
    country: Optional[str] = None
    description: Optional[str] = None
    designation: Optional[str] = None
    points: Optional[int] = None  # 80-100 by the publisher's policy, not enforced
    price: Optional[float] = None  # > 0 when present
    province: Optional[str] = None
    region_1: Optional[str] = None
    region_2: Optional[str] = None
    taster_name: Optional[str] = None
    taster_twitter_handle: Optional[str] = None
    title: Optional[str] = None
    variety: Optional[str] = None
    winery: Optional[str] = None
    vintage: Optional[int] = None
    decade: Optional[str] = None
    description_length: Optional[int] = None

    @classmethod
    def from_record(cls, record: dict) -> "Review":
        """Create Review from a table record, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: _present(v) for k, v in record.items() if k in known}

        if values.get("id") is None:
            raise ValueError("Review record has no id")

        values["id"] = int(values["id"])
        for key in ("points", "vintage", "description_length"):
            if values.get(key) is not None:
                values[key] = int(values[key])
        if values.get("price") is not None:
            values["price"] = float(values["price"])
        if values.get("decade") is not None:
            values["decade"] = str(values["decade"])

        return cls(**values)
