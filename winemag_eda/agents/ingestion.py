"""
Ingestion Agent.

Downloads the wine review CSV and loads it into the Review table.
"""

import logging
import os
from typing import Iterator, Union, TextIO

import numpy as np
import pandas as pd
import requests

from winemag_eda.models.review import Review
from winemag_eda.utils.errors import ParseError, ExternalServiceError
import config.settings as settings

logger = logging.getLogger(__name__)

# Largest magnitude a float64 holds exactly as an integer
_MAX_EXACT_INTEGER = 2 ** 53

# Header names an unnamed leading index column gets from common CSV writers
_INDEX_HEADERS = ("Unnamed: 0", "X1", "...1", "")


class ReviewLoader:
    """
    Loads the review table from a comma-delimited file.

    Short rows are padded with absent values. Numeric columns holding
    non-numeric text are read as absent. The only fatal condition is an
    input whose header cannot be read.
    """

    def __init__(
        self,
        timeout_seconds: int = settings.DOWNLOAD_TIMEOUT_SECONDS,
        chunk_size: int = settings.DOWNLOAD_CHUNK_SIZE
    ):
        """
        Initialize loader.

        Args:
            timeout_seconds: HTTP timeout for dataset download
            chunk_size: Bytes per streamed download chunk
        """
        self.timeout_seconds = timeout_seconds
        self.chunk_size = chunk_size

        logger.info(f"Initialized ReviewLoader with timeout={timeout_seconds}s")

    def fetch(self, url: str, destination: str, force: bool = False) -> str:
        """
        Download the dataset to a local file.

        Args:
            url: Remote CSV location
            destination: Local file path to write
            force: Re-download even if destination already exists

        Returns:
            Path of the local file

        Raises:
            ExternalServiceError: If the download fails
        """
        if os.path.exists(destination) and not force:
            logger.info(f"Dataset already present at {destination}, skipping download")
            return destination

        os.makedirs(os.path.dirname(os.path.abspath(destination)), exist_ok=True)
        partial_path = destination + ".part"

        logger.info(f"Downloading dataset from {url}")
        try:
            with requests.get(url, stream=True, timeout=self.timeout_seconds) as response:
                response.raise_for_status()
                written = 0
                with open(partial_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if chunk:
                            f.write(chunk)
                            written += len(chunk)
        except requests.RequestException as e:
            logger.error(f"Dataset download failed: {e}")
            if os.path.exists(partial_path):
                os.remove(partial_path)
            raise ExternalServiceError(f"Failed to download {url}: {e}") from e

        os.replace(partial_path, destination)
        logger.info(f"Saved {written} bytes to {destination}")
        return destination

    def load(self, source: Union[str, os.PathLike, TextIO]) -> pd.DataFrame:
        """
        Read the review table.

        Args:
            source: Path or text stream of a CSV file with a header row

        Returns:
            DataFrame with the review columns in source order

        Raises:
            ParseError: If the input is empty or its header is unreadable
        """
        try:
            raw = pd.read_csv(
                source,
                dtype=str,
                index_col=False,
                on_bad_lines="warn",
            )
        except pd.errors.EmptyDataError as e:
            raise ParseError(f"No header row in {source!r}") from e
        except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
            raise ParseError(f"Cannot read {source!r}: {e}") from e

        table = self._conform(raw)
        logger.info(f"Loaded {len(table)} reviews with {len(table.columns)} columns")
        return table

    def _conform(self, raw: pd.DataFrame) -> pd.DataFrame:
        """Rename the index column, add absent columns and coerce numerics."""
        columns = list(raw.columns)
        if columns and "id" not in columns and (
            columns[0] in _INDEX_HEADERS or columns[0].startswith("Unnamed: ")
        ):
            raw = raw.rename(columns={columns[0]: "id"})

        if "id" in raw.columns:
            ids = _coerce_integers(raw["id"])
        else:
            logger.warning("No id column found, using row positions as ids")
            ids = pd.Series(range(len(raw)), index=raw.index, dtype="Int64")

        missing_columns = [c for c in settings.REVIEW_COLUMNS if c not in raw.columns]
        if missing_columns:
            logger.warning(f"Columns missing from header, filled as absent: {missing_columns}")

        table = raw.assign(
            **{c: pd.Series(pd.NA, index=raw.index, dtype="object") for c in missing_columns}
        )
        table = table.assign(
            id=ids,
            points=_coerce_integers(table["points"]),
            price=_coerce_price(table["price"]),
        )

        unparsed_ids = int(ids.isna().sum())
        if unparsed_ids:
            logger.warning(f"{unparsed_ids} rows have no parseable id")
        duplicated = int(ids.dropna().duplicated().sum())
        if duplicated:
            logger.warning(f"{duplicated} duplicate ids found in review table")

        extra = [c for c in table.columns if c not in settings.REVIEW_COLUMNS]
        return table[settings.REVIEW_COLUMNS + extra].reset_index(drop=True)


def _coerce_integers(column: pd.Series) -> pd.Series:
    """Parse as Int64; anything but an exactly representable whole number becomes absent."""
    values = pd.to_numeric(column, errors="coerce").astype("float64")
    whole = np.isfinite(values) & (values == values.round()) & (values.abs() <= _MAX_EXACT_INTEGER)
    return values.where(whole).astype("Int64")


def _coerce_price(column: pd.Series) -> pd.Series:
    """Parse price; non-numeric, infinite or non-positive values become absent."""
    price = pd.to_numeric(column, errors="coerce").astype("float64")
    return price.where(np.isfinite(price) & (price > 0))


def iter_reviews(table: pd.DataFrame) -> Iterator[Review]:
    """Yield Review row views of the table, skipping rows without an id."""
    for record in table.to_dict(orient="records"):
        if pd.isna(record.get("id")):
            continue
        yield Review.from_record(record)


# Design Rationale and Trade-offs:
#
# 1. Why read every column as text first?
#    - pandas type inference guesses per file and can turn ids into floats
#    - Coercion rules stay in one place (_coerce_integers, _coerce_price)
#    - Trade-off: Slower load, but identical schema for every input
#
# 2. Why mask fractional and infinite values instead of rounding?
#    - "87.5" points or an "inf" price is a data error, not a score
#    - Missing values never abort a run, so they become absent
#    - Trade-off: A few rows lose a value, reported through the counts
#
# 3. Why warn on duplicate ids instead of failing?
#    - The published dataset is trusted to have unique ids
#    - A duplicate only affects the description_length join
#    - Trade-off: Silent double counting, mitigated by logging
