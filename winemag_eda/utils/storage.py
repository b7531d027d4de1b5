"""
Storage utility.

File I/O helpers for the dataset, the token checkpoint and report outputs.
"""

import json
import os
import logging
from typing import Dict
from datetime import datetime, timezone

import pandas as pd

from winemag_eda.models.token import TOKEN_COLUMNS
from winemag_eda.utils.errors import ParseError
import config.settings as settings

logger = logging.getLogger(__name__)


def read_token_table(path: str) -> pd.DataFrame:
    """
    Read a saved token table.

    Lemmas such as "nan" or "null" are kept as text, only empty cells
    are treated as missing.

    Args:
        path: CSV file with doc_id, lemma, upos columns (extra columns ignored)

    Returns:
        Token table with integer doc_id

    Raises:
        ParseError: If the file is unreadable or lacks a required column
    """
    try:
        tokens = pd.read_csv(
            path,
            dtype={"lemma": str, "upos": str},
            keep_default_na=False,
            na_values=[""],
        )
    except (OSError, pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise ParseError(f"Cannot read token table {path}: {e}") from e

    missing = [c for c in TOKEN_COLUMNS if c not in tokens.columns]
    if missing:
        raise ParseError(f"Token table {path} is missing columns: {missing}")

    tokens = tokens[TOKEN_COLUMNS].dropna(subset=["doc_id"])
    doc_ids = pd.to_numeric(tokens["doc_id"], errors="coerce")
    tokens = tokens[doc_ids.notna()].assign(doc_id=doc_ids.dropna().astype("int64"))
    return tokens.assign(lemma=tokens["lemma"].str.lower()).reset_index(drop=True)


class StorageManager:
    """
    Manages file I/O for all data persistence.

    Handles:
    - Raw dataset (data/raw/winemag-data-130k-v2.csv)
    - Token checkpoint (data/tokens/tokens.csv)
    - Report outputs (output/*.csv, output/run_metadata.json)
    """

    def __init__(self, data_root: str, output_root: str):
        """
        Initialize storage manager.

        Args:
            data_root: Root data directory (e.g., /path/to/data)
            output_root: Directory for report outputs
        """
        self.data_root = str(data_root)
        self.output_root = str(output_root)
        self.raw_dir = os.path.join(self.data_root, "raw")
        self.tokens_dir = os.path.join(self.data_root, "tokens")

        os.makedirs(self.raw_dir, exist_ok=True)
        os.makedirs(self.tokens_dir, exist_ok=True)
        os.makedirs(self.output_root, exist_ok=True)

        logger.info(f"Initialized StorageManager with data_root={self.data_root}, output_root={self.output_root}")

    @property
    def dataset_path(self) -> str:
        return os.path.join(self.raw_dir, settings.DATASET_FILENAME)

    @property
    def token_checkpoint_path(self) -> str:
        return os.path.join(self.tokens_dir, settings.TOKEN_CHECKPOINT_FILENAME)

    @property
    def token_manifest_path(self) -> str:
        return os.path.join(self.tokens_dir, settings.TOKEN_MANIFEST_FILENAME)

    def has_token_checkpoint(self) -> bool:
        return os.path.exists(self.token_checkpoint_path)

    def save_tokens(self, tokens: pd.DataFrame) -> None:
        """
        Persist the unfiltered tagger output.

        Args:
            tokens: Token table (doc_id, lemma, upos)
        """
        path = self.token_checkpoint_path
        try:
            tokens[TOKEN_COLUMNS].to_csv(path, index=False)
            logger.info(f"Saved {len(tokens)} tokens to {path}")
        except Exception as e:
            logger.error(f"Failed to save token checkpoint: {e}")
            raise

    def save_token_manifest(self, text_hashes: Dict[int, str]) -> None:
        """
        Persist the text hash of every document covered by the checkpoint.

        Args:
            text_hashes: Mapping of doc_id to the hash of the annotated text
        """
        path = self.token_manifest_path
        manifest = pd.DataFrame(
            {"doc_id": list(text_hashes.keys()), "text_hash": list(text_hashes.values())}
        )
        try:
            manifest.to_csv(path, index=False)
            logger.info(f"Saved text hashes for {len(manifest)} documents to {path}")
        except Exception as e:
            logger.error(f"Failed to save token manifest: {e}")
            raise

    def load_token_manifest(self) -> Dict[int, str]:
        """
        Read the text hashes of checkpointed documents.

        Returns:
            Mapping of doc_id to text hash; empty when no manifest exists

        Raises:
            ParseError: If the manifest is unreadable
        """
        path = self.token_manifest_path
        if not os.path.exists(path):
            return {}
        try:
            manifest = pd.read_csv(path, dtype={"text_hash": str})
        except pd.errors.EmptyDataError:
            return {}
        except (OSError, pd.errors.ParserError) as e:
            raise ParseError(f"Cannot read token manifest {path}: {e}") from e

        if "doc_id" not in manifest.columns or "text_hash" not in manifest.columns:
            raise ParseError(f"Token manifest {path} is missing columns")
        manifest = manifest.dropna()
        return dict(zip(manifest["doc_id"].astype("int64"), manifest["text_hash"]))

    def clear_token_checkpoint(self) -> None:
        for path in (self.token_checkpoint_path, self.token_manifest_path):
            if os.path.exists(path):
                os.remove(path)
                logger.info(f"Removed token checkpoint file {path}")

    def save_table(self, table: pd.DataFrame, filename: str) -> str:
        """
        Save a report table as CSV in the output directory.

        Args:
            table: DataFrame to write
            filename: File name inside output_root

        Returns:
            Path to the written file
        """
        path = os.path.join(self.output_root, filename)
        try:
            table.to_csv(path, index=False)
            logger.info(f"Saved {len(table)} rows to {path}")
        except Exception as e:
            logger.error(f"Failed to save {filename}: {e}")
            raise
        return path

    def save_metadata(self, metadata: Dict, filename: str = "run_metadata.json") -> str:
        """
        Save run metadata as JSON, stamped with the generation time.

        Returns:
            Path to the written file
        """
        path = os.path.join(self.output_root, filename)
        payload = dict(metadata)
        payload["generated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            with open(path, 'w') as f:
                json.dump(payload, f, indent=2, default=str)
            logger.info(f"Metadata saved to {path}")
        except Exception as e:
            logger.error(f"Failed to save metadata: {e}")
            raise
        return path
