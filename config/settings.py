"""
Configuration settings for WineLens.

Centralized configuration for all pipeline stages.
"""

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_ROOT = Path(os.getenv("WINELENS_DATA_ROOT", PROJECT_ROOT / "data"))
OUTPUT_ROOT = Path(os.getenv("WINELENS_OUTPUT_ROOT", PROJECT_ROOT / "output"))

# Dataset
DATASET_URL = os.getenv(
    "WINELENS_DATASET_URL",
    "https://raw.githubusercontent.com/rfordatascience/tidytuesday/master/"
    "data/2019/2019-05-28/winemag-data-130k-v2.csv"
)
DATASET_FILENAME = "winemag-data-130k-v2.csv"
DOWNLOAD_TIMEOUT_SECONDS = 60
DOWNLOAD_CHUNK_SIZE = 1 << 16

# Review table schema (source column order)
REVIEW_COLUMNS = [
    "id", "country", "description", "designation", "points", "price",
    "province", "region_1", "region_2", "taster_name",
    "taster_twitter_handle", "title", "variety", "winery",
]
NUMERIC_COLUMNS = ["points", "price"]

# Vintage Extractor (fixed policy bounds, not derived from data)
VINTAGE_MIN_YEAR = 1910
VINTAGE_MAX_YEAR = 2018

# Tokenizer / Lemmatizer
STANZA_LANGUAGE = "en"
STANZA_PROCESSORS = "tokenize,pos,lemma"
STANZA_USE_GPU = False
TOKENIZE_BATCH_SIZE = 500
TOKEN_CHECKPOINT_FILENAME = "tokens.csv"
TOKEN_MANIFEST_FILENAME = "token_documents.csv"  # doc_id, text_hash of checkpointed documents

# Token filter
PUNCTUATION_TAG = "PUNCT"
MIN_LEMMA_LENGTH = 3
STOP_WORDS_LANGUAGE = "english"

# Aggregation
TOP_WINERY_MIN_REVIEWS = 8
TOP_N = 10
SUMMARY_VALUES = ["points", "price", "description_length"]
SUMMARY_GROUPS = ["country", "province", "variety", "taster_name", "decade", "vintage"]

# Logging
LOG_LEVEL = "INFO"  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "winelens.log"


# Design Rationale and Trade-offs:
#
# 1. Why hardcode the vintage bounds?
#    - The dataset was published in 2019, so later years are typos or codes
#    - Bounds derived from the data would shift with every input file
#    - Trade-off: Needs a manual edit for a newer dataset, but predictable
#
# 2. Why a token checkpoint under DATA_ROOT instead of OUTPUT_ROOT?
#    - Tagging 130k descriptions is the slowest step by far
#    - Outputs are disposable, the checkpoint is expensive to rebuild
#    - Trade-off: Stale files possible, mitigated by per-document text hashes
#
# 3. Why environment variables for paths and URL only?
#    - Deployment-specific values differ between machines
#    - Analysis thresholds should be identical across runs
#    - Trade-off: Thresholds need a code change, but stay reviewable
