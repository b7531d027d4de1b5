"""
End-to-end tests for the Pipeline Orchestrator.

The tagger is replaced by a whitespace annotator and the stop words are
passed in, so the run needs neither a model nor a corpus download.
"""

import json
import os
import re
import tempfile
from unittest.mock import patch

import pandas as pd
import pytest

from winemag_eda.agents.tokenization import Annotator
from winemag_eda.models.token import TOKEN_COLUMNS
from winemag_eda.orchestrator import PipelineOrchestrator

CSV = (
    ",country,description,designation,points,price,province,region_1,region_2,"
    "taster_name,taster_twitter_handle,title,variety,winery\n"
    '0,US,"It won\'t fade; aromas of cherry, cherry and oak.",,85,10,Oregon,,,'
    "Paul Gregutt,@paulgwine,Winery A 1995 Pinot Noir,Pinot Noir,Winery A\n"
    '1,US,"The oak\'s spice is bright.",,90,20,Oregon,,,'
    "Paul Gregutt,@paulgwine,Winery A 2012 Pinot Noir,Pinot Noir,Winery A\n"
    '2,Italy,"Cherry.",,95,,Tuscany,,,'
    ",,Winery B NV Sangiovese,Sangiovese,Winery B\n"
)

STOP_WORDS = {"the", "and", "of", "is"}


class WordAnnotator(Annotator):
    """Splits words and punctuation; lemma is the lowercased word."""

    def annotate(self, documents):
        rows = []
        for doc_id, text in documents:
            for word in re.findall(r"\w+|[^\w\s]", text):
                rows.append((doc_id, word.lower(), "NOUN" if word.isalnum() else "PUNCT"))
        return pd.DataFrame(rows, columns=TOKEN_COLUMNS)


@pytest.fixture
def workspace():
    with tempfile.TemporaryDirectory() as tmpdir:
        input_path = os.path.join(tmpdir, "reviews.csv")
        with open(input_path, "w", encoding="utf-8") as f:
            f.write(CSV)
        yield tmpdir, input_path


def _orchestrator(tmpdir):
    return PipelineOrchestrator(
        data_root=os.path.join(tmpdir, "data"),
        output_root=os.path.join(tmpdir, "output"),
        annotator=WordAnnotator(),
        stop_words=STOP_WORDS,
    )


def test_run_writes_word_frequencies(workspace):
    """Test the pipeline end to end on a local file."""
    tmpdir, input_path = workspace

    output_path = _orchestrator(tmpdir).run(input_path=input_path)

    frequencies = pd.read_csv(output_path)
    assert list(frequencies.columns) == ["word", "Count"]
    counts = dict(zip(frequencies["word"], frequencies["Count"]))

    # "won't" expanded before tokenizing; "oak's" lost its 's
    assert counts["will"] == 1
    assert counts["not"] == 1
    assert counts["cherry"] == 3
    assert counts["oak"] == 2
    assert "the" not in counts
    assert list(frequencies["Count"]) == sorted(frequencies["Count"], reverse=True)


def test_run_summaries(workspace):
    """Test summary outputs match the input table."""
    tmpdir, input_path = workspace

    _orchestrator(tmpdir).run(input_path=input_path)
    output_dir = os.path.join(tmpdir, "output")

    price = pd.read_csv(os.path.join(output_dir, "summary_price.csv")).iloc[0]
    points = pd.read_csv(os.path.join(output_dir, "summary_points.csv")).iloc[0]
    assert price["mean"] == 15.0
    assert price["count"] == 2
    assert points["mean"] == 90.0
    assert points["count"] == 3

    by_decade = pd.read_csv(os.path.join(output_dir, "summary_points_by_decade.csv"))
    assert list(by_decade["decade"]) == ["1990s", "2010s"]


def test_run_metadata(workspace):
    """Test run metadata is consistent with the word frequencies."""
    tmpdir, input_path = workspace

    output_path = _orchestrator(tmpdir).run(input_path=input_path)

    with open(os.path.join(tmpdir, "output", "run_metadata.json")) as f:
        metadata = json.load(f)

    frequencies = pd.read_csv(output_path)
    assert metadata["total_reviews"] == 3
    assert metadata["reviews_with_vintage"] == 2
    assert metadata["reviews_with_tokens"] == 3
    assert metadata["retained_tokens"] == frequencies["Count"].sum()
    assert "generated_at" in metadata


def test_run_downloads_when_no_input(workspace):
    """Test the dataset is fetched into the data directory when no input is given."""
    tmpdir, input_path = workspace
    orchestrator = _orchestrator(tmpdir)

    def fake_fetch(url, destination, force=False):
        with open(input_path) as src, open(destination, "w") as dst:
            dst.write(src.read())
        return destination

    with patch.object(orchestrator.loader, "fetch", side_effect=fake_fetch) as mock_fetch:
        orchestrator.run(url="https://example.org/reviews.csv")

    mock_fetch.assert_called_once_with(
        "https://example.org/reviews.csv", orchestrator.storage.dataset_path
    )
