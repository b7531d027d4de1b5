"""
Unit tests for the Ingestion Agent.

Downloads are mocked; no test touches the network.
"""

import io
import os
import tempfile
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
import requests

from winemag_eda.agents.ingestion import ReviewLoader, iter_reviews
from winemag_eda.utils.errors import ExternalServiceError, ParseError
import config.settings as settings

HEADER = (
    ",country,description,designation,points,price,province,region_1,region_2,"
    "taster_name,taster_twitter_handle,title,variety,winery\n"
)

ROWS = (
    '0,Italy,"Aromas include tropical fruit, broom and brimstone.",Vulkà Bianco,87,,'
    "Sicily & Sardinia,Etna,,Kerin O’Keefe,@kerinokeefe,"
    "Nicosia 2013 Vulkà Bianco  (Etna),White Blend,Nicosia\n"
    '1,Portugal,"This is ripe and fruity, a wine that is smooth.",Avidagos,87,15.0,'
    "Douro,,,Roger Voss,@vossroger,"
    "Quinta dos Avidagos 2011 Avidagos Red (Douro),Portuguese Red,Quinta dos Avidagos\n"
)


@pytest.fixture
def loader():
    return ReviewLoader()


def test_load_dataset_layout(loader):
    """Test the unnamed index column becomes id and columns keep source order."""
    table = loader.load(io.StringIO(HEADER + ROWS))

    assert list(table.columns) == settings.REVIEW_COLUMNS
    assert list(table["id"]) == [0, 1]
    assert list(table["points"]) == [87, 87]
    assert pd.isna(table.loc[0, "price"])
    assert table.loc[1, "price"] == 15.0
    assert table.loc[0, "description"].startswith("Aromas include")


def test_ragged_rows_are_padded(loader):
    """Test that a short row is kept with absent trailing fields."""
    table = loader.load(io.StringIO(HEADER + ROWS + "2,US,Nice wine\n"))

    assert len(table) == 3
    assert table.loc[2, "country"] == "US"
    assert table.loc[2, "description"] == "Nice wine"
    assert pd.isna(table.loc[2, "points"])
    assert pd.isna(table.loc[2, "winery"])


def test_non_numeric_values_are_absent(loader):
    """Test unparseable and non-positive numbers are read as missing."""
    csv = HEADER + (
        "0,US,Text,,eighty,abc,,,,,,Title,Red,W\n"
        "1,US,Text,,90,-5,,,,,,Title,Red,W\n"
        "2,US,Text,,91,0,,,,,,Title,Red,W\n"
    )
    table = loader.load(io.StringIO(csv))

    assert pd.isna(table.loc[0, "points"])
    assert table["price"].isna().all()
    assert table.loc[1, "points"] == 90


def test_unrepresentable_numbers_are_absent(loader):
    """Test infinities, fractions and overflowing values do not abort the load."""
    csv = HEADER + (
        "0,US,Text,,inf,inf,,,,,,Title,Red,W\n"
        "1.5,US,Text,,1e30,12.5,,,,,,Title,Red,W\n"
        "2,US,Text,,88.5,-inf,,,,,,Title,Red,W\n"
        "3,US,Text,,92.0,20,,,,,,Title,Red,W\n"
    )
    table = loader.load(io.StringIO(csv))

    assert str(table["id"].dtype) == "Int64"
    assert str(table["points"].dtype) == "Int64"
    assert pd.isna(table.loc[1, "id"])
    assert list(table["id"].dropna()) == [0, 2, 3]
    assert table["points"].isna().tolist() == [True, True, True, False]
    assert table.loc[3, "points"] == 92
    assert pd.isna(table.loc[0, "price"])
    assert pd.isna(table.loc[2, "price"])
    assert table["price"].mean() == pytest.approx(16.25)


def test_points_dtype_is_stable(loader):
    """Test points load as Int64 whether or not a fractional value is present."""
    whole = loader.load(io.StringIO(HEADER + "0,US,Text,,87,,,,,,,Title,Red,W\n"))
    fractional = loader.load(io.StringIO(HEADER + "0,US,Text,,87.5,,,,,,,Title,Red,W\n"))

    assert str(whole["points"].dtype) == "Int64"
    assert str(fractional["points"].dtype) == "Int64"
    assert pd.isna(fractional.loc[0, "points"])


def test_explicit_id_column(loader):
    """Test a header that already names the id column."""
    table = loader.load(io.StringIO("id" + HEADER + ROWS))
    assert list(table["id"]) == [0, 1]


def test_missing_columns_filled_as_absent(loader):
    """Test that columns missing from the header exist and are absent."""
    table = loader.load(io.StringIO("country,points\nUS,88\nFrance,91\n"))

    assert list(table.columns) == settings.REVIEW_COLUMNS
    assert list(table["id"]) == [0, 1]
    assert table["title"].isna().all()


def test_empty_input_raises_parse_error(loader):
    """Test that an input without a header is fatal."""
    with pytest.raises(ParseError):
        loader.load(io.StringIO(""))


def test_missing_file_raises_parse_error(loader):
    """Test that an unreadable path is fatal."""
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(ParseError):
            loader.load(os.path.join(tmpdir, "missing.csv"))


def test_iter_reviews(loader):
    """Test row views carry None for absent fields."""
    reviews = list(iter_reviews(loader.load(io.StringIO(HEADER + ROWS))))

    assert len(reviews) == 2
    assert reviews[0].id == 0
    assert reviews[0].price is None
    assert reviews[1].price == 15.0
    assert reviews[1].region_1 is None
    assert reviews[1].winery == "Quinta dos Avidagos"


def _mock_response(chunks):
    response = MagicMock()
    response.iter_content.return_value = chunks
    context = MagicMock()
    context.__enter__.return_value = response
    return context


def test_fetch_writes_file(loader):
    """Test a streamed download is written to the destination."""
    with tempfile.TemporaryDirectory() as tmpdir:
        destination = os.path.join(tmpdir, "raw", "reviews.csv")

        with patch("winemag_eda.agents.ingestion.requests.get") as mock_get:
            mock_get.return_value = _mock_response([b"a,b\n", b"1,2\n"])
            path = loader.fetch("https://example.org/reviews.csv", destination)

        assert path == destination
        with open(destination, "rb") as f:
            assert f.read() == b"a,b\n1,2\n"
        assert not os.path.exists(destination + ".part")


def test_fetch_skips_existing_file(loader):
    """Test that an existing dataset is not downloaded again."""
    with tempfile.TemporaryDirectory() as tmpdir:
        destination = os.path.join(tmpdir, "reviews.csv")
        with open(destination, "w") as f:
            f.write("a\n")

        with patch("winemag_eda.agents.ingestion.requests.get") as mock_get:
            loader.fetch("https://example.org/reviews.csv", destination)
            mock_get.assert_not_called()


def test_fetch_failure_raises_external_service_error(loader):
    """Test that transport errors surface as ExternalServiceError."""
    with tempfile.TemporaryDirectory() as tmpdir:
        destination = os.path.join(tmpdir, "reviews.csv")

        with patch("winemag_eda.agents.ingestion.requests.get") as mock_get:
            mock_get.side_effect = requests.ConnectionError("connection refused")
            with pytest.raises(ExternalServiceError):
                loader.fetch("https://example.org/reviews.csv", destination)

        assert not os.path.exists(destination)


def test_fetch_http_error(loader):
    """Test that a non-2xx status surfaces as ExternalServiceError."""
    with tempfile.TemporaryDirectory() as tmpdir:
        destination = os.path.join(tmpdir, "reviews.csv")

        with patch("winemag_eda.agents.ingestion.requests.get") as mock_get:
            context = _mock_response([])
            context.__enter__.return_value.raise_for_status.side_effect = requests.HTTPError("404")
            mock_get.return_value = context
            with pytest.raises(ExternalServiceError):
                loader.fetch("https://example.org/reviews.csv", destination, force=True)
