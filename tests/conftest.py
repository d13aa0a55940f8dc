"""
Shared fixtures: a temporary database per test and OCR engines that return
canned text instead of running tesseract.
"""

from datetime import date

import pytest

from scorebook.api.ocr_client import TextExtractor
from scorebook.data.database import get_connection, init_database
from scorebook.data.ingest import ScoresheetIngestor
from scorebook.utils.exceptions import ExtractionError

HOME_MARKERS = ("NMCC", "NORTHOLT", "MANOR")

SAMPLE_SCORESHEET = """\
NORTHOLT MANOR CRICKET CLUB
MATCH PLAYED BETWEEN NMCC v Ealing CC
PLAYED AT Lammas Park
DATE: 12-07-2025
TOSS WON BY Ealing CC
RESULT: NMCC won by 4 wickets

NMCC INNINGS
1. R Patel* 45 50 30 not out
2. J Smith (wk) 12 20 15 c Hughes b Jones
3. A Khan 0 2 1 b Brown
Extras 4 2 1 0

BOWLING: Ealing CC
Jones 6.0 1 25 2
Brown 4.3 0 30 1

EALING CC INNINGS
1. T Walker 60 70 55 c Patel b Khan
2. M Hughes 8 10 9 st Smith b Patel
3. P Green 3 5 4 run out (Khan)

BOWLING: NMCC
Khan 8.0 2 30 1
Patel 5.2 0 22 1
"""


class FakeExtractor(TextExtractor):
    name = "fake"

    def __init__(self, text: str):
        self.text = text
        self.calls = 0

    def recognize(self, image):
        self.calls += 1
        return self.text


class FailingExtractor(TextExtractor):
    name = "failing"

    def recognize(self, image):
        raise ExtractionError("tesseract timed out")


@pytest.fixture
def sample_text():
    return SAMPLE_SCORESHEET


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "scorebook.db"
    assert init_database(path)
    return path


@pytest.fixture
def conn(db_path):
    connection = get_connection(db_path)
    yield connection
    connection.close()


@pytest.fixture
def query(db_path):
    """Run a read-only query on a fresh connection and return all rows."""
    def _query(sql, params=()):
        connection = get_connection(db_path)
        try:
            return connection.execute(sql, params).fetchall()
        finally:
            connection.close()
    return _query


@pytest.fixture
def count_rows(query):
    def _count(table):
        return query(f"SELECT COUNT(*) FROM {table}")[0][0]
    return _count


@pytest.fixture
def make_ingestor(db_path):
    def _make(extractor=None, text=None, overs_mode="balls"):
        return ScoresheetIngestor(
            extractor=extractor or FakeExtractor(text or SAMPLE_SCORESHEET),
            db_path=db_path,
            home_markers=HOME_MARKERS,
            overs_mode=overs_mode,
            today=date(2025, 7, 14),
        )
    return _make


@pytest.fixture
def ingestor(make_ingestor):
    return make_ingestor()


@pytest.fixture
def failing_ingestor(make_ingestor):
    return make_ingestor(FailingExtractor())
