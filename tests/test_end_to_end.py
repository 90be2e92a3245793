# tests/test_end_to_end.py
"""
Pipeline + query over a real SQLite store and a real on-disk ChromaDB index.
Only the OCR engine is faked.
"""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import chromadb
import pytest
from chromadb.config import Settings

from ocrsearch.application.ingestion_service import IngestionPipeline
from ocrsearch.application.query_service import QueryService
from ocrsearch.domain.errors import IndexUnavailableError
from ocrsearch.domain.interfaces import ExtractionPort
from ocrsearch.domain.models import ExtractionResult, IngestionStatus
from ocrsearch.infrastructure.chroma_index import ChromaKeywordIndex
from ocrsearch.infrastructure.sql_store import SqlRecordStore


class FakeExtractor(ExtractionPort):
    """Returns canned OCR text keyed by file name."""

    def __init__(self, texts: dict):
        self._texts = texts
        self.calls = 0

    def extract(self, path: str) -> ExtractionResult:
        self.calls += 1
        text = self._texts.get(path.rsplit("/", 1)[-1], "")
        return ExtractionResult(text, 95.0) if text else ExtractionResult.empty()


class TickingClock:
    def __init__(self):
        self._now = datetime(2024, 1, 1, 9, 0, 0)

    def __call__(self) -> datetime:
        self._now += timedelta(minutes=1)
        return self._now


@pytest.fixture
def system(tmp_path):
    extractor = FakeExtractor({
        "invoice.png": "Total Due: $42.00",
        "contract.png": "This agreement is signed by both parties.",
        "receipt.png": "Coffee and bagel, paid in cash.",
        "blank.png": "",
    })
    store = SqlRecordStore(f"sqlite:///{tmp_path / 'records.db'}")
    store.ensure_schema()
    index_path = str(tmp_path / "chroma")
    index = ChromaKeywordIndex(
        lambda: chromadb.PersistentClient(path=index_path, settings=Settings(anonymized_telemetry=False)),
    )
    index.ensure_schema()
    pipeline = IngestionPipeline(extractor, store, index, clock=TickingClock())
    return pipeline, QueryService(index), store, index, extractor


def test_invoice_scenario(system):
    pipeline, query, store, _, _ = system

    report = pipeline.submit("/scans/invoice.png")

    assert report.status is IngestionStatus.INDEXED
    assert report.record.id == 1
    assert report.record.confidence == 95.0

    results = query.search("Total")
    assert results.total == 1
    [hit] = results.hits
    assert hit.filename == "invoice.png"
    assert hit.score > 0
    assert ">>>Total<<<" in hit.snippet


def test_blank_scenario_writes_nothing(system):
    pipeline, _, store, _, _ = system
    pipeline.submit("/scans/invoice.png")

    report = pipeline.submit("/scans/blank.png")

    assert report.status is IngestionStatus.NO_READABLE_TEXT
    assert [r.filename for r in store.list_all()] == ["invoice.png"]


def test_resubmission_is_duplicate_and_row_count_unchanged(system):
    pipeline, _, store, _, _ = system
    pipeline.submit("/scans/invoice.png")

    report = pipeline.submit("/other/dir/invoice.png")

    assert report.status is IngestionStatus.DUPLICATE_SKIPPED
    assert store.count() == 1


def test_ids_are_unique_and_listing_is_most_recent_first(system):
    pipeline, _, store, _, _ = system
    ids = [
        pipeline.submit(f"/scans/{name}").record.id
        for name in ("invoice.png", "contract.png", "receipt.png")
    ]

    assert len(set(ids)) == 3 and all(i > 0 for i in ids)
    assert [r.filename for r in store.list_all()] == ["receipt.png", "contract.png", "invoice.png"]


def test_degraded_indexing_is_listed_but_not_searchable_until_reindex(system, monkeypatch):
    pipeline, query, store, index, _ = system
    pipeline.submit("/scans/invoice.png")

    real_index = index.index
    monkeypatch.setattr(index, "index", MagicMock(side_effect=IndexUnavailableError("index down")))
    report = pipeline.submit("/scans/contract.png")

    assert report.status is IngestionStatus.INDEXING_DEGRADED
    assert "contract.png" in [r.filename for r in store.list_all()]
    assert query.search("agreement").total == 0

    monkeypatch.setattr(index, "index", real_index)
    repaired = pipeline.reindex_all()

    assert repaired.indexed == 2 and repaired.failed == 0
    [hit] = query.search("agreement").hits
    assert hit.filename == "contract.png"
    assert hit.record_id == report.record.id
