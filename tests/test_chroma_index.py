# tests/test_chroma_index.py

from datetime import datetime
from unittest.mock import MagicMock

import chromadb
import pytest
from chromadb.config import Settings

from ocrsearch.domain.errors import (
    IndexUnavailableError,
    InvalidInputError,
    SearchUnavailableError,
)
from ocrsearch.domain.models import Record
from ocrsearch.infrastructure.chroma_index import FIELD_SCHEMA, ChromaKeywordIndex


# ── Fixtures ──────────────────────────────────────────────────────────────────

def _client_factory(path: str):
    return lambda: chromadb.PersistentClient(
        path=path,
        settings=Settings(anonymized_telemetry=False),
    )


@pytest.fixture
def index(tmp_path) -> ChromaKeywordIndex:
    """Fresh index backed by a temp directory for each test."""
    idx = ChromaKeywordIndex(_client_factory(str(tmp_path / "chroma_test")), index_name="documents")
    idx.ensure_schema()
    return idx


def _record(filename: str, text: str) -> Record:
    return Record(
        filename=filename,
        text=text,
        confidence=95.0,
        upload_time=datetime(2024, 5, 1, 12, 0, 0),
    )


def _broken_factory():
    raise ConnectionError("index server unreachable")


# ── Schema ────────────────────────────────────────────────────────────────────

def test_ensure_schema_creates_index_with_field_schema(index):
    client = index._get_client()
    collection = client.get_collection(name="documents")
    for key, value in FIELD_SCHEMA.items():
        assert collection.metadata[key] == value


def test_ensure_schema_is_idempotent(index):
    index.index(_record("a.png", "alpha invoice"), 1)
    index.ensure_schema()
    index.ensure_schema()

    client = index._get_client()
    names = [getattr(c, "name", c) for c in client.list_collections()]
    assert names.count("documents") == 1
    assert index.search("alpha").total == 1


def test_index_creates_schema_lazily(tmp_path):
    idx = ChromaKeywordIndex(_client_factory(str(tmp_path / "lazy")), index_name="lazy_docs")
    idx.index(_record("a.png", "lazy creation works"), 1)
    assert idx.search("lazy").total == 1


# ── Round trip ────────────────────────────────────────────────────────────────

def test_search_finds_indexed_record_with_highlight(index):
    index.index(_record("invoice.png", "Total Due: $42.00"), 1)

    results = index.search("Total")

    assert results.total == 1
    hit = results.hits[0]
    assert hit.filename == "invoice.png"
    assert hit.record_id == 1
    assert hit.score > 0
    assert ">>>Total<<<" in hit.snippet
    assert hit.segments == (("Total", True), (" Due: $42.00", False))


def test_search_returns_only_record_containing_unique_word(index):
    index.index(_record("a.png", "quarterly revenue report"), 1)
    index.index(_record("b.png", "shipping manifest for pallets"), 2)
    index.index(_record("c.png", "employee handbook revision"), 3)

    results = index.search("manifest")

    assert results.total == 1
    assert [h.filename for h in results.hits] == ["b.png"]


def test_search_is_case_insensitive(index):
    index.index(_record("memo.png", "CONFIDENTIAL memo"), 1)
    assert index.search("confidential").total == 1


def test_search_no_match_returns_empty_results(index):
    index.index(_record("a.png", "some scanned text"), 1)

    results = index.search("nonexistent")

    assert results.total == 0
    assert results.hits == []
    assert results.is_empty


def test_search_on_empty_index_returns_no_hits(index):
    assert index.search("anything").total == 0


def test_stop_word_query_matches_nothing(index):
    index.index(_record("a.png", "the cat and the hat"), 1)
    assert index.search("the").total == 0


def test_search_ranks_by_relevance(index):
    index.index(_record("long.png", "invoice summary report for the month of march with many words"), 1)
    index.index(_record("dense.png", "invoice invoice invoice"), 2)

    results = index.search("invoice")

    assert results.total == 2
    assert results.hits[0].filename == "dense.png"
    assert results.hits[0].score > results.hits[1].score


def test_search_caps_hits_at_ten(index):
    for i in range(1, 13):
        index.index(_record(f"scan_{i}.png", f"receipt number {i}"), i)

    results = index.search("receipt")

    assert results.total == 12
    assert len(results.hits) == 10
    scores = [h.score for h in results.hits]
    assert scores == sorted(scores, reverse=True)


def test_index_overwrites_document_with_same_id(index):
    index.index(_record("a.png", "original wording"), 7)
    index.index(_record("a.png", "replacement wording"), 7)

    assert index.search("original").total == 0
    assert index.search("replacement").total == 1


def test_hit_without_filename_is_skipped(index):
    index.index(_record("good.png", "orphan ledger"), 1)
    # Written behind the adapter's back, without a filename.
    index._collection.upsert(
        ids=["99"],
        embeddings=[[1.0]],
        documents=["orphan entry"],
        metadatas=[{"id": "99"}],
    )

    results = index.search("orphan")

    assert results.total == 2
    assert results.skipped == 1
    assert [h.filename for h in results.hits] == ["good.png"]


# ── Failures ──────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("bad_id", [-1, 0, None])
def test_index_rejects_invalid_id_before_any_call(bad_id):
    factory = MagicMock()
    idx = ChromaKeywordIndex(factory)

    with pytest.raises(InvalidInputError):
        idx.index(_record("a.png", "text"), bad_id)

    factory.assert_not_called()


def test_ensure_schema_reports_unreachable_backend():
    idx = ChromaKeywordIndex(_broken_factory)
    with pytest.raises(IndexUnavailableError, match="unreachable"):
        idx.ensure_schema()


def test_index_reports_unreachable_backend():
    idx = ChromaKeywordIndex(_broken_factory)
    with pytest.raises(IndexUnavailableError):
        idx.index(_record("a.png", "text"), 1)


def test_index_reports_upsert_failure():
    collection = MagicMock()
    collection.upsert.side_effect = RuntimeError("write rejected")
    idx = ChromaKeywordIndex(MagicMock())
    idx._collection = collection

    with pytest.raises(IndexUnavailableError, match="write rejected"):
        idx.index(_record("a.png", "text"), 1)


def test_search_reports_unreachable_backend_instead_of_empty_result():
    idx = ChromaKeywordIndex(_broken_factory)
    with pytest.raises(SearchUnavailableError):
        idx.search("anything")
