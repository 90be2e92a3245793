# ocrsearch/infrastructure/chroma_index.py

from typing import Callable, List, Optional

import chromadb
import numpy as np
from chromadb.api import ClientAPI
from chromadb.config import Settings
from rank_bm25 import BM25Plus

from ocrsearch.config import AppConfig
from ocrsearch.domain.errors import (
    IndexUnavailableError,
    InvalidInputError,
    SearchUnavailableError,
)
from ocrsearch.domain.interfaces import SearchIndexPort
from ocrsearch.domain.models import Record, SearchHit, SearchResults
from ocrsearch.infrastructure.text_analysis import (
    FRAGMENT_SIZE,
    HIGHLIGHT_POST_TAG,
    HIGHLIGHT_PRE_TAG,
    SNIPPET_UNAVAILABLE,
    analyze,
    highlight_segments,
    render_snippet,
)


# ── Constants ─────────────────────────────────────────────────────────────────

MAX_RESULTS = 10

# Field schema written into the collection metadata on creation.
FIELD_SCHEMA = {
    "schema:id":         "keyword",
    "schema:filename":   "keyword",
    "schema:text":       "text:english",
    "schema:confidence": "double",
    "schema:uploadTime": "date",
}

# The collection is used as a keyword index only. Chroma still wants a
# vector per entry, so every record carries the same one.
PLACEHOLDER_EMBEDDING = [1.0]


class ChromaKeywordIndex(SearchIndexPort):
    """
    Full-text index stored in a ChromaDB collection.

    ┌──────────────────────────────────────────────────────────┐
    │  ChromaDB (server or disk) → documents + field metadata  │
    │  english analyzer          → lowercase, stop words, 's   │
    │  BM25+ (rank_bm25)         → relevance score per match   │
    │  highlighter               → one ~150 char fragment      │
    └──────────────────────────────────────────────────────────┘

    Documents are keyed by the record store id, so the same id joins the
    two systems. The corpus is read back from the collection on every
    search; nothing is cached in process.
    """

    def __init__(
        self,
        client_factory: Callable[[], ClientAPI],
        index_name: str = "documents",
        max_results: int = MAX_RESULTS,
        fragment_size: int = FRAGMENT_SIZE,
        pre_tag: str = HIGHLIGHT_PRE_TAG,
        post_tag: str = HIGHLIGHT_POST_TAG,
    ):
        """
        Args:
            client_factory: Builds the Chroma client on first use, so an
                            unreachable server surfaces as an adapter error
                            instead of failing construction.
            index_name:     Collection holding the indexed records.
            max_results:    Cap on returned hits.
            fragment_size:  Approximate highlight fragment length.
            pre_tag/post_tag: Markers around highlighted words.
        """
        self._client_factory = client_factory
        self._index_name     = index_name
        self._max_results    = max_results
        self._fragment_size  = fragment_size
        self._pre_tag        = pre_tag
        self._post_tag       = post_tag

        self._client:     Optional[ClientAPI] = None
        self._collection = None

    @classmethod
    def from_config(cls, config: AppConfig) -> "ChromaKeywordIndex":
        settings = Settings(anonymized_telemetry=False)
        if config.index_host:
            def factory() -> ClientAPI:
                return chromadb.HttpClient(
                    host=config.index_host, port=config.index_port, settings=settings
                )
            target = f"{config.index_host}:{config.index_port}"
        else:
            def factory() -> ClientAPI:
                return chromadb.PersistentClient(path=config.index_directory, settings=settings)
            target = config.index_directory

        print(f"[SearchIndex] Using ChromaDB at '{target}', index '{config.index_name}'.")
        return cls(factory, index_name=config.index_name)

    @property
    def index_name(self) -> str:
        return self._index_name

    # ─── SearchIndexPort ──────────────────────────────────────────────────────

    def ensure_schema(self) -> None:
        """Create the index with its field schema unless it already exists."""
        try:
            client = self._get_client()
            existing = {getattr(c, "name", c) for c in client.list_collections()}
            if self._index_name in existing:
                self._collection = client.get_collection(name=self._index_name)
                return

            print(f"[SearchIndex] Index not found. Creating index: {self._index_name}")
            self._collection = client.create_collection(
                name=self._index_name,
                metadata=dict(FIELD_SCHEMA),
            )
        except IndexUnavailableError:
            raise
        except Exception as error:
            raise IndexUnavailableError(
                f"Index setup failed for '{self._index_name}' "
                f"(is the index server running?): {error}"
            ) from error

        print("[SearchIndex] ✓ Index created successfully.")

    def index(self, record: Record, record_id: int) -> None:
        if isinstance(record_id, bool) or not isinstance(record_id, int) or record_id <= 0:
            raise InvalidInputError(
                f"Cannot index '{record.filename}': invalid record id {record_id!r}.",
                stage="indexing",
            )

        collection = self._get_collection()
        try:
            collection.upsert(
                ids        = [str(record_id)],
                embeddings = [PLACEHOLDER_EMBEDDING],
                documents  = [record.text],
                metadatas  = [{
                    "id":         str(record_id),
                    "filename":   record.filename,
                    "confidence": float(record.confidence),
                    "uploadTime": record.upload_time.isoformat(timespec="seconds"),
                }],
            )
        except Exception as error:
            print(f"[SearchIndex] ✗ Index error: {error}")
            raise IndexUnavailableError(
                f"Could not index document {record_id} ('{record.filename}'): {error}"
            ) from error

        print(f"[SearchIndex] ✓ Index successful. Document ID: {record_id}")

    def search(self, keyword: str) -> SearchResults:
        """
        Match query on `text`:
            1. Analyze the keyword with the english analyzer
            2. Keep documents sharing at least one analyzed term
            3. Score them with BM25+ over the whole corpus
            4. Return the top hits with one highlighted fragment each
        """
        print(f"[SearchIndex] Searching for keyword: '{keyword}' ...")
        try:
            collection = self._get_collection()
            corpus = collection.get(include=["documents", "metadatas"])
        except Exception as error:
            raise SearchUnavailableError(
                f"Search failed on index '{self._index_name}': {error}"
            ) from error

        terms = list(dict.fromkeys(analyze(keyword)))
        ids       = corpus["ids"] or []
        documents = corpus["documents"] or []
        metadatas = corpus["metadatas"] or []
        if not terms or not ids:
            return SearchResults(keyword=keyword, total=0)

        tokenized = [analyze(text or "") for text in documents]
        term_set = set(terms)
        matching = [i for i, tokens in enumerate(tokenized) if term_set.intersection(tokens)]
        if not matching:
            return SearchResults(keyword=keyword, total=0)

        scores = np.asarray(BM25Plus(tokenized).get_scores(terms), dtype=float)
        matching_scores = scores[matching]
        ranked = [matching[i] for i in np.argsort(-matching_scores, kind="stable")]

        results = SearchResults(keyword=keyword, total=len(matching))
        for i in ranked[: self._max_results]:
            hit = self._to_hit(ids[i], documents[i], metadatas[i], float(scores[i]), terms)
            if hit is None:
                results.skipped += 1
                continue
            results.hits.append(hit)

        print(f"[SearchIndex] {results.total} hit(s), returning {len(results.hits)}.")
        return results

    # ─── Private ──────────────────────────────────────────────────────────────

    def _get_client(self) -> ClientAPI:
        if self._client is None:
            try:
                self._client = self._client_factory()
            except Exception as error:
                raise IndexUnavailableError(
                    f"Cannot connect to index backend: {error}"
                ) from error
        return self._client

    def _get_collection(self):
        if self._collection is None:
            self.ensure_schema()
        return self._collection

    def _to_hit(
        self,
        doc_id: str,
        text: Optional[str],
        metadata: Optional[dict],
        score: float,
        terms: List[str],
    ) -> Optional[SearchHit]:
        """Map one stored document to a hit; None when its fields are unusable."""
        filename = (metadata or {}).get("filename")
        if not filename:
            print(f"[SearchIndex] ⚠ Skipping document {doc_id}: no filename stored.")
            return None
        try:
            record_id = int(doc_id)
        except (TypeError, ValueError):
            print(f"[SearchIndex] ⚠ Skipping document {doc_id!r}: id is not a record id.")
            return None

        segments = highlight_segments(text or "", terms, fragment_size=self._fragment_size)
        if not segments:
            return SearchHit(record_id, filename, score, SNIPPET_UNAVAILABLE)

        return SearchHit(
            record_id = record_id,
            filename  = filename,
            score     = score,
            snippet   = render_snippet(segments, self._pre_tag, self._post_tag),
            segments  = tuple(segments),
        )
