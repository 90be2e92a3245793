# ocrsearch/domain/models.py

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class Record:
    """
    A single OCRed document: the unit of storage and search.
    `id` is assigned by the record store and reused verbatim as the
    search index document id.
    """
    filename: str
    text: str
    confidence: float
    upload_time: datetime
    id: Optional[int] = None

    def with_id(self, record_id: int) -> "Record":
        if self.id is not None:
            raise ValueError(f"Record '{self.filename}' already has id {self.id}.")
        return replace(self, id=record_id)

    @property
    def upload_time_text(self) -> str:
        return self.upload_time.strftime(TIMESTAMP_FORMAT)

    def __str__(self) -> str:
        return (
            f"ID: {self.id} | Filename: {self.filename} | "
            f"Confidence: {self.confidence:.2f}% | Uploaded: {self.upload_time_text}"
        )


@dataclass(frozen=True)
class ExtractionResult:
    text: str
    confidence: float

    @classmethod
    def empty(cls) -> "ExtractionResult":
        return cls(text="", confidence=0.0)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass
class SearchHit:
    """
    One ranked match returned by the search index.

    `snippet` is the fragment with matches wrapped in highlight tags;
    `segments` holds the same fragment as (part, highlighted) pieces so a
    renderer never has to parse the tags back out of OCR text.
    """
    record_id: int
    filename: str
    score: float
    snippet: str
    segments: Tuple[Tuple[str, bool], ...] = ()

    def __repr__(self) -> str:
        return (
            f"SearchHit(score={self.score:.4f}, "
            f"filename='{self.filename}', "
            f"snippet='{self.snippet[:80]}...')"
        )


@dataclass
class SearchResults:
    keyword: str
    total: int
    hits: List[SearchHit] = field(default_factory=list)
    # Matches dropped because their stored fields were unusable.
    skipped: int = 0

    @property
    def is_empty(self) -> bool:
        return self.total == 0 or not self.hits


class IngestionStatus(Enum):
    INDEXED            = "indexed"
    INDEXING_DEGRADED  = "indexing_degraded"
    DUPLICATE_SKIPPED  = "duplicate_skipped"
    NO_READABLE_TEXT   = "no_readable_text"
    FILE_ERROR         = "file_error"
    STORAGE_FAILURE    = "storage_failure"


# Outcomes that are expected in normal use and reported as information.
INFORMATIONAL_STATUSES = {
    IngestionStatus.DUPLICATE_SKIPPED,
    IngestionStatus.NO_READABLE_TEXT,
}


@dataclass
class IngestionReport:
    """Result of submitting one document through the ingestion pipeline."""
    status: IngestionStatus
    filename: str
    message: str
    record: Optional[Record] = None
    warning: Optional[str] = None
    preview_chars: int = 500

    @property
    def succeeded(self) -> bool:
        return self.status in (IngestionStatus.INDEXED, IngestionStatus.INDEXING_DEGRADED)

    @property
    def is_informational(self) -> bool:
        return self.status in INFORMATIONAL_STATUSES

    @property
    def preview(self) -> str:
        if self.record is None:
            return ""
        text = self.record.text
        if len(text) <= self.preview_chars:
            return text
        return text[: self.preview_chars] + "..."


@dataclass
class ReindexReport:
    indexed: int = 0
    failed: int = 0
    failures: List[str] = field(default_factory=list)
