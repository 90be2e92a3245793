# ocrsearch/application/ingestion_service.py

from datetime import datetime
from pathlib import Path
from typing import Callable

from ocrsearch.domain.errors import (
    DuplicateRecordError,
    IndexUnavailableError,
    InvalidInputError,
    StoreUnavailableError,
)
from ocrsearch.domain.interfaces import ExtractionPort, RecordStorePort, SearchIndexPort
from ocrsearch.domain.models import (
    IngestionReport,
    IngestionStatus,
    Record,
    ReindexReport,
)


class IngestionPipeline:
    """
    Core use case: OCR a document, store it, then make it searchable.

    Start → Extracted → Stored → Indexed → Done

    - Extraction and storage failures abort the submission; nothing is
      stored or indexed.
    - An indexing failure does not undo the insert. The record stays
      stored and listable and the report is INDEXING_DEGRADED until
      reindex_all() runs.
    """

    def __init__(
        self,
        extractor: ExtractionPort,
        record_store: RecordStorePort,
        search_index: SearchIndexPort,
        preview_chars: int = 500,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._extractor     = extractor
        self._record_store  = record_store
        self._search_index  = search_index
        self._preview_chars = preview_chars
        self._clock         = clock

    def submit(self, path: str) -> IngestionReport:
        filename = Path(path).name

        # ── 1. Extraction ─────────────────────────────────────────────────────
        try:
            extraction = self._extractor.extract(path)
        except InvalidInputError as error:
            return self._report(IngestionStatus.FILE_ERROR, filename, f"File error: {error}")

        if extraction.is_empty:
            return self._report(
                IngestionStatus.NO_READABLE_TEXT,
                filename,
                f"OCR produced no readable text for '{filename}'. Nothing was stored.",
            )

        record = Record(
            filename    = filename,
            text        = extraction.text,
            confidence  = extraction.confidence,
            upload_time = self._clock().replace(microsecond=0),
        )

        # ── 2. Storage ────────────────────────────────────────────────────────
        try:
            record_id = self._record_store.insert(record)
        except DuplicateRecordError as error:
            return self._report(
                IngestionStatus.DUPLICATE_SKIPPED, filename, f"Skipped duplicate: {error}"
            )
        except StoreUnavailableError as error:
            return self._report(
                IngestionStatus.STORAGE_FAILURE, filename, f"Storage failed: {error}"
            )

        record = record.with_id(record_id)

        # ── 3. Indexing ───────────────────────────────────────────────────────
        try:
            self._search_index.index(record, record_id)
        except IndexUnavailableError as error:
            print(f"[Pipeline] ⚠ Document {record_id} stored but not indexed: {error}")
            return self._report(
                IngestionStatus.INDEXING_DEGRADED,
                filename,
                f"Stored '{filename}' as document {record_id}, but it is not searchable yet.",
                record=record,
                warning=f"Indexing failed: {error}",
            )

        return self._report(
            IngestionStatus.INDEXED,
            filename,
            f"Stored and indexed '{filename}' as document {record_id}.",
            record=record,
        )

    def reindex_all(self) -> ReindexReport:
        """
        Write every stored record into the search index again under its
        store id. Raises StoreUnavailableError if the records cannot be listed.
        """
        report = ReindexReport()
        for record in self._record_store.list_all():
            try:
                self._search_index.index(record, record.id)
                report.indexed += 1
            except IndexUnavailableError as error:
                report.failed += 1
                report.failures.append(f"{record.id} ({record.filename}): {error}")

        print(f"[Pipeline] Reindex finished: {report.indexed} indexed, {report.failed} failed.")
        return report

    def _report(self, status: IngestionStatus, filename: str, message: str, **extra) -> IngestionReport:
        print(f"[Pipeline] {status.value}: {message}")
        return IngestionReport(
            status=status,
            filename=filename,
            message=message,
            preview_chars=self._preview_chars,
            **extra,
        )
