# ocrsearch/bootstrap.py

from dataclasses import dataclass

from ocrsearch.application.ingestion_service import IngestionPipeline
from ocrsearch.application.query_service import QueryService
from ocrsearch.config import AppConfig
from ocrsearch.domain.errors import IndexUnavailableError, StoreUnavailableError
from ocrsearch.domain.interfaces import RecordStorePort, SearchIndexPort
from ocrsearch.infrastructure.chroma_index import ChromaKeywordIndex
from ocrsearch.infrastructure.sql_store import SqlRecordStore
from ocrsearch.infrastructure.tesseract_engine import TesseractExtractor


@dataclass
class Services:
    ingestion:    IngestionPipeline
    query:        QueryService
    record_store: RecordStorePort
    search_index: SearchIndexPort


def build_services(config: AppConfig) -> Services:
    """
    Wire every adapter from one config. Backends that are down at startup
    only produce a warning here; their operations report the failure later.
    """
    extractor = TesseractExtractor(
        tessdata_path=config.tessdata_path,
        language=config.ocr_language,
    )

    record_store = SqlRecordStore(config.database_url)
    try:
        record_store.ensure_schema()
    except StoreUnavailableError as error:
        print(f"[Bootstrap] ⚠ Record store not ready: {error}")

    search_index = ChromaKeywordIndex.from_config(config)
    try:
        search_index.ensure_schema()
    except IndexUnavailableError as error:
        print(f"[Bootstrap] ⚠ Search index not ready: {error}")

    return Services(
        ingestion=IngestionPipeline(
            extractor=extractor,
            record_store=record_store,
            search_index=search_index,
            preview_chars=config.preview_chars,
        ),
        query=QueryService(search_index),
        record_store=record_store,
        search_index=search_index,
    )
