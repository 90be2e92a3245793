# ocrsearch/domain/interfaces.py

from abc import ABC, abstractmethod
from typing import List

from .models import ExtractionResult, Record, SearchResults


class ExtractionPort(ABC):
    """
    Port for any OCR engine.
    Raises InvalidInputError for a bad path; engine failures come back
    as an empty ExtractionResult.
    """

    @abstractmethod
    def extract(self, path: str) -> ExtractionResult: ...


class RecordStorePort(ABC):

    @abstractmethod
    def insert(self, record: Record) -> int:
        """
        Persist a record and return the store-generated id.
        Raises DuplicateRecordError or StoreUnavailableError.
        """
        ...

    @abstractmethod
    def list_all(self) -> List[Record]:
        """Every stored record, most recent first (upload_time, then id)."""
        ...


class SearchIndexPort(ABC):

    @abstractmethod
    def ensure_schema(self) -> None: ...

    @abstractmethod
    def index(self, record: Record, record_id: int) -> None: ...

    @abstractmethod
    def search(self, keyword: str) -> SearchResults: ...
