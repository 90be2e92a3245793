# ocrsearch/domain/errors.py


class OcrSearchError(Exception):
    """Base error. `stage` names the pipeline step that failed."""

    stage = "unknown"

    def __init__(self, message: str, stage: str = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class InvalidInputError(OcrSearchError, ValueError):
    """Bad path, id or keyword supplied by the caller."""
    stage = "input"


class EmptyKeywordError(InvalidInputError):
    stage = "query"

    def __init__(self, message: str = "Keyword cannot be empty."):
        super().__init__(message)


class DuplicateRecordError(OcrSearchError):
    """The store already holds a record with this filename."""
    stage = "storage"


class StoreUnavailableError(OcrSearchError):
    stage = "storage"


class IndexUnavailableError(OcrSearchError):
    stage = "indexing"


class SearchUnavailableError(OcrSearchError):
    stage = "search"
