# ocrsearch/application/query_service.py

from ocrsearch.domain.errors import EmptyKeywordError
from ocrsearch.domain.interfaces import SearchIndexPort
from ocrsearch.domain.models import SearchResults


class QueryService:
    """
    Keyword search use case. Rejects blank keywords locally and otherwise
    returns the index results unchanged, in the index's relevance order.
    """

    def __init__(self, search_index: SearchIndexPort):
        self._search_index = search_index

    def search(self, keyword: str) -> SearchResults:
        keyword = (keyword or "").strip()
        if not keyword:
            raise EmptyKeywordError()

        return self._search_index.search(keyword)
