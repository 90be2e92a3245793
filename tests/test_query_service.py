# tests/test_query_service.py

from unittest.mock import MagicMock

import pytest

from ocrsearch.application.query_service import QueryService
from ocrsearch.domain.errors import EmptyKeywordError, SearchUnavailableError
from ocrsearch.domain.models import SearchHit, SearchResults


def _make_mock_index(results: SearchResults):
    index = MagicMock()
    index.search.return_value = results
    return index


@pytest.mark.parametrize("keyword", ["", "   ", "\t\n", None])
def test_blank_keyword_is_rejected_without_calling_index(keyword):
    index = MagicMock()
    service = QueryService(index)

    with pytest.raises(EmptyKeywordError, match="empty"):
        service.search(keyword)

    index.search.assert_not_called()


def test_empty_keyword_error_is_a_value_error():
    with pytest.raises(ValueError):
        QueryService(MagicMock()).search("")


def test_keyword_is_trimmed_before_search():
    index = _make_mock_index(SearchResults(keyword="Total", total=0))
    QueryService(index).search("  Total  ")
    index.search.assert_called_once_with("Total")


def test_results_are_returned_in_index_order():
    hits = [
        SearchHit(record_id=2, filename="b.png", score=1.2, snippet="..."),
        SearchHit(record_id=1, filename="a.png", score=3.4, snippet="..."),
    ]
    expected = SearchResults(keyword="invoice", total=2, hits=hits)
    service = QueryService(_make_mock_index(expected))

    results = service.search("invoice")

    assert results is expected
    assert [h.filename for h in results.hits] == ["b.png", "a.png"]


def test_no_matches_is_an_empty_result_not_an_error():
    service = QueryService(_make_mock_index(SearchResults(keyword="zebra", total=0)))
    results = service.search("zebra")
    assert results.is_empty


def test_search_unavailable_propagates():
    index = MagicMock()
    index.search.side_effect = SearchUnavailableError("index offline")

    with pytest.raises(SearchUnavailableError, match="offline"):
        QueryService(index).search("invoice")
