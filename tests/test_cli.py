"""Tests for the command line interface and request schemas."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from facetsearch.cli import build_parser, load_request, main, run_search
from facetsearch.domain.filters import FacetKey
from facetsearch.domain.value_objects import SearchResult, SortOrder
from facetsearch.schemas import SearchRequest, SearchResponse


class TestSearchRequest:
    """Tests for SearchRequest."""

    def test_to_query(self) -> None:
        """Request fields map onto the query."""
        request = SearchRequest(page=2, results_per_page=5, order="price.desc", id_category=3)
        query = request.to_query()
        assert query.page == 2
        assert query.results_per_page == 5
        assert query.sort_order == SortOrder("price", "desc")
        assert query.id_category == 3

    def test_to_selected_filters(self) -> None:
        """JSON object keys are accepted for grouped facets."""
        request = SearchRequest(filters={"id_feature": {"1": ["10"]}, "unknown": [1]})
        filters = request.to_selected_filters()
        assert list(filters) == [FacetKey.FEATURE]

    def test_invalid_page(self) -> None:
        """Pages start at 1."""
        with pytest.raises(ValidationError):
            SearchRequest(page=0)

    def test_response_from_result(self) -> None:
        """Responses mirror the search result."""
        response = SearchResponse.from_result(SearchResult(products=[{"id_product": 1}], count=1))
        assert response.model_dump() == {"products": [{"id_product": 1}], "count": 1}


class TestParser:
    """Tests for argument parsing."""

    def test_search_options(self) -> None:
        """Search options build a request."""
        args = build_parser().parse_args(
            [
                "search",
                "--filters",
                '{"quantity": [2]}',
                "--order",
                "name.asc",
                "--group",
                "1",
                "--group",
                "3",
            ]
        )
        request = load_request(args)
        assert request.filters == {"quantity": [2]}
        assert request.order == "name.asc"
        assert request.groups == [1, 3]

    def test_request_file(self, tmp_path: Path) -> None:
        """A request file takes precedence over the options."""
        path = tmp_path / "request.json"
        path.write_text(json.dumps({"page": 3, "filters": {"price": [10, 50]}}), encoding="utf-8")
        args = build_parser().parse_args(["search", "--request", str(path), "--page", "1"])
        request = load_request(args)
        assert request.page == 3
        assert request.filters == {"price": [10, 50]}

    def test_command_required(self) -> None:
        """A subcommand is mandatory."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_invalid_request_exit_code(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Malformed requests exit with status 2."""
        assert main(["search", "--filters", "{not json"]) == 2
        assert "Invalid search request" in capsys.readouterr().err

    def test_invalid_page_exit_code(self) -> None:
        """Out of range options exit with status 2."""
        assert main(["search", "--page", "0"]) == 2

    def test_missing_request_file_exit_code(self, tmp_path: Path) -> None:
        """An unreadable request file exits with status 2."""
        assert main(["search", "--request", str(tmp_path / "missing.json")]) == 2


class TestRunSearch:
    """Tests for running a search against the database."""

    @pytest.mark.asyncio
    async def test_run_search(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """A request runs through the SQL backend."""
        request = SearchRequest(filters={"quantity": [2]}, order="price.asc", groups=[1])
        response = await run_search(request, session_factory)
        assert [row["id_product"] for row in response.products] == [4, 1]
        assert response.count == 2
