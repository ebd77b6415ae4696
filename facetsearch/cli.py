"""Command line interface.

Usage:
    facetsearch init-db
    facetsearch seed --no-clear
    facetsearch search --request request.json
    facetsearch search --filters '{"quantity": [2]}' --order price.desc
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from pathlib import Path

import structlog
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from facetsearch.adapters.sql import SqlAlchemyAdapter
from facetsearch.domain.exceptions import SearchError
from facetsearch.infrastructure.category_repository import SqlCategoryTree
from facetsearch.infrastructure.config import SearchConfig, context_from_settings, settings
from facetsearch.infrastructure.database import async_session_factory, create_tables
from facetsearch.infrastructure.logging_config import configure_logging
from facetsearch.infrastructure.seed import DEMO_CATALOG, seed_catalog
from facetsearch.schemas import SearchRequest, SearchResponse
from facetsearch.search.service import ProductSearchService

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="facetsearch",
        description="Faceted product search over the catalog index",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables")

    seed = subparsers.add_parser("seed", help="Load the demo catalog")
    seed.add_argument(
        "--no-clear",
        action="store_true",
        help="Don't clear existing catalog rows before seeding",
    )

    search = subparsers.add_parser("search", help="Run a product search")
    search.add_argument(
        "--request",
        type=Path,
        help="JSON file holding a search request",
    )
    search.add_argument("--filters", help="Selected filters as a JSON object")
    search.add_argument("--order", help="Sort as field.direction, e.g. price.desc")
    search.add_argument("--page", type=int, default=1)
    search.add_argument("--per-page", type=int, default=12)
    search.add_argument("--category", type=int, help="Category searched in")
    search.add_argument(
        "--group",
        type=int,
        action="append",
        default=[],
        help="Customer group of the visitor (repeatable)",
    )

    return parser


def load_request(args: argparse.Namespace) -> SearchRequest:
    """Build the search request from a file or from the options.

    Args:
        args: Parsed ``search`` arguments.

    Returns:
        Validated SearchRequest.

    Raises:
        ValidationError: If the request is malformed.
    """
    if args.request is not None:
        return SearchRequest.model_validate_json(args.request.read_text(encoding="utf-8"))

    return SearchRequest(
        page=args.page,
        results_per_page=args.per_page,
        order=args.order,
        id_category=args.category,
        filters=json.loads(args.filters) if args.filters else {},
        groups=args.group,
    )


async def run_search(
    request: SearchRequest,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
) -> SearchResponse:
    """Run one search against the database.

    Args:
        request: Validated search request.
        session_factory: Source of database sessions.

    Returns:
        Search response.
    """
    async with session_factory() as session:
        service = ProductSearchService(
            config=SearchConfig.from_settings(),
            context=context_from_settings(group_ids=tuple(request.groups)),
            adapter_factory=lambda: SqlAlchemyAdapter(session),
            category_tree=SqlCategoryTree(session),
        )
        result = await service.search(request.to_query(), request.to_selected_filters())
    return SearchResponse.from_result(result)


async def run_seed(clear: bool = True) -> dict[str, int]:
    """Create tables and load the demo catalog."""
    await create_tables()
    async with async_session_factory() as session:
        return await seed_catalog(session, DEMO_CATALOG, clear_existing=clear)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point.

    Args:
        argv: Arguments, ``sys.argv`` by default.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)
    configure_logging(settings.log_level)

    if args.command == "init-db":
        asyncio.run(create_tables())
        print("Tables ready.")
        return 0

    if args.command == "seed":
        result = asyncio.run(run_seed(clear=not args.no_clear))
        for table, rows in result.items():
            print(f"  {table}: {rows}")
        return 0

    try:
        request = load_request(args)
    except (ValidationError, json.JSONDecodeError, OSError) as e:
        print(f"Invalid search request: {e}", file=sys.stderr)
        return 2

    try:
        response = asyncio.run(run_search(request))
    except SearchError as e:
        logger.error("Search command failed", error=e.message, details=e.details)
        print(f"Search failed: {e.message}", file=sys.stderr)
        return 1

    print(response.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
