"""Terminal client that reuses the in-process search logic."""
from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Iterable

from catalog_search.candidates import CandidateFetchFailed
from catalog_search.config import settings
from catalog_search.models import SearchResponse
from catalog_search.query import SearchMode
from catalog_search.search_service import create_engine

GREEN = "\033[92m"
YELLOW = "\033[93m"
RESET = "\033[0m"


async def perform_queries(queries: Iterable[str], limit: int, mode: SearchMode) -> None:
    engine = create_engine(settings)
    try:
        for query in queries:
            try:
                response = await engine.search(query, limit, mode)
            except CandidateFetchFailed as exc:
                print(f"Query: {query} | error: {exc}")
                continue
            pretty_print_response(query, response)
    finally:
        await engine.aclose()


def interactive_queries() -> Iterable[str]:
    print("Interactive product search. Type 'exit' to quit.")
    while True:
        try:
            query = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return
        if not query:
            continue
        if query.lower() in {"exit", "quit"}:
            return
        yield query


def pretty_print_response(query: str, payload: SearchResponse) -> None:
    total = payload.totalMatches if payload.totalMatches is not None else 0
    print(f"Query: {query} | results: {len(payload.results)} | matches: {total}")
    for idx, item in enumerate(payload.results, start=1):
        color = GREEN if item.matchType.value in {"exact", "sku"} else YELLOW
        print(
            f"  {idx:02d}. score={item.score:>5} | {color}{item.matchType.value:<7}{RESET} | "
            f"{item.sku} | {item.title}"
        )


def batch_queries(file_path: Path) -> Iterable[str]:
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            query = line.strip()
            if query:
                yield query


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the catalog search engine")
    parser.add_argument("query", nargs="?", help="Query string. If omitted, starts REPL mode.")
    parser.add_argument("--batch", type=Path, help="File with queries to execute line by line")
    parser.add_argument("--limit", type=int, default=settings.default_limit, help="Results per query")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in SearchMode],
        default=SearchMode.CATALOG.value,
        help="Token grouping mode",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)
    mode = SearchMode(args.mode)

    if args.batch:
        queries: Iterable[str] = batch_queries(args.batch)
    elif args.query:
        queries = [args.query]
    else:
        queries = interactive_queries()
    asyncio.run(perform_queries(queries, args.limit, mode))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
