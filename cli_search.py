"""Terminal client that reuses the in-process search service."""
from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Iterable

from storefront_search.search_service import SearchService, get_search_service

MAX_RESULTS = 100
GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"


async def perform_query(service: SearchService, query: str, sort: str, limit: int) -> dict:
    loop = asyncio.get_running_loop()
    start = loop.time()
    result = await service.search(query, sort_by=sort, limit=limit)
    payload = result.model_dump(mode="json")
    payload["eta_ms"] = (loop.time() - start) * 1000
    return payload


def interactive_shell(service: SearchService, sort: str, limit: int) -> None:
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
        response = asyncio.run(perform_query(service, query, sort, limit))
        pretty_print_response(query, response)


def pretty_print_response(query: str, payload: dict) -> None:
    products = payload.get("products", [])
    eta = float(payload.get("eta_ms", 0))
    color = GREEN if eta < 200 else RED
    eta_label = f"{color}{eta:.1f} ms{RESET}"
    print(
        f"Query: {query} | total: {payload.get('total')} | "
        f"page {payload.get('page')}/{payload.get('total_pages')} | ETA: {eta_label}"
    )
    for idx, item in enumerate(products[:MAX_RESULTS], start=1):
        stock = item.get("stock_quantity", 0)
        print(
            f"  {idx:02d}. {item.get('name')} | sku={item.get('sku') or '-'} | "
            f"{item.get('price')} | stock={stock}{' | featured' if item.get('is_featured') else ''}"
        )


def print_suggestions(query: str, service: SearchService, limit: int) -> None:
    suggestions = asyncio.run(service.get_suggestions(query, limit))
    print(f"Suggestions for {query!r}: {len(suggestions)}")
    for item in suggestions:
        print(f"  - {item.name} ({item.slug}) {item.price}")


def batch_mode(file_path: Path, service: SearchService, sort: str, limit: int) -> None:
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            query = line.strip()
            if not query:
                continue
            response = asyncio.run(perform_query(service, query, sort, limit))
            pretty_print_response(query, response)


async def _reindex(service: SearchService) -> int:
    from storefront_search.es_client import get_client
    from storefront_search.importer import reindex_data

    return await reindex_data(get_client(), service)


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the storefront search service")
    parser.add_argument("query", nargs="?", help="Query string. If omitted, starts REPL mode.")
    parser.add_argument("--batch", type=Path, help="File with queries to execute line by line")
    parser.add_argument(
        "--sort", default="relevance", choices=["relevance", "name", "price", "date"], help="Sort mode"
    )
    parser.add_argument("--limit", type=int, default=20, help="Page size")
    parser.add_argument("--suggest", action="store_true", help="Show autocomplete suggestions instead")
    parser.add_argument("--invalidate", metavar="PATTERN", help="Delete cached entries matching PATTERN")
    parser.add_argument("--reindex", action="store_true", help="Rebuild the Elasticsearch index")
    args = parser.parse_args(list(argv) if argv is not None else None)

    service = get_search_service()

    if args.reindex:
        count = asyncio.run(_reindex(service))
        print(f"Indexed {count} products")
        return 0
    if args.invalidate:
        deleted = asyncio.run(service.invalidate_search_cache(args.invalidate))
        print(f"Deleted {deleted} cache entries matching {args.invalidate!r}")
        return 0
    if args.batch:
        batch_mode(args.batch, service, args.sort, args.limit)
        return 0
    if args.query:
        if args.suggest:
            print_suggestions(args.query, service, min(args.limit, 20))
            return 0
        response = asyncio.run(perform_query(service, args.query, args.sort, args.limit))
        pretty_print_response(args.query, response)
        return 0
    interactive_shell(service, args.sort, args.limit)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
