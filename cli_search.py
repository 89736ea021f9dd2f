"""Terminal client that reuses the in-process search logic."""
from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Iterable

from product_search.main import get_search_service
from product_search.search_service import InvalidQueryError
from product_search.store import CatalogUnavailableError

MAX_RESULTS = 100
GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"


async def perform_query(query: str, *, limit: int, category: str | None, debug: bool) -> dict:
    service = get_search_service()
    return await service.search(query, limit=limit, category=category, debug=debug)


def run_query(query: str, args: argparse.Namespace) -> None:
    try:
        response = asyncio.run(perform_query(query, limit=args.limit, category=args.category, debug=args.debug))
    except InvalidQueryError as exc:
        print(f"{RED}{exc}{RESET}")
        return
    except CatalogUnavailableError as exc:
        print(f"{RED}catalog unavailable: {exc}{RESET}")
        return
    pretty_print_response(query, response, debug=args.debug)


def interactive_shell(args: argparse.Namespace) -> None:
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
        run_query(query, args)


def pretty_print_response(query: str, payload: dict, *, debug: bool = False) -> None:
    results = payload.get("data", [])
    meta = payload.get("meta", {})
    total = meta.get("totalCandidates", 0)
    color = GREEN if results else RED
    print(f"Query: {query} | candidates: {color}{total}{RESET} | pages: {meta.get('totalPages', 0)}")
    if debug and meta.get("parsedQuery"):
        print(f"  parsed: {meta['parsedQuery']}")
    for idx, item in enumerate(results[:MAX_RESULTS], start=1):
        scores = item.get("_scores") or {}
        final = scores.get("final")
        score_repr = f"{final:.3f}" if isinstance(final, (int, float)) else "-"
        stock = item.get("stock") or 0
        stock_label = f"{GREEN}in stock{RESET}" if stock > 0 else f"{RED}out of stock{RESET}"
        print(
            f"  {idx:02d}. score={score_repr} | {item.get('brand')} | "
            f"{item.get('currency')} {item.get('sellingPrice')} | {stock_label} | {item.get('title')}"
        )


def batch_mode(file_path: Path, args: argparse.Namespace) -> None:
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            query = line.strip()
            if not query:
                continue
            run_query(query, args)


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the search service")
    parser.add_argument("query", nargs="?", help="Query string. If omitted, starts REPL mode.")
    parser.add_argument("--batch", type=Path, help="File with queries to execute line by line")
    parser.add_argument("--limit", type=int, default=20, help="Results per page (1-100)")
    parser.add_argument("--category", help="Exact category filter, e.g. 'Mobile Phones'")
    parser.add_argument("--debug", action="store_true", help="Show score breakdowns and the parsed query")
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.batch:
        batch_mode(args.batch, args)
        return 0
    if args.query:
        run_query(args.query, args)
        return 0
    interactive_shell(args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
