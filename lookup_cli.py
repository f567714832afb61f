#!/usr/bin/env python3
"""
Terminal client for the admin lookups.

Usage:
    python lookup_cli.py acme                      # One search, print suggestions
    python lookup_cli.py acme --more 2             # ... plus two "load more" pages
    python lookup_cli.py --entity materials cem    # Material lookup
    python lookup_cli.py --batch queries.txt       # One query per line
    python lookup_cli.py                           # Interactive: type, pick, load more
"""

import argparse
import asyncio
from pathlib import Path
from typing import Iterable, Optional

from admin_lookup.api.client import ApiClient
from admin_lookup.config.settings import get_settings
from admin_lookup.logging_config import setup_logging
from admin_lookup.models.search import SearchState
from admin_lookup.search import ENDPOINTS, SearchController

TYPING_DELAY = 0.05


def print_state(state: SearchState) -> None:
    if not state.options:
        print(f"  ({state.no_options_text})")
        return
    for i, option in enumerate(state.options, 1):
        extra = " | ".join(part for part in (option.secondary, option.contact) if part)
        print(f"  {i:02d}. {option.label}" + (f" | {extra}" if extra else ""))
    if state.has_more:
        print("  ... more available (:more)")


async def run_query(controller: SearchController, query: str, more: int = 0) -> None:
    result = await controller.search(query, 0, False)
    print(f"Query: {query!r} | source: {result.source.value} | results: {len(controller.state.options)}")
    for _ in range(more):
        if not controller.state.has_more:
            break
        await controller.load_more()
    print_state(controller.state)


async def type_query(controller: SearchController, text: str) -> None:
    """Feed text one keystroke at a time, like a user typing."""
    for end in range(1, len(text) + 1):
        controller.on_query_changed(text[:end])
        await asyncio.sleep(TYPING_DELAY)
    await controller.settle()


async def interactive_shell(controller: SearchController) -> None:
    print(f"Interactive {controller.endpoint.noun} lookup. Commands: :more, :pick N, :clear, exit")
    while True:
        try:
            line = await asyncio.to_thread(input, "> ")
        except (EOFError, KeyboardInterrupt):
            print()
            return

        line = line.strip()
        if line.lower() in {"exit", "quit"}:
            return
        if line == ":more":
            await controller.load_more()
        elif line.startswith(":pick"):
            _, _, index = line.partition(" ")
            options = controller.state.options
            if not index.isdigit() or not 1 <= int(index) <= len(options):
                print("  Pick a number from the list")
                continue
            option = options[int(index) - 1]
            controller.on_select(option.entity)
            print(f"Selected: {option.label} (id={option.id})")
            print(f"  {option.entity.model_dump()}")
            continue
        elif line == ":clear":
            controller.on_select(None)
        else:
            await type_query(controller, line)
        print_state(controller.state)


async def batch_mode(controller: SearchController, file_path: Path) -> None:
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            query = line.strip()
            if not query:
                continue
            await run_query(controller, query)


async def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the admin autocomplete lookups")
    parser.add_argument("query", nargs="?", help="Query string. If omitted, starts REPL mode.")
    parser.add_argument("--entity", choices=sorted(ENDPOINTS), default="customers", help="Which lookup to use")
    parser.add_argument("--batch", type=Path, help="File with queries to execute line by line")
    parser.add_argument("--more", type=int, default=0, help="Extra pages to load after the first")
    parser.add_argument("--base-url", help="Override the API base URL")
    args = parser.parse_args(list(argv) if argv is not None else None)

    settings = get_settings()
    setup_logging("admin_lookup", level=settings.log_level, log_file=settings.log_file)
    if args.base_url:
        settings.api.base_url = args.base_url

    async with ApiClient.from_settings(settings) as client:
        async with SearchController.from_settings(client, ENDPOINTS[args.entity], settings) as controller:
            if args.batch:
                await batch_mode(controller, args.batch)
            elif args.query:
                await run_query(controller, args.query, more=args.more)
            else:
                await interactive_shell(controller)
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
