"""Command-line interface: one search, usage stats, or a quota reset, then exit."""

from __future__ import annotations

import asyncio
import json

from metasearch.contracts.meta_search_v1 import ProviderId
from metasearch.core.config import config
from metasearch.search.errors import PreconditionError
from metasearch.search.service import MetaSearchService


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


async def run_search(query: str, use_ai: bool = True, service: MetaSearchService | None = None) -> int:
    text = (query or "").strip()
    if not text:
        print("Error: query must not be empty")
        return 2

    problems = config.validate()
    if problems:
        for problem in problems:
            print(f"Config error: {problem}")
        return 2

    service = service or MetaSearchService.from_config()
    try:
        response = await service.search(text, use_ai=use_ai)
    except PreconditionError as e:
        print(f"Error: {e}")
        return 2
    _print_json(response.to_json_dict())
    return 0


def run_usage(service: MetaSearchService | None = None) -> int:
    service = service or MetaSearchService.from_config()
    _print_json(service.ledger.to_json_dict())
    return 0


def run_reset_google(service: MetaSearchService | None = None) -> int:
    service = service or MetaSearchService.from_config()
    service.reset_google_usage()
    print(f"Google usage reset; {service.ledger.remaining(ProviderId.GOOGLE)} searches available this month")
    return 0


def search_main(query: str, use_ai: bool = True) -> int:
    return asyncio.run(run_search(query=query, use_ai=use_ai))
