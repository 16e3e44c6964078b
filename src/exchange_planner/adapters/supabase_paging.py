"""Paged reads for Supabase tables larger than one PostgREST response."""

from collections.abc import Callable, Iterator, Sequence
from typing import Any

PAGE_SIZE = 1000
IN_FILTER_CHUNK = 200


def fetch_all(
    build_query: Callable[[], Any], page_size: int | None = None
) -> list[dict[str, Any]]:
    """Read every row of a query, one ``range`` page at a time.

    ``build_query`` must return a fresh filtered select for each page. Reading
    stops at the first page shorter than ``page_size``, which defaults to
    ``PAGE_SIZE``.
    """
    size = page_size or PAGE_SIZE
    rows: list[dict[str, Any]] = []
    start = 0
    while True:
        response = build_query().range(start, start + size - 1).execute()
        page = response.data or []
        rows.extend(page)
        if len(page) < size:
            return rows
        start += size


def chunked(values: Sequence[int], size: int = IN_FILTER_CHUNK) -> Iterator[list[int]]:
    """Split ids into lists small enough for an ``in`` filter in a URL."""
    for start in range(0, len(values), size):
        yield list(values[start : start + size])
