"""Pagination helpers shared by list commands."""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

import typer

from .core.errors import PaginationError
from .core.exit_codes import EXIT_EMPTY_RESULTS

T = TypeVar("T")

MAX_PAGES = 10_000


def collect_all_pages(
    start_page_token: str | None,
    fetch: Callable[[str], tuple[list[T], str | None]],
) -> list[T]:
    """Keep calling ``fetch`` until it returns an empty next page token.

    Items are concatenated in server order. The first exception raised by
    ``fetch`` propagates and no partial result is returned. A repeated page
    token is treated as a pagination loop.
    """
    page_token = (start_page_token or "").strip()
    seen: set[str] = set()
    out: list[T] = []

    for _ in range(MAX_PAGES):
        if page_token in seen:
            raise PaginationError(f"pagination loop: repeated page token {page_token!r}")
        seen.add(page_token)

        items, next_token = fetch(page_token)
        out.extend(items or [])

        next_token = (next_token or "").strip()
        if not next_token:
            return out
        page_token = next_token

    raise PaginationError("pagination exceeded max pages")


def fetch_pages(
    page: str | None,
    all_pages: bool,
    fetch: Callable[[str], tuple[list[T], str | None]],
) -> tuple[list[T], str]:
    """Fetch every page with ``--all``, otherwise one page plus its next token."""
    if all_pages:
        return collect_all_pages(page, fetch), ""
    items, next_token = fetch((page or "").strip())
    return list(items or []), (next_token or "").strip()


def fail_empty_exit(fail_empty: bool) -> None:
    """Exit with EXIT_EMPTY_RESULTS when --fail-empty was requested."""
    if fail_empty:
        raise typer.Exit(EXIT_EMPTY_RESULTS)
