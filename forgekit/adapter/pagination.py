"""Continuation-link pagination over a provider client."""

from typing import Any, Iterator

from forgekit.logger import get_logger

log = get_logger("pagination")


def iter_pages(client, path: str, params: dict[str, Any] | None = None) -> Iterator[list[dict[str, Any]]]:
    """
    Yield each page of a paged listing, lazily.

    The continuation link is read right after each fetch, so the caller may
    issue other calls on the same client between pages. A page is only
    requested when the previous one has been consumed; provider errors end
    the iteration by propagating.
    """
    page = client.get(path, params=params)
    next_url = client.next_page_url()
    page_number = 1
    while True:
        log.debug("Fetched page", path=path, page=page_number, items=len(page or []))
        yield page or []
        if not next_url:
            return
        page = client.get(next_url)
        next_url = client.next_page_url()
        page_number += 1


def fetch_all(client, path: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
    """Follow every continuation link and return all records."""
    records: list[dict[str, Any]] = []
    for page in iter_pages(client, path, params):
        records.extend(page)
    return records
