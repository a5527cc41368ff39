"""Client for the SerpApi ``google_events`` search engine."""
from __future__ import annotations

import os
import logging
from typing import Any

import requests
from dotenv import load_dotenv

load_dotenv()

SERPAPI_URL = os.getenv("SERPAPI_URL", "https://serpapi.com/search.json")
ENGINE = "google_events"
REQUEST_TIMEOUT = 10

logger = logging.getLogger(__name__)
if os.getenv("EVENTS_DEBUG"):
    logging.basicConfig(level=logging.INFO, format="%(message)s")


def get_api_key(api_key: str | None = None) -> str:
    """Return ``api_key`` or the ``SERPAPI_API_KEY`` environment variable."""
    key = api_key or os.getenv("SERPAPI_API_KEY")
    if not key:
        raise ValueError("Missing SERPAPI_API_KEY in env")
    return key


def _log_request(url: str, params: dict[str, Any]) -> None:
    """Log an outgoing request without leaking the API key."""
    shown = {k: v for k, v in params.items() if k != "api_key"}
    logger.info("GET %s", url)
    logger.info("Params: %s", shown)


def search(params: dict[str, Any], api_key: str | None = None) -> requests.Response:
    """Send one ``google_events`` search and return the raw response.

    ``engine`` and ``api_key`` are always set here; ``None`` values in
    ``params`` are dropped.  The response is returned unchecked so callers
    can pass upstream errors through.
    """
    query = {k: v for k, v in params.items() if v is not None}
    query["engine"] = ENGINE
    _log_request(SERPAPI_URL, query)
    query["api_key"] = get_api_key(api_key)
    return requests.get(SERPAPI_URL, params=query, timeout=REQUEST_TIMEOUT)


def _fetch_page(base_params: dict[str, Any], api_key: str, start: int | None) -> list[dict[str, Any]]:
    params = dict(base_params)
    if start is not None:
        params["start"] = start
    response = search(params, api_key)
    response.raise_for_status()
    return response.json().get("events_results") or []


def fetch_events(
    query: str,
    api_key: str | None = None,
    *,
    max_results: int = 200,
    page_size: int = 10,
    location: str | None = None,
) -> list[dict[str, Any]]:
    """Return raw event records for ``query`` across result pages.

    The first page is requested without ``start`` (``start=0`` can come back
    empty); later pages use ``start=10, 20, ...`` until a page is empty or
    ``max_results`` is reached.
    """
    key = get_api_key(api_key)
    base_params: dict[str, Any] = {"q": query, "location": location}

    events = _fetch_page(base_params, key, None)
    logger.info("Page 1 returned %d event(s)", len(events))
    for start in range(page_size, max_results, page_size):
        page = _fetch_page(base_params, key, start)
        if not page:
            break
        logger.info("Page at start=%d returned %d event(s)", start, len(page))
        events.extend(page)
    return events
