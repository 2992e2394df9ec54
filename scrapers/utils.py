"""Shared utilities for fetchers and context channels: rate limiting, retry, JSON files."""

import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Optional

import httpx
import orjson
import requests
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

logger = logging.getLogger(__name__)

USER_AGENT = "Cannapedia/1.0 (https://cannapedia.co.il)"

DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "application/json, text/html;q=0.9, */*;q=0.8",
    "Accept-Language": "he-IL,he;q=0.9,en;q=0.7",
}

_HEBREW = re.compile(r"[֐-׿]")
_LATIN = re.compile(r"[a-zA-Z]")


class RateLimiter:
    """Simple rate limiter that enforces minimum delay between requests."""

    def __init__(self, min_delay: float = 0.5):
        self.min_delay = min_delay
        self._last_request_time = 0.0

    def wait(self):
        elapsed = time.time() - self._last_request_time
        if elapsed < self.min_delay:
            time.sleep(self.min_delay - elapsed)
        self._last_request_time = time.time()


# ---------------------------------------------------------------------------
# Synchronous fetch (archive and catalog fetchers)
# ---------------------------------------------------------------------------

def fetch_url(
    url: str,
    params: Optional[dict] = None,
    headers: Optional[dict] = None,
    auth: Optional[tuple] = None,
    timeout: int = 30,
    rate_limiter: Optional[RateLimiter] = None,
) -> Optional[requests.Response]:
    """Fetch a URL with retry logic and rate limiting.

    Returns None on any unrecoverable error (including exhausted retries).
    """
    try:
        return _fetch_url_with_retry(
            url, params=params, headers=headers, auth=auth, timeout=timeout, rate_limiter=rate_limiter
        )
    except requests.RequestException as e:
        logger.error("All retries exhausted for %s: %s", url, e)
        return None


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
)
def _fetch_url_with_retry(
    url: str,
    params: Optional[dict] = None,
    headers: Optional[dict] = None,
    auth: Optional[tuple] = None,
    timeout: int = 30,
    rate_limiter: Optional[RateLimiter] = None,
) -> Optional[requests.Response]:
    if rate_limiter:
        rate_limiter.wait()

    merged_headers = {**DEFAULT_HEADERS, **(headers or {})}
    try:
        response = requests.get(url, params=params, headers=merged_headers, auth=auth, timeout=timeout)
        if response.status_code in (400, 404):
            # WordPress answers past-the-end pages with 400
            logger.warning("%d for %s", response.status_code, url)
            return None
        response.raise_for_status()
        return response
    except requests.HTTPError as e:
        logger.error("HTTP error fetching %s: %s", url, e)
        return None


# ---------------------------------------------------------------------------
# Async fetch (context channels)
# ---------------------------------------------------------------------------

async def fetch_async(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[dict] = None,
    headers: Optional[dict] = None,
    timeout: float = 10.0,
) -> Optional[httpx.Response]:
    """GET with retries on transport errors. None on any HTTP failure."""
    try:
        return await _fetch_async_with_retry(client, url, params=params, headers=headers, timeout=timeout)
    except httpx.HTTPError as e:
        logger.warning("Request failed for %s: %s", url, e)
        return None


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
)
async def _fetch_async_with_retry(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[dict] = None,
    headers: Optional[dict] = None,
    timeout: float = 10.0,
) -> Optional[httpx.Response]:
    response = await client.get(url, params=params, headers=headers, timeout=timeout)
    if response.status_code == 404:
        logger.warning("404 Not Found: %s", url)
        return None
    response.raise_for_status()
    return response


# ---------------------------------------------------------------------------
# Alias helpers
# ---------------------------------------------------------------------------

def hebrew_terms(aliases) -> list[str]:
    return [a for a in aliases if _HEBREW.search(a)]


def english_terms(aliases) -> list[str]:
    return [a for a in aliases if _LATIN.search(a)]


# ---------------------------------------------------------------------------
# JSON files
# ---------------------------------------------------------------------------

def save_json(data, filepath) -> Path:
    """Write JSON atomically (temp file in the same directory, then rename)."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(orjson.dumps(data, option=orjson.OPT_INDENT_2))
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path


def load_json(filepath):
    """Load a JSON file. Returns None when the file does not exist."""
    path = Path(filepath)
    if not path.exists():
        return None
    return orjson.loads(path.read_bytes())
