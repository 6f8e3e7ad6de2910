"""
Dexfeed - Catalog API Gateway
Wraps outbound requests to the PokeAPI catalog service.

Endpoints:
1. GET /pokemon?limit=N  → {results: [{url}], next}
2. GET /pokemon/{id}     → full item JSON
3. GET /type             → {results: [{name}]}
4. GET /type/{name}      → {pokemon: [{pokemon: {url}}]}

Requests go through a blocking requests.Session offloaded to the event
loop's default executor, so every call is a suspension point for the
cooperative scheduler.

Rate limiting: HTTP 429 waits RATE_LIMIT_BACKOFF seconds and retries, up to
MAX_RETRIES times. Every other non-2xx status fails immediately.
"""

import asyncio
import logging
from typing import List, Optional

import requests
from requests.adapters import HTTPAdapter

from config import (
    API_BASE,
    EXCLUDED_CATEGORIES,
    MAX_RETRIES,
    PAGE_SIZE,
    RATE_LIMIT_BACKOFF,
    REQUEST_TIMEOUT,
    USER_AGENT,
)

logger = logging.getLogger(__name__)


# ─── Errors ──────────────────────────────────

class CatalogError(Exception):
    """Base class for everything a catalog load can fail with."""


class NetworkError(CatalogError):
    """Transport failure, non-success status or unreadable body."""

    def __init__(self, message: str, status: Optional[int] = None, url: str = ""):
        super().__init__(message)
        self.status = status
        self.url = url


class RateLimited(NetworkError):
    """HTTP 429 that outlived every retry."""


class MalformedIdentifier(CatalogError):
    """A result URL whose trailing path segment is not an integer."""


class MalformedPayload(CatalogError):
    """A JSON body missing the fields an endpoint promises."""


def parse_identifier(url: str) -> int:
    """Numeric id from the last non-empty path segment of a resource URL.

    >>> parse_identifier("https://pokeapi.co/api/v2/pokemon/25/")
    25
    """
    segments = [s for s in str(url).split("/") if s]
    tail = segments[-1] if segments else ""
    if not tail.isdigit():
        raise MalformedIdentifier(f"No numeric id at the end of {url!r}")
    return int(tail)


class CatalogClient:
    """
    Async gateway to the catalog API.

    Usage:
        client = CatalogClient()
        page = await client.fetch_json(client.list_url(24))
        item = await client.fetch_item(25)
    """

    def __init__(self, base_url: str = API_BASE, session: requests.Session = None,
                 max_retries: int = MAX_RETRIES, backoff: float = RATE_LIMIT_BACKOFF):
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.backoff = backoff
        if session is None:
            session = requests.Session()
            # One pooled connection per item in a full batch fan-out
            adapter = HTTPAdapter(pool_maxsize=PAGE_SIZE)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self._session = session
        self._session.headers.update({"User-Agent": USER_AGENT})

        # Outbound HTTP attempts, retries included
        self.request_count = 0

        self._categories: Optional[List[str]] = None

    # ─── URLs ─────────────────────────────────────

    def list_url(self, limit: int) -> str:
        return f"{self.base_url}/pokemon?limit={limit}"

    def item_url(self, key) -> str:
        return f"{self.base_url}/pokemon/{key}"

    def categories_url(self) -> str:
        return f"{self.base_url}/type"

    def category_url(self, name: str) -> str:
        return f"{self.base_url}/type/{name}"

    # ─── Requests ─────────────────────────────────

    async def fetch_json(self, url: str):
        """GET a URL and decode its JSON body.

        Raises:
            RateLimited: still HTTP 429 after max_retries backoffs
            NetworkError: transport failure, other non-2xx status, bad JSON
        """
        loop = asyncio.get_running_loop()
        retries = self.max_retries

        while True:
            self.request_count += 1
            resp = await loop.run_in_executor(None, self._get, url)

            if resp.status_code == 429:
                if retries > 0:
                    retries -= 1
                    logger.warning(
                        f"CatalogClient: rate limited on {url}, retrying in "
                        f"{self.backoff}s ({retries} retries left)")
                    await asyncio.sleep(self.backoff)
                    continue
                raise RateLimited(
                    f"HTTP 429 after {self.max_retries} retries", status=429, url=url)

            if not 200 <= resp.status_code < 300:
                raise NetworkError(
                    f"HTTP {resp.status_code}", status=resp.status_code, url=url)

            try:
                return resp.json()
            except ValueError as e:
                raise NetworkError(f"Invalid JSON from {url}: {e}", url=url) from e

    def _get(self, url: str) -> requests.Response:
        """Blocking GET; runs on an executor thread."""
        logger.debug(f"CatalogClient: GET {url}")
        try:
            return self._session.get(url, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise NetworkError(f"{type(e).__name__}: {e}", url=url) from e

    async def fetch_item(self, key) -> dict:
        """Full item JSON by numeric id or name."""
        return await self.fetch_json(self.item_url(key))

    async def list_categories(self) -> List[str]:
        """Browsable category names, alphabetical. Fetched once per client."""
        if self._categories is not None:
            return self._categories

        data = await self.fetch_json(self.categories_url())
        try:
            names = [entry["name"] for entry in data["results"]]
        except (KeyError, TypeError) as e:
            raise MalformedPayload(f"Unexpected category listing: {e}") from e

        self._categories = sorted(n for n in names if n not in EXCLUDED_CATEGORIES)
        logger.info(f"CatalogClient: {len(self._categories)} categories available")
        return self._categories
