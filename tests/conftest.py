"""Shared fixtures for the Dexfeed test suite."""

import sys
import asyncio
import logging
from pathlib import Path

import pytest

# Ensure src/ is importable
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from catalog_api import CatalogClient, NetworkError
from item_cache import ItemCache
from load_controller import CatalogSession, LoadController

logger = logging.getLogger(__name__)

BASE = "https://catalog.test/api/v2"

# Names used by the search tests
NAMED = {
    1: "bulbasaur", 2: "ivysaur", 3: "venusaur",
    4: "charmander", 5: "charmeleon", 6: "charizard",
    7: "squirtle", 8: "wartortle", 9: "blastoise",
    25: "pikachu", 37: "vulpix", 38: "ninetales",
}


# ── Helper factories ─────────────────────────────────────

def make_item_json(item_id, name=None, types=("normal",), hidden="run-away"):
    """Shorthand for a /pokemon/{id} response body."""
    return {
        "id": item_id,
        "name": name or NAMED.get(item_id, f"mon-{item_id}"),
        "types": [{"slot": i + 1, "type": {"name": t, "url": f"{BASE}/type/{i}/"}}
                  for i, t in enumerate(types)],
        "stats": [
            {"base_stat": 40 + item_id % 10, "stat": {"name": "hp"}},
            {"base_stat": 50, "stat": {"name": "attack"}},
            {"base_stat": 45, "stat": {"name": "speed"}},
        ],
        "abilities": [
            {"ability": {"name": "overgrow"}, "is_hidden": False},
            {"ability": {"name": hidden}, "is_hidden": True},
        ],
    }


def item_ref(item_id):
    return {"name": NAMED.get(item_id, f"mon-{item_id}"),
            "url": f"{BASE}/pokemon/{item_id}/"}


class FakeCatalogClient(CatalogClient):
    """
    CatalogClient serving canned JSON instead of HTTP.

    Every fetch_json call is recorded in `calls`. `delays` maps URL → seconds
    of simulated latency; `failures` maps URL → exception to raise.
    """

    def __init__(self, total=100, page_size=24, categories=None):
        super().__init__(base_url=BASE, session=_NoNetwork(), backoff=0)
        self.routes = {}
        self.delays = {}
        self.failures = {}
        self.calls = []
        self.gate = None   # optional asyncio.Event every request waits on

        # Global listing, paged like the real API
        for offset in range(0, total, page_size):
            ids = range(offset + 1, min(offset + page_size, total) + 1)
            url = (self.list_url(page_size) if offset == 0
                   else f"{BASE}/pokemon?offset={offset}&limit={page_size}")
            nxt = offset + page_size
            self.routes[url] = {
                "count": total,
                "next": f"{BASE}/pokemon?offset={nxt}&limit={page_size}" if nxt < total else None,
                "results": [item_ref(i) for i in ids],
            }
        for i in range(1, total + 1):
            self.routes[self.item_url(i)] = make_item_json(i)

        categories = categories or {}
        self.routes[self.categories_url()] = {
            "results": [{"name": n} for n in list(categories) + ["unknown", "shadow"]],
        }
        for name, members in categories.items():
            self.routes[self.category_url(name)] = {
                "pokemon": [{"pokemon": item_ref(i), "slot": 1} for i in members],
            }
            for i in members:
                self.routes.setdefault(self.item_url(i), make_item_json(i, types=(name,)))

    def calls_to(self, prefix):
        return [u for u in self.calls if u.startswith(prefix)]

    @property
    def item_calls(self):
        return self.calls_to(f"{BASE}/pokemon/")

    async def fetch_json(self, url):
        self.calls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        delay = self.delays.get(url)
        if delay:
            await asyncio.sleep(delay)
        if url in self.failures:
            raise self.failures[url]
        if url not in self.routes:
            raise NetworkError("HTTP 404", status=404, url=url)
        return self.routes[url]


class _NoNetwork:
    """Session stand-in that refuses to be used."""

    def __init__(self):
        self.headers = {}

    def get(self, url, timeout=None):
        raise AssertionError(f"unexpected real request to {url}")


class RecordingRenderer:
    """Renderer capturing every call for assertions."""

    def __init__(self):
        self.batches = []      # (ids, append)
        self.statuses = []
        self.busy_flags = []
        self.categories = None
        self.shown = []        # ids currently on screen

    def render_batch(self, items, append):
        ids = [item.id for item in items]
        self.batches.append((list(ids), append))
        if append:
            self.shown.extend(ids)
        else:
            self.shown = list(ids)

    def set_status(self, message):
        self.statuses.append(message)

    def set_busy(self, busy):
        self.busy_flags.append(busy)

    def set_categories(self, names):
        self.categories = list(names)

    @property
    def status(self):
        return self.statuses[-1] if self.statuses else None


# ── Fixtures ─────────────────────────────────────────────

FIRE = [4, 5, 6, 37, 38, 58, 59, 77, 78, 126, 136, 146]


@pytest.fixture
def client():
    """Fake catalog: 100 items, a 12-member 'fire' type, a 30-member 'water' type."""
    return FakeCatalogClient(
        total=100,
        categories={"fire": FIRE, "water": list(range(7, 37)), "grass": [1, 2, 3]},
    )


@pytest.fixture
def cache(client):
    return ItemCache(client)


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def controller(client, renderer):
    session = CatalogSession(client=client, cache=ItemCache(client))
    return LoadController(renderer, session=session, search_debounce=0.01)
