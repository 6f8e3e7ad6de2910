"""
Dexfeed - Filter State
Search text + category selection, and the debounce timer for search input.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class FilterState:
    """
    Current list filters.

    `generation` increases on every change, so a load can tell whether the
    filters it started under are still the ones on screen.
    """
    search_text: str = ""
    category: str = ""
    generation: int = 0

    @property
    def query(self) -> str:
        return self.search_text.strip().lower()

    def set_search(self, text: str) -> int:
        self.search_text = text or ""
        self.generation += 1
        return self.generation

    def set_category(self, name: str) -> int:
        self.category = (name or "").strip().lower()
        self.generation += 1
        return self.generation

    def matches(self, item) -> bool:
        """All-digit queries match the exact id; anything else a name substring."""
        q = self.query
        if not q:
            return True
        if q.isdigit() and item.id == int(q):
            return True
        return q in item.name.lower()

    def apply(self, items: Iterable) -> List:
        return [item for item in items if self.matches(item)]


class DelayedTask:
    """
    Run `callback` once `delay` seconds after the latest schedule() call.

    Rescheduling or cancel() drops the pending call. Must be used from a
    running event loop.
    """

    def __init__(self, delay: float, callback: Callable):
        self.delay = delay
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, *args):
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire, args)

    def cancel(self) -> bool:
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def _fire(self, args):
        self._handle = None
        self._callback(*args)
