"""
Dexfeed - Load Controller
Orchestrates "load next batch":

    request → pick Pagination Source → fetch_page → ItemCache.resolve_many
            → search filter → Renderer.render_batch → cursor advances

Single-flight: while a load is running, further requests are dropped (not
queued). A filter change replaces the Pagination Source, clears the list and
starts one fresh load. Each load remembers the filter generation it began
under; a batch that finishes after the filters changed is discarded, and the
fresh load that the single-flight guard dropped meanwhile is issued then.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence

from catalog_api import CatalogClient, CatalogError
from config import (
    PAGE_SIZE,
    SEARCH_DEBOUNCE,
    STATUS_LOAD_FAILED,
    STATUS_LOADING,
    STATUS_NO_RESULTS,
    STATUS_SHOWING,
    STATUS_START_FAILED,
    STATUS_UPDATING,
)
from filters import DelayedTask, FilterState
from item_cache import Item, ItemCache
from pagination import CategoryFeed, GlobalFeed, PaginationSource

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    """What the controller needs from the view. Implemented elsewhere."""

    def render_batch(self, items: Sequence[Item], append: bool) -> None: ...

    def set_status(self, message: str) -> None: ...

    def set_busy(self, busy: bool) -> None: ...


@dataclass
class CatalogSession:
    """All mutable session state, owned by one LoadController."""
    client: CatalogClient
    cache: ItemCache
    filters: FilterState = field(default_factory=FilterState)
    page_size: int = PAGE_SIZE
    memberships: Dict[str, List[int]] = field(default_factory=dict)
    source: Optional[PaginationSource] = None
    rendered_count: int = 0

    def __post_init__(self):
        if self.source is None:
            self.source = self.new_source()

    @classmethod
    def create(cls, client: CatalogClient = None, page_size: int = PAGE_SIZE) -> "CatalogSession":
        client = client or CatalogClient()
        return cls(client=client, cache=ItemCache(client), page_size=page_size)

    def new_source(self) -> PaginationSource:
        """Fresh source matching the current category selection."""
        if self.filters.category:
            return CategoryFeed(self.client, self.filters.category,
                                page_size=self.page_size,
                                memberships=self.memberships)
        return GlobalFeed(self.client, page_size=self.page_size)


class LoadController:
    """
    Idle ⇄ Loading state machine driving incremental loads.

    Usage:
        controller = LoadController(renderer)
        await controller.start()
        await controller.request_load()          # near the end of the list
        await controller.set_category("fire")    # returns the fresh-load task
    """

    def __init__(self, renderer: Renderer, session: CatalogSession = None,
                 search_debounce: float = SEARCH_DEBOUNCE):
        self.session = session or CatalogSession.create()
        self._renderer = renderer
        self.loading = False
        # Filter generation the on-screen list was last (re)started for
        self._list_generation = self.session.filters.generation
        self._search_timer = DelayedTask(search_debounce, self.submit_search)

    @property
    def filters(self) -> FilterState:
        return self.session.filters

    # ─── Triggers ─────────────────────────────────

    async def start(self) -> Optional[List[Item]]:
        """Populate the category picker, then load the first batch."""
        try:
            categories = await self.session.client.list_categories()
        except CatalogError as e:
            logger.error(f"Startup failed: {e}")
            self._renderer.set_status(STATUS_START_FAILED)
            raise

        set_categories = getattr(self._renderer, "set_categories", None)
        if set_categories is not None:
            set_categories(categories)
        return await self.load_next()

    async def request_load(self) -> Optional[List[Item]]:
        """Scroll-proximity signal."""
        return await self.load_next()

    def set_search(self, text: str) -> asyncio.Task:
        self.filters.set_search(text)
        logger.info(f"Search set to {self.filters.query!r}")
        return self._reset()

    def set_category(self, name: str) -> asyncio.Task:
        self.filters.set_category(name)
        logger.info(f"Category set to {self.filters.category or '(all)'}")
        return self._reset()

    def on_search_input(self, text: str):
        """Keystroke in the search box; applied after the debounce delay."""
        self._search_timer.schedule(text)

    def submit_search(self, text: str) -> asyncio.Task:
        """Explicit submit (Enter); skips any pending debounce."""
        self._search_timer.cancel()
        return self.set_search(text)

    # ─── Reset ────────────────────────────────────

    def _reset(self) -> asyncio.Task:
        """Swap the source, clear the list and schedule one fresh load."""
        session = self.session
        session.source = session.new_source()
        session.rendered_count = 0
        self._renderer.render_batch([], append=False)
        self._renderer.set_status(STATUS_UPDATING)
        generation = self.filters.generation
        return asyncio.get_running_loop().create_task(self._fresh_load(generation))

    async def _fresh_load(self, generation: int) -> Optional[List[Item]]:
        if generation != self.filters.generation or generation == self._list_generation:
            # Superseded by a newer filter change, or already served
            return None
        return await self.load_next()

    # ─── Loading ──────────────────────────────────

    async def load_next(self) -> Optional[List[Item]]:
        """Load and render one batch.

        Returns the rendered items, or None when the request was dropped,
        the source was exhausted, the batch went stale or the load failed.
        """
        if self.loading:
            logger.debug("Load already in flight, dropping request")
            return None

        # Set before the first await; cleared after the last
        self.loading = True
        generation = self.filters.generation
        reset = generation != self._list_generation
        self._list_generation = generation
        self._renderer.set_busy(True)
        self._renderer.set_status(STATUS_LOADING)
        try:
            rendered = await self._load_batch(generation, reset)
        finally:
            self.loading = False
            self._renderer.set_busy(False)

        if self.filters.generation != self._list_generation:
            # Filters changed mid-flight; their fresh load was dropped above
            return await self.load_next()
        return rendered

    async def _load_batch(self, generation: int, reset: bool) -> Optional[List[Item]]:
        session = self.session
        source = session.source

        if source.exhausted:
            logger.debug(f"{source!r} exhausted, nothing to load")
            self._report_count()
            return None

        checkpoint = source.cursor
        try:
            page = await source.fetch_page()
            items = await session.cache.resolve_many(page.identifiers)
        except CatalogError as e:
            source.restore(checkpoint)
            logger.warning(f"Load failed: {e}")
            self._renderer.set_status(STATUS_LOAD_FAILED)
            return None
        except Exception as e:
            source.restore(checkpoint)
            logger.error(f"Load failed unexpectedly: {e}", exc_info=True)
            self._renderer.set_status(STATUS_LOAD_FAILED)
            return None

        if generation != self.filters.generation:
            logger.info(f"Discarding stale batch of {len(items)} (filters changed)")
            return None

        visible = self.filters.apply(items)
        self._renderer.render_batch(visible, append=not reset)
        session.rendered_count = len(visible) if reset else session.rendered_count + len(visible)

        logger.info(
            f"Batch: {len(page.identifiers)} fetched, {len(visible)} shown, "
            f"{session.rendered_count} total ({source!r})")
        if visible:
            self._renderer.set_status(STATUS_SHOWING.format(count=session.rendered_count))
        else:
            self._renderer.set_status(STATUS_NO_RESULTS)
        return visible

    def _report_count(self):
        if self.session.rendered_count:
            self._renderer.set_status(
                STATUS_SHOWING.format(count=self.session.rendered_count))
        else:
            self._renderer.set_status(STATUS_NO_RESULTS)
