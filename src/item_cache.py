"""
Dexfeed - Item Cache
Session-lifetime store of fetched items.

One primary store keyed by numeric id plus a secondary name → id index, so
an item is reachable by either key without being stored twice. Entries are
never evicted or refreshed.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

from catalog_api import CatalogClient, MalformedPayload
from config import ARTWORK_URL

logger = logging.getLogger(__name__)

ItemKey = Union[int, str]


class Ability(NamedTuple):
    name: str
    is_hidden: bool = False


@dataclass(frozen=True)
class Item:
    id: int
    name: str
    type_names: Tuple[str, ...] = ()
    stats: Mapping[str, int] = field(default_factory=dict)   # stat name → base stat
    abilities: Tuple[Ability, ...] = ()

    def __post_init__(self):
        # Cached records are shared between batches; keep every field read-only
        object.__setattr__(self, "type_names", tuple(self.type_names))
        object.__setattr__(self, "stats", MappingProxyType(dict(self.stats)))
        object.__setattr__(self, "abilities", tuple(self.abilities))

    def __hash__(self):
        return hash((self.id, self.name))

    @classmethod
    def from_api(cls, data: dict) -> "Item":
        """Build from a /pokemon/{id} response body."""
        try:
            return cls(
                id=int(data["id"]),
                name=data["name"],
                type_names=tuple(t["type"]["name"] for t in data.get("types", [])),
                stats={s["stat"]["name"]: int(s["base_stat"])
                       for s in data.get("stats", [])},
                abilities=tuple(Ability(a["ability"]["name"], bool(a.get("is_hidden")))
                                for a in data.get("abilities", [])),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedPayload(f"Unexpected item payload: {e!r}") from e

    @property
    def artwork_url(self) -> str:
        return ARTWORK_URL.format(id=self.id)

    @property
    def display_number(self) -> str:
        return f"#{self.id:04d}"


class ItemCache:
    """
    Resolves ids to Items, fetching each distinct item at most once.

    Usage:
        cache = ItemCache(client)
        items = await cache.resolve_many([1, 2, 3])
    """

    def __init__(self, client: CatalogClient):
        self._client = client
        self._items: Dict[int, Item] = {}
        self._name_index: Dict[str, int] = {}

        self.fetch_count = 0
        self.hit_count = 0

    def __len__(self):
        return len(self._items)

    def __contains__(self, key: ItemKey) -> bool:
        return self.lookup(key) is not None

    def lookup(self, key: ItemKey) -> Optional[Item]:
        """Cached item by id or name. Never touches the network."""
        if isinstance(key, str):
            k = key.strip().lower()
            if not k.isdigit():
                item_id = self._name_index.get(k)
                return self._items.get(item_id) if item_id is not None else None
            key = int(k)
        return self._items.get(key)

    def put(self, item: Item):
        # Both keys land in the same synchronous step
        self._items[item.id] = item
        self._name_index[item.name.lower()] = item.id

    async def resolve(self, key: ItemKey) -> Item:
        cached = self.lookup(key)
        if cached is not None:
            self.hit_count += 1
            return cached

        self.fetch_count += 1
        data = await self._client.fetch_item(key)
        item = Item.from_api(data)
        self.put(item)
        logger.debug(f"ItemCache: fetched {item.display_number} {item.name}")
        return item

    async def resolve_many(self, keys: Sequence[ItemKey]) -> List[Item]:
        """Resolve a batch in parallel; output order follows `keys`.

        Duplicate keys are resolved once. The first failure propagates.
        """
        unique = list(dict.fromkeys(keys))
        if not unique:
            return []
        resolved = await asyncio.gather(*(self.resolve(k) for k in unique))
        by_key = dict(zip(unique, resolved))
        return [by_key[k] for k in keys]
