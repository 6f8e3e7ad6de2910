"""
console_view.py: Terminal renderer for the catalog list.

Prints one card line per item plus status updates. Stands in for the
browser card grid when running from a shell.
"""

import logging
from typing import List, Sequence

from item_cache import Item

logger = logging.getLogger(__name__)

# Short labels for the six base stats
STAT_LABELS = {
    "hp": "HP",
    "attack": "Atk",
    "defense": "Def",
    "special-attack": "SpA",
    "special-defense": "SpD",
    "speed": "Spe",
}


def format_card(item: Item) -> str:
    """One-line card: number, name, types, stats, abilities."""
    types = "/".join(item.type_names) or "?"
    stats = " ".join(f"{STAT_LABELS.get(name, name)} {value}"
                     for name, value in item.stats.items())
    abilities = ", ".join(f"{a.name} (hidden)" if a.is_hidden else a.name
                          for a in item.abilities)
    return f"{item.display_number} {item.name:<14} [{types}]  {stats}  | {abilities}"


class ConsoleRenderer:
    """Renderer that writes to stdout."""

    def __init__(self):
        self.cards: List[str] = []
        self.busy = False

    def _print(self, line: str):
        try:
            print(line)
        except (UnicodeEncodeError, OSError):
            pass  # terminals without UTF-8 can't encode some names

    def render_batch(self, items: Sequence[Item], append: bool):
        if not append:
            self.cards.clear()
            self._print("─" * 60)
        for item in items:
            card = format_card(item)
            self.cards.append(card)
            self._print(f"  {card}")

    def set_status(self, message: str):
        self._print(f"  » {message}")

    def set_busy(self, busy: bool):
        self.busy = busy
        logger.debug(f"busy={busy}")

    def set_categories(self, names: Sequence[str]):
        self._print(f"  Types: {', '.join(names)}")
