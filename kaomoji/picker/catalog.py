"""In-memory kaomoji catalog keyed by glyph."""

import json
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional
from loguru import logger

from .models import Entry

BUNDLED_PATH = Path(__file__).parent / "data" / "kaomojis.json"


class Catalog:
    """
    Ordered, deduplicated collection of entries.

    Two entries never share a glyph. Mutation happens only through
    merge() and upsert().
    """

    def __init__(self, entries: Iterable[Entry] = ()):
        self._entries: List[Entry] = []
        self._positions: Dict[str, int] = {}
        self.merge(entries)

    def merge(self, entries: Iterable[Entry]) -> int:
        """
        Append entries whose glyph is not yet present.

        Existing entries are left untouched (first loaded wins).
        Returns the number of entries added.
        """
        added = 0
        for entry in entries:
            if entry.glyph in self._positions:
                continue
            self._positions[entry.glyph] = len(self._entries)
            self._entries.append(entry)
            added += 1
        return added

    def upsert(self, entry: Entry) -> bool:
        """Replace the entry with the same glyph in place, or append it.

        Returns True when an existing entry was replaced.
        """
        position = self._positions.get(entry.glyph)
        if position is not None:
            self._entries[position] = entry
            return True
        self._positions[entry.glyph] = len(self._entries)
        self._entries.append(entry)
        return False

    def get(self, glyph: str) -> Optional[Entry]:
        position = self._positions.get(glyph)
        return None if position is None else self._entries[position]

    def index_of(self, glyph: str) -> int:
        return self._positions.get(glyph, -1)

    @property
    def entries(self) -> List[Entry]:
        return list(self._entries)

    def __contains__(self, glyph: str) -> bool:
        return glyph in self._positions

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(list(self._entries))


def load_bundled(path: Optional[Path] = None) -> List[Entry]:
    """Read the bundled catalog shipped with the package."""
    path = path or BUNDLED_PATH
    with open(path, 'r', encoding='utf-8') as f:
        records = json.load(f)
    entries = [Entry.from_dict(record) for record in records]
    logger.debug(f"Loaded {len(entries)} bundled entries from {path}")
    return entries
