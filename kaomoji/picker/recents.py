"""In-session recency list of copied entries."""

from typing import Iterator, List

from .models import Entry


class RecencyTracker:
    """Most-recent-first list of entries, unique by glyph, bounded in size."""

    def __init__(self, capacity: int = 8):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: List[Entry] = []

    def record(self, entry: Entry) -> None:
        """Move entry to the front, dropping any older copy and the overflow."""
        self._entries = [e for e in self._entries if e.glyph != entry.glyph]
        self._entries.insert(0, entry)
        del self._entries[self.capacity:]

    @property
    def entries(self) -> List[Entry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(list(self._entries))
