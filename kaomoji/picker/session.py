"""Picker session: owns the catalog, query, results, cursor and recents."""

import asyncio
from typing import List, Optional, Sequence, Set
from loguru import logger

from .bus import Event, EventBus
from .catalog import Catalog, load_bundled
from .config import PickerConfig
from .copier import Clipboard, CopyOrchestrator
from .models import CopyOutcome, Entry, Query
from .query import parse_query
from .ranker import Ranker
from .recents import RecencyTracker
from .selection import NavKey, SelectionController
from .store import EntryStore, StoreError


class PickerSession:
    """
    Single owner of all mutable picker state.

    Every change to the query or the catalog goes through _refresh(),
    which recomputes the result set and then re-clamps the cursor before
    any further input is handled.
    """

    def __init__(
        self,
        config: PickerConfig,
        store: EntryStore,
        clipboard: Clipboard,
        bus: Optional[EventBus] = None,
        bundled: Optional[Sequence[Entry]] = None
    ):
        self.config = config
        self.store = store
        self.event_bus = bus or EventBus()

        if bundled is None:
            bundled = load_bundled(config.bundled_path)
        self.catalog = Catalog(bundled)
        self.ranker = Ranker(config.search)
        self.selection = SelectionController()
        self.recents = RecencyTracker(config.recents.session_capacity)
        self.copier = CopyOrchestrator(clipboard, self.recents, self.event_bus, history=store)
        self.favorites: Set[str] = set()

        self.raw_query = ""
        self.query = Query()
        self.results: List[Entry] = self.catalog.entries
        self.selection.on_result_set_changed(len(self.results))

        self._startup_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the bus and kick off the user-entry merge without waiting."""
        await self.event_bus.start()
        self._startup_task = asyncio.create_task(self._load_user_state())
        logger.info(f"Picker session started with {len(self.catalog)} bundled entries")

    async def wait_ready(self) -> None:
        """Wait for the startup merge to finish."""
        if self._startup_task is not None:
            await self._startup_task

    async def stop(self) -> None:
        await self.wait_ready()
        await self.event_bus.stop()
        logger.info("Picker session stopped")

    async def _load_user_state(self) -> None:
        try:
            user_entries = await self.store.load_user_entries()
        except Exception as e:
            logger.error(f"Failed to load user entries, continuing with bundled set: {e}")
        else:
            added = self.catalog.merge(user_entries)
            self._refresh()
            logger.info(f"Merged {added} user entries into catalog")
            await self.event_bus.emit(Event(
                type="catalog.merged",
                data={"added": added, "total": len(self.catalog)},
                source="session"
            ))

        try:
            self.favorites = {e.glyph for e in await self.store.load_favorites()}
        except Exception as e:
            logger.warning(f"Failed to load favorites: {e}")

    def set_query(self, raw: str) -> List[Entry]:
        """Replace the query text and recompute results."""
        self.raw_query = raw
        self.query = parse_query(raw)
        self._refresh()
        self.event_bus.emit_nowait(Event(
            type="search.completed",
            data={"query": raw, "result_count": len(self.results)},
            source="session"
        ))
        return self.results

    def _refresh(self) -> None:
        self.results = self.ranker.rank(self.catalog.entries, self.query)
        self.selection.on_result_set_changed(len(self.results))

    def set_columns(self, columns: int) -> None:
        self.selection.set_columns(columns)

    def navigate(self, key: NavKey) -> int:
        return self.selection.apply(key)

    def select(self, index: int) -> int:
        return self.selection.move_to(index)

    @property
    def cursor(self) -> int:
        return self.selection.cursor

    @property
    def selected(self) -> Optional[Entry]:
        if not self.results:
            return None
        return self.results[self.selection.cursor]

    async def commit_selected(self) -> Optional[CopyOutcome]:
        """Copy the highlighted entry. None when there is nothing to copy."""
        entry = self.selected
        if entry is None:
            return None
        return await self.commit(entry, self.selection.cursor)

    async def commit(self, entry: Entry, index: Optional[int] = None) -> CopyOutcome:
        return await self.copier.commit(entry, index)

    async def save_entry(self, entry: Entry) -> bool:
        """
        Persist an entry, then upsert it in memory.

        The catalog is only touched after the store confirms the write.
        """
        try:
            saved = await self.store.save_entry(entry)
        except (ValueError, StoreError) as e:
            logger.error(f"Failed to save entry {entry.glyph!r}: {e}")
            await self.event_bus.emit(Event(
                type="catalog.upsert_failed",
                data={"glyph": entry.glyph, "error": str(e)},
                source="session"
            ))
            return False

        replaced = self.catalog.upsert(saved)
        self._refresh()
        await self.event_bus.emit(Event(
            type="catalog.upserted",
            data={"glyph": saved.glyph, "replaced": replaced},
            source="session"
        ))
        return True

    async def toggle_favorite(self, entry: Entry) -> Optional[bool]:
        """Flip favourite status. None when the store could not be updated."""
        try:
            is_favorite = await self.store.toggle_favorite(entry)
        except StoreError as e:
            logger.error(f"Failed to toggle favorite {entry.glyph!r}: {e}")
            return None

        if is_favorite:
            self.favorites.add(entry.glyph)
        else:
            self.favorites.discard(entry.glyph)
        await self.event_bus.emit(Event(
            type="favorites.toggled",
            data={"glyph": entry.glyph, "favorite": is_favorite},
            source="session"
        ))
        return is_favorite
