"""Shared fixtures and fakes for picker tests."""

import asyncio
from typing import List
import pytest

from kaomoji.picker.bus import EventBus
from kaomoji.picker.models import Entry
from kaomoji.picker.store import StoreError


class FakeClipboard:
    """Clipboard double that records every write attempt."""

    def __init__(self, primary_ok: bool = True, fallback_ok: bool = True):
        self.primary_ok = primary_ok
        self.fallback_ok = fallback_ok
        self.calls: List[tuple] = []

    async def write(self, text: str) -> bool:
        self.calls.append(("primary", text))
        if isinstance(self.primary_ok, Exception):
            raise self.primary_ok
        return self.primary_ok

    async def write_fallback(self, text: str) -> bool:
        self.calls.append(("fallback", text))
        if isinstance(self.fallback_ok, Exception):
            raise self.fallback_ok
        return self.fallback_ok


class FakeStore:
    """In-memory store; can be told to fail or to hold the initial load."""

    def __init__(self, user_entries=None, fail_load=False, fail_save=False):
        self.user_entries = list(user_entries or [])
        self.fail_load = fail_load
        self.fail_save = fail_save
        self.recents: List[Entry] = []
        self.favorites: List[Entry] = []
        self.load_gate = None

    async def load_user_entries(self) -> List[Entry]:
        if self.load_gate is not None:
            await self.load_gate.wait()
        if self.fail_load:
            raise StoreError("disk on fire")
        return list(self.user_entries)

    async def save_entry(self, entry: Entry) -> Entry:
        if self.fail_save:
            raise StoreError("read-only filesystem")
        entry = Entry(glyph=entry.glyph.strip(), tags=entry.tags, category=entry.category.strip())
        if not entry.glyph:
            raise ValueError("Kaomoji glyph cannot be empty")
        self.user_entries = [e for e in self.user_entries if e.glyph != entry.glyph] + [entry]
        return entry

    async def save_recent(self, entry: Entry) -> None:
        self.recents = [entry] + [e for e in self.recents if e.glyph != entry.glyph]

    async def load_favorites(self) -> List[Entry]:
        return list(self.favorites)

    async def toggle_favorite(self, entry: Entry) -> bool:
        if any(e.glyph == entry.glyph for e in self.favorites):
            self.favorites = [e for e in self.favorites if e.glyph != entry.glyph]
            return False
        self.favorites.append(entry)
        return True


@pytest.fixture
def happy():
    return Entry(glyph="(◕‿◕)", tags=["happy", "smile"], category="Joy")


@pytest.fixture
def sad():
    return Entry(glyph="(T_T)", tags=["sad"], category="Sadness")


@pytest.fixture
async def bus():
    """A running event bus, stopped after the test."""
    event_bus = EventBus()
    await event_bus.start()
    yield event_bus
    await event_bus.stop()


@pytest.fixture
def collect():
    """Subscribe-able collector: events land in collect.events."""
    class Collector:
        def __init__(self):
            self.events = []

        def __call__(self, event):
            self.events.append(event)

        def types(self):
            return [e.type for e in self.events]

    return Collector()


async def settle(event_bus: EventBus) -> None:
    await event_bus.drain()
    await asyncio.sleep(0)
