"""Copy orchestration: clipboard write, one fallback, recency update, signal."""

from typing import Optional, Protocol
from loguru import logger

from .bus import Event, EventBus
from .models import CopyOutcome, Entry
from .recents import RecencyTracker


class Clipboard(Protocol):
    async def write(self, text: str) -> bool: ...

    async def write_fallback(self, text: str) -> bool: ...


class CopyHistory(Protocol):
    async def save_recent(self, entry: Entry) -> None: ...


class CopyOrchestrator:
    """
    Commits an entry to the clipboard.

    The primary write is tried first and, only if it fails, exactly one
    fallback write. On success the recency list is updated and
    copy.succeeded is emitted; otherwise copy.failed is emitted and the
    recency list is left alone.
    """

    def __init__(
        self,
        clipboard: Clipboard,
        recents: RecencyTracker,
        bus: EventBus,
        history: Optional[CopyHistory] = None
    ):
        self.clipboard = clipboard
        self.recents = recents
        self.history = history
        self._event_bus = bus

    async def commit(self, entry: Entry, index: Optional[int] = None) -> CopyOutcome:
        outcome = CopyOutcome.FAILED
        if await self._attempt(self.clipboard.write, entry, "primary"):
            outcome = CopyOutcome.PRIMARY
        elif await self._attempt(self.clipboard.write_fallback, entry, "fallback"):
            outcome = CopyOutcome.FALLBACK

        if not outcome.succeeded:
            logger.error(f"Copy failed for {entry.glyph!r}")
            await self._event_bus.emit(Event(
                type="copy.failed",
                data={"glyph": entry.glyph, "index": index},
                source="copy_orchestrator"
            ))
            return outcome

        self.recents.record(entry)
        await self._save_history(entry)

        await self._event_bus.emit(Event(
            type="copy.succeeded",
            data={"glyph": entry.glyph, "index": index, "method": outcome.value},
            source="copy_orchestrator"
        ))
        logger.debug(f"Copied {entry.glyph!r} via {outcome.value}")
        return outcome

    async def _attempt(self, write, entry: Entry, label: str) -> bool:
        try:
            return bool(await write(entry.glyph))
        except Exception as e:
            logger.warning(f"Clipboard {label} write raised: {e}")
            return False

    async def _save_history(self, entry: Entry) -> None:
        if self.history is None:
            return
        try:
            await self.history.save_recent(entry)
        except Exception as e:
            logger.warning(f"Failed to update copy history: {e}")
