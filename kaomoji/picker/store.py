"""
JSON-file persistence for user entries, copy history and favourites.

Files live in the data directory:
- kaomojis.user.json       user-added or edited entries
- kaomojis.recents.json    copy history, most recent first
- kaomojis.favorites.json  favourite entries

Writes go to a unique temp file that is fsynced and then renamed over the
target. A file that fails to parse is moved aside as
<name>.corrupt.<unix-ts>.bak and treated as empty.
"""

import asyncio
import json
import os
import shutil
import time
from pathlib import Path
from typing import List
import aiofiles
from pydantic import BaseModel, TypeAdapter, ValidationError
from loguru import logger

from .models import Entry

USER_FILE = "kaomojis.user.json"
RECENTS_FILE = "kaomojis.recents.json"
FAVORITES_FILE = "kaomojis.favorites.json"


class StoreError(Exception):
    """Raised when a store file cannot be read or written."""


class EntryRecord(BaseModel):
    glyph: str
    tags: List[str] = []
    category: str = ""


_RECORDS = TypeAdapter(List[EntryRecord])


def sanitize_entry(entry: Entry) -> Entry:
    """Normalise an entry before it is persisted."""
    glyph = entry.glyph.strip()
    if not glyph:
        raise ValueError("Kaomoji glyph cannot be empty")
    return Entry(glyph=glyph, tags=list(entry.tags), category=entry.category.strip())


class EntryStore:
    """Async JSON store backing the picker session."""

    def __init__(self, data_dir: Path, history_capacity: int = 20):
        self.data_dir = Path(data_dir)
        self.history_capacity = history_capacity
        self._lock = asyncio.Lock()

    def path_for(self, name: str) -> Path:
        return self.data_dir / name

    async def load_user_entries(self) -> List[Entry]:
        """Previously saved user entries; empty when nothing was saved yet."""
        return await self._read_list(self.path_for(USER_FILE))

    async def save_entry(self, entry: Entry) -> Entry:
        """Upsert an entry by glyph and return the sanitized version written."""
        entry = sanitize_entry(entry)
        async with self._lock:
            path = self.path_for(USER_FILE)
            entries = await self._read_list(path)
            for i, existing in enumerate(entries):
                if existing.glyph == entry.glyph:
                    entries[i] = entry
                    break
            else:
                entries.append(entry)
            await self._write_list(path, entries)
        logger.info(f"Saved user entry {entry.glyph!r}")
        return entry

    async def load_recents(self) -> List[Entry]:
        return await self._read_list(self.path_for(RECENTS_FILE))

    async def save_recent(self, entry: Entry) -> None:
        """Move entry to the front of the persisted history."""
        async with self._lock:
            path = self.path_for(RECENTS_FILE)
            entries = await self._read_list(path)
            entries = [e for e in entries if e.glyph != entry.glyph]
            entries.insert(0, entry)
            await self._write_list(path, entries[:self.history_capacity])

    async def load_favorites(self) -> List[Entry]:
        return await self._read_list(self.path_for(FAVORITES_FILE))

    async def toggle_favorite(self, entry: Entry) -> bool:
        """Add or remove a favourite. Returns True if it is now a favourite."""
        async with self._lock:
            path = self.path_for(FAVORITES_FILE)
            entries = await self._read_list(path)
            remaining = [e for e in entries if e.glyph != entry.glyph]
            is_favorite = len(remaining) == len(entries)
            if is_favorite:
                remaining.append(entry)
            await self._write_list(path, remaining)
        return is_favorite

    async def _read_list(self, path: Path) -> List[Entry]:
        if not path.exists():
            return []

        try:
            async with aiofiles.open(path, 'r', encoding='utf-8') as f:
                content = await f.read()
        except UnicodeDecodeError as e:
            logger.warning(f"Store file {path} is not valid UTF-8: {e.reason}")
            self._backup_corrupt(path)
            return []
        except OSError as e:
            raise StoreError(f"Failed to read {path}: {e}") from e

        try:
            records = _RECORDS.validate_json(content)
        except ValidationError as e:
            logger.warning(f"Store file {path} is corrupt: {e.error_count()} errors")
            self._backup_corrupt(path)
            return []

        entries = []
        for r in records:
            if not r.glyph.strip():
                logger.warning(f"Skipping entry with empty glyph in {path}")
                continue
            entries.append(Entry(glyph=r.glyph, tags=r.tags, category=r.category))
        return entries

    async def _write_list(self, path: Path, entries: List[Entry]) -> None:
        content = json.dumps([e.to_dict() for e in entries], ensure_ascii=False, indent=2)
        await self._atomic_save(path, content)

    async def _atomic_save(self, path: Path, content: str) -> None:
        tmp_path = path.with_name(f"{path.name}.{os.getpid()}.{time.time_ns()}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, 'w', encoding='utf-8') as f:
                await f.write(content)
                await f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
            self._sync_dir(path.parent)
        except OSError as e:
            raise StoreError(f"Failed to write {path}: {e}") from e
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

    @staticmethod
    def _sync_dir(directory: Path) -> None:
        # Best effort; not every platform can open a directory
        try:
            fd = os.open(directory, os.O_RDONLY)
        except OSError:
            return
        try:
            os.fsync(fd)
        except OSError:
            pass
        finally:
            os.close(fd)

    @staticmethod
    def _backup_corrupt(path: Path) -> None:
        backup = path.with_name(f"{path.name}.corrupt.{int(time.time())}.bak")
        try:
            path.rename(backup)
            logger.error(f"Store file corrupt; backed up to {backup}")
            return
        except OSError as rename_err:
            logger.warning(f"Rename of corrupt file failed ({rename_err}), copying instead")

        try:
            shutil.copy2(path, backup)
            path.unlink()
            logger.error(f"Store file corrupt; backed up via copy to {backup}")
        except OSError as e:
            logger.error(f"Store file corrupt; failed to back up {path}: {e}")
