"""
Search history.

Why keep this separate from main.py?
- main.py stays readable (routing + request/response)
- the store becomes easy to unit test with a temporary backend
- one place owns the dedup rule and the single-writer discipline

The whole collection is the unit of persistence: every mutation reads the
current list, changes it and writes the full list back. Mutations are
serialized by an asyncio.Lock owned by the store; backends make each write
atomic for concurrent readers.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import stat
import tempfile
import uuid
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence

from pydantic import TypeAdapter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .models import SearchHistoryRow
from .schemas import HistoryEntry
from .settings import Settings

logger = logging.getLogger(__name__)

_entries = TypeAdapter(List[HistoryEntry])

# searchHistory.json mode when the file does not exist yet
DEFAULT_FILE_MODE = 0o644


class HistoryPersistenceError(RuntimeError):
    """The backing collection could not be read or written."""
    pass


class HistoryBackend(Protocol):
    """Blocking full-collection storage. Called from worker threads."""

    def read(self) -> List[HistoryEntry]: ...

    def write(self, entries: Sequence[HistoryEntry]) -> None: ...


class JsonHistoryFile:
    """
    searchHistory.json: an indented JSON array of {"name", "id"} objects.

    A missing file is an empty history. Writes go to a temporary file in the
    same directory and are moved into place with os.replace, keeping the
    existing file's permissions.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def read(self) -> List[HistoryEntry]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise HistoryPersistenceError(f"Cannot read {self.path}") from e

        # invalid UTF-8 is reported by the JSON parser as a ValidationError
        try:
            return _entries.validate_json(raw)
        except ValueError as e:
            raise HistoryPersistenceError(f"Corrupt search history in {self.path}") from e

    def write(self, entries: Sequence[HistoryEntry]) -> None:
        try:
            payload = json.dumps(
                [{"name": e.name, "id": e.id} for e in entries], indent=2, ensure_ascii=False
            ).encode("utf-8")
        except UnicodeEncodeError as e:
            # a lone surrogate would make the whole file unreadable
            raise HistoryPersistenceError("Search history entry is not valid UTF-8") from e

        try:
            mode = stat.S_IMODE(os.stat(self.path).st_mode)
        except FileNotFoundError:
            mode = DEFAULT_FILE_MODE
        except OSError as e:
            raise HistoryPersistenceError(f"Cannot write {self.path}") from e

        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "wb",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
            os.chmod(tmp_name, mode)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise HistoryPersistenceError(f"Cannot write {self.path}") from e


class SqlHistoryTable:
    """search_history table; a write replaces every row in one transaction."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def read(self) -> List[HistoryEntry]:
        try:
            with self._session_factory() as db:
                rows = db.query(SearchHistoryRow).order_by(SearchHistoryRow.position).all()
                return [HistoryEntry(id=r.id, name=r.name) for r in rows]
        except SQLAlchemyError as e:
            raise HistoryPersistenceError("Cannot read search history table") from e

    def write(self, entries: Sequence[HistoryEntry]) -> None:
        try:
            with self._session_factory() as db, db.begin():
                db.query(SearchHistoryRow).delete()
                db.add_all(
                    SearchHistoryRow(position=i, id=e.id, name=e.name)
                    for i, e in enumerate(entries)
                )
        except (SQLAlchemyError, UnicodeEncodeError) as e:
            raise HistoryPersistenceError("Cannot write search history table") from e


def build_history_backend(settings: Settings) -> HistoryBackend:
    if settings.history_backend == "sqlite":
        from .db import make_engine, make_session_factory

        return SqlHistoryTable(make_session_factory(make_engine(settings.sqlite_path)))
    return JsonHistoryFile(settings.history_path)


def _new_id() -> str:
    return str(uuid.uuid4())


class HistoryStore:
    """Ordered, case-insensitively deduplicated list of searched locations."""

    def __init__(self, backend: HistoryBackend, id_factory: Optional[Callable[[], str]] = None):
        self._backend = backend
        self._new_id = id_factory or _new_id
        self._lock = asyncio.Lock()

    async def _read(self) -> List[HistoryEntry]:
        try:
            return await asyncio.to_thread(self._backend.read)
        except HistoryPersistenceError:
            # History is best-effort: an unreadable collection counts as empty
            logger.warning("Search history unreadable, treating it as empty", exc_info=True)
            return []

    async def _write(self, entries: List[HistoryEntry]) -> None:
        await asyncio.to_thread(self._backend.write, entries)

    async def list(self) -> List[HistoryEntry]:
        """Entries in insertion order (oldest first)."""
        return list(await self._read())

    async def add_city(self, name: str) -> None:
        """Append ``name`` unless an entry with the same lowercased name exists."""
        key = name.lower()
        async with self._lock:
            entries = await self._read()
            if any(e.name.lower() == key for e in entries):
                return
            entries.append(HistoryEntry(id=self._new_id(), name=name))
            await self._write(entries)
            logger.info("Added %r to search history", name)

    async def remove_city(self, entry_id: str) -> None:
        """Remove the entry with ``entry_id``; unknown ids are ignored."""
        async with self._lock:
            entries = await self._read()
            remaining = [e for e in entries if e.id != entry_id]
            if len(remaining) == len(entries):
                return
            await self._write(remaining)
