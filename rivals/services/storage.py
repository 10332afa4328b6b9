"""
Local key/value persistence.

Each aggregator persists its whole state as one JSON document under a
fixed key. Reads fall back to a default when the key is missing, the
document is corrupt, or the store is unavailable. Writes are best effort:
a failed write is logged and the in-memory state stays authoritative.
"""

import json
import logging
from typing import Any, Protocol

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rivals.models.db import KeyValueDB

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the backing store cannot be read or written."""

    pass


class NotHydratedError(Exception):
    """Raised when persisted state is changed before it has loaded from storage."""

    pass


class KeyValueStore(Protocol):
    """Opaque string-keyed string store."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Process-local store. Used for previews and tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)


class SqlKeyValueStore:
    """Key/value store on the kv_entries table, one short session per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get(self, key: str) -> str | None:
        try:
            async with self.session_factory() as session:
                entry = await session.get(KeyValueDB, key)
                return entry.value if entry is not None else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    async def set(self, key: str, value: str) -> None:
        try:
            async with self.session_factory() as session:
                await session.merge(KeyValueDB(key=key, value=value))
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write {key}: {e}") from e

    async def remove(self, key: str) -> None:
        try:
            async with self.session_factory() as session:
                await session.execute(delete(KeyValueDB).where(KeyValueDB.key == key))
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to remove {key}: {e}") from e


async def get_json(store: KeyValueStore, key: str, default: Any) -> Any:
    """
    Read and decode a JSON document.

    Returns ``default`` when the key is absent, the store fails, the
    payload is not valid JSON, or it decodes to a different type than
    ``default``.
    """
    try:
        raw = await store.get(key)
    except StorageError as e:
        logger.warning("Storage read failed for %s: %s", key, e)
        return default

    if not raw:
        return default

    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("Discarding corrupt JSON stored under %s", key)
        return default

    if default is not None and not isinstance(parsed, type(default)):
        logger.warning("Discarding %s stored under %s", type(parsed).__name__, key)
        return default

    return parsed


async def set_json(store: KeyValueStore, key: str, value: Any) -> bool:
    """Encode and write a JSON document. Returns False if the write failed."""
    try:
        await store.set(key, json.dumps(value))
    except StorageError as e:
        logger.warning("Storage write failed for %s: %s", key, e)
        return False
    return True


async def remove_key(store: KeyValueStore, key: str) -> bool:
    """Delete a stored document. Returns False if the removal failed."""
    try:
        await store.remove(key)
    except StorageError as e:
        logger.warning("Storage remove failed for %s: %s", key, e)
        return False
    return True


class PersistedState:
    """
    Base for services whose state is one JSON document in a KeyValueStore.

    ``is_hydrated`` flips to True once the document has been loaded, and
    gates actions that must not run against a not-yet-loaded state.
    """

    not_hydrated_error: type[NotHydratedError] = NotHydratedError

    def __init__(self, store: KeyValueStore, storage_key: str) -> None:
        self.store = store
        self.storage_key = storage_key
        self.is_hydrated = False

    def _require_hydrated(self) -> None:
        """Writing before the stored document loads would overwrite it."""
        if not self.is_hydrated:
            raise self.not_hydrated_error(f"{type(self).__name__} has not loaded from storage yet")

    async def _load(self, default: Any) -> Any:
        return await get_json(self.store, self.storage_key, default)

    async def _save(self, value: Any) -> bool:
        return await set_json(self.store, self.storage_key, value)

    async def _forget(self) -> bool:
        return await remove_key(self.store, self.storage_key)
