"""SQLite-backed durable store.

Persists JSON-encoded values in a single ``kv_store`` table at
``data/translation_store.db`` (configurable).  Uses ``aiosqlite`` for
async I/O and opens one connection per operation; the engine writes at
most once per persistence delay, so connection reuse buys nothing.

Several processes may share one database file (an API server and the
CLI, say).  Every row records a ``version`` and the ``writer`` that last
touched it; :meth:`SQLiteDurableStore.start_watching` polls those columns
and publishes writes made through other store instances on the local
change feed with ``source=None``.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from xlate.interfaces.durable_store import IDurableStore, StoreListener
from xlate.providers.store.change_feed import StoreChangeFeed
from xlate.utils.errors import StoreError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/translation_store.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS kv_store (
    key         TEXT PRIMARY KEY,
    value_json  TEXT NOT NULL,
    version     INTEGER NOT NULL DEFAULT 1,
    writer      TEXT NOT NULL DEFAULT '',
    updated_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_UPSERT_SQL = """\
INSERT INTO kv_store (key, value_json, writer)
VALUES (?, ?, ?)
ON CONFLICT(key)
DO UPDATE SET value_json = excluded.value_json,
              writer     = excluded.writer,
              version    = kv_store.version + 1,
              updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_DELETE_SQL = "DELETE FROM kv_store WHERE key = ?;"

_VERSIONS_SQL = "SELECT key, version, updated_at, writer FROM kv_store;"

# key -> (version, updated_at, writer)
_RowVersion = tuple[int, str, str]


class SQLiteDurableStore(IDurableStore):
    """Key-value store persisted to a local SQLite file."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)
        self._feed = StoreChangeFeed(self.get_provider_name())
        self._writer_id = uuid.uuid4().hex
        # Serializes our writes with the poller's view of the table.
        self._lock = asyncio.Lock()
        self._seen: dict[str, _RowVersion] = {}
        self._watch_task: asyncio.Task[None] | None = None

    @property
    def watching(self) -> bool:
        return self._watch_task is not None

    async def initialize(self) -> None:
        """Create the database file and table if they don't exist."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute("PRAGMA journal_mode=WAL")
                await db.execute(_CREATE_TABLE_SQL)
                await db.commit()
        except (aiosqlite.Error, OSError) as exc:
            raise StoreError(
                message=f"Could not initialise {self._db_path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("sqlite_store_initialized", path=str(self._db_path))

    async def get(self, keys: list[str]) -> dict[str, Any]:
        if not keys:
            return {}
        placeholders = ", ".join("?" for _ in keys)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(
                    f"SELECT key, value_json FROM kv_store WHERE key IN ({placeholders})",
                    tuple(keys),
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Read failed for {len(keys)} key(s): {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        result: dict[str, Any] = {}
        for key, value_json in rows:
            try:
                result[key] = json.loads(value_json)
            except (TypeError, ValueError) as exc:
                # A corrupt row is treated as missing; the rest still load.
                logger.warning("sqlite_store_corrupt_value", key=key, error=str(exc)[:200])
        return result

    async def set(self, items: dict[str, Any], source: str | None = None) -> None:
        if not items:
            return
        try:
            rows = [
                (key, json.dumps(value, ensure_ascii=False), self._writer_id)
                for key, value in items.items()
            ]
        except (TypeError, ValueError) as exc:
            raise StoreError(
                message=f"Value is not JSON-serializable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        try:
            async with self._lock, aiosqlite.connect(str(self._db_path)) as db:
                await db.executemany(_UPSERT_SQL, rows)
                await db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Write failed for {sorted(items)}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug("sqlite_store_set", keys=sorted(items), source=source)
        await self._feed.publish(items, source)

    async def remove(self, key: str, source: str | None = None) -> None:
        try:
            async with self._lock:
                async with aiosqlite.connect(str(self._db_path)) as db:
                    cursor = await db.execute(_DELETE_SQL, (key,))
                    await db.commit()
                    removed = cursor.rowcount
                self._seen.pop(key, None)
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Delete failed for {key!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if removed:
            logger.debug("sqlite_store_remove", key=key, source=source)
            await self._feed.publish({key: None}, source)

    def register_listener(self, callback: StoreListener) -> None:
        self._feed.register(callback)

    def unregister_listener(self, callback: StoreListener) -> None:
        self._feed.unregister(callback)

    def get_provider_name(self) -> str:
        return "sqlite_store"

    # ------------------------------------------------------------------
    # Changes made by other processes
    # ------------------------------------------------------------------

    async def start_watching(self, interval: float) -> None:
        """Poll for other writers every *interval* seconds.

        The table as it stands now is the baseline; only later inserts,
        updates and deletes by other store instances are published.
        ``interval <= 0`` leaves the store unwatched.
        """
        if self._watch_task is not None or interval <= 0:
            return
        async with self._lock:
            self._seen = await self._read_versions()
        self._watch_task = asyncio.get_running_loop().create_task(
            self._watch_loop(interval), name=f"{self.get_provider_name()}:watch"
        )
        logger.info("sqlite_store_watch_started", path=str(self._db_path), interval=interval)

    async def stop_watching(self) -> None:
        task, self._watch_task = self._watch_task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.info("sqlite_store_watch_stopped", path=str(self._db_path))

    async def poll_changes(self) -> dict[str, Any]:
        """Publish rows changed by other writers since the last poll.

        Returns the published changes: key -> new value, ``None`` for a
        removed key.  Rows last written by this instance are skipped.
        """
        async with self._lock:
            current = await self._read_versions()
            updated = [
                key
                for key, row in current.items()
                if row[2] != self._writer_id and self._seen.get(key) != row
            ]
            removed = [key for key in self._seen if key not in current]
            self._seen = current

        changes: dict[str, Any] = dict.fromkeys(removed)
        if updated:
            values = await self.get(updated)
            changes.update({key: values[key] for key in updated if key in values})
        if changes:
            logger.info("sqlite_store_external_change", keys=sorted(changes))
            await self._feed.publish(changes, None)
        return changes

    async def _watch_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.poll_changes()
            except StoreError as exc:
                logger.warning("sqlite_store_poll_failed", error=str(exc))

    async def _read_versions(self) -> dict[str, _RowVersion]:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(_VERSIONS_SQL)
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Version scan failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return {key: (version, updated_at, writer) for key, version, updated_at, writer in rows}
