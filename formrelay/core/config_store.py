"""Configuration Store — one record per (form, channel type) plus a global index.

Saving always overwrites: nothing from a prior record survives except its
identity and its position in the global index.

Two backends share the ``ConfigStore`` protocol:

- ``InMemoryConfigStore`` for tests and single-process embedding.
- ``SqliteConfigStore`` for persistence.  WAL journal mode for concurrent
  readers; SQLite serializes writers.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from collections.abc import Callable, Iterator
from contextlib import closing, contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from formrelay.core._locks import KeyedLocks
from formrelay.errors import ConfigNotFound, PersistenceFailure
from formrelay.models.channels import KNOWN_CHANNEL_TYPES, ChannelType
from formrelay.models.integration import IntegrationConfig, IntegrationKey

logger = logging.getLogger(__name__)

_LOOKUP_ORDER: dict[ChannelType, int] = {
    channel_type: position for position, channel_type in enumerate(KNOWN_CHANNEL_TYPES)
}


@runtime_checkable
class ConfigStore(Protocol):
    """Repository interface for integration configurations."""

    def save(self, key: IntegrationKey, config: dict[str, Any]) -> IntegrationConfig:
        """Create or overwrite the record for *key* and upsert the index."""
        ...

    def get(self, key: IntegrationKey) -> IntegrationConfig | None:
        """Return the record for *key*, or ``None``."""
        ...

    def list_enabled(self, form_id: str) -> list[IntegrationConfig]:
        """Return the form's enabled records in known-channel lookup order."""
        ...

    def delete(self, key: IntegrationKey) -> None:
        """Remove the record and its index entry.  Missing keys are ignored."""
        ...

    def list_all(self) -> list[IntegrationConfig]:
        """Return every record, in index order."""
        ...


def require(store: ConfigStore, key: IntegrationKey) -> IntegrationConfig:
    """Like ``store.get`` but raises ``ConfigNotFound`` for a missing key."""
    integration = store.get(key)
    if integration is None:
        raise ConfigNotFound(key)
    return integration


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _in_lookup_order(records: list[IntegrationConfig]) -> list[IntegrationConfig]:
    return sorted(records, key=lambda r: _LOOKUP_ORDER[r.type])


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class InMemoryConfigStore:
    """Dict-backed store.  The global index is an ordered list of ids.

    Parameters
    ----------
    clock:
        Source of save timestamps.  Defaults to the current UTC time.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._records: dict[str, IntegrationConfig] = {}
        self._index: list[str] = []
        self._index_lock = threading.Lock()
        self._locks = KeyedLocks()

    def save(self, key: IntegrationKey, config: dict[str, Any]) -> IntegrationConfig:
        record = IntegrationConfig.build(key, config, now=self._clock())
        with self._locks.for_key(record.id):
            self._records[record.id] = record
            with self._index_lock:
                if record.id not in self._index:
                    self._index.append(record.id)
        logger.debug("Saved integration %s (enabled=%s)", record.id, record.enabled)
        return record

    def get(self, key: IntegrationKey) -> IntegrationConfig | None:
        return self._records.get(key.integration_id)

    def list_enabled(self, form_id: str) -> list[IntegrationConfig]:
        enabled: list[IntegrationConfig] = []
        for channel_type in KNOWN_CHANNEL_TYPES:
            record = self.get(IntegrationKey(form_id=form_id, channel_type=channel_type))
            if record is not None and record.enabled:
                enabled.append(record)
        return enabled

    def delete(self, key: IntegrationKey) -> None:
        integration_id = key.integration_id
        with self._locks.for_key(integration_id):
            self._records.pop(integration_id, None)
            with self._index_lock:
                self._index = [i for i in self._index if i != integration_id]
        self._locks.discard(integration_id)
        logger.debug("Deleted integration %s", integration_id)

    def list_all(self) -> list[IntegrationConfig]:
        with self._index_lock:
            ids = list(self._index)
        return [self._records[i] for i in ids if i in self._records]


# ---------------------------------------------------------------------------
# SQLite backend
# ---------------------------------------------------------------------------

_CREATE_INTEGRATIONS = """
CREATE TABLE IF NOT EXISTS integrations (
    seq           INTEGER PRIMARY KEY AUTOINCREMENT,
    id            TEXT NOT NULL UNIQUE,
    form_id       TEXT NOT NULL,
    channel_type  TEXT NOT NULL,
    enabled       INTEGER NOT NULL DEFAULT 0,
    config_json   TEXT NOT NULL DEFAULT '{}',
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL
);
"""

_CREATE_IDX_FORM = """
CREATE INDEX IF NOT EXISTS idx_integrations_form ON integrations(form_id, enabled);
"""

_UPSERT = """
INSERT INTO integrations
    (id, form_id, channel_type, enabled, config_json, created_at, updated_at)
VALUES (?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    enabled     = excluded.enabled,
    config_json = excluded.config_json,
    created_at  = excluded.created_at,
    updated_at  = excluded.updated_at
"""

_COLUMNS = "id, form_id, channel_type, enabled, config_json, created_at, updated_at"


class SqliteConfigStore:
    """SQLite-backed store.

    A single table holds both the per-key records and the global index;
    ``seq`` preserves index order across overwrites.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Created if it does not exist.
    clock:
        Source of save timestamps.  Defaults to the current UTC time.
    """

    def __init__(
        self, db_path: Path, *, clock: Callable[[], datetime] = _utcnow
    ) -> None:
        self._clock = clock
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self._db_path), check_same_thread=False, timeout=30.0
        )
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def _session(self, operation: str) -> Iterator[sqlite3.Connection]:
        try:
            with closing(self._connect()) as conn, conn:
                yield conn
        except sqlite3.Error as exc:
            raise PersistenceFailure(
                f"Configuration store {operation} failed: {exc}"
            ) from exc

    def _init_schema(self) -> None:
        with self._session("initialization") as conn:
            conn.execute(_CREATE_INTEGRATIONS)
            conn.execute(_CREATE_IDX_FORM)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, key: IntegrationKey, config: dict[str, Any]) -> IntegrationConfig:
        record = IntegrationConfig.build(key, config, now=self._clock())
        with self._session("save") as conn:
            conn.execute(
                _UPSERT,
                (
                    record.id,
                    record.form_id,
                    record.type.value,
                    int(record.enabled),
                    json.dumps(record.config, default=str),
                    record.created_at.isoformat(),
                    record.updated_at.isoformat(),
                ),
            )
        logger.debug("Saved integration %s (enabled=%s)", record.id, record.enabled)
        return record

    def delete(self, key: IntegrationKey) -> None:
        with self._session("delete") as conn:
            conn.execute("DELETE FROM integrations WHERE id = ?", (key.integration_id,))
        logger.debug("Deleted integration %s", key.integration_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: IntegrationKey) -> IntegrationConfig | None:
        with self._session("get") as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM integrations WHERE id = ?",
                (key.integration_id,),
            ).fetchone()
        return self._row_to_record(row) if row else None

    def list_enabled(self, form_id: str) -> list[IntegrationConfig]:
        known = [t.value for t in KNOWN_CHANNEL_TYPES]
        placeholders = ", ".join("?" for _ in known)
        with self._session("list") as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM integrations "
                f"WHERE form_id = ? AND enabled = 1 AND channel_type IN ({placeholders})",
                (form_id, *known),
            ).fetchall()
        return _in_lookup_order([self._row_to_record(row) for row in rows])

    def list_all(self) -> list[IntegrationConfig]:
        with self._session("list") as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM integrations ORDER BY seq ASC"
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_record(row: tuple) -> IntegrationConfig:
        (
            integration_id,
            form_id,
            channel_type,
            enabled,
            config_json,
            created_at,
            updated_at,
        ) = row
        return IntegrationConfig(
            id=integration_id,
            form_id=form_id,
            type=ChannelType(channel_type),
            enabled=bool(enabled),
            config=json.loads(config_json),
            created_at=created_at,
            updated_at=updated_at,
        )
