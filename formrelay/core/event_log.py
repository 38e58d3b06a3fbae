"""Event Log — capped, newest-first delivery history per integration.

Each append creates an immutable ``IntegrationEvent`` at the head of the
integration's history, then truncates the history to the retention limit
(100 by default).  Evicted events are gone for good.

Statistics are never stored.  ``stats`` re-reads the history on every call
so it always describes the current retained window.
"""

from __future__ import annotations

import logging
import sqlite3
from collections import deque
from collections.abc import Iterable, Iterator
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Protocol, runtime_checkable

from formrelay.core._locks import KeyedLocks
from formrelay.errors import PersistenceFailure
from formrelay.models.events import (
    EventOutcome,
    IntegrationEvent,
    IntegrationStats,
)

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100


def compute_stats(events: Iterable[IntegrationEvent]) -> IntegrationStats:
    """Derive reliability figures from a sequence of events.

    >>> compute_stats([]).success_rate_percent
    0
    """
    total = 0
    success = 0
    error = 0
    for event in events:
        total += 1
        if event.type == EventOutcome.SUCCESS:
            success += 1
        elif event.type == EventOutcome.ERROR:
            error += 1
    # Half-up, not banker's rounding.
    rate = int(success * 100 / total + 0.5) if total else 0
    return IntegrationStats(
        total=total,
        success_count=success,
        error_count=error,
        success_rate_percent=rate,
    )


@runtime_checkable
class EventLog(Protocol):
    """Storage interface for per-integration delivery history."""

    @property
    def limit(self) -> int:
        """Maximum number of events retained per integration."""
        ...

    def append(
        self,
        integration_id: str,
        outcome: EventOutcome,
        submission_id: str,
        error: str | None = None,
    ) -> IntegrationEvent:
        """Record an outcome and enforce the retention limit."""
        ...

    def list(self, integration_id: str) -> list[IntegrationEvent]:
        """Return the retained history, newest first."""
        ...

    def stats(self, integration_id: str) -> IntegrationStats:
        """Compute statistics over the retained history."""
        ...

    def clear(self, integration_id: str) -> None:
        """Drop an integration's entire history."""
        ...


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class InMemoryEventLog:
    """Deque-per-integration history with per-key write locks.

    Parameters
    ----------
    limit:
        Events retained per integration.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError(f"History limit must be positive, got {limit}")
        self._limit = limit
        self._histories: dict[str, deque[IntegrationEvent]] = {}
        self._locks = KeyedLocks()

    @property
    def limit(self) -> int:
        return self._limit

    def append(
        self,
        integration_id: str,
        outcome: EventOutcome,
        submission_id: str,
        error: str | None = None,
    ) -> IntegrationEvent:
        event = IntegrationEvent(
            integration_id=integration_id,
            type=outcome,
            submission_id=submission_id,
            error=error,
        )
        with self._locks.for_key(integration_id):
            history = self._histories.get(integration_id)
            if history is None:
                # maxlen evicts from the right when prepending on the left
                history = deque(maxlen=self._limit)
                self._histories[integration_id] = history
            history.appendleft(event)
        return event

    def list(self, integration_id: str) -> list[IntegrationEvent]:
        with self._locks.for_key(integration_id):
            return list(self._histories.get(integration_id, ()))

    def stats(self, integration_id: str) -> IntegrationStats:
        return compute_stats(self.list(integration_id))

    def clear(self, integration_id: str) -> None:
        with self._locks.for_key(integration_id):
            self._histories.pop(integration_id, None)


# ---------------------------------------------------------------------------
# SQLite backend
# ---------------------------------------------------------------------------

_CREATE_EVENTS = """
CREATE TABLE IF NOT EXISTS integration_events (
    seq             INTEGER PRIMARY KEY AUTOINCREMENT,
    event_id        TEXT NOT NULL UNIQUE,
    integration_id  TEXT NOT NULL,
    outcome         TEXT NOT NULL,
    submission_id   TEXT NOT NULL,
    timestamp_utc   TEXT NOT NULL,
    error           TEXT
);
"""

_CREATE_IDX_INTEGRATION = """
CREATE INDEX IF NOT EXISTS idx_events_integration
    ON integration_events(integration_id, seq);
"""

_PRUNE = """
DELETE FROM integration_events
WHERE integration_id = ?
  AND seq NOT IN (
      SELECT seq FROM integration_events
      WHERE integration_id = ?
      ORDER BY seq DESC
      LIMIT ?
  )
"""


class SqliteEventLog:
    """SQLite-backed history.  Insert and prune share one transaction.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  May be the same file as the
        configuration store.
    limit:
        Events retained per integration.
    """

    def __init__(self, db_path: Path, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError(f"History limit must be positive, got {limit}")
        self._limit = limit
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._session("initialization") as conn:
            conn.execute(_CREATE_EVENTS)
            conn.execute(_CREATE_IDX_INTEGRATION)

    @property
    def limit(self) -> int:
        return self._limit

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
            raise PersistenceFailure(f"Event log {operation} failed: {exc}") from exc

    def append(
        self,
        integration_id: str,
        outcome: EventOutcome,
        submission_id: str,
        error: str | None = None,
    ) -> IntegrationEvent:
        event = IntegrationEvent(
            integration_id=integration_id,
            type=outcome,
            submission_id=submission_id,
            error=error,
        )
        with self._session("append") as conn:
            conn.execute(
                """
                INSERT INTO integration_events
                    (event_id, integration_id, outcome, submission_id,
                     timestamp_utc, error)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    event.id,
                    event.integration_id,
                    event.type.value,
                    event.submission_id,
                    event.timestamp.isoformat(),
                    event.error,
                ),
            )
            conn.execute(_PRUNE, (integration_id, integration_id, self._limit))
        return event

    def list(self, integration_id: str) -> list[IntegrationEvent]:
        with self._session("list") as conn:
            rows = conn.execute(
                """
                SELECT event_id, integration_id, outcome, submission_id,
                       timestamp_utc, error
                FROM integration_events
                WHERE integration_id = ?
                ORDER BY seq DESC
                LIMIT ?
                """,
                (integration_id, self._limit),
            ).fetchall()
        return [self._row_to_event(row) for row in rows]

    def stats(self, integration_id: str) -> IntegrationStats:
        return compute_stats(self.list(integration_id))

    def clear(self, integration_id: str) -> None:
        with self._session("clear") as conn:
            conn.execute(
                "DELETE FROM integration_events WHERE integration_id = ?",
                (integration_id,),
            )
        logger.debug("Cleared event history for %s", integration_id)

    @staticmethod
    def _row_to_event(row: tuple) -> IntegrationEvent:
        event_id, integration_id, outcome, submission_id, timestamp_utc, error = row
        return IntegrationEvent(
            id=event_id,
            integration_id=integration_id,
            type=EventOutcome(outcome),
            submission_id=submission_id,
            timestamp=timestamp_utc,
            error=error,
        )
