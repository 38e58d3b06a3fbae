"""Record store executor — writes each submission as a row in a named table."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Protocol, runtime_checkable

from formrelay.errors import ChannelError, ChannelErrorKind
from formrelay.models.channels import ChannelType, RecordStoreChannelConfig
from formrelay.models.submission import SubmissionData

logger = logging.getLogger(__name__)


@runtime_checkable
class RecordStoreClient(Protocol):
    """A structured store that accepts one record per submission."""

    def write(self, table_name: str, submission: SubmissionData) -> None:
        ...


class SqliteRecordStore:
    """Stores submissions as JSON rows, one SQLite table per configured name.

    Tables are created on first write.  Writing the same submission twice
    is a no-op.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False, timeout=30.0)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def write(self, table_name: str, submission: SubmissionData) -> None:
        if not table_name.isidentifier():
            raise ValueError(f"Invalid table name: {table_name!r}")
        with closing(self._connect()) as conn, conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS "{table_name}" (
                    seq            INTEGER PRIMARY KEY AUTOINCREMENT,
                    submission_id  TEXT NOT NULL UNIQUE,
                    form_id        TEXT NOT NULL,
                    submitted_at   TEXT NOT NULL,
                    record_json    TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f'INSERT OR IGNORE INTO "{table_name}" '
                "(submission_id, form_id, submitted_at, record_json) VALUES (?, ?, ?, ?)",
                (
                    submission.submission_id,
                    submission.form_id,
                    submission.timestamp,
                    json.dumps(submission.to_wire(), sort_keys=True),
                ),
            )

    def read_all(self, table_name: str) -> list[dict]:
        """Return every stored record in ``table_name``, oldest first."""
        if not table_name.isidentifier():
            raise ValueError(f"Invalid table name: {table_name!r}")
        with closing(self._connect()) as conn:
            rows = conn.execute(
                f'SELECT record_json FROM "{table_name}" ORDER BY seq ASC'
            ).fetchall()
        return [json.loads(row[0]) for row in rows]


class RecordStoreExecutor:
    def __init__(self, client: RecordStoreClient) -> None:
        self._client = client

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.RECORD_STORE

    def execute(self, config: RecordStoreChannelConfig, submission: SubmissionData) -> None:
        try:
            self._client.write(config.table_name, submission)
        except Exception as exc:  # noqa: BLE001
            raise ChannelError(
                ChannelErrorKind.RECORD_STORE_ERROR,
                f"Record store write to {config.table_name!r} failed: {exc}",
            ) from exc
        logger.debug(
            "RecordStoreExecutor: wrote submission %s to %s",
            submission.submission_id,
            config.table_name,
        )
