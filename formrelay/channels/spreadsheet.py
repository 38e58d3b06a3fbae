"""Spreadsheet sink executor — appends one row per submission to a worksheet."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from formrelay.core._locks import KeyedLocks
from formrelay.errors import ChannelError, ChannelErrorKind
from formrelay.models.channels import ChannelType, SpreadsheetChannelConfig
from formrelay.models.submission import SubmissionData

logger = logging.getLogger(__name__)

SYSTEM_COLUMNS: tuple[str, ...] = ("submissionId", "formId", "timestamp")


@runtime_checkable
class SpreadsheetClient(Protocol):
    """A spreadsheet service that can append a row to a worksheet."""

    def append_row(
        self, spreadsheet_id: str, worksheet_name: str, submission: SubmissionData
    ) -> None:
        ...


def submission_row(submission: SubmissionData) -> dict[str, Any]:
    """Flatten a submission into a column -> cell mapping."""
    row: dict[str, Any] = {
        "submissionId": submission.submission_id,
        "formId": submission.form_id,
        "timestamp": submission.timestamp,
    }
    for key, value in submission.data.items():
        if key not in row:
            row[key] = value
    return row


def _safe_component(name: str) -> str:
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise ValueError(f"Invalid sheet name component: {name!r}")
    return name


class CsvSpreadsheetClient:
    """Local stand-in for a spreadsheet service.

    Layout: ``{base_path}/{spreadsheet_id}/{worksheet_name}.csv``

    The header is fixed by the first row written.  Later rows are aligned
    to it; fields not in the header are dropped.

    Parameters
    ----------
    base_path:
        Root directory for workbooks.
    """

    def __init__(self, base_path: Path | str) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)
        self._locks = KeyedLocks()

    def worksheet_path(self, spreadsheet_id: str, worksheet_name: str) -> Path:
        return self._base / _safe_component(spreadsheet_id) / f"{_safe_component(worksheet_name)}.csv"

    def append_row(
        self, spreadsheet_id: str, worksheet_name: str, submission: SubmissionData
    ) -> None:
        path = self.worksheet_path(spreadsheet_id, worksheet_name)
        row = submission_row(submission)
        with self._locks.for_key(str(path)):
            path.parent.mkdir(parents=True, exist_ok=True)
            if path.exists() and path.stat().st_size > 0:
                with path.open(newline="", encoding="utf-8") as fh:
                    header = next(csv.reader(fh))
                write_header = False
            else:
                header = list(row)
                write_header = True
            with path.open("a", newline="", encoding="utf-8") as fh:
                writer = csv.DictWriter(fh, fieldnames=header, extrasaction="ignore")
                if write_header:
                    writer.writeheader()
                writer.writerow(row)

    def read_rows(self, spreadsheet_id: str, worksheet_name: str) -> list[dict[str, str]]:
        """Return all data rows of a worksheet, oldest first."""
        path = self.worksheet_path(spreadsheet_id, worksheet_name)
        if not path.exists():
            return []
        with path.open(newline="", encoding="utf-8") as fh:
            return list(csv.DictReader(fh))


class SpreadsheetExecutor:
    def __init__(self, client: SpreadsheetClient) -> None:
        self._client = client

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.SPREADSHEET_SINK

    def execute(self, config: SpreadsheetChannelConfig, submission: SubmissionData) -> None:
        try:
            self._client.append_row(
                config.spreadsheet_id, config.worksheet_name, submission
            )
        except Exception as exc:  # noqa: BLE001
            raise ChannelError(
                ChannelErrorKind.SPREADSHEET_ERROR,
                f"Spreadsheet write to {config.spreadsheet_id}/{config.worksheet_name} "
                f"failed: {exc}",
            ) from exc
        logger.debug(
            "SpreadsheetExecutor: appended submission %s to %s/%s",
            submission.submission_id,
            config.spreadsheet_id,
            config.worksheet_name,
        )
