"""Shared test fixtures for formrelay."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from formrelay.channels import ExecutorRegistry
from formrelay.channels.email import OutboxMailTransport
from formrelay.channels.record_store import SqliteRecordStore
from formrelay.channels.spreadsheet import CsvSpreadsheetClient
from formrelay.core.config_store import InMemoryConfigStore, SqliteConfigStore
from formrelay.core.dispatcher import IntegrationDispatcher
from formrelay.core.event_log import InMemoryEventLog, SqliteEventLog
from formrelay.models.channels import ChannelType
from formrelay.models.submission import SubmissionData
from formrelay.service import IntegrationsService, build_registry


class HttpRecorder:
    """httpx.MockTransport handler that records requests.

    Responds with ``status`` unless a per-URL override is set in
    ``status_by_url``.
    """

    def __init__(self, status: int = 200) -> None:
        self.status = status
        self.status_by_url: dict[str, int] = {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_by_url.get(str(request.url), self.status))

    def for_url(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == url]


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test databases and sheets."""
    return tmp_path


@pytest.fixture
def http_recorder() -> HttpRecorder:
    return HttpRecorder()


@pytest.fixture
def http_client(http_recorder: HttpRecorder) -> httpx.Client:
    """An httpx.Client that never touches the network."""
    client = httpx.Client(
        transport=httpx.MockTransport(http_recorder), follow_redirects=True
    )
    yield client
    client.close()


@pytest.fixture
def outbox() -> OutboxMailTransport:
    return OutboxMailTransport()


@pytest.fixture
def record_store(tmp_dir: Path) -> SqliteRecordStore:
    return SqliteRecordStore(tmp_dir / "records.db")


@pytest.fixture
def spreadsheet(tmp_dir: Path) -> CsvSpreadsheetClient:
    return CsvSpreadsheetClient(tmp_dir / "sheets")


@pytest.fixture
def config_store() -> InMemoryConfigStore:
    return InMemoryConfigStore()


@pytest.fixture
def event_log() -> InMemoryEventLog:
    return InMemoryEventLog()


@pytest.fixture(params=["memory", "sqlite"])
def any_config_store(request: pytest.FixtureRequest, tmp_dir: Path):
    """Each Configuration Store backend in turn."""
    if request.param == "memory":
        return InMemoryConfigStore()
    return SqliteConfigStore(tmp_dir / "integrations.db")


@pytest.fixture(params=["memory", "sqlite"])
def any_event_log(request: pytest.FixtureRequest, tmp_dir: Path):
    """Each Event Log backend in turn."""
    if request.param == "memory":
        return InMemoryEventLog()
    return SqliteEventLog(tmp_dir / "events.db")


@pytest.fixture
def registry(
    http_client: httpx.Client,
    outbox: OutboxMailTransport,
    record_store: SqliteRecordStore,
    spreadsheet: CsvSpreadsheetClient,
) -> ExecutorRegistry:
    """The full production registry, wired to offline transports."""
    return build_registry(
        http_client,
        mail_transport=outbox,
        mail_sender="forms@example.com",
        record_store=record_store,
        spreadsheet=spreadsheet,
    )


@pytest.fixture
def service(
    config_store: InMemoryConfigStore,
    event_log: InMemoryEventLog,
    registry: ExecutorRegistry,
) -> IntegrationsService:
    dispatcher = IntegrationDispatcher(
        config_store, event_log, registry, timeout_seconds=5.0
    )
    return IntegrationsService(config_store, event_log, dispatcher)


# ---------------------------------------------------------------------------
# Submission factory, shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_submission() -> Callable[..., SubmissionData]:
    """Factory fixture: build a SubmissionData with sensible defaults."""

    def _factory(
        form_id: str = "contact",
        submission_id: str = "sub_123",
        data: dict[str, Any] | None = None,
        **overrides: Any,
    ) -> SubmissionData:
        defaults: dict[str, Any] = {
            "form_id": form_id,
            "submission_id": submission_id,
            "timestamp": "2026-03-01T12:00:00+00:00",
            "data": {"name": "Ann", "email": "ann@example.com"} if data is None else data,
        }
        defaults.update(overrides)
        return SubmissionData(**defaults)

    return _factory


@pytest.fixture
def submission(make_submission: Callable[..., SubmissionData]) -> SubmissionData:
    """Convenience: a ready-made submission with test defaults."""
    return make_submission()


@pytest.fixture
def channel_configs() -> dict[ChannelType, dict[str, Any]]:
    """A valid, enabled settings-panel payload for every implemented channel."""
    return {
        ChannelType.EMAIL: {
            "enabled": True,
            "recipients": "ops@example.com, sales@example.com",
            "subject": "New submission from {{name}}",
            "template": "{{name}} <{{email}}> submitted {{formId}}",
        },
        ChannelType.WEBHOOK: {
            "enabled": True,
            "url": "https://hooks.example.com/generic",
            "method": "POST",
            "headers": [{"key": "X-Source", "value": "formrelay"}],
            "authType": "bearer",
            "authToken": "s3cret",
            "payload": '{"name": "{{name}}", "id": "{{submissionId}}"}',
        },
        ChannelType.CHAT_WEBHOOK: {
            "enabled": True,
            "webhookUrl": "https://chat.example.com/hook",
            "channel": "#leads",
            "username": "Forms",
            "emoji": ":inbox_tray:",
            "template": "New lead: {{name}}",
        },
        ChannelType.AUTOMATION_WEBHOOK: {
            "enabled": True,
            "webhookUrl": "https://automation.example.com/catch",
        },
        ChannelType.RECORD_STORE: {
            "enabled": True,
            "tableName": "form_submissions",
        },
        ChannelType.SPREADSHEET_SINK: {
            "enabled": True,
            "spreadsheetId": "leads-2026",
            "worksheetName": "Inbound",
        },
    }
