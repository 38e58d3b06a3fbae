"""IntegrationsService — the inbound surface used by settings panels and
the form-submission handler.

Wires a Configuration Store, an Event Log, an executor registry and the
dispatcher together.  ``from_settings`` builds the persistent wiring used
by the CLI; tests usually construct the service from in-memory parts.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any

import httpx

from formrelay.channels import ExecutorRegistry
from formrelay.channels._http import build_client
from formrelay.channels.automation import AutomationWebhookExecutor
from formrelay.channels.chat import ChatWebhookExecutor
from formrelay.channels.email import EmailExecutor, MailTransport, SmtpMailTransport
from formrelay.channels.record_store import RecordStoreClient, RecordStoreExecutor, SqliteRecordStore
from formrelay.channels.retry import RetryPolicy
from formrelay.channels.spreadsheet import (
    CsvSpreadsheetClient,
    SpreadsheetClient,
    SpreadsheetExecutor,
)
from formrelay.channels.webhook import WebhookExecutor
from formrelay.config import RelaySettings
from formrelay.core.config_store import ConfigStore, SqliteConfigStore, require
from formrelay.core.dispatcher import IntegrationDispatcher
from formrelay.core.event_log import EventLog, SqliteEventLog
from formrelay.models.channels import ChannelType
from formrelay.models.dispatch import ChannelOutcome, DispatchReport
from formrelay.models.events import IntegrationEvent, IntegrationStats
from formrelay.models.integration import IntegrationConfig, IntegrationKey
from formrelay.models.submission import SubmissionData, SubmissionMetadata

logger = logging.getLogger(__name__)

SAMPLE_TEST_DATA: dict[str, Any] = {
    "name": "Test User",
    "email": "test@example.com",
    "message": "This is a test submission.",
}


def build_registry(
    client: httpx.Client,
    *,
    mail_transport: MailTransport,
    mail_sender: str,
    record_store: RecordStoreClient,
    spreadsheet: SpreadsheetClient,
) -> ExecutorRegistry:
    """Register one executor per implemented channel type."""
    return ExecutorRegistry(
        [
            EmailExecutor(mail_transport, sender=mail_sender),
            WebhookExecutor(client),
            ChatWebhookExecutor(client),
            AutomationWebhookExecutor(client),
            RecordStoreExecutor(record_store),
            SpreadsheetExecutor(spreadsheet),
        ]
    )


def new_submission_id() -> str:
    """``sub_<epoch milliseconds>``."""
    return f"sub_{time.time_ns() // 1_000_000}"


class IntegrationsService:
    """Facade over store, log and dispatcher.

    Parameters
    ----------
    store:
        Configuration Store.
    event_log:
        Event Log.
    dispatcher:
        Dispatcher wired to the same store and log.
    """

    def __init__(
        self,
        store: ConfigStore,
        event_log: EventLog,
        dispatcher: IntegrationDispatcher,
    ) -> None:
        self.store = store
        self.event_log = event_log
        self.dispatcher = dispatcher

    @classmethod
    def from_settings(
        cls,
        settings: RelaySettings,
        *,
        client: httpx.Client | None = None,
        mail_transport: MailTransport | None = None,
    ) -> IntegrationsService:
        """Build the SQLite-backed wiring described by *settings*."""
        store = SqliteConfigStore(settings.store_path)
        event_log = SqliteEventLog(settings.store_path, limit=settings.event_history_limit)
        registry = build_registry(
            client or build_client(settings.channel_timeout_seconds),
            mail_transport=mail_transport
            or SmtpMailTransport(
                settings.smtp_host,
                settings.smtp_port,
                username=settings.smtp_username,
                password=settings.smtp_password,
                use_tls=settings.smtp_use_tls,
                timeout_seconds=settings.channel_timeout_seconds,
            ),
            mail_sender=settings.mail_sender,
            record_store=SqliteRecordStore(settings.record_store_path),
            spreadsheet=CsvSpreadsheetClient(settings.spreadsheet_path),
        )
        retry_policy = (
            RetryPolicy(
                attempts=settings.retry_attempts,
                backoff_seconds=settings.retry_backoff_seconds,
            )
            if settings.retry_attempts > 0
            else None
        )
        dispatcher = IntegrationDispatcher(
            store,
            event_log,
            registry,
            max_workers=settings.max_concurrent_channels,
            timeout_seconds=settings.channel_timeout_seconds,
            retry_policy=retry_policy,
        )
        return cls(store, event_log, dispatcher)

    # ------------------------------------------------------------------
    # Settings-panel operations
    # ------------------------------------------------------------------

    def save_integration(
        self, form_id: str, channel_type: ChannelType | str, config: dict[str, Any]
    ) -> IntegrationConfig:
        key = IntegrationKey(form_id=form_id, channel_type=ChannelType(channel_type))
        record = self.store.save(key, config)
        logger.info("Saved %s integration for form %s", key.channel_type.value, form_id)
        return record

    def get_integration(
        self, form_id: str, channel_type: ChannelType | str
    ) -> IntegrationConfig | None:
        return self.store.get(
            IntegrationKey(form_id=form_id, channel_type=ChannelType(channel_type))
        )

    def delete_integration(self, form_id: str, channel_type: ChannelType | str) -> None:
        """Remove the configuration and its delivery history."""
        key = IntegrationKey(form_id=form_id, channel_type=ChannelType(channel_type))
        self.store.delete(key)
        self.event_log.clear(key.integration_id)
        logger.info("Deleted %s integration for form %s", key.channel_type.value, form_id)

    def list_integrations(self) -> list[IntegrationConfig]:
        return self.store.list_all()

    def form_integrations(self, form_id: str) -> list[IntegrationConfig]:
        """Enabled integrations for *form_id*, in dispatch order."""
        return self.store.list_enabled(form_id)

    # ------------------------------------------------------------------
    # Submission handling
    # ------------------------------------------------------------------

    def dispatch(
        self,
        submission: SubmissionData,
        *,
        cancel: threading.Event | None = None,
    ) -> DispatchReport:
        return self.dispatcher.dispatch(submission, cancel=cancel)

    def trigger(
        self,
        form_id: str,
        data: dict[str, Any],
        metadata: SubmissionMetadata | None = None,
    ) -> DispatchReport:
        """Wrap raw form data in a fresh submission and dispatch it."""
        submission = SubmissionData(
            form_id=form_id,
            submission_id=new_submission_id(),
            timestamp=datetime.now(timezone.utc).isoformat(),
            data=data,
            metadata=metadata,
        )
        return self.dispatch(submission)

    def test_integration(
        self, form_id: str, channel_type: ChannelType | str
    ) -> ChannelOutcome:
        """Run one integration against sample data without recording an event.

        Raises
        ------
        ConfigNotFound
            If the integration has not been saved.
        """
        key = IntegrationKey(form_id=form_id, channel_type=ChannelType(channel_type))
        integration = require(self.store, key)
        sample = SubmissionData(
            form_id=form_id,
            submission_id=f"test_{new_submission_id()}",
            data=dict(SAMPLE_TEST_DATA),
            metadata=SubmissionMetadata(ip="127.0.0.1", user_agent="formrelay-test"),
        )
        return self.dispatcher.attempt(integration, sample)

    # ------------------------------------------------------------------
    # Monitoring
    # ------------------------------------------------------------------

    def events(self, integration_id: str) -> list[IntegrationEvent]:
        return self.event_log.list(integration_id)

    def stats(self, integration_id: str) -> IntegrationStats:
        return self.event_log.stats(integration_id)
