"""IntegrationDispatcher — fans one submission out to every enabled channel.

Every enabled configuration for the submission's form is handed to the
executor registered for its channel type.  A failure in one channel does
not affect the others.  Each settled attempt is recorded in the Event Log
as a success or error event.  Channel failures never escape ``dispatch``.

Channel types with no registered executor are skipped without an event.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from pydantic import ValidationError

from formrelay.channels import ChannelExecutor, ExecutorRegistry
from formrelay.channels.retry import RetryingExecutor, RetryPolicy
from formrelay.core.config_store import ConfigStore
from formrelay.core.event_log import EventLog
from formrelay.errors import ChannelError, ChannelErrorKind, PersistenceFailure
from formrelay.models.dispatch import ChannelOutcome, ChannelStatus, DispatchReport
from formrelay.models.events import EventOutcome
from formrelay.models.integration import IntegrationConfig
from formrelay.models.submission import SubmissionData

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4
DEFAULT_TIMEOUT_SECONDS = 10.0


def _call_with_timeout(fn: Callable[[], None], timeout_seconds: float) -> None:
    """Run *fn* on a helper thread and wait at most *timeout_seconds*.

    On timeout the helper thread is abandoned; whatever it does later is
    ignored.  ``SystemExit`` and other non-``Exception`` aborts raised by
    *fn* become a ``ChannelError`` so they stay confined to one channel.
    """
    failure: list[BaseException] = []

    def _target() -> None:
        try:
            fn()
        except BaseException as exc:  # noqa: BLE001
            failure.append(exc)

    worker = threading.Thread(target=_target, name="formrelay-channel", daemon=True)
    worker.start()
    worker.join(timeout_seconds)
    if worker.is_alive():
        raise ChannelError(
            ChannelErrorKind.TIMEOUT,
            f"Channel timed out after {timeout_seconds:g}s",
        )
    if failure:
        exc = failure[0]
        if isinstance(exc, Exception):
            raise exc
        raise ChannelError(
            ChannelErrorKind.DELIVERY_FAILED, f"Channel aborted: {exc!r}"
        ) from exc


def _error_message(exc: BaseException) -> str:
    if isinstance(exc, ChannelError):
        return exc.message
    return str(exc) or "Unknown error"


class IntegrationDispatcher:
    """Orchestrates delivery of submissions; holds no persistent state.

    Parameters
    ----------
    store:
        Source of enabled integration configurations.
    event_log:
        Destination for delivery outcomes.
    registry:
        Executors by channel type.
    max_workers:
        Upper bound on channels executing at once for one submission.
        ``1`` runs channels sequentially, in configuration order.
    timeout_seconds:
        Per-channel time limit.  A retried channel gets this budget per
        attempt.
    retry_policy:
        Enables the opt-in retry wrapper for channels whose config sets
        ``retry_on_failure``.  No retries happen when ``None``.
    """

    def __init__(
        self,
        store: ConfigStore,
        event_log: EventLog,
        registry: ExecutorRegistry,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self._store = store
        self._event_log = event_log
        self._registry = registry
        self._max_workers = max_workers
        self._timeout = timeout_seconds
        self._retry_policy = retry_policy

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(
        self,
        submission: SubmissionData,
        *,
        cancel: threading.Event | None = None,
    ) -> DispatchReport:
        """Deliver *submission* to every enabled channel of its form.

        Returns once every channel has settled.  Channels that have not
        started when *cancel* is set are reported as cancelled and get no
        event.

        Raises
        ------
        PersistenceFailure
            If the configurations cannot be read, or if an outcome could
            not be recorded.  In the latter case every channel has still
            been attempted.
        """
        enabled = self._store.list_enabled(submission.form_id)
        if not enabled:
            logger.info(
                "No integrations configured for form %s; submission %s not dispatched",
                submission.form_id,
                submission.submission_id,
            )
            return DispatchReport(
                form_id=submission.form_id, submission_id=submission.submission_id
            )

        outcomes: dict[str, ChannelOutcome] = {}
        runnable: list[tuple[IntegrationConfig, ChannelExecutor]] = []
        for integration in enabled:
            executor = self._registry.get(integration.type)
            if executor is None:
                logger.debug(
                    "No executor registered for channel %s; skipping %s",
                    integration.type.value,
                    integration.id,
                )
                outcomes[integration.id] = ChannelOutcome(
                    integration_id=integration.id,
                    channel_type=integration.type,
                    status=ChannelStatus.SKIPPED,
                )
            else:
                runnable.append((integration, executor))

        recording_errors: list[PersistenceFailure] = []
        if runnable:
            workers = min(self._max_workers, len(runnable))
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="formrelay-dispatch"
            ) as pool:
                futures = [
                    pool.submit(
                        self._settle, integration, executor, submission, cancel,
                        recording_errors,
                    )
                    for integration, executor in runnable
                ]
                for future in futures:
                    outcome = future.result()
                    outcomes[outcome.integration_id] = outcome

        report = DispatchReport(
            form_id=submission.form_id,
            submission_id=submission.submission_id,
            outcomes=[outcomes[integration.id] for integration in enabled],
        )
        logger.info(
            "Submission %s: %d succeeded, %d failed, %d skipped, %d cancelled",
            submission.submission_id,
            report.succeeded,
            report.failed,
            report.skipped,
            report.cancelled,
        )

        if recording_errors:
            raise PersistenceFailure(
                f"{len(recording_errors)} outcome(s) for submission "
                f"{submission.submission_id} could not be recorded: "
                + "; ".join(str(exc) for exc in recording_errors)
            )
        return report

    def dispatch_batch(self, submissions: list[SubmissionData]) -> list[DispatchReport]:
        """Dispatch several submissions one after another."""
        return [self.dispatch(submission) for submission in submissions]

    # ------------------------------------------------------------------
    # Single-channel execution
    # ------------------------------------------------------------------

    def attempt(
        self,
        integration: IntegrationConfig,
        submission: SubmissionData,
    ) -> ChannelOutcome:
        """Run one integration once without recording an event.

        Used for connection tests.  Unregistered channel types come back
        as skipped.
        """
        executor = self._registry.get(integration.type)
        if executor is None:
            return ChannelOutcome(
                integration_id=integration.id,
                channel_type=integration.type,
                status=ChannelStatus.SKIPPED,
            )
        return self._attempt(integration, executor, submission)

    def _attempt(
        self,
        integration: IntegrationConfig,
        executor: ChannelExecutor,
        submission: SubmissionData,
    ) -> ChannelOutcome:
        try:
            try:
                config: Any = integration.typed_config()
            except ValidationError as exc:
                raise ChannelError(
                    ChannelErrorKind.MALFORMED_CONFIG,
                    f"Invalid {integration.type.value} configuration: "
                    f"{exc.error_count()} validation error(s)",
                ) from exc

            timeout = self._timeout
            if self._retry_policy is not None and getattr(config, "retry_on_failure", False):
                executor = RetryingExecutor(executor, self._retry_policy)
                timeout = self._timeout * self._retry_policy.attempts

            _call_with_timeout(lambda: executor.execute(config, submission), timeout)
        except Exception as exc:  # noqa: BLE001
            message = _error_message(exc)
            logger.warning(
                "Integration %s failed for submission %s: %s",
                integration.id,
                submission.submission_id,
                message,
            )
            return ChannelOutcome(
                integration_id=integration.id,
                channel_type=integration.type,
                status=ChannelStatus.ERROR,
                error=message,
            )

        logger.debug(
            "Integration %s delivered submission %s",
            integration.id,
            submission.submission_id,
        )
        return ChannelOutcome(
            integration_id=integration.id,
            channel_type=integration.type,
            status=ChannelStatus.SUCCESS,
        )

    def _settle(
        self,
        integration: IntegrationConfig,
        executor: ChannelExecutor,
        submission: SubmissionData,
        cancel: threading.Event | None,
        recording_errors: list[PersistenceFailure],
    ) -> ChannelOutcome:
        if cancel is not None and cancel.is_set():
            return ChannelOutcome(
                integration_id=integration.id,
                channel_type=integration.type,
                status=ChannelStatus.CANCELLED,
            )

        outcome = self._attempt(integration, executor, submission)
        event_type = (
            EventOutcome.SUCCESS
            if outcome.status == ChannelStatus.SUCCESS
            else EventOutcome.ERROR
        )
        try:
            self._event_log.append(
                integration.id, event_type, submission.submission_id, outcome.error
            )
        except PersistenceFailure as exc:
            logger.error("Could not record outcome for %s: %s", integration.id, exc)
            recording_errors.append(exc)
        return outcome
