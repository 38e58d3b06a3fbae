"""Opt-in bounded retry around any channel executor.

Not applied by default.  The dispatcher wraps an executor only when it was
given a ``RetryPolicy`` and the channel's config sets ``retry_on_failure``.
Malformed configs are never retried.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from formrelay.channels import ChannelExecutor
from formrelay.errors import ChannelError, ChannelErrorKind
from formrelay.models.channels import ChannelType
from formrelay.models.submission import SubmissionData

logger = logging.getLogger(__name__)


class RetryPolicy(BaseModel):
    """Attempt budget and exponential backoff for ``RetryingExecutor``."""

    model_config = ConfigDict(frozen=True)

    attempts: int = Field(default=3, ge=1)
    backoff_seconds: float = Field(default=0.5, ge=0)
    max_backoff_seconds: float = Field(default=8.0, ge=0)


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, ChannelError):
        return exc.kind != ChannelErrorKind.MALFORMED_CONFIG
    return isinstance(exc, Exception)


class RetryingExecutor:
    """Decorates an executor with up to ``policy.attempts`` tries.

    The last failure is re-raised unchanged.
    """

    def __init__(self, inner: ChannelExecutor, policy: RetryPolicy) -> None:
        self._inner = inner
        self._policy = policy

    @property
    def channel_type(self) -> ChannelType:
        return self._inner.channel_type

    @property
    def inner(self) -> ChannelExecutor:
        return self._inner

    def execute(self, config: Any, submission: SubmissionData) -> None:
        retrying = Retrying(
            stop=stop_after_attempt(self._policy.attempts),
            wait=wait_exponential(
                multiplier=self._policy.backoff_seconds,
                max=self._policy.max_backoff_seconds,
            ),
            retry=retry_if_exception(_is_retryable),
            before_sleep=before_sleep_log(logger, logging.INFO),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                self._inner.execute(config, submission)
