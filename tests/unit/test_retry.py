"""Tests for the opt-in RetryingExecutor."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from formrelay.channels.retry import RetryingExecutor, RetryPolicy
from formrelay.errors import ChannelError, ChannelErrorKind
from formrelay.models.channels import ChannelType, EmailChannelConfig


class CountingExecutor:
    def __init__(self, exc: Exception | None = None):
        self.calls = 0
        self._exc = exc

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.EMAIL

    def execute(self, config, submission) -> None:
        self.calls += 1
        if self._exc is not None:
            raise self._exc


_NO_WAIT = RetryPolicy(attempts=3, backoff_seconds=0)


class TestRetryingExecutor:
    def test_success_runs_once(self, submission):
        inner = CountingExecutor()
        RetryingExecutor(inner, _NO_WAIT).execute(EmailChannelConfig(), submission)
        assert inner.calls == 1

    def test_transient_error_retried_to_budget(self, submission):
        inner = CountingExecutor(ChannelError(ChannelErrorKind.TIMEOUT, "slow"))
        with pytest.raises(ChannelError, match="slow"):
            RetryingExecutor(inner, _NO_WAIT).execute(EmailChannelConfig(), submission)
        assert inner.calls == 3

    def test_malformed_config_not_retried(self, submission):
        inner = CountingExecutor(ChannelError(ChannelErrorKind.MALFORMED_CONFIG, "bad"))
        with pytest.raises(ChannelError):
            RetryingExecutor(inner, _NO_WAIT).execute(EmailChannelConfig(), submission)
        assert inner.calls == 1

    def test_exposes_inner_channel_type(self):
        inner = CountingExecutor()
        wrapped = RetryingExecutor(inner, _NO_WAIT)
        assert wrapped.channel_type == ChannelType.EMAIL
        assert wrapped.inner is inner


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.attempts == 3

    def test_attempts_must_be_positive(self):
        with pytest.raises(ValidationError):
            RetryPolicy(attempts=0)
