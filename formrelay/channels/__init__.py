"""Channel executor protocol and registry.

Every executor implements ``ChannelExecutor``: a ``channel_type``
property and an ``execute(config, submission)`` method that performs one
outbound delivery and raises ``ChannelError`` on failure.  The dispatcher
looks executors up by channel type; types with no registered executor are
skipped.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from formrelay.models.channels import ChannelType
from formrelay.models.submission import SubmissionData

logger = logging.getLogger(__name__)


@runtime_checkable
class ChannelExecutor(Protocol):
    """Protocol that every channel executor must implement."""

    @property
    def channel_type(self) -> ChannelType:
        """The channel type this executor handles."""
        ...

    def execute(self, config: Any, submission: SubmissionData) -> None:
        """Deliver *submission* according to *config*.

        Parameters
        ----------
        config:
            The typed channel configuration variant for ``channel_type``.
        submission:
            The submission to deliver.

        Raises
        ------
        ChannelError
            If the delivery did not succeed.
        """
        ...


class ExecutorRegistry:
    """Maps channel types to executors.

    Registering a second executor for the same type replaces the first.
    """

    def __init__(self, executors: list[ChannelExecutor] | None = None) -> None:
        self._executors: dict[ChannelType, ChannelExecutor] = {}
        for executor in executors or []:
            self.register(executor)

    def register(self, executor: ChannelExecutor) -> None:
        previous = self._executors.get(executor.channel_type)
        self._executors[executor.channel_type] = executor
        if previous is not None and previous is not executor:
            logger.info("Replaced executor for channel %s", executor.channel_type.value)
        else:
            logger.debug("Registered executor for channel %s", executor.channel_type.value)

    def unregister(self, channel_type: ChannelType) -> None:
        self._executors.pop(channel_type, None)

    def get(self, channel_type: ChannelType) -> ChannelExecutor | None:
        return self._executors.get(channel_type)

    def __contains__(self, channel_type: object) -> bool:
        return channel_type in self._executors

    @property
    def registered_types(self) -> list[ChannelType]:
        """Return the registered channel types, in registration order."""
        return list(self._executors)
