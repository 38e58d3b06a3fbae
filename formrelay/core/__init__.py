"""formrelay core — Configuration Store, Event Log, Template Engine, Dispatcher."""

from formrelay.core.config_store import (
    ConfigStore,
    InMemoryConfigStore,
    SqliteConfigStore,
    require,
)
from formrelay.core.dispatcher import IntegrationDispatcher
from formrelay.core.event_log import (
    DEFAULT_HISTORY_LIMIT,
    EventLog,
    InMemoryEventLog,
    SqliteEventLog,
    compute_stats,
)
from formrelay.core.templating import render

__all__ = [
    "ConfigStore",
    "InMemoryConfigStore",
    "SqliteConfigStore",
    "require",
    "EventLog",
    "InMemoryEventLog",
    "SqliteEventLog",
    "DEFAULT_HISTORY_LIMIT",
    "compute_stats",
    "render",
    "IntegrationDispatcher",
]
