"""formrelay: submission integration dispatcher.

Fans each completed form submission out to the form's enabled channels
(email, webhook, chat webhook, automation webhook, record store,
spreadsheet sink), isolates per-channel failures, and keeps a capped
delivery history per integration with derived success rates.
"""

__version__ = "0.1.0"

from formrelay.core.dispatcher import IntegrationDispatcher
from formrelay.service import IntegrationsService

__all__ = ["IntegrationDispatcher", "IntegrationsService", "__version__"]
