"""crashlane: capture exceptions with request context and send them to a collector."""

from typing import Any, Mapping, Optional

import httpx

from .client import Client, emit
from .config import Configuration, Settings
from .errors import ConfigurationError, CrashlaneError, MissingCredentialError
from .report import ReportBuilder, ReportPayload, attach_affected_user, filter_params
from .version import CLIENT_NAME, CLIENT_URL, __version__

# Process-wide configuration
configuration = Configuration()


def setup(**overrides: Any) -> Configuration:
    """
    Override process-wide settings.

    Example::

        crashlane.setup(api_key="...", custom_data={"region": "eu"})
    """
    for name, value in overrides.items():
        configuration.set(name, value)
    return configuration


def track_exception(
    exception: Any, env: Optional[Mapping[Any, Any]] = None
) -> Optional[httpx.Response]:
    """
    Report an exception using the process-wide configuration.

    A missing API key or unusable endpoint settings are logged to the
    failsafe logger rather than raised.
    """
    try:
        client = Client(configuration)
    except (ConfigurationError, httpx.InvalidURL) as e:
        emit(configuration.failsafe_logger, "error", "report_skipped", error=str(e))
        return None

    with client:
        return client.track_exception(exception, env)


__all__ = [
    "CLIENT_NAME",
    "CLIENT_URL",
    "Client",
    "Configuration",
    "ConfigurationError",
    "CrashlaneError",
    "MissingCredentialError",
    "ReportBuilder",
    "ReportPayload",
    "Settings",
    "__version__",
    "attach_affected_user",
    "configuration",
    "filter_params",
    "setup",
    "track_exception",
]
