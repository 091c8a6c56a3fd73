"""Client that builds and delivers exception reports."""

from typing import Any, Mapping, Optional

import httpx
import structlog

from .config import Configuration
from .errors import MissingCredentialError
from .report.builder import ReportBuilder
from .report.exceptions import adapt_exception
from .transport import HttpTransport

default_logger = structlog.get_logger(__name__)


def emit(target: Any, level: str, event: str, **context: Any) -> None:
    """Log to a host-supplied logger, or to the crashlane structlog logger."""
    if target is None:
        getattr(default_logger, level)(event, **context)
    else:
        getattr(target, level)("%s %s", event, context)


class Client:
    """
    Reports exceptions to the collector.

    Requires an API key at construction time; everything after that is
    fire-and-forget and never raises back into the host.
    """

    def __init__(
        self,
        configuration: Configuration,
        transport: Optional[HttpTransport] = None,
        builder: Optional[ReportBuilder] = None,
    ):
        """
        Initialize client.

        Args:
            configuration: Configuration to use
            transport: Delivery transport (built from configuration when omitted)
            builder: Report builder (built from configuration when omitted)

        Raises:
            MissingCredentialError: If no API key is configured
        """
        self.configuration = configuration
        self.api_key = self.require_api_key()
        self.builder = builder or ReportBuilder(configuration)
        self._owns_transport = transport is None
        self.transport = transport or HttpTransport.from_configuration(configuration)

    def require_api_key(self) -> str:
        api_key = self.configuration.api_key
        if not api_key:
            raise MissingCredentialError()
        return api_key

    def should_report(self, exception: Any) -> bool:
        """False when reporting is disabled or the exception class is ignored."""
        if not self.configuration.is_reporting_enabled():
            return False

        ignored = {str(name) for name in (self.configuration.ignore or [])}
        if not ignored:
            return True

        try:
            names = {adapt_exception(exception).type_name()}
        except TypeError:
            # Unreportable objects fail later in build_report and get logged there
            return True
        if isinstance(exception, BaseException):
            names.add(type(exception).__name__)
        return ignored.isdisjoint(names)

    def track_exception(
        self, exception: Any, env: Optional[Mapping[Any, Any]] = None
    ) -> Optional[httpx.Response]:
        """
        Build a report for ``exception`` and send it.

        Args:
            exception: Python exception or ReportableException
            env: Request environment map

        Returns:
            Collector response, or None when nothing was delivered
        """
        logger = self.configuration.logger
        failsafe_logger = self.configuration.failsafe_logger

        if not self.should_report(exception):
            emit(logger, "debug", "exception_not_reported", exception=repr(exception))
            return None

        try:
            payload = self.builder.build_report(exception, env)
        except Exception as e:
            emit(failsafe_logger, "error", "report_build_failed", error=str(e))
            return None

        try:
            return self.transport.send(payload)
        except (httpx.HTTPError, TypeError) as e:
            emit(
                failsafe_logger,
                "error",
                "report_delivery_failed",
                url=self.transport.url,
                error=str(e),
            )
            return None

    def close(self) -> None:
        if self._owns_transport:
            self.transport.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
