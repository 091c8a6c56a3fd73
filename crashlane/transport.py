"""HTTP delivery of report payloads."""

from typing import Optional
from urllib.parse import quote

import httpx
import structlog

from .config import Configuration
from .report.models import ReportPayload

logger = structlog.get_logger(__name__)

ENTRIES_PATH = "entries"


def proxy_url_from(configuration: Configuration) -> Optional[str]:
    """
    Compose a proxy URL from the proxy settings.

    Returns:
        ``http://[user[:password]@]host:port`` or None without a proxy host
    """
    host = configuration.proxy_host
    if not host:
        return None

    port = configuration.proxy_port or 80
    credentials = ""
    if configuration.proxy_user:
        credentials = quote(str(configuration.proxy_user), safe="")
        if configuration.proxy_password:
            credentials += ":" + quote(str(configuration.proxy_password), safe="")
        credentials += "@"

    return f"http://{credentials}{host}:{port}"


class HttpTransport:
    """
    POSTs payloads to ``<api_url>/entries``.

    Blocking, single attempt; no retries or buffering.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str,
        timeout: float = 5.0,
        proxy: Optional[str] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize transport.

        Args:
            api_key: Sent as the ``X-ApiKey`` header
            api_url: Base URL of the collector
            timeout: Request timeout in seconds
            proxy: Optional proxy URL
            http_transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.api_key = api_key
        self.url = api_url.rstrip("/") + "/" + ENTRIES_PATH
        self.timeout = timeout
        self._client = httpx.Client(
            timeout=timeout,
            proxy=proxy,
            transport=http_transport,
        )

    @classmethod
    def from_configuration(
        cls, configuration: Configuration, http_transport: Optional[httpx.BaseTransport] = None
    ) -> "HttpTransport":
        return cls(
            api_key=configuration.api_key,
            api_url=configuration.api_url,
            timeout=configuration.timeout or 5.0,
            proxy=proxy_url_from(configuration),
            http_transport=http_transport,
        )

    @property
    def headers(self) -> dict:
        return {
            "X-ApiKey": self.api_key,
            "Content-Type": "application/json",
        }

    def send(self, payload: ReportPayload) -> httpx.Response:
        """
        Deliver one payload.

        Raises:
            httpx.HTTPError: On connection problems or timeouts
        """
        response = self._client.post(self.url, content=payload.to_json(), headers=self.headers)

        if response.is_success:
            logger.info("report_sent", status_code=response.status_code)
        else:
            logger.warning(
                "report_rejected",
                status_code=response.status_code,
                body=response.text[:200],
            )
        return response

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
