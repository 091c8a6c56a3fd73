"""Build report payloads from an exception and a request environment."""

import re
import socket
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

import structlog

from ..config import Configuration
from ..version import CLIENT_NAME, CLIENT_URL, __version__
from .exceptions import adapt_exception
from .filters import filter_params
from .models import (
    ClientDetails,
    ExceptionRecord,
    ReportDetails,
    ReportPayload,
    RequestContext,
    StackFrame,
)
from .query import parse_nested_query
from .user import AFFECTED_USER_KEY

logger = structlog.get_logger(__name__)

# Tried in order, first non-empty value wins
ENV_IP_ADDRESS_KEYS = ("framework.remote_ip", "crashlane.remote_ip", "REMOTE_ADDR")

CUSTOM_DATA_KEY = "crashlane.custom_data"
PARAMETER_FILTER_KEY = "crashlane.parameter_filter"
FORM_PARAMS_KEY = "crashlane.form_params"

FORM_DATA_MEDIA_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

_METHOD_RE = re.compile(r"^in [`'](.*?)'$")


def encode_message(message: Any) -> str:
    """Return ``message`` as valid UTF-8 text, replacing anything unencodable."""
    if message is None:
        return ""
    if isinstance(message, (bytes, bytearray)):
        return bytes(message).decode("utf-8", errors="replace")
    if not isinstance(message, str):
        message = str(message)
    return message.encode("utf-8", errors="replace").decode("utf-8")


def parse_stack_frame(line: Any) -> StackFrame:
    """
    Parse a ``<file>:<line>:in `<method>'`` frame.

    The line number stays a string since some runtimes emit non-numeric
    markers there. Frames without a method segment get ``"(none)"``.
    """
    parts = str(line).split(":")
    while parts and parts[-1] == "":
        parts.pop()

    file_name = parts[0] if len(parts) > 0 else None
    line_number = parts[1] if len(parts) > 1 else None
    method = parts[2] if len(parts) > 2 else None

    return StackFrame(
        file_name=file_name,
        line_number=line_number,
        method_name=_METHOD_RE.sub(r"\1", method) if method is not None else "(none)",
    )


def normalize_header_key(key: str) -> str:
    """
    ``HTTP_ACCEPT_LANGUAGE`` -> ``Accept-Language``.

    Only the first underscore becomes a word break, so names with three or
    more segments come out as e.g. ``X-Forwarded_for``.
    """
    key = re.sub(r"^HTTP_", "", key, count=1)
    key = key.replace("_", " ", 1)
    key = " ".join(word.capitalize() for word in key.split())
    return key.replace(" ", "-", 1)


def headers_from(env: Mapping[Any, Any]) -> Dict[str, Any]:
    """Collect ``HTTP_*`` environment entries under conventional header names."""
    return {
        normalize_header_key(str(key)): value
        for key, value in env.items()
        if str(key).startswith("HTTP_")
    }


def ip_address_from(env: Mapping[Any, Any]) -> Optional[str]:
    """Return the first non-empty value of :data:`ENV_IP_ADDRESS_KEYS`."""
    for key in ENV_IP_ADDRESS_KEYS:
        value = env.get(key)
        if value is not None and value != "":
            return str(value)
    return None


def media_type_from(env: Mapping[Any, Any]) -> Optional[str]:
    content_type = env.get("CONTENT_TYPE")
    if not content_type:
        return None
    return str(content_type).split(";", 1)[0].strip().lower() or None


def is_form_data(env: Mapping[Any, Any]) -> bool:
    """A POST without content type, or a form-encoded/multipart body."""
    media_type = media_type_from(env)
    if media_type is None:
        return env.get("REQUEST_METHOD") == "POST"
    return media_type in FORM_DATA_MEDIA_TYPES


def _str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _str_keys(mapping: Mapping[Any, Any]) -> Dict[str, Any]:
    return {str(key): value for key, value in mapping.items()}


class ReportBuilder:
    """
    Turn an exception plus a request environment into a :class:`ReportPayload`.

    Custom data, filtered parameter names and the version are read from the
    injected configuration on every call.
    """

    def __init__(
        self,
        configuration: Configuration,
        hostname: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize builder.

        Args:
            configuration: Configuration to read defaults from
            hostname: Machine name to report (defaults to the local hostname)
            clock: Returns the occurrence time (defaults to now, UTC)
        """
        self.configuration = configuration
        self.hostname = hostname if hostname is not None else socket.gethostname()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def build_report(self, exception: Any, env: Optional[Mapping[Any, Any]] = None) -> ReportPayload:
        """
        Build the payload for one exception occurrence.

        Args:
            exception: Python exception or ReportableException
            env: Request/runtime environment map (not modified)

        Returns:
            ReportPayload ready for transmission
        """
        env = dict(env or {})
        custom_data = env.pop(CUSTOM_DATA_KEY, None)

        details = ReportDetails(
            machine_name=self.hostname,
            version=_str_or_none(self.configuration.version),
            client=self.client_details(),
            error=self.error_details(exception),
            user_custom_data=self.merge_custom_data(custom_data),
            request=self.request_information(env),
        )

        if self.affected_user_present(env):
            details.user = env[AFFECTED_USER_KEY]

        payload = ReportPayload(occurred_on=self._clock(), details=details)

        logger.debug(
            "report_built",
            class_name=details.error.class_name,
            frames=len(details.error.stack_trace),
            has_user=details.user is not None,
        )
        return payload

    def client_details(self) -> ClientDetails:
        return ClientDetails(name=CLIENT_NAME, version=__version__, client_url=CLIENT_URL)

    def error_details(self, exception: Any) -> ExceptionRecord:
        source = adapt_exception(exception)

        try:
            message = source.message()
        except Exception as e:
            logger.debug("exception_message_unavailable", error=str(e))
            message = ""

        try:
            frames = source.stack_frames() or []
        except Exception as e:
            logger.debug("exception_frames_unavailable", error=str(e))
            frames = []

        return ExceptionRecord(
            class_name=encode_message(source.type_name()),
            message=encode_message(message),
            stack_trace=[parse_stack_frame(line) for line in frames],
        )

    def merge_custom_data(self, custom_data: Any) -> Dict[str, Any]:
        """Configured custom data overlaid with this call's custom data."""
        merged: Dict[str, Any] = {}
        configured = self.configuration.custom_data
        if isinstance(configured, Mapping):
            merged.update(_str_keys(configured))
        if isinstance(custom_data, Mapping):
            merged.update(_str_keys(custom_data))
        return merged

    def affected_user_present(self, env: Mapping[Any, Any]) -> bool:
        return bool(env.get(AFFECTED_USER_KEY))

    def request_information(self, env: Mapping[Any, Any]) -> Optional[RequestContext]:
        """Request section of the payload; None for an empty environment."""
        if not env:
            return None

        return RequestContext(
            host_name=_str_or_none(env.get("SERVER_NAME")),
            url=_str_or_none(env.get("PATH_INFO")),
            http_method=_str_or_none(env.get("REQUEST_METHOD")),
            ip_address=ip_address_from(env),
            query_string=parse_nested_query(env.get("QUERY_STRING")),
            form=self.form_data(env),
            headers=headers_from(env),
        )

    def form_data(self, env: Mapping[Any, Any]) -> Optional[Dict[str, Any]]:
        """Filtered request params, only for form-encoded requests."""
        if not is_form_data(env):
            return None

        params = parse_nested_query(env.get("QUERY_STRING"))
        params.update(self._body_params(env))

        return _str_keys(self.filter_params(params, env.get(PARAMETER_FILTER_KEY)))

    def filter_params(self, params: Mapping[Any, Any], extra_filter_keys: Any = None) -> dict:
        return filter_params(params, self.configuration.filter_parameters, extra_filter_keys)

    def _body_params(self, env: Mapping[Any, Any]) -> Dict[str, Any]:
        """Body params: pre-parsed by the host, or read from a urlencoded ``wsgi.input``."""
        pre_parsed = env.get(FORM_PARAMS_KEY)
        if isinstance(pre_parsed, Mapping):
            return dict(pre_parsed)

        if media_type_from(env) == "multipart/form-data":
            return {}

        stream = env.get("wsgi.input")
        if stream is None:
            return {}

        try:
            length = int(env.get("CONTENT_LENGTH") or 0)
        except (TypeError, ValueError):
            length = 0
        if length <= 0:
            return {}

        try:
            position = stream.tell() if stream.seekable() else None
            if position is not None:
                stream.seek(0)
            body = stream.read(length)
            if position is not None:
                stream.seek(position)
        except (AttributeError, OSError, ValueError) as e:
            logger.debug("form_body_unreadable", error=str(e))
            return {}

        return parse_nested_query(body)


def build_report(
    exception: Any, env: Optional[Mapping[Any, Any]], configuration: Configuration
) -> ReportPayload:
    """Shortcut for ``ReportBuilder(configuration).build_report(exception, env)``."""
    return ReportBuilder(configuration).build_report(exception, env)

