"""Configuration management using Pydantic Settings.

Defaults come from :class:`Settings` (environment variables prefixed with
``CRASHLANE_`` or a ``.env`` file). The host overrides any of them at runtime
through :class:`Configuration`, which always prefers an override over the
default.
"""

from threading import Lock
from typing import Annotated, Any, Dict, List, Optional

import orjson
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

# Exception classes that are not worth reporting by default
IGNORE_DEFAULT = [
    "django.http.response.Http404",
    "django.core.exceptions.PermissionDenied",
    "django.core.exceptions.DisallowedHost",
    "django.core.exceptions.SuspiciousOperation",
    "werkzeug.exceptions.NotFound",
    "werkzeug.exceptions.MethodNotAllowed",
    "flask_wtf.csrf.CSRFError",
    "starlette.exceptions.HTTPException",
]

DEFAULT_FILTER_PARAMETERS = ["password", "card_number", "cvv"]


def _parse_list(v: Any, default: List[str]) -> List[str]:
    """Parse a list setting from a JSON array, a comma-separated string or a list."""
    if v is None or v == "":
        return list(default)
    if isinstance(v, (list, tuple, set, frozenset)):
        return [str(x) for x in v]
    if isinstance(v, str):
        if v.lstrip().startswith("["):
            try:
                return [str(x) for x in orjson.loads(v)]
            except orjson.JSONDecodeError:
                pass
        return [x.strip() for x in v.split(",") if x.strip()]
    return list(default)


class Settings(BaseSettings):
    """Default settings loaded from environment variables."""

    # Credentials and endpoint
    api_key: Optional[str] = None
    api_url: str = "https://api.raygun.io/"
    timeout: float = 5.0

    # Reporting
    ignore: Annotated[List[str], NoDecode] = IGNORE_DEFAULT
    version: Optional[str] = None
    custom_data: Dict[str, Any] = {}
    enable_reporting: bool = True

    # Loggers (objects, only settable in code)
    logger: Optional[Any] = None
    failsafe_logger: Optional[Any] = None

    # Affected user lookup
    affected_user_method: str = "current_user"
    affected_user_identifier_methods: Annotated[List[str], NoDecode] = ["email", "username", "id"]

    # Redaction
    filter_parameters: Annotated[List[str], NoDecode] = DEFAULT_FILTER_PARAMETERS

    # Proxy
    proxy_host: Optional[str] = None
    proxy_port: Optional[int] = None
    proxy_user: Optional[str] = None
    proxy_password: Optional[str] = None

    @field_validator("ignore", mode="before")
    @classmethod
    def parse_ignore(cls, v: Any) -> List[str]:
        """Parse ignore from string or list."""
        return _parse_list(v, IGNORE_DEFAULT)

    @field_validator("affected_user_identifier_methods", mode="before")
    @classmethod
    def parse_affected_user_identifier_methods(cls, v: Any) -> List[str]:
        """Parse affected_user_identifier_methods from string or list."""
        return _parse_list(v, ["email", "username", "id"])

    @field_validator("filter_parameters", mode="before")
    @classmethod
    def parse_filter_parameters(cls, v: Any) -> List[str]:
        """Parse filter_parameters from string or list."""
        return _parse_list(v, DEFAULT_FILTER_PARAMETERS)

    class Config:
        env_prefix = "CRASHLANE_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def config_option(name: str, doc: str) -> property:
    """Expose a named setting as a read/write attribute."""

    def getter(self: "Configuration") -> Any:
        return self.get(name)

    def setter(self: "Configuration", value: Any) -> None:
        self.set(name, value)

    return property(getter, setter, doc=doc)


class Configuration:
    """
    Layered configuration: host overrides on top of :class:`Settings` defaults.

    Overrides are replaced copy-on-write under a lock, so readers on other
    threads always see a consistent mapping without locking.
    """

    api_key = config_option("api_key", "API key sent with every report")
    api_url = config_option("api_url", "Base URL of the collection endpoint")
    timeout = config_option("timeout", "Transport timeout in seconds")
    ignore = config_option("ignore", "Exception class names that are never reported")
    version = config_option("version", "Version of the host application")
    custom_data = config_option("custom_data", "Custom data sent with each report")
    logger = config_option("logger", "Logger used for regular client activity")
    enable_reporting = config_option("enable_reporting", "Whether reports are sent at all")
    failsafe_logger = config_option(
        "failsafe_logger", "Logger for failures that happen while reporting"
    )
    affected_user_method = config_option(
        "affected_user_method", "Host attribute that returns the affected user"
    )
    affected_user_identifier_methods = config_option(
        "affected_user_identifier_methods",
        "Attributes tried in order on the affected user to find an identifier",
    )
    filter_parameters = config_option(
        "filter_parameters", "Parameter names redacted from form data"
    )
    proxy_host = config_option("proxy_host", "Proxy host")
    proxy_port = config_option("proxy_port", "Proxy port")
    proxy_user = config_option("proxy_user", "Proxy user")
    proxy_password = config_option("proxy_password", "Proxy password")

    def __init__(self, defaults: Optional[Settings] = None):
        """
        Initialize configuration.

        Args:
            defaults: Default layer. Loaded from the environment when omitted.
        """
        self._defaults = defaults if defaults is not None else Settings()
        self._overrides: Dict[str, Any] = {}
        self._lock = Lock()

    @property
    def defaults(self) -> Settings:
        return self._defaults

    def get(self, name: str) -> Any:
        """Return the override for ``name`` if set, else its default (or None)."""
        overrides = self._overrides
        if name in overrides:
            return overrides[name]
        return getattr(self._defaults, name, None)

    def set(self, name: str, value: Any) -> None:
        """Store an override for ``name``, replacing any previous one."""
        with self._lock:
            overrides = dict(self._overrides)
            overrides[name] = value
            self._overrides = overrides

    def overrides(self) -> Dict[str, Any]:
        """Snapshot of the current overrides."""
        return dict(self._overrides)

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def is_reporting_enabled(self) -> bool:
        return bool(self.get("enable_reporting"))

    def is_reporting_silenced(self) -> bool:
        return not self.is_reporting_enabled()

    def set_silenced(self, value: bool) -> None:
        self.set("enable_reporting", not value)
