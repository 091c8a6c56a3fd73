"""Affected user resolution."""

from typing import Any, Dict, MutableMapping, Optional

import structlog

from ..config import Configuration

logger = structlog.get_logger(__name__)

AFFECTED_USER_KEY = "crashlane.affected_user"

_SCALARS = (str, int, float)


def affected_user_from(host: Any, configuration: Configuration) -> Any:
    """
    Look up the affected user on a host object (controller, request, view...).

    Args:
        host: Object exposing the configured ``affected_user_method``
        configuration: Configuration to read the method name from

    Returns:
        The user object, or None
    """
    method_name = configuration.affected_user_method
    if host is None or not method_name:
        return None

    attr = getattr(host, str(method_name), None)
    if callable(attr):
        try:
            return attr()
        except Exception as e:
            logger.debug("affected_user_lookup_failed", method=method_name, error=str(e))
            return None
    return attr


def _identifier_from(user: Any, name: str) -> Any:
    if isinstance(user, dict):
        return user.get(name)
    value = getattr(user, name, None)
    if callable(value):
        try:
            value = value()
        except Exception:
            return None
    return value


def information_hash(user: Any, configuration: Configuration) -> Optional[Dict[str, Any]]:
    """
    Build the ``user`` block for a report.

    Scalars are used as the identifier directly; otherwise the configured
    identifier attributes are tried in order and the first non-empty value
    wins.
    """
    if user is None or isinstance(user, bool):
        return None

    if isinstance(user, _SCALARS):
        return {"identifier": str(user)} if str(user) else None

    for name in configuration.affected_user_identifier_methods or []:
        value = _identifier_from(user, str(name))
        if value is not None and value != "":
            return {"identifier": str(value)}

    return None


def attach_affected_user(
    env: MutableMapping[str, Any], host: Any, configuration: Configuration
) -> MutableMapping[str, Any]:
    """Store the affected user of ``host`` in ``env`` under the marker key."""
    info = information_hash(affected_user_from(host, configuration), configuration)
    if info:
        env[AFFECTED_USER_KEY] = info
    return env
