"""Nested (bracketed) query string parsing."""

import re
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl

_NAME_RE = re.compile(r"\A[\[\]]*([^\[\]]+)\]*")
_ARRAY_OF_HASH_RE = re.compile(r"\A\[\]\[([^\[\]]+)\]\Z")
_ARRAY_NESTED_RE = re.compile(r"\A\[\](.+)\Z")
_ANONYMOUS_ARRAYS_RE = re.compile(r"\A(?:\[\])+\Z")


def parse_nested_query(query_string: Optional[str]) -> Dict[str, Any]:
    """
    Parse a query string into a nested mapping.

    ``a=1&b[c]=2&d[]=3&d[]=4`` becomes
    ``{"a": "1", "b": {"c": "2"}, "d": ["3", "4"]}``. Repeated scalar keys keep
    the last value. Conflicting shapes (``a=1&a[b]=2``) replace the earlier
    value instead of failing. Nameless nesting keeps the value in nested
    lists: ``a[][]=1&a[][]=2`` becomes ``{"a": [["1"], ["2"]]}``.

    Args:
        query_string: Raw query string, may be None or empty

    Returns:
        Parsed parameters dict
    """
    params: Dict[str, Any] = {}
    if not query_string:
        return params

    if isinstance(query_string, bytes):
        query_string = query_string.decode("utf-8", errors="replace")

    for name, value in parse_qsl(query_string, keep_blank_values=True, errors="replace"):
        normalize_params(params, name, value)

    return params


def normalize_params(params: Dict[str, Any], name: str, value: Any) -> Dict[str, Any]:
    """Store ``value`` under the (possibly bracketed) ``name`` in ``params``."""
    match = _NAME_RE.match(name)
    if not match:
        return params

    key = match.group(1)
    after = name[match.end():]

    if after == "":
        params[key] = value
    elif after == "[":
        params[name] = value
    elif after == "[]":
        if not isinstance(params.get(key), list):
            params[key] = []
        params[key].append(value)
    elif _ARRAY_OF_HASH_RE.match(after) or _ARRAY_NESTED_RE.match(after):
        hash_match = _ARRAY_OF_HASH_RE.match(after)
        child_key = hash_match.group(1) if hash_match else _ARRAY_NESTED_RE.match(after).group(1)
        if not isinstance(params.get(key), list):
            params[key] = []
        items = params[key]
        last = items[-1] if items else None
        if hash_match and isinstance(last, dict) and child_key not in last:
            normalize_params(last, child_key, value)
        elif not hash_match and isinstance(last, dict) and not _has_nested_key(last, child_key):
            normalize_params(last, child_key, value)
        elif not _NAME_RE.match(child_key):
            items.append(_anonymous_value(child_key, value))
        else:
            items.append(normalize_params({}, child_key, value))
    else:
        if not isinstance(params.get(key), dict):
            params[key] = {}
        normalize_params(params[key], after, value)

    return params


def _has_nested_key(params: Dict[str, Any], name: str) -> bool:
    """Whether ``name`` (bracketed) already has a value in ``params``."""
    parts = [p for p in re.split(r"[\[\]]+", name) if p]
    current: Any = params
    for part in parts:
        if not isinstance(current, dict) or part not in current:
            return False
        current = current[part]
    return True


def _anonymous_value(name: str, value: Any) -> Any:
    """``[]`` -> ``[value]``, ``[][]`` -> ``[[value]]``; other nameless keys keep the bare value."""
    if _ANONYMOUS_ARRAYS_RE.match(name):
        for _ in range(name.count("[]")):
            value = [value]
    return value
