"""Redaction of sensitive parameters before transmission."""

from typing import Any, Iterable, List, Mapping, Optional, Union

FILTERED = "[FILTERED]"

FilterKeys = Optional[Union[str, Iterable[Any]]]


def _as_list(keys: FilterKeys) -> List[Any]:
    if keys is None:
        return []
    if isinstance(keys, (str, bytes)):
        return [keys]
    try:
        return list(keys)
    except TypeError:
        return [keys]


def _recursive_filter_keys(extra_filter_keys: FilterKeys) -> FilterKeys:
    """
    Extra filter keys handed down to nested mappings.

    Per-call extra keys only apply at the top level; nested levels are
    filtered with the configured list alone. Return ``extra_filter_keys``
    here to apply them at every depth.
    """
    return None


def filter_params(
    params: Mapping[Any, Any],
    filter_parameters: FilterKeys = None,
    extra_filter_keys: FilterKeys = None,
) -> dict:
    """
    Recursively redact sensitive values.

    Keys are compared as strings against ``extra_filter_keys`` plus
    ``filter_parameters``. Matching leaf values are replaced with
    ``"[FILTERED]"``; nested mappings keep their structure.

    Args:
        params: Parameters mapping (a tree, no cycles)
        filter_parameters: Globally configured parameter names
        extra_filter_keys: Additional names for this call only

    Returns:
        New filtered dict
    """
    filter_keys = {str(k) for k in _as_list(extra_filter_keys) + _as_list(filter_parameters)}

    result = {}
    for key, value in params.items():
        if isinstance(value, Mapping):
            result[key] = filter_params(
                value, filter_parameters, _recursive_filter_keys(extra_filter_keys)
            )
        elif str(key) in filter_keys:
            result[key] = FILTERED
        else:
            result[key] = value
    return result
