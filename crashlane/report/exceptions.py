"""Narrow capability interface for anything that can be reported as an exception."""

import traceback
from typing import Any, List, Protocol, runtime_checkable


@runtime_checkable
class ReportableException(Protocol):
    """What the report builder needs from an exception."""

    def type_name(self) -> str: ...

    def message(self) -> Any: ...

    def stack_frames(self) -> List[str]: ...


def qualified_type_name(exc_type: type) -> str:
    """Return ``module.QualName``, or just ``QualName`` for builtins."""
    module = getattr(exc_type, "__module__", None)
    name = getattr(exc_type, "__qualname__", exc_type.__name__)
    if not module or module == "builtins":
        return name
    return f"{module}.{name}"


def format_frame(filename: str, lineno: Any, name: str) -> str:
    """Render a frame as ``<file>:<line>:in `<method>'``."""
    return f"{filename}:{lineno}:in `{name}'"


class PythonException:
    """Adapts a Python ``BaseException`` to :class:`ReportableException`."""

    def __init__(self, exception: BaseException):
        self.exception = exception

    def type_name(self) -> str:
        return qualified_type_name(type(self.exception))

    def message(self) -> Any:
        args = self.exception.args
        # bytes messages are repaired later instead of being repr()'d here
        if len(args) == 1 and isinstance(args[0], bytes):
            return args[0]
        return str(self.exception)

    def stack_frames(self) -> List[str]:
        tb = self.exception.__traceback__
        if tb is None:
            return []
        # Most recent call first
        return [
            format_frame(frame.filename, frame.lineno, frame.name)
            for frame in reversed(traceback.extract_tb(tb))
        ]


def adapt_exception(exception: Any) -> ReportableException:
    """
    Return an object satisfying :class:`ReportableException`.

    Args:
        exception: A Python exception or an object already exposing
            ``type_name()``, ``message()`` and ``stack_frames()``

    Returns:
        ReportableException
    """
    if isinstance(exception, BaseException):
        return PythonException(exception)
    if isinstance(exception, ReportableException):
        return exception
    raise TypeError(f"Cannot report object of type {type(exception).__name__}")
