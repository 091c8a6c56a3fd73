"""Payload construction and redaction."""

from .builder import ReportBuilder, build_report
from .exceptions import ReportableException, adapt_exception
from .filters import FILTERED, filter_params
from .models import ReportPayload
from .user import attach_affected_user

__all__ = [
    "FILTERED",
    "ReportBuilder",
    "ReportPayload",
    "ReportableException",
    "adapt_exception",
    "attach_affected_user",
    "build_report",
    "filter_params",
]
