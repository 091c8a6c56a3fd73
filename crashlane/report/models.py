"""Report payload models."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import orjson
from pydantic import BaseModel, ConfigDict, Field


class StackFrame(BaseModel):
    """Single stack frame. The line number is kept verbatim."""

    model_config = ConfigDict(populate_by_name=True)

    line_number: Optional[str] = Field(default=None, alias="lineNumber")
    file_name: Optional[str] = Field(default=None, alias="fileName")
    method_name: str = Field(default="(none)", alias="methodName")


class ExceptionRecord(BaseModel):
    """Normalized view of a raised exception."""

    model_config = ConfigDict(populate_by_name=True)

    class_name: str = Field(alias="className")
    message: str = ""
    stack_trace: List[StackFrame] = Field(default_factory=list, alias="stackTrace")


class ClientDetails(BaseModel):
    """Identifies this library to the collector."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    version: str
    client_url: str = Field(alias="clientUrl")


class RequestContext(BaseModel):
    """HTTP request context derived from the environment map."""

    model_config = ConfigDict(populate_by_name=True)

    host_name: Optional[str] = Field(default=None, alias="hostName")
    url: Optional[str] = None
    http_method: Optional[str] = Field(default=None, alias="httpMethod")
    ip_address: Optional[str] = Field(default=None, alias="iPAddress")
    query_string: Dict[str, Any] = Field(default_factory=dict, alias="queryString")
    form: Optional[Dict[str, Any]] = None
    headers: Dict[str, Any] = Field(default_factory=dict)
    raw_data: List[Any] = Field(default_factory=list, alias="rawData")


class ReportDetails(BaseModel):
    """Everything about one exception occurrence."""

    model_config = ConfigDict(populate_by_name=True)

    machine_name: Optional[str] = Field(default=None, alias="machineName")
    version: Optional[str] = None
    client: ClientDetails
    error: ExceptionRecord
    user_custom_data: Dict[str, Any] = Field(default_factory=dict, alias="userCustomData")
    request: Optional[RequestContext] = None
    user: Optional[Any] = None


class ReportPayload(BaseModel):
    """
    Top-level transmissible unit.

    Wire shape::

        {"occurredOn": "...Z", "details": {..., "request": {...}, "user": ...}}

    ``request`` is an empty object when no environment was given and ``user``
    is left out entirely when there is no affected user.
    """

    model_config = ConfigDict(populate_by_name=True)

    occurred_on: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="occurredOn"
    )
    details: ReportDetails

    def occurred_on_iso(self) -> str:
        ts = self.occurred_on
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    def to_dict(self) -> Dict[str, Any]:
        """Return the exact wire representation."""
        details = self.details.model_dump(by_alias=True, exclude={"request", "user"})
        if self.details.request is not None:
            details["request"] = self.details.request.model_dump(by_alias=True)
        else:
            details["request"] = {}
        if self.details.user is not None:
            details["user"] = self.details.user

        return {
            "occurredOn": self.occurred_on_iso(),
            "details": details,
        }

    def to_json(self) -> bytes:
        return orjson.dumps(self.to_dict(), default=str, option=orjson.OPT_NON_STR_KEYS)
