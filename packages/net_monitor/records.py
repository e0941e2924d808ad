"""Data structures describing intercepted HTTP calls.

A :class:`RequestRecord` is created synchronously when a call is issued and
completed later by a :class:`RecordCompletion` message that the record store
applies exactly once.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union
from uuid import uuid4

from .formatting import format_size

PENDING = "pending"


class RequestType(str, Enum):
    """Which primitive issued the call."""

    HTTPX = "httpx"
    REQUESTS = "requests"


class RecordState(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    ERRORED = "errored"


def monotonic_ms() -> float:
    return time.perf_counter() * 1000.0


def new_record_id() -> str:
    return uuid4().hex


# ---------------------------------------------------------------------------
# Response bodies
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JsonBody:
    value: Any
    kind = "json"


@dataclass(frozen=True)
class TextBody:
    text: str
    kind = "text"


@dataclass(frozen=True)
class BinaryBody:
    """Size descriptor for bodies that are not captured as text."""

    size: int
    kind = "binary"

    def describe(self) -> str:
        return f"Binary data ({format_size(self.size)})"


ResponseBody = Union[JsonBody, TextBody, BinaryBody]


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class RequestRecord:
    method: str
    url: str
    type: RequestType
    request_headers: Dict[str, str] = field(default_factory=dict)
    request_body: Optional[Union[bytes, str]] = None
    id: str = field(default_factory=new_record_id)
    start_time: float = field(default_factory=monotonic_ms)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: Union[int, str] = PENDING
    status_text: str = ""
    end_time: Optional[float] = None
    duration: Optional[float] = None
    response_headers: Dict[str, str] = field(default_factory=dict)
    response_body: Optional[ResponseBody] = None
    size: int = 0
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @property
    def state(self) -> RecordState:
        if self.error is not None:
            return RecordState.ERRORED
        if self.status == PENDING:
            return RecordState.PENDING
        return RecordState.COMPLETED

    @property
    def is_pending(self) -> bool:
        return self.state is RecordState.PENDING

    def to_dict(self) -> dict[str, Any]:
        """Plain representation for display collaborators."""

        body = self.response_body
        return {
            "id": self.id,
            "method": self.method,
            "url": self.url,
            "type": self.type.value,
            "state": self.state.value,
            "status": self.status,
            "statusText": self.status_text,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
            "timestamp": self.timestamp.isoformat(),
            "requestHeaders": dict(self.request_headers),
            "responseHeaders": dict(self.response_headers),
            "responseBody": None if body is None else _body_payload(body),
            "size": self.size,
            "error": self.error,
        }


def _body_payload(body: ResponseBody) -> Any:
    if isinstance(body, JsonBody):
        return body.value
    if isinstance(body, TextBody):
        return body.text
    return body.describe()


@dataclass(frozen=True)
class RecordCompletion:
    """Fields written into a pending record once its transport settles."""

    record_id: str
    status: int
    status_text: str
    end_time: float
    response_headers: Dict[str, str] = field(default_factory=dict)
    response_body: Optional[ResponseBody] = None
    size: int = 0
    error: Optional[str] = None
    error_kind: Optional[str] = None

    def apply_to(self, record: RequestRecord) -> None:
        # duration is never negative
        end_time = max(self.end_time, record.start_time)
        record.status = self.status
        record.status_text = self.status_text
        record.end_time = end_time
        record.duration = end_time - record.start_time
        record.response_headers = dict(self.response_headers)
        record.response_body = self.response_body
        record.size = self.size
        record.error = self.error
        record.error_kind = self.error_kind
