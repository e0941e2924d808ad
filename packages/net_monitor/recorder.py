"""Glue between intercepted calls, the capture pipeline and the record store."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Mapping, Optional, Union

import httpx

from .capture import ResponseCapturePipeline, safe_headers
from .records import RequestRecord, RequestType
from .store import RecordStore

logger = logging.getLogger(__name__)

# The client whose intercepted call is running on the current thread or task.
# Sends it issues again from inside that call (redirect hops) are not recorded
# twice; sends on any other client still are.
_inside_call: ContextVar[Optional[Any]] = ContextVar("net_monitor_inside_call", default=None)


def inside_intercepted_call(client: Any) -> bool:
    return client is not None and _inside_call.get() is client


@contextmanager
def intercepted_call(client: Any):
    token = _inside_call.set(client)
    try:
        yield
    finally:
        _inside_call.reset(token)


def _in_memory_body(body: Any) -> Optional[Union[bytes, str]]:
    if isinstance(body, (bytes, str)):
        return body
    if isinstance(body, bytearray):
        return bytes(body)
    return None


def _httpx_request_body(request: httpx.Request) -> Optional[bytes]:
    try:
        return request.content
    except httpx.RequestNotRead:
        # streaming upload; reading it would consume the caller's iterator
        return None


class Recorder:
    """Creates records for intercepted calls and completes them.

    Every method swallows and logs its own failures: recording must never
    change what the intercepted call returns or raises.
    """

    def __init__(
        self,
        store: RecordStore,
        pipeline: Optional[ResponseCapturePipeline] = None,
        *,
        capture_request_bodies: bool = True,
    ) -> None:
        self.store = store
        self.pipeline = pipeline or ResponseCapturePipeline()
        self.capture_request_bodies = capture_request_bodies

    # Record creation -------------------------------------------------------

    def begin(
        self,
        request_type: RequestType,
        method: str,
        url: Any,
        headers: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> Optional[RequestRecord]:
        try:
            record = RequestRecord(
                method=str(method or "GET").upper(),
                url=str(url),
                type=request_type,
                request_headers=safe_headers(headers),
                request_body=_in_memory_body(body) if self.capture_request_bodies else None,
            )
            self.store.add(record)
        except Exception:
            logger.exception(f"Could not record {method} {url}")
            return None
        return record

    def begin_httpx(self, request: httpx.Request) -> Optional[RequestRecord]:
        body = _httpx_request_body(request) if self.capture_request_bodies else None
        return self.begin(RequestType.HTTPX, request.method, request.url, request.headers, body)

    def begin_requests(self, request: Any) -> Optional[RequestRecord]:
        return self.begin(
            RequestType.REQUESTS,
            request.method,
            request.url,
            request.headers,
            request.body,
        )

    # Completion ------------------------------------------------------------

    def complete(
        self, record: Optional[RequestRecord], response: Any, *, streamed: bool = False
    ) -> None:
        if record is None:
            return
        try:
            self.store.apply(self.pipeline.capture(record, response, streamed=streamed))
        except Exception:
            logger.exception(f"Could not complete record {record.id}")

    def fail(self, record: Optional[RequestRecord], exc: BaseException) -> None:
        if record is None:
            return
        try:
            self.store.apply(self.pipeline.failure(record, exc))
        except Exception:
            logger.exception(f"Could not record failure for {record.id}")
        logger.debug(f"{record.method} {record.url} failed: {exc!r}")
