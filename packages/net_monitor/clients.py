"""Explicit client composition.

Callers that would rather not patch ``requests``/``httpx`` globally can wrap
a client instance instead: :class:`RecordingClient` records every call made
through it, :class:`PassThroughClient` forwards without recording. Both
satisfy :class:`NetworkClient`, so the choice is made where the client is
built rather than where it is used.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

import httpx

from .recorder import Recorder, intercepted_call
from .records import RequestRecord, RequestType


class NetworkClient(Protocol):
    def request(self, method: str, url: Any, **kwargs: Any) -> Any:  # pragma: no cover - interface
        ...


def _request_type(inner: Any) -> RequestType:
    if isinstance(inner, (httpx.Client, httpx.AsyncClient)):
        return RequestType.HTTPX
    return RequestType.REQUESTS


def _request_body(kwargs: dict[str, Any]) -> Any:
    for key in ("content", "data"):
        if kwargs.get(key) is not None:
            return kwargs[key]
    return None


class PassThroughClient:
    def __init__(self, inner: Any):
        self.inner = inner

    def request(self, method: str, url: Any, **kwargs: Any) -> Any:
        return self.inner.request(method, url, **kwargs)

    def get(self, url: Any, **kwargs: Any) -> Any:
        return self.request("GET", url, **kwargs)

    def post(self, url: Any, **kwargs: Any) -> Any:
        return self.request("POST", url, **kwargs)

    def close(self) -> None:
        self.inner.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class RecordingClient(PassThroughClient):
    """Records each call made through a ``requests.Session`` or ``httpx.Client``."""

    def __init__(self, inner: Any, recorder: Recorder):
        super().__init__(inner)
        self.recorder = recorder
        self.request_type = _request_type(inner)

    def _begin(self, method: str, url: Any, kwargs: dict[str, Any]) -> Optional[RequestRecord]:
        return self.recorder.begin(
            self.request_type, method, url, kwargs.get("headers"), _request_body(kwargs)
        )

    def request(self, method: str, url: Any, **kwargs: Any) -> Any:
        record = self._begin(method, url, kwargs)
        # the patched send of the inner client sees this and does not record again
        with intercepted_call(self.inner):
            try:
                response = self.inner.request(method, url, **kwargs)
            except BaseException as exc:
                self.recorder.fail(record, exc)
                raise
        self.recorder.complete(record, response, streamed=bool(kwargs.get("stream")))
        return response


class AsyncRecordingClient:
    """Records each call made through an ``httpx.AsyncClient``."""

    def __init__(self, inner: httpx.AsyncClient, recorder: Recorder):
        self.inner = inner
        self.recorder = recorder

    async def request(self, method: str, url: Any, **kwargs: Any) -> httpx.Response:
        record = self.recorder.begin(
            RequestType.HTTPX, method, url, kwargs.get("headers"), _request_body(kwargs)
        )
        with intercepted_call(self.inner):
            try:
                response = await self.inner.request(method, url, **kwargs)
            except BaseException as exc:
                self.recorder.fail(record, exc)
                raise
        self.recorder.complete(record, response)
        return response

    async def get(self, url: Any, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: Any, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def aclose(self) -> None:
        await self.inner.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
