"""HTTP interception for net_monitor.

This module patches the send primitives of the two HTTP clients most Python
programs use, ``requests`` and ``httpx``. Each patched call is recorded
before the original primitive runs and completed once it settles; the value
returned (or the exception raised) is always the one the original produced.
"""

from __future__ import annotations

import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

import httpx
import requests

from .recorder import Recorder, inside_intercepted_call, intercepted_call
from .records import RequestRecord

logger = logging.getLogger(__name__)

Restore = Callable[[], None]


# ---------------------------------------------------------------------------
# Send proxies
# ---------------------------------------------------------------------------


class _SendProxy:
    def __init__(
        self,
        send: Callable[..., Any],
        *,
        client: Any,
        begin: Callable[[Any], Optional[RequestRecord]],
        recorder: Recorder,
    ):
        self._send = send
        self._client = client
        self._begin = begin
        self._recorder = recorder

    def __call__(self, request, *args, **kwargs):
        if inside_intercepted_call(self._client):
            return self._send(request, *args, **kwargs)

        record = self._begin(request)
        with intercepted_call(self._client):
            try:
                response = self._send(request, *args, **kwargs)
            except BaseException as exc:
                self._recorder.fail(record, exc)
                raise
        self._recorder.complete(record, response, streamed=bool(kwargs.get("stream")))
        return response


class _AsyncSendProxy(_SendProxy):
    async def __call__(self, request, *args, **kwargs):
        if inside_intercepted_call(self._client):
            return await self._send(request, *args, **kwargs)

        # Created before the first await so list order follows issuance order.
        record = self._begin(request)
        with intercepted_call(self._client):
            try:
                response = await self._send(request, *args, **kwargs)
            except BaseException as exc:
                self._recorder.fail(record, exc)
                raise
        self._recorder.complete(record, response, streamed=bool(kwargs.get("stream")))
        return response


# ---------------------------------------------------------------------------
# requests patching
# ---------------------------------------------------------------------------


def patch_requests(*, recorder: Recorder) -> Restore:
    session_cls = requests.Session
    original_send = session_cls.send

    @functools.wraps(original_send)
    def patched_send(self, request, *args, **kwargs):
        bound_send = original_send.__get__(self, session_cls)  # type: ignore[misc]
        proxy = _SendProxy(
            bound_send, client=self, begin=recorder.begin_requests, recorder=recorder
        )
        return proxy(request, *args, **kwargs)

    session_cls.send = patched_send  # type: ignore[assignment]

    def restore():
        session_cls.send = original_send

    return restore


# ---------------------------------------------------------------------------
# httpx patching
# ---------------------------------------------------------------------------


def patch_httpx(*, recorder: Recorder) -> Restore:
    client_cls = httpx.Client
    async_client_cls = httpx.AsyncClient

    original_send = client_cls.send
    original_async_send = async_client_cls.send

    @functools.wraps(original_send)
    def patched_send(self, request, *args, **kwargs):
        bound_send = original_send.__get__(self, client_cls)  # type: ignore[misc]
        proxy = _SendProxy(
            bound_send, client=self, begin=recorder.begin_httpx, recorder=recorder
        )
        return proxy(request, *args, **kwargs)

    @functools.wraps(original_async_send)
    async def patched_async_send(self, request, *args, **kwargs):
        bound_send = original_async_send.__get__(self, async_client_cls)  # type: ignore[misc]
        proxy = _AsyncSendProxy(
            bound_send, client=self, begin=recorder.begin_httpx, recorder=recorder
        )
        return await proxy(request, *args, **kwargs)

    client_cls.send = patched_send  # type: ignore[assignment]
    async_client_cls.send = patched_async_send  # type: ignore[assignment]

    def restore():
        client_cls.send = original_send
        async_client_cls.send = original_async_send

    return restore


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


class InterceptionController:
    """Installs and removes the patched primitives.

    ``start()`` captures whatever ``send`` implementations are current at that
    moment, so another library's wrapper installed earlier is preserved and
    put back by ``stop()``. Repeated ``start()`` or ``stop()`` calls are
    no-ops. Completions of calls issued before ``stop()`` still reach their
    records after it.
    """

    def __init__(self, recorder: Recorder) -> None:
        self._recorder = recorder
        self._restorers: List[Restore] = []
        self._captured: Dict[Tuple[type, str], Any] = {}

    @property
    def recorder(self) -> Recorder:
        return self._recorder

    @property
    def active(self) -> bool:
        return bool(self._restorers)

    @property
    def captured(self) -> Dict[Tuple[type, str], Any]:
        """Primitives captured by the most recent ``start()``."""

        return dict(self._captured)

    def start(self) -> None:
        if self.active:
            return
        self._captured = {
            (requests.Session, "send"): requests.Session.send,
            (httpx.Client, "send"): httpx.Client.send,
            (httpx.AsyncClient, "send"): httpx.AsyncClient.send,
        }
        restorers = [patch_requests(recorder=self._recorder)]
        try:
            restorers.append(patch_httpx(recorder=self._recorder))
        except Exception:
            for restore in reversed(restorers):
                restore()
            raise
        self._restorers = restorers
        logger.info("Network interception started")

    def stop(self) -> None:
        if not self.active:
            return
        restorers, self._restorers = self._restorers, []
        for restore in reversed(restorers):
            restore()
        logger.info("Network interception stopped")

    @contextmanager
    def activate(self) -> Iterator["InterceptionController"]:
        """Intercept within the managed block, restoring on every exit path."""

        was_active = self.active
        self.start()
        try:
            yield self
        finally:
            if not was_active:
                self.stop()
