"""
Shared pytest fixtures for all tests.

Provides record stores, recorders, interception controllers and HTTP
clients wired to in-process transports, so no test touches the network.
"""

import io
import os
from http import HTTPStatus
from typing import Callable, Mapping, Tuple, Union

import httpx
import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict
from requests.utils import get_encoding_from_headers

from net_monitor import (
    InterceptionController,
    MemoryStorage,
    NetworkMonitor,
    Recorder,
    RecordStore,
)

StubReply = Tuple[int, Mapping[str, str], Union[bytes, str]]

_KNOWN_STATUSES = {s.value for s in HTTPStatus}


class StubAdapter(BaseAdapter):
    """requests transport adapter answering from a Python callable."""

    def __init__(self, handler: Callable[[requests.PreparedRequest], StubReply]):
        super().__init__()
        self.handler = handler
        self.sent = []

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.sent.append(request)
        status, headers, body = self.handler(request)
        if isinstance(body, str):
            body = body.encode("utf-8")

        response = requests.Response()
        response.status_code = status
        response.headers = CaseInsensitiveDict(headers)
        response.encoding = get_encoding_from_headers(response.headers)
        response.raw = io.BytesIO(body)
        response.reason = HTTPStatus(status).phrase if status in _KNOWN_STATUSES else ""
        response.url = request.url
        response.request = request
        return response

    def close(self):
        pass


def json_reply(status: int = 200, body: str = '{"a": 1}') -> StubReply:
    return status, {"Content-Type": "application/json"}, body


@pytest.fixture(autouse=True)
def _clean_monitor_environment(monkeypatch):
    """Keep NET_MONITOR_* variables of the outer shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("NET_MONITOR_"):
            monkeypatch.delenv(name)


@pytest.fixture
def store():
    """Empty RecordStore."""
    return RecordStore()


@pytest.fixture
def recorder(store):
    """Recorder writing into the store fixture."""
    return Recorder(store)


@pytest.fixture
def controller(recorder):
    """InterceptionController that is always stopped after the test."""
    ctl = InterceptionController(recorder)
    yield ctl
    ctl.stop()


@pytest.fixture
def monitor():
    """NetworkMonitor backed by in-memory storage, stopped after the test."""
    mon = NetworkMonitor(storage=MemoryStorage())
    yield mon
    mon.stop()


@pytest.fixture
def make_session():
    """Build a requests.Session whose traffic is served by a handler."""

    sessions = []

    def factory(handler=lambda request: json_reply()):
        session = requests.Session()
        adapter = StubAdapter(handler)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        sessions.append(session)
        return session

    yield factory
    for session in sessions:
        session.close()


def _default_httpx_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"a": 1})


@pytest.fixture
def make_client():
    """Build an httpx.Client served by httpx.MockTransport."""

    clients = []

    def factory(handler=_default_httpx_handler):
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()


@pytest.fixture
def make_async_client():
    """Build an httpx.AsyncClient served by httpx.MockTransport.

    The caller is responsible for closing the client (``async with``).
    """

    def factory(handler=_default_httpx_handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory
