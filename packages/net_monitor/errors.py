"""Exceptions used while recording intercepted calls.

None of these ever reach the caller of an intercepted primitive: they are
raised and handled inside the capture pipeline.
"""

from __future__ import annotations

from typing import Tuple

import httpx
import requests


class NetMonitorError(Exception):
    """Base class for recording errors."""


class ClassificationError(NetMonitorError):
    """A body could not be parsed per its declared content type."""


class HeaderEnumerationError(NetMonitorError):
    """Headers of a request or response could not be enumerated."""


TIMEOUT = "timeout"
ABORTED = "aborted"
NETWORK = "network"


def describe_transport_error(exc: BaseException) -> Tuple[str, str]:
    """Return ``(message, kind)`` for a failed transport call."""

    message = str(exc) or type(exc).__name__
    if isinstance(exc, (httpx.TimeoutException, requests.Timeout)):
        return message, TIMEOUT
    if not isinstance(exc, Exception):
        # asyncio.CancelledError, KeyboardInterrupt, SystemExit
        return message, ABORTED
    return message, NETWORK
