"""Response capture pipeline.

Turns a settled ``httpx``/``requests`` response (or the exception raised by
the transport) into a :class:`~net_monitor.records.RecordCompletion`. The
pipeline only reads bodies that the client has already buffered, so the
caller's own consumption of the response is never disturbed.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import ClassificationError, HeaderEnumerationError, describe_transport_error
from .records import (
    BinaryBody,
    JsonBody,
    RecordCompletion,
    RequestRecord,
    ResponseBody,
    TextBody,
    monotonic_ms,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Header helpers
# ---------------------------------------------------------------------------


def enumerate_headers(headers: Any) -> Dict[str, str]:
    if headers is None:
        return {}
    try:
        return {str(name): str(value) for name, value in headers.items()}
    except Exception as exc:
        raise HeaderEnumerationError(f"cannot enumerate headers: {exc}") from exc


def safe_headers(headers: Any) -> Dict[str, str]:
    """Enumerate ``headers``, degrading to an empty map on failure."""

    try:
        return enumerate_headers(headers)
    except HeaderEnumerationError as exc:
        logger.debug(f"Recording empty header map: {exc}")
        return {}


def header_value(headers: Mapping[str, str], name: str, default: str = "") -> str:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return default


def content_length(headers: Mapping[str, str]) -> int:
    try:
        return max(int(header_value(headers, "content-length", "0")), 0)
    except ValueError:
        return 0


# ---------------------------------------------------------------------------
# Body classification
# ---------------------------------------------------------------------------


def parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as exc:
        raise ClassificationError(f"malformed JSON body: {exc}") from exc


def classify_body(content_type: str, response: Any) -> Tuple[ResponseBody, int]:
    """Capture ``response``'s buffered body according to ``content_type``.

    Returns the tagged body together with its size: character length for
    JSON and text bodies, byte length for everything else.
    """

    content_type = content_type.lower()
    if "application/json" in content_type:
        text = response.text
        try:
            return JsonBody(parse_json(text)), len(text)
        except ClassificationError as exc:
            logger.debug(f"Falling back to text capture: {exc}")
            return TextBody(text), len(text)
    if "text/" in content_type:
        text = response.text
        return TextBody(text), len(text)
    return BinaryBody(len(response.content)), len(response.content)


def _status_line(response: Any) -> Tuple[int, str]:
    status = int(response.status_code)
    # httpx exposes reason_phrase, requests exposes reason
    reason = getattr(response, "reason_phrase", None)
    if reason is None:
        reason = getattr(response, "reason", None)
    return status, str(reason or "")


class ResponseCapturePipeline:
    """Builds completion messages for pending records."""

    def capture(
        self, record: RequestRecord, response: Any, *, streamed: bool = False
    ) -> RecordCompletion:
        end_time = monotonic_ms()
        try:
            status, status_text = _status_line(response)
        except Exception:
            logger.exception(f"Could not read status for {record.method} {record.url}")
            status, status_text = 0, ""
        headers = safe_headers(getattr(response, "headers", None))

        body: Optional[ResponseBody] = None
        size = 0
        if streamed:
            # The caller owns the stream; only the declared length is known.
            size = content_length(headers)
            body = BinaryBody(size)
        else:
            try:
                body, size = classify_body(header_value(headers, "content-type"), response)
            except Exception:
                logger.exception(f"Could not capture body for {record.method} {record.url}")

        return RecordCompletion(
            record_id=record.id,
            status=status,
            status_text=status_text,
            end_time=end_time,
            response_headers=headers,
            response_body=body,
            size=size,
        )

    def failure(self, record: RequestRecord, exc: BaseException) -> RecordCompletion:
        message, kind = describe_transport_error(exc)
        return RecordCompletion(
            record_id=record.id,
            status=0,
            status_text=message,
            end_time=monotonic_ms(),
            error=message,
            error_kind=kind,
        )
