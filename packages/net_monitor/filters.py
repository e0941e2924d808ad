"""Record filtering."""

from __future__ import annotations

from typing import Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .records import RequestRecord, RequestType

STATUS_CATEGORIES = ("2xx", "3xx", "4xx", "5xx")
FILTER_FIELDS = ("url_substring", "method", "status_category", "type")


def status_category(status: Union[int, str, None]) -> Optional[str]:
    """Bucket an HTTP status into ``2xx`` .. ``5xx``; anything else is ``None``."""

    if isinstance(status, bool) or not isinstance(status, int):
        return None
    if 200 <= status < 600:
        return f"{status // 100}xx"
    return None


class FilterState(BaseModel):
    """Display filters; an empty field imposes no constraint."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    url_substring: str = ""
    method: str = ""
    status_category: str = ""
    type: str = ""

    @field_validator("status_category")
    @classmethod
    def _check_status_category(cls, value: str) -> str:
        if value and value not in STATUS_CATEGORIES:
            raise ValueError(f"status_category must be one of {', '.join(STATUS_CATEGORIES)}")
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _check_type(cls, value):
        if isinstance(value, RequestType):
            return value.value
        if value and value not in {t.value for t in RequestType}:
            raise ValueError(f"unknown request type: {value}")
        return value

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in FILTER_FIELDS)

    def matches(self, record: RequestRecord) -> bool:
        if self.url_substring and self.url_substring.lower() not in record.url.lower():
            return False
        if self.method and record.method != self.method:
            return False
        if self.status_category and status_category(record.status) != self.status_category:
            return False
        if self.type and record.type.value != self.type:
            return False
        return True


def filter_records(records: Iterable[RequestRecord], state: FilterState) -> List[RequestRecord]:
    return [record for record in records if state.matches(record)]
