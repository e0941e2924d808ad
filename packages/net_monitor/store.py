"""Ordered record collection with change notification."""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from .records import RecordCompletion, RequestRecord

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class RecordStore:
    """Owns the intercepted records, most recent first.

    Records are inserted when a call is issued and completed later through
    :meth:`apply`. Listeners receive a payload-free notification after every
    change and re-read the store.
    """

    def __init__(self) -> None:
        self._records: List[RequestRecord] = []
        self._selected_id: Optional[str] = None
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

    # Records ---------------------------------------------------------------

    def add(self, record: RequestRecord) -> None:
        with self._lock:
            self._records.insert(0, record)
        logger.debug(f"Recorded {record.type.value} {record.method} {record.url} ({record.id})")
        self.notify()

    def apply(self, completion: RecordCompletion) -> bool:
        """Write ``completion`` into its record; returns whether it was applied."""

        with self._lock:
            record = self._find(completion.record_id)
            if record is None:
                logger.debug(f"Dropping completion for unknown record {completion.record_id}")
                return False
            if not record.is_pending:
                logger.debug(f"Record {record.id} already settled, ignoring completion")
                return False
            completion.apply_to(record)
        self.notify()
        return True

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._selected_id = None
        self.notify()

    def records(self) -> List[RequestRecord]:
        with self._lock:
            return list(self._records)

    def get(self, record_id: str) -> Optional[RequestRecord]:
        with self._lock:
            return self._find(record_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _find(self, record_id: str) -> Optional[RequestRecord]:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    # Selection -------------------------------------------------------------

    def select(self, record_id: Optional[str]) -> None:
        with self._lock:
            if record_id is not None and self._find(record_id) is None:
                raise KeyError(record_id)
            self._selected_id = record_id
        self.notify()

    @property
    def selected(self) -> Optional[RequestRecord]:
        with self._lock:
            if self._selected_id is None:
                return None
            return self._find(self._selected_id)

    # Notification ----------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener()
            except Exception:
                logger.exception(f"Record store listener {listener!r} failed")
