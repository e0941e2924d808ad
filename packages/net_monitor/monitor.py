"""User-facing network monitor.

:class:`NetworkMonitor` is what a display layer talks to: it owns the record
store, the interception controller and the persisted filter state.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional

from pydantic import ValidationError

from .config import MonitorSettings, load_settings
from .filters import FILTER_FIELDS, FilterState, filter_records
from .interception import InterceptionController
from .recorder import Recorder
from .records import RequestRecord
from .storage import SettingsStorage
from .store import Listener, RecordStore

logger = logging.getLogger(__name__)

FILTERS_KEY = "network-monitor-filters"


class NetworkMonitor:
    """Record store, interception and persisted filters behind one object.

    Without ``settings`` the configuration is read by :func:`load_settings`,
    so ``NET_MONITOR_*`` variables and a local ``.env`` file apply.
    """

    def __init__(
        self,
        *,
        storage: Optional[SettingsStorage] = None,
        settings: Optional[MonitorSettings] = None,
        store: Optional[RecordStore] = None,
    ) -> None:
        self.settings = settings if settings is not None else load_settings()
        self.storage = storage if storage is not None else self.settings.build_storage()
        self.store = store if store is not None else RecordStore()
        self.recorder = Recorder(
            self.store, capture_request_bodies=self.settings.capture_request_bodies
        )
        self.controller = InterceptionController(self.recorder)
        self._filters = self._load_filters()

    # Monitoring ------------------------------------------------------------

    @property
    def is_monitoring(self) -> bool:
        return self.controller.active

    def start(self) -> None:
        self.controller.start()

    def stop(self) -> None:
        self.controller.stop()

    # Records ---------------------------------------------------------------

    def clear(self) -> None:
        self.store.clear()

    def select(self, record_id: Optional[str]) -> None:
        self.store.select(record_id)

    @property
    def selected(self) -> Optional[RequestRecord]:
        return self.store.selected

    def records(self) -> List[RequestRecord]:
        return self.store.records()

    def filtered_records(self) -> List[RequestRecord]:
        return filter_records(self.store.records(), self._filters)

    def visible_records(self) -> List[RequestRecord]:
        """Filtered records; a selection hidden by the filters is dropped."""

        visible = self.filtered_records()
        selected = self.store.selected
        if selected is not None and all(r.id != selected.id for r in visible):
            self.store.select(None)
        return visible

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.store.subscribe(listener)

    # Filters ---------------------------------------------------------------

    @property
    def filters(self) -> FilterState:
        return self._filters.model_copy()

    def set_filter(self, name: str, value: Any) -> FilterState:
        if name not in FILTER_FIELDS:
            raise KeyError(f"unknown filter: {name}")
        return self.update_filters(**{name: value})

    def update_filters(self, **values: Any) -> FilterState:
        unknown = set(values) - set(FILTER_FIELDS)
        if unknown:
            raise KeyError(f"unknown filter: {', '.join(sorted(unknown))}")
        merged = {**self._filters.model_dump(), **{k: v or "" for k, v in values.items()}}
        self._filters = FilterState.model_validate(merged)
        self._save_filters()
        self.store.notify()
        return self.filters

    def reset_filters(self) -> FilterState:
        self._filters = FilterState()
        self._save_filters()
        self.store.notify()
        return self.filters

    def _load_filters(self) -> FilterState:
        saved = self.storage.get(FILTERS_KEY, None)
        if not saved:
            return FilterState()
        try:
            return FilterState.model_validate(saved)
        except ValidationError as exc:
            logger.warning(f"Discarding stored filters: {exc}")
            return FilterState()

    def _save_filters(self) -> None:
        if self.storage.set(FILTERS_KEY, self._filters.model_dump()) is False:
            logger.warning("Filters could not be persisted")


@contextmanager
def network_monitor(
    *,
    storage: Optional[SettingsStorage] = None,
    settings: Optional[MonitorSettings] = None,
) -> Iterator[NetworkMonitor]:
    """Record HTTP traffic inside the managed block."""

    monitor = NetworkMonitor(storage=storage, settings=settings)
    with monitor.controller.activate():
        yield monitor
