"""Client-facing exports for net_monitor."""

from .capture import ResponseCapturePipeline
from .clients import AsyncRecordingClient, NetworkClient, PassThroughClient, RecordingClient
from .config import MonitorSettings, load_settings
from .errors import ClassificationError, HeaderEnumerationError, NetMonitorError
from .filters import FilterState, filter_records, status_category
from .interception import InterceptionController
from .monitor import NetworkMonitor, network_monitor
from .recorder import Recorder
from .records import (
    PENDING,
    BinaryBody,
    JsonBody,
    RecordCompletion,
    RecordState,
    RequestRecord,
    RequestType,
    TextBody,
)
from .storage import JsonFileStorage, MemoryStorage, SettingsStorage
from .store import RecordStore

__version__ = "0.1.0"

__all__ = [
    "PENDING",
    "AsyncRecordingClient",
    "BinaryBody",
    "ClassificationError",
    "FilterState",
    "HeaderEnumerationError",
    "InterceptionController",
    "JsonBody",
    "JsonFileStorage",
    "MemoryStorage",
    "MonitorSettings",
    "NetMonitorError",
    "NetworkClient",
    "NetworkMonitor",
    "PassThroughClient",
    "RecordCompletion",
    "RecordState",
    "RecordStore",
    "Recorder",
    "RecordingClient",
    "RequestRecord",
    "RequestType",
    "ResponseCapturePipeline",
    "SettingsStorage",
    "TextBody",
    "filter_records",
    "load_settings",
    "network_monitor",
    "status_category",
]
