"""Settings storage collaborators.

Values are kept JSON-encoded under ``"<namespace>.<key>"`` keys, so several
tools can share one backing store without colliding. Read and write failures
are logged and degrade to the default value (or ``False``); they never raise
to the caller.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "net-monitor"


class SettingsStorage(Protocol):
    def get(self, key: str, default: Any = None) -> Any:  # pragma: no cover - interface
        ...

    def set(self, key: str, value: Any) -> bool:  # pragma: no cover - interface
        ...


class MemoryStorage:
    """Namespaced key-value storage held in process memory."""

    def __init__(self, namespace: str = DEFAULT_NAMESPACE) -> None:
        self.namespace = namespace
        self._data: Optional[Dict[str, str]] = None

    # Backing store ---------------------------------------------------------

    def _load(self) -> Dict[str, str]:
        return {}

    def _save(self, data: Dict[str, str]) -> None:
        return None

    def _items(self) -> Dict[str, str]:
        if self._data is None:
            self._data = self._load()
        return self._data

    def _key(self, key: str) -> str:
        return f"{self.namespace}.{key}"

    def _owns(self, full_key: str) -> bool:
        return full_key.startswith(f"{self.namespace}.")

    # Public API ------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        try:
            raw = self._items().get(self._key(key))
            if raw is None:
                return default
            return json.loads(raw)
        except (OSError, ValueError) as exc:
            logger.warning(f"Error retrieving {key} from storage: {exc}")
            return default

    def set(self, key: str, value: Any) -> bool:
        try:
            encoded = json.dumps(value)
            items = self._items()
            items[self._key(key)] = encoded
            self._save(items)
            return True
        except (OSError, TypeError, ValueError) as exc:
            logger.warning(f"Error storing {key} in storage: {exc}")
            return False

    def remove(self, key: str) -> bool:
        try:
            items = self._items()
            items.pop(self._key(key), None)
            self._save(items)
            return True
        except OSError as exc:
            logger.warning(f"Error removing {key} from storage: {exc}")
            return False

    def clear(self) -> bool:
        """Remove every value in this namespace."""

        try:
            items = self._items()
            for full_key in [k for k in items if self._owns(k)]:
                del items[full_key]
            self._save(items)
            return True
        except OSError as exc:
            logger.warning(f"Error clearing storage: {exc}")
            return False

    def get_all(self) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        prefix_len = len(self.namespace) + 1
        try:
            for full_key, raw in self._items().items():
                if self._owns(full_key):
                    values[full_key[prefix_len:]] = json.loads(raw)
        except (OSError, ValueError) as exc:
            logger.warning(f"Error getting all values from storage: {exc}")
        return values

    def export_settings(self) -> str:
        return json.dumps(self.get_all())

    def import_settings(self, data: str) -> None:
        try:
            imported = json.loads(data)
        except ValueError as exc:
            logger.error(f"Failed to import settings: {exc}")
            raise ValueError("Invalid settings data") from exc
        if not isinstance(imported, dict):
            raise ValueError("Invalid settings data")
        for key, value in imported.items():
            self.set(str(key), value)


class JsonFileStorage(MemoryStorage):
    """Namespaced storage persisted to a JSON file on every write."""

    def __init__(self, path: Union[str, Path], namespace: str = DEFAULT_NAMESPACE) -> None:
        super().__init__(namespace)
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning(f"Ignoring unreadable settings file {self.path}: {exc}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed settings file {self.path}")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp_path, self.path)
