"""Runtime configuration for net_monitor."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

from .storage import DEFAULT_NAMESPACE, JsonFileStorage, MemoryStorage

ENV_PREFIX = "NET_MONITOR_"
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class MonitorSettings(BaseModel):
    namespace: str = DEFAULT_NAMESPACE
    storage_path: Optional[Path] = None
    capture_request_bodies: bool = True

    @field_validator("namespace")
    @classmethod
    def _check_namespace(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("namespace must not be empty")
        return value

    def build_storage(self) -> MemoryStorage:
        if self.storage_path is None:
            return MemoryStorage(namespace=self.namespace)
        return JsonFileStorage(self.storage_path, namespace=self.namespace)


def _parse_bool(name: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> MonitorSettings:
    """Build settings from ``NET_MONITOR_*`` variables.

    When ``environ`` is omitted the process environment is used, after
    loading a ``.env`` file from the working directory if one exists.
    """

    if environ is None:
        env_path = Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)
        environ = os.environ

    values: dict = {}
    namespace = environ.get(f"{ENV_PREFIX}NAMESPACE")
    if namespace is not None:
        values["namespace"] = namespace
    storage_path = environ.get(f"{ENV_PREFIX}STORAGE_PATH")
    if storage_path:
        values["storage_path"] = Path(storage_path).expanduser()
    capture_bodies = environ.get(f"{ENV_PREFIX}CAPTURE_REQUEST_BODIES")
    if capture_bodies is not None:
        values["capture_request_bodies"] = _parse_bool(
            f"{ENV_PREFIX}CAPTURE_REQUEST_BODIES", capture_bodies
        )

    try:
        return MonitorSettings(**values)
    except ValidationError as exc:
        raise ValueError(f"Invalid net_monitor configuration: {exc}") from exc
