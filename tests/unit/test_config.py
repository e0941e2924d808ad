import os
from pathlib import Path

import pytest

from net_monitor import JsonFileStorage, MemoryStorage, MonitorSettings, load_settings


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings({})
        assert settings.namespace == "net-monitor"
        assert settings.storage_path is None
        assert settings.capture_request_bodies is True

    def test_reads_prefixed_variables(self, tmp_path):
        settings = load_settings(
            {
                "NET_MONITOR_NAMESPACE": "web-debugger",
                "NET_MONITOR_STORAGE_PATH": str(tmp_path / "s.json"),
                "NET_MONITOR_CAPTURE_REQUEST_BODIES": "off",
            }
        )
        assert settings.namespace == "web-debugger"
        assert settings.storage_path == Path(tmp_path / "s.json")
        assert settings.capture_request_bodies is False

    def test_invalid_boolean(self):
        with pytest.raises(ValueError, match="CAPTURE_REQUEST_BODIES"):
            load_settings({"NET_MONITOR_CAPTURE_REQUEST_BODIES": "maybe"})

    def test_blank_namespace_is_rejected(self):
        with pytest.raises(ValueError, match="Invalid net_monitor configuration"):
            load_settings({"NET_MONITOR_NAMESPACE": "   "})

    def test_reads_process_environment(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("NET_MONITOR_NAMESPACE", "from-env")
        assert load_settings().namespace == "from-env"

    def test_reads_dotenv_file(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("NET_MONITOR_NAMESPACE", raising=False)
        (tmp_path / ".env").write_text("NET_MONITOR_NAMESPACE=dotenv-ns\n", encoding="utf-8")
        try:
            assert load_settings().namespace == "dotenv-ns"
        finally:
            os.environ.pop("NET_MONITOR_NAMESPACE", None)


class TestBuildStorage:
    def test_memory_storage_without_path(self):
        storage = MonitorSettings(namespace="ns").build_storage()
        assert type(storage) is MemoryStorage
        assert storage.namespace == "ns"

    def test_file_storage_with_path(self, tmp_path):
        storage = MonitorSettings(storage_path=tmp_path / "s.json").build_storage()
        assert isinstance(storage, JsonFileStorage)
        assert storage.path == tmp_path / "s.json"
