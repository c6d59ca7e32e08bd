"""Unit tests for nvimlink.config."""

import json
import os
import stat

import pytest

from nvimlink.config import ENV_OVERRIDES, load_config, save_config
from nvimlink.models import NvimLinkConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_OVERRIDES:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "nvimlink" / "config.json"


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, config_path):
        assert load_config(config_path) == NvimLinkConfig()

    def test_reads_saved_values(self, config_path):
        config_path.parent.mkdir()
        config_path.write_text(json.dumps({"terminal": "kitty", "listen_on": "127.0.0.1:7777"}))

        config = load_config(config_path)

        assert config.terminal == "kitty"
        assert config.listen_on == "127.0.0.1:7777"

    def test_corrupt_json_falls_back_to_defaults(self, config_path, caplog):
        config_path.parent.mkdir()
        config_path.write_text("{not json")

        assert load_config(config_path) == NvimLinkConfig()
        assert "ignoring unreadable config" in caplog.text

    def test_invalid_values_fall_back_to_defaults(self, config_path, caplog):
        config_path.parent.mkdir()
        config_path.write_text(json.dumps({"listen_on": ""}))

        assert load_config(config_path) == NvimLinkConfig()
        assert "ignoring invalid config" in caplog.text

    def test_non_object_payload_is_ignored(self, config_path):
        config_path.parent.mkdir()
        config_path.write_text("[1, 2]")
        assert load_config(config_path) == NvimLinkConfig()

    def test_environment_overrides_saved_values(self, config_path, monkeypatch):
        config_path.parent.mkdir()
        config_path.write_text(json.dumps({"terminal": "kitty"}))
        monkeypatch.setenv("NVIMLINK_TERMINAL", "wezterm")
        monkeypatch.setenv("NVIMLINK_LISTEN_ON", "127.0.0.1:9999")
        monkeypatch.setenv("OBSIDIAN_REST_API_KEY", "secret")

        config = load_config(config_path)

        assert config.terminal == "wezterm"
        assert config.listen_on == "127.0.0.1:9999"
        assert config.api_key == "secret"

    def test_environment_can_be_skipped(self, config_path, monkeypatch):
        monkeypatch.setenv("OBSIDIAN_REST_API_KEY", "secret")
        assert load_config(config_path, apply_env=False).api_key is None

    def test_blank_environment_values_are_ignored(self, config_path, monkeypatch):
        monkeypatch.setenv("NVIMLINK_LISTEN_ON", "   ")
        assert load_config(config_path).listen_on == NvimLinkConfig().listen_on


class TestSaveConfig:
    def test_round_trips_through_load(self, config_path):
        config = NvimLinkConfig(terminal="kitty", supported_file_types=["md"], excalidraw_enabled=True)

        assert save_config(config, config_path) == config_path
        assert load_config(config_path) == config

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
    def test_owner_only_permissions(self, config_path):
        save_config(NvimLinkConfig(api_key="secret"), config_path)

        assert stat.S_IMODE(config_path.stat().st_mode) == 0o600
        assert stat.S_IMODE(config_path.parent.stat().st_mode) == 0o700

    def test_leaves_no_temp_files(self, config_path):
        save_config(NvimLinkConfig(), config_path)
        save_config(NvimLinkConfig(terminal="kitty"), config_path)

        assert [p.name for p in config_path.parent.iterdir()] == ["config.json"]
