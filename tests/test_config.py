"""Tests for ConfigService."""

from __future__ import annotations

import json

import pytest

from reminders_cli.config import AppConfig, ConfigService, get_config_service
from reminders_cli.exceptions import ConfigError


def test_defaults_written_on_first_load(tmp_path):
    svc = ConfigService(tmp_path)
    config = svc.config
    assert config == AppConfig()
    assert config.api.retry == 3
    assert config.api.backoff_max == 30.0
    assert json.loads((tmp_path / "config.json").read_text())["api"]["timeout"] == 30.0


def test_corrupt_config(tmp_path):
    (tmp_path / "config.json").write_text("{oops")
    with pytest.raises(ConfigError):
        ConfigService(tmp_path).load_config()


def test_invalid_values_rejected(tmp_path):
    (tmp_path / "config.json").write_text(json.dumps({"api": {"retry": -1}}))
    with pytest.raises(ConfigError):
        ConfigService(tmp_path).load_config()


def test_default_paths(tmp_path):
    svc = ConfigService(tmp_path)
    assert svc.session_file == tmp_path / "session.json"
    assert svc.cache_file == tmp_path / "ck_cache.json"
    assert svc.credentials_file == tmp_path / "credentials"


def test_path_overrides(tmp_path):
    (tmp_path / "config.json").write_text(
        json.dumps({"paths": {"session_file": str(tmp_path / "s.json"), "cache_file": str(tmp_path / "c.json")}})
    )
    svc = ConfigService(tmp_path)
    assert svc.session_file == tmp_path / "s.json"
    assert svc.cache_file == tmp_path / "c.json"


def test_env_var_relocates_directory(tmp_path, monkeypatch):
    monkeypatch.setenv("ICLOUD_REMINDERS_CONFIG_DIR", str(tmp_path / "elsewhere"))
    get_config_service.cache_clear()
    svc = get_config_service()
    assert svc.config_dir == tmp_path / "elsewhere"
    assert get_config_service() is svc
