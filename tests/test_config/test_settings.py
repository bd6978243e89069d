"""Tests for config loading and credential merging."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from routeros_exporter.config.settings import (
    CredentialConfig,
    DeviceConfig,
    Settings,
    _merge_device_credentials,
    load_config,
)


def _write_yaml(path: Path, data: dict) -> Path:
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


def test_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    settings = load_config()
    assert settings.server.port == 9436
    assert settings.devices == []
    assert settings.features.enabled() == ["health", "resource"]


def test_load_config_devices(tmp_path):
    path = _write_yaml(tmp_path / "config.yaml", {
        "timeout": 5,
        "devices": [
            {"name": "router1", "address": "10.0.0.1", "username": "prom", "password": "pw"},
            {"name": "router2", "address": "10.0.0.2", "tls": True, "timeout": 2},
        ],
    })
    settings = load_config(path)

    r1, r2 = settings.devices
    assert (r1.username, r1.password, r1.timeout) == ("prom", "pw", 5)
    assert r2.username == "admin"
    assert r2.tls is True
    assert r2.timeout == 2
    assert r1.to_device().address == "10.0.0.1"


def test_load_config_expands_env(tmp_path, monkeypatch):
    monkeypatch.setenv("ROS_PASSWORD", "s3cret")
    path = _write_yaml(tmp_path / "config.yaml", {
        "devices": [{"name": "r1", "address": "10.0.0.1", "password": "${ROS_PASSWORD}"}],
    })
    assert load_config(path).devices[0].password == "s3cret"


def test_unset_env_var_left_verbatim(tmp_path, monkeypatch):
    monkeypatch.delenv("ROS_MISSING", raising=False)
    path = _write_yaml(tmp_path / "config.yaml", {
        "devices": [{"name": "r1", "address": "10.0.0.1", "password": "${ROS_MISSING}"}],
    })
    assert load_config(path).devices[0].password == "${ROS_MISSING}"


def test_credential_reference(tmp_path):
    path = _write_yaml(tmp_path / "config.yaml", {
        "credentials": {"ro": {"username": "prometheus", "password": "pw"}},
        "devices": [
            {"name": "r1", "address": "10.0.0.1", "credentials": "ro"},
            {"name": "r2", "address": "10.0.0.2", "credentials": "ro", "password": "own"},
        ],
    })
    r1, r2 = load_config(path).devices
    assert (r1.username, r1.password) == ("prometheus", "pw")
    assert (r2.username, r2.password) == ("prometheus", "own")


def test_unknown_credential_reference(tmp_path):
    path = _write_yaml(tmp_path / "config.yaml", {
        "devices": [{"name": "r1", "address": "10.0.0.1", "credentials": "nope"}],
    })
    with pytest.raises(ValueError, match="Unknown credential reference 'nope'"):
        load_config(path)


def test_duplicate_device_names(tmp_path):
    path = _write_yaml(tmp_path / "config.yaml", {
        "devices": [
            {"name": "r1", "address": "10.0.0.1"},
            {"name": "r1", "address": "10.0.0.2"},
        ],
    })
    with pytest.raises(ValueError, match="Duplicate device name 'r1'"):
        load_config(path)


def test_device_requires_address(tmp_path):
    path = _write_yaml(tmp_path / "config.yaml", {"devices": [{"name": "r1"}]})
    with pytest.raises(ValidationError):
        load_config(path)


def test_features_can_be_disabled(tmp_path):
    path = _write_yaml(tmp_path / "config.yaml", {"features": {"resource": False}})
    assert load_config(path).features.enabled() == ["health"]


def test_merge_explicit_fields_win():
    creds = {"ro": CredentialConfig(username="ro-user", password="ro-pass")}
    dev = DeviceConfig(name="r1", address="10.0.0.1", credentials="ro", username="me")
    assert _merge_device_credentials(creds, dev) == {"username": "me", "password": "ro-pass"}


def test_settings_model_defaults():
    settings = Settings()
    assert settings.server.host == "0.0.0.0"
    assert settings.log_level == "info"
