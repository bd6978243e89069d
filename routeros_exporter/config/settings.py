"""YAML config loader with environment variable expansion."""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from routeros_exporter.device.models import Device


def _expand_env_vars(value: str) -> str:
    """Replace ${VAR_NAME} with environment variable values."""
    pattern = re.compile(r"\$\{([^}]+)\}")
    def replacer(match: re.Match) -> str:
        var = match.group(1)
        return os.environ.get(var, match.group(0))
    return pattern.sub(replacer, value)


def _walk_and_expand(obj: object) -> object:
    """Recursively expand environment variables in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_expand(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_expand(item) for item in obj]
    return obj


class CredentialConfig(BaseModel):
    username: str | None = None
    password: str | None = None


class DeviceConfig(BaseModel):
    name: str
    address: str
    username: str | None = None
    password: str | None = None
    credentials: str | None = None  # optional named credential ref
    port: int | None = None         # 8728, or 8729 with tls
    tls: bool = False
    insecure: bool = False
    timeout: float | None = None

    def to_device(self) -> Device:
        return Device(name=self.name, address=self.address)


class FeaturesConfig(BaseModel):
    health: bool = True
    resource: bool = True

    def enabled(self) -> list[str]:
        return [name for name, on in self.model_dump().items() if on]


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 9436


class Settings(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    features: FeaturesConfig = Field(default_factory=FeaturesConfig)
    credentials: dict[str, CredentialConfig] = Field(default_factory=dict)
    devices: list[DeviceConfig] = Field(default_factory=list)
    log_level: str = "info"
    timeout: float = 10.0


def load_config(path: str | Path | None = None) -> Settings:
    """Load configuration from a YAML file, falling back to defaults."""
    if path is None:
        candidates = [
            Path("config.yaml"),
            Path("config.yml"),
            Path.home() / ".routeros-exporter" / "config.yaml",
        ]
        for candidate in candidates:
            if candidate.exists():
                path = candidate
                break

    if path is None:
        return Settings()

    with open(Path(path)) as f:
        raw = yaml.safe_load(f) or {}
    raw = _walk_and_expand(raw)

    settings = Settings.model_validate(raw)
    _resolve_devices(settings)
    return settings


def _resolve_credentials(
    all_creds: dict[str, CredentialConfig],
    name: str,
    context: str,
) -> CredentialConfig:
    """Look up a named credential set, raising ValueError if missing."""
    if name not in all_creds:
        raise ValueError(
            f"Unknown credential reference '{name}' in {context}"
        )
    return all_creds[name]


def _merge_device_credentials(
    all_creds: dict[str, CredentialConfig],
    dev: DeviceConfig,
) -> dict[str, str | None]:
    """Merge credentials: defaults → device creds ref → device explicit
    fields.  Returns dict of credential fields."""
    merged: dict[str, str | None] = {
        "username": "admin",
        "password": None,
    }

    if dev.credentials:
        ref = _resolve_credentials(all_creds, dev.credentials, f"device '{dev.name}'")
        for field in ("username", "password"):
            val = getattr(ref, field)
            if val is not None:
                merged[field] = val

    for field in ("username", "password"):
        val = getattr(dev, field)
        if val is not None:
            merged[field] = val

    return merged


def _resolve_devices(settings: Settings) -> None:
    """Validate device names and fill in credentials and timeouts in place."""
    seen_names: set[str] = set()
    for dev in settings.devices:
        if dev.name in seen_names:
            raise ValueError(f"Duplicate device name '{dev.name}' in config")
        seen_names.add(dev.name)

        creds = _merge_device_credentials(settings.credentials, dev)
        dev.username = creds["username"]
        dev.password = creds["password"]
        if dev.timeout is None:
            dev.timeout = settings.timeout
