"""The user configuration file and the installation id of Azure tooling."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

CFG_DIR_NAME = ".aztfy"
CFG_FILE_NAME = "config.json"

_BOM = b"\xef\xbb\xbf"
_MISSING = object()


class ConfigError(Exception):
    """Raised when the configuration cannot be read, updated or written."""


@dataclass(frozen=True)
class Configuration:
    """The persisted user configuration."""

    installation_id: str = ""
    telemetry_enabled: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "installation_id": self.installation_id,
            "telemetry_enabled": self.telemetry_enabled,
        }


def _field(obj: dict, name: str) -> Any:
    if name in obj:
        return obj[name]
    folded = name.casefold()
    for key, value in obj.items():
        if key.casefold() == folded:
            return value
    return None


def _configuration_from_json(data: Any) -> Configuration:
    if not isinstance(data, dict):
        raise ConfigError(f"cannot unmarshal {type(data).__name__} into a configuration")
    installation_id = _field(data, "installation_id")
    if installation_id is None:
        installation_id = ""
    elif not isinstance(installation_id, str):
        raise ConfigError("installation_id must be a string")
    telemetry_enabled = _field(data, "telemetry_enabled")
    if telemetry_enabled is None:
        telemetry_enabled = False
    elif not isinstance(telemetry_enabled, bool):
        raise ConfigError("telemetry_enabled must be a boolean")
    return Configuration(installation_id=installation_id, telemetry_enabled=telemetry_enabled)


def _home(home: str | Path | None) -> Path:
    if home is not None:
        return Path(home)
    try:
        return Path.home()
    except RuntimeError as err:
        raise ConfigError(f"retrieving the user's HOME directory: {err}") from err


def _lookup(data: Any, path: str) -> Any:
    current = data
    for part in path.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return _MISSING
    return current


def _assign(data: Any, path: str, value: Any) -> None:
    *parents, last = path.split(".")
    target = data
    for part in parents:
        target = target[int(part)] if isinstance(target, list) else target[part]
    if isinstance(target, list):
        target[int(last)] = value
    else:
        target[last] = value


def config_path(home: str | Path | None = None) -> Path:
    """The path of the configuration file under the given (or the user's) home."""
    return _home(home) / CFG_DIR_NAME / CFG_FILE_NAME


def _read_config_text(home: str | Path | None, action: str) -> str:
    path = config_path(home)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigError(f"{action} config: {err}") from err


def get_key(key: str, home: str | Path | None = None) -> Any:
    """Return the value at a dotted key path of the configuration file."""
    text = _read_config_text(home, "opening")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as err:
        raise ConfigError(f"reading config: {err}") from err
    value = _lookup(data, key)
    if value is _MISSING:
        raise ConfigError("invalid key")
    return value


def set_key(key: str, value: str, home: str | Path | None = None) -> None:
    """Set a key of the configuration file to a JSON-encoded value."""
    path = config_path(home)
    text = _read_config_text(home, "reading")
    try:
        cfg = _configuration_from_json(json.loads(text))
    except (json.JSONDecodeError, ConfigError) as err:
        raise ConfigError(f"unmarshalling the config: {err}") from err
    new_cfg = update_configuration(cfg, key, value)
    content = json.dumps(new_cfg.to_dict(), separators=(",", ":"))
    try:
        with path.open("r+", encoding="utf-8") as f:
            f.truncate(0)
            f.write(content)
    except OSError as err:
        raise ConfigError(f"writing config: {err}") from err


def get_config(home: str | Path | None = None) -> Configuration:
    """Read the configuration file."""
    text = _read_config_text(home, "opening")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as err:
        raise ConfigError(f"reading config: {err}") from err
    return _configuration_from_json(data)


def update_configuration(old: Configuration, key: str, value: str) -> Configuration:
    """Return a copy of ``old`` with ``key`` set to the JSON-encoded ``value``."""
    data = old.to_dict()
    try:
        decoded = json.loads(value)
    except json.JSONDecodeError as err:
        raise ConfigError(f"unmarshalling the value: {err}") from err
    if _lookup(data, key) is _MISSING:
        raise ConfigError(f'invalid key "{key}"')
    _assign(data, key, decoded)
    try:
        return _configuration_from_json(data)
    except ConfigError as err:
        raise ConfigError(f"unmarshalling the new configuration: {err}") from err


def _read_profile(path: Path) -> Any:
    try:
        raw = path.read_bytes()
    except OSError as err:
        raise ConfigError(f"reading {path}: {err}") from err
    try:
        data = json.loads(raw.removeprefix(_BOM))
    except (json.JSONDecodeError, UnicodeDecodeError) as err:
        raise ConfigError(f"unmarshalling the file: {err}") from err
    if not isinstance(data, dict):
        raise ConfigError("unmarshalling the file: expected a JSON object")
    return data


def _installation_id(value: Any) -> str:
    if value is not None and not isinstance(value, str):
        raise ConfigError("unmarshalling the file: installation id must be a string")
    if not value:
        raise ConfigError("no installation id found")
    return value


def get_installation_id_from_cli(home: str | Path | None = None) -> str:
    """The installation id recorded by the Azure command line tool."""
    data = _read_profile(_home(home) / ".azure" / "azureProfile.json")
    return _installation_id(_field(data, "installationId"))


def get_installation_id_from_pwsh(home: str | Path | None = None) -> str:
    """The installation id recorded by the Azure PowerShell module."""
    data = _read_profile(_home(home) / ".azure" / "AzureRmContextSettings.json")
    settings = _field(data, "Settings")
    if settings is None:
        settings = {}
    elif not isinstance(settings, dict):
        raise ConfigError("unmarshalling the file: Settings must be a JSON object")
    return _installation_id(_field(settings, "InstallationId"))