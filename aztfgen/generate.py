"""Steps that turn imported state into generated Terraform configuration."""

from __future__ import annotations

import difflib
import json
from pathlib import Path
from typing import Any, Iterable

from . import config_info as _config_info
from .config_info import ConfigInfo
from .hcl_edit import append_dependency, append_lifecycle

_LOCK_ACQUIRE_PREFIX = "Acquiring state lock."
_LOCK_RELEASE_PREFIX = "Releasing state lock."

# Resource types that need lifecycle meta arguments to be usable, and the
# attributes whose changes they ignore.
_LIFECYCLE_IGNORE_CHANGES = {
    "azurerm_application_insights_web_test": ["tags"],
}


class StateError(Exception):
    """Raised when Terraform state cannot be merged or has changed out of band."""


def cleanup_terraform_add(tpl: str) -> str:
    """Strip the state lock messages around configuration printed by Terraform."""
    segs = tpl.split("\n")
    start = 0
    while start < len(segs) and segs[start].startswith(_LOCK_ACQUIRE_PREFIX):
        start += 1
    segs = segs[start:]
    while segs and (segs[-1] == "" or segs[-1].startswith(_LOCK_RELEASE_PREFIX)):
        segs.pop()
    return "\n".join(segs)


def append_to_file(path: str | Path, content: str) -> None:
    """Append text to a file, creating it if needed."""
    with open(path, "a", encoding="utf-8") as f:
        f.write(content)


def create_module_hierarchy(base_dir: str | Path, module_addr: str) -> Path:
    """Create nested local modules so resources get the given module address.

    Returns the directory of the innermost module (``base_dir`` itself if
    ``module_addr`` is empty).
    """
    module_names = module_addr.split(".")[1::2] if module_addr else []
    mdir = Path(base_dir)
    for name in module_names:
        (mdir / "main.tf").write_text(
            f'module "{name}" {{\n  source = "./{name}"\n}}\n', encoding="utf-8"
        )
        mdir = mdir / name
        mdir.mkdir(mode=0o750)
    return mdir


def _load_state(state: str | bytes | dict) -> dict[str, Any]:
    if isinstance(state, dict):
        return state
    try:
        data = json.loads(state)
    except (json.JSONDecodeError, UnicodeDecodeError) as err:
        raise StateError(f"failed to unmarshal state file: {err}") from err
    if not isinstance(data, dict):
        raise StateError("failed to unmarshal state file: expected a JSON object")
    return data


def _resources(state: dict[str, Any]) -> list:
    resources = state.get("resources")
    if not isinstance(resources, list):
        raise StateError("state has no list of resources")
    return resources


def merge_state_documents(states: Iterable[str | bytes | dict]) -> dict[str, Any] | None:
    """Merge state documents by appending their resources to the first one.

    Returns None if there is no state to merge.
    """
    merged: dict[str, Any] | None = None
    for state in states:
        doc = _load_state(state)
        if merged is None:
            merged = doc
            continue
        merged["resources"] = _resources(merged) + _resources(doc)
    return merged


def append_state(base_state: str | bytes | None, new_state: dict[str, Any]) -> bytes:
    """Append the resources of ``new_state`` to ``base_state``; return the JSON bytes."""
    if not base_state:
        result = new_state
    else:
        try:
            result = _load_state(base_state)
        except StateError as err:
            raise StateError(f"unmarshalling the base state at the end of import: {err}") from err
        result["resources"] = _resources(result) + _resources(new_state)
    return json.dumps(result, sort_keys=True, separators=(",", ":")).encode("utf-8")


def _text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def check_out_of_band(origin: str | bytes | None, current: str | bytes | None) -> None:
    """Raise StateError with a unified diff if the state changed since it was pulled."""
    origin_text, current_text = _text(origin), _text(current)
    if origin_text == current_text:
        return
    diff = "".join(
        difflib.unified_diff(
            origin_text.splitlines(keepends=True),
            current_text.splitlines(keepends=True),
            fromfile="origin.tfstate",
            tofile="current.tfstate",
        )
    )
    raise StateError(f"there is out-of-band changes on the state file during running:\n{diff}")


def lifecycle_addon(configs: list[ConfigInfo]) -> list[ConfigInfo]:
    """Add the lifecycle meta arguments some resource types need to be usable."""
    for cfg in configs:
        ignore_changes = _LIFECYCLE_IGNORE_CHANGES.get(cfg.tf_addr.type)
        if ignore_changes:
            append_lifecycle(cfg.body, list(ignore_changes))
    return list(configs)


def add_dependency(configs: list[ConfigInfo]) -> list[ConfigInfo]:
    """Work out the dependencies of the configs and add ``depends_on`` to each."""
    _config_info.add_dependency(configs)
    config_set = {str(cfg.azure_resource_id): cfg for cfg in configs}
    for cfg in configs:
        if cfg.depends_on:
            append_dependency(cfg.body, cfg.depends_on, config_set)
    return list(configs)


def generate_config(path: str | Path, configs: Iterable[ConfigInfo]) -> str:
    """Append the configuration of every config to the file; return what was written."""
    content = "".join(cfg.dump_hcl() + "\n" for cfg in configs)
    try:
        append_to_file(path, content)
    except OSError as err:
        raise OSError(f"generating main configuration file: {err}") from err
    return content