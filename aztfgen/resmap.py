"""The resource mapping file: Azure resource ids mapped to Terraform resources."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

_FIELDS = ("resource_id", "resource_type", "resource_name")


@dataclass(frozen=True)
class ResourceMapEntity:
    """A Terraform resource: its id, type and name."""

    resource_id: str = ""
    resource_type: str = ""
    resource_name: str = ""


def parse_resource_mapping(text: str | bytes) -> dict[str, ResourceMapEntity]:
    """Parse the JSON text of a resource mapping file.

    Raises ValueError if the text is not a valid mapping.
    """
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("resource mapping must be a JSON object")
    mapping: dict[str, ResourceMapEntity] = {}
    for azure_id, entry in data.items():
        if entry is None:
            mapping[azure_id] = ResourceMapEntity()
            continue
        if not isinstance(entry, dict):
            raise ValueError(f"entry of {azure_id!r} must be a JSON object")
        values = {}
        for field in _FIELDS:
            value = entry.get(field)
            if value is None:
                value = ""
            elif not isinstance(value, str):
                raise ValueError(f"field {field!r} of {azure_id!r} must be a string")
            values[field] = value
        mapping[azure_id] = ResourceMapEntity(**values)
    return mapping


def dump_resource_mapping(mapping: dict[str, ResourceMapEntity]) -> str:
    """Render a resource mapping as tab-indented JSON with sorted keys."""
    data = {
        azure_id: {field: getattr(entity, field) for field in _FIELDS}
        for azure_id, entity in mapping.items()
    }
    return json.dumps(data, indent="\t", sort_keys=True, ensure_ascii=False)


def load_resource_mapping(path: str | Path) -> dict[str, ResourceMapEntity]:
    """Read and parse a resource mapping file."""
    return parse_resource_mapping(Path(path).read_bytes())