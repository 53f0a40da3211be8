"""Building import lists from the different ways of selecting resources."""

from __future__ import annotations

import json
import time
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .importlist import ImportItem, ImportList
from .resmap import load_resource_mapping
from .resourceid import parse_resource_id
from .resourceset import TFResource
from .tfaddr import TFAddr


def list_from_mapping_file(path: str | Path) -> ImportList:
    """Read a resource mapping file into an import list sorted by Azure id.

    Raises OSError if the file cannot be read and ValueError if its content
    or one of its resource ids is malformed.
    """
    try:
        mapping = load_resource_mapping(path)
    except OSError as err:
        raise OSError(f"reading mapping file {path}: {err}") from err
    except ValueError as err:
        raise ValueError(f"unmarshalling the mapping file: {err}") from err

    items = ImportList()
    for azure_id, entity in mapping.items():
        try:
            resource_id = parse_resource_id(azure_id)
        except ValueError as err:
            raise ValueError(f'parsing resource id "{azure_id}": {err}') from err
        addr = TFAddr(type=entity.resource_type, name=entity.resource_name)
        items.append(
            ImportItem(
                azure_resource_id=resource_id,
                tf_resource_id=entity.resource_id,
                tf_addr=addr,
                tf_addr_cache=addr,
                recommendations=[entity.resource_type],
            )
        )
    items.sort(key=lambda item: str(item.azure_resource_id))
    return items


def import_list_from_resources(
    resources: Iterable[TFResource], prefix: str, suffix: str
) -> ImportList:
    """Turn resolved resources into import items named ``<prefix><index><suffix>``.

    Resources with a known Terraform type get it as their recommended type;
    the others are left to be skipped.
    """
    items = ImportList()
    for index, res in enumerate(resources):
        name = f"{prefix}{index}{suffix}"
        item = ImportItem(
            azure_resource_id=res.azure_id,
            tf_resource_id=res.tf_id,
            tf_addr=TFAddr(type="", name=name),
            tf_addr_cache=TFAddr(type="", name=name),
        )
        if res.tf_type:
            item.recommendations = [res.tf_type]
            item.tf_addr = TFAddr(type=res.tf_type, name=name)
            item.tf_addr_cache = TFAddr(type=res.tf_type, name=name)
            item.is_recommended = True
        items.append(item)
    return items


def import_list_for_single_resource(
    resources: Iterable[TFResource], resource_name: str
) -> ImportList:
    """Turn the resources resolved from one Azure resource into import items.

    All items share ``resource_name``; further resources of an already seen
    Terraform type get ``-1``, ``-2``, ... appended to avoid address conflicts.
    """
    seen: Counter[str] = Counter()
    items = ImportList()
    for res in resources:
        seen[res.tf_type] += 1
        name = resource_name
        if seen[res.tf_type] > 1:
            name += f"-{seen[res.tf_type] - 1}"
        addr = TFAddr(type=res.tf_type, name=name)
        items.append(
            ImportItem(
                azure_resource_id=res.azure_id,
                tf_resource_id=res.tf_id,
                tf_addr=addr,
                tf_addr_cache=addr,
            )
        )
    return items


def query_scope_name(predicate: str, recursive: bool) -> str:
    """The display name of a query scope."""
    if recursive:
        return predicate + " (recursive)"
    return predicate


_DUMMY_SUBSCRIPTION = "/subscriptions/0000000-0000-0000-0000-00000000000"
_DUMMY_RESOURCE_IDS = (
    f"{_DUMMY_SUBSCRIPTION}/resourceGroups/example-rg/providers/Microsoft.Network/virtualNetworks/example-network",
    f"{_DUMMY_SUBSCRIPTION}/resourceGroups/example-rg/providers/Microsoft.Compute/virtualMachines/example-machine",
    f"{_DUMMY_SUBSCRIPTION}/resourceGroups/example-rg/providers/Microsoft.Network/networkInterfaces/example-nic",
    f"{_DUMMY_SUBSCRIPTION}/resourceGroups/example-rg/providers/Microsoft.Network/virtualNetworks/example-network/subnets/internal",
    f"{_DUMMY_SUBSCRIPTION}/resourceGroups/example-rg",
)


@dataclass
class DummyMeta:
    """A stand-in for a resource group workspace that only pretends to work.

    ``pause`` is the time in seconds a short step takes; long steps take twice as long.
    """

    rg: str
    pause: float = 0.5

    def _wait(self, factor: float = 1.0) -> None:
        if self.pause > 0:
            time.sleep(self.pause * factor)

    def scope_name(self) -> str:
        return self.rg

    def workspace(self) -> str:
        return "example-workspace"

    def init(self) -> None:
        self._wait()

    def deinit(self) -> None:
        self._wait()

    def list_resource(self) -> ImportList:
        self._wait()
        return ImportList(ImportItem(tf_resource_id=rid) for rid in _DUMMY_RESOURCE_IDS)

    def parallel_import(self, items) -> None:
        self._wait(2)

    def push_state(self) -> None:
        self._wait(2)

    def generate_cfg(self, items) -> None:
        self._wait()

    def export_resource_mapping(self, items) -> None:
        self._wait()

    def export_skipped_resources(self, items) -> None:
        self._wait()

    def clean_up_workspace(self) -> None:
        self._wait()


def _mapping_json(entries: dict[str, dict[str, str]]) -> str:
    return json.dumps(entries)