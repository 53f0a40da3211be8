"""Sets of Azure resources and their mapping to Terraform resources."""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from .resourceid import ResourceId, parse_resource_id

log = logging.getLogger(__name__)

_MISSING = object()

POPULATE_RESOURCE_TYPES = {"MICROSOFT.COMPUTE/VIRTUALMACHINES": True}

_KEYVAULT_ROUTES = ("/Microsoft.KeyVault/vaults/keys", "/Microsoft.KeyVault/vaults/secrets")
_VM_ROUTE = "/MICROSOFT.COMPUTE/VIRTUALMACHINES"
_VM_DATA_DISK_PATH = "properties.storageProfile.dataDisks.#.managedDisk.id"

Query = Callable[[str], "tuple[Sequence[tuple[ResourceId, str]], Sequence[str], bool]"]


@dataclass
class AzureResource:
    """An Azure resource and its (optional) properties."""

    id: ResourceId
    properties: dict[str, Any] | None = None


@dataclass
class TFResource:
    """An Azure resource with the Terraform resource id and type it maps to."""

    azure_id: ResourceId
    tf_id: str = ""
    tf_type: str = ""


def _get_path(data: Any, parts: list[str]) -> Any:
    if not parts:
        return data
    head, rest = parts[0], parts[1:]
    if head == "#":
        if not isinstance(data, list):
            return _MISSING
        if not rest:
            return len(data)
        values = (_get_path(element, rest) for element in data)
        return [value for value in values if value is not _MISSING]
    if isinstance(data, dict):
        return _get_path(data[head], rest) if head in data else _MISSING
    if isinstance(data, list) and head.isdigit() and int(head) < len(data):
        return _get_path(data[int(head)], rest)
    return _MISSING


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value)


def populate_managed_resources_by_path(res: AzureResource, *args: str) -> list[AzureResource]:
    """The resources whose ids are found at the given paths of the properties.

    A ``#`` path segment collects from every element of an array.
    Raises ValueError if a found id cannot be parsed.
    """
    resources: list[AzureResource] = []
    for path in args:
        result = _get_path(res.properties, path.split("."))
        if result is _MISSING:
            continue
        values = result if isinstance(result, list) else ([] if result is None else [result])
        for value in values:
            mid = _as_text(value)
            try:
                resources.append(AzureResource(id=parse_resource_id(mid)))
            except ValueError as err:
                raise ValueError(f"parsing managed resource id {mid}: {err}") from err
    return resources


@dataclass
class AzureResourceSet:
    """A collection of Azure resources to be mapped to Terraform resources."""

    resources: list[AzureResource] = field(default_factory=list)

    def populate_resource(self) -> None:
        """Add resources managed by others that a listing misses (e.g. VM data disks)."""
        self._populate_for_virtual_machine()

    def reduce_resource(self) -> None:
        """Merge resources that map to a single Terraform resource (key vault certificates)."""
        self._reduce_for_key_vault_certificate()

    def _reduce_for_key_vault_certificate(self) -> None:
        kept: list[AzureResource] = []
        pending: dict[str, AzureResource] = {}
        for res in self.resources:
            route = res.id.route_scope_string().casefold()
            if route not in (r.casefold() for r in _KEYVAULT_ROUTES):
                kept.append(res)
                continue
            cert_name = res.id.names()[-1]
            if cert_name not in pending:
                pending[cert_name] = res
                continue
            del pending[cert_name]
            kept.append(AzureResource(id=res.id.with_last_type("certificates")))
        kept.extend(pending.values())
        self.resources = kept

    def _populate_for_virtual_machine(self) -> None:
        for res in list(self.resources):
            if res.id.route_scope_string().upper() != _VM_ROUTE:
                continue
            try:
                disks = populate_managed_resources_by_path(res, _VM_DATA_DISK_PATH)
            except ValueError as err:
                raise ValueError(f'populating managed disks for "{res.id}": {err}') from err
            self.resources.extend(disks)

    def to_tf_resources(self, parallelism: int, query: Query) -> list[TFResource]:
        """Resolve every resource to Terraform resources, sorted by Azure id.

        ``query`` takes an Azure id and returns the matched ``(azure_id, tf_type)``
        pairs, the Terraform ids and whether the match is exact. Resources that
        fail to resolve keep their Azure id as the Terraform id and no type.
        """
        if parallelism < 1:
            raise ValueError("parallelism must be at least 1")

        def resolve(res: AzureResource) -> list[TFResource]:
            fallback = [TFResource(azure_id=res.id, tf_id=str(res.id))]
            try:
                tftypes, tfids, exact = query(str(res.id))
            except Exception as err:  # noqa: BLE001 - a failed lookup is not fatal
                log.warning("Failed to query resource type for %s: %s", res.id, err)
                return fallback
            if not exact:
                log.warning("No query result for resource type and TF id for %s", res.id)
                return fallback
            return [
                TFResource(azure_id=azure_id, tf_id=tf_id, tf_type=tf_type)
                for (azure_id, tf_type), tf_id in zip(tftypes, tfids)
            ]

        with ThreadPoolExecutor(max_workers=parallelism) as executor:
            groups = list(executor.map(resolve, self.resources))
        out = [resource for group in groups for resource in group]
        out.sort(key=lambda resource: str(resource.azure_id))
        return out