"""Parsing and manipulation of Azure Resource Manager resource ids."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ResourceIdError(ValueError):
    """Raised when a resource id cannot be parsed or manipulated."""


class Kind(Enum):
    TENANT = "tenant"
    SUBSCRIPTION = "subscription"
    RESOURCE_GROUP = "resource_group"
    MANAGEMENT_GROUP = "management_group"
    SCOPED = "scoped"


@dataclass(frozen=True, eq=False)
class ResourceId:
    """An Azure resource id: either a root scope or a resource under a scope.

    Equality and hashing ignore letter case, as Azure does.
    """

    kind: Kind
    subscription_id: str = ""
    name: str = ""
    scope: ResourceId | None = None
    provider: str = ""
    attr_types: tuple[str, ...] = ()
    attr_names: tuple[str, ...] = ()

    @classmethod
    def tenant(cls) -> ResourceId:
        return cls(Kind.TENANT)

    @classmethod
    def subscription(cls, subscription_id: str) -> ResourceId:
        return cls(Kind.SUBSCRIPTION, subscription_id=subscription_id)

    @classmethod
    def resource_group(cls, subscription_id: str, name: str) -> ResourceId:
        return cls(Kind.RESOURCE_GROUP, subscription_id=subscription_id, name=name)

    @classmethod
    def management_group(cls, name: str) -> ResourceId:
        return cls(Kind.MANAGEMENT_GROUP, name=name)

    @classmethod
    def scoped(cls, scope, provider, attr_types, attr_names) -> ResourceId:
        attr_types = tuple(attr_types)
        attr_names = tuple(attr_names)
        if not attr_types or len(attr_types) != len(attr_names):
            raise ResourceIdError("resource types and names must be non-empty and paired")
        return cls(
            Kind.SCOPED,
            scope=scope,
            provider=provider,
            attr_types=attr_types,
            attr_names=attr_names,
        )

    def __str__(self) -> str:
        match self.kind:
            case Kind.TENANT:
                return "/"
            case Kind.SUBSCRIPTION:
                return f"/subscriptions/{self.subscription_id}"
            case Kind.RESOURCE_GROUP:
                return f"/subscriptions/{self.subscription_id}/resourceGroups/{self.name}"
            case Kind.MANAGEMENT_GROUP:
                return f"/providers/Microsoft.Management/managementGroups/{self.name}"
        prefix = "" if self.scope is None or self.scope.kind is Kind.TENANT else str(self.scope)
        route = "/".join(f"{t}/{n}" for t, n in zip(self.attr_types, self.attr_names))
        return f"{prefix}/providers/{self.provider}/{route}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceId):
            return NotImplemented
        return str(self).upper() == str(other).upper()

    def __hash__(self) -> int:
        return hash(str(self).upper())

    def __repr__(self) -> str:
        return f"ResourceId({str(self)!r})"

    def parent(self) -> ResourceId | None:
        """The parent resource, or None for root scopes and root-scoped resources."""
        if self.kind is not Kind.SCOPED or len(self.attr_types) <= 1:
            return None
        return ResourceId.scoped(
            self.scope, self.provider, self.attr_types[:-1], self.attr_names[:-1]
        )

    def parent_scope(self) -> ResourceId | None:
        """The scope this id lives in, or None for the tenant."""
        match self.kind:
            case Kind.TENANT:
                return None
            case Kind.SUBSCRIPTION | Kind.MANAGEMENT_GROUP:
                return ResourceId.tenant()
            case Kind.RESOURCE_GROUP:
                return ResourceId.subscription(self.subscription_id)
        return self.scope

    def type_string(self) -> str:
        """The resource type, e.g. ``Microsoft.Network/virtualNetworks``."""
        match self.kind:
            case Kind.TENANT:
                return "Microsoft.Resources/tenants"
            case Kind.SUBSCRIPTION:
                return "Microsoft.Resources/subscriptions"
            case Kind.RESOURCE_GROUP:
                return "Microsoft.Resources/resourceGroups"
            case Kind.MANAGEMENT_GROUP:
                return "Microsoft.Management/managementGroups"
        return "/".join((self.provider, *self.attr_types))

    def route_scope_string(self) -> str:
        """The provider and types without the scope, e.g. ``/Microsoft.KeyVault/vaults/keys``."""
        if self.kind is Kind.TENANT:
            return "/"
        return "/" + self.type_string()

    def names(self) -> tuple[str, ...]:
        """The names of the resource path segments."""
        match self.kind:
            case Kind.TENANT:
                return ()
            case Kind.SUBSCRIPTION:
                return (self.subscription_id,)
            case Kind.RESOURCE_GROUP | Kind.MANAGEMENT_GROUP:
                return (self.name,)
        return self.attr_names

    def with_last_type(self, type_name: str) -> ResourceId:
        """A copy of this resource id whose last resource type is replaced."""
        if self.kind is not Kind.SCOPED:
            raise ResourceIdError(f"{self} is a root scope and has no resource type to replace")
        return ResourceId.scoped(
            self.scope, self.provider, (*self.attr_types[:-1], type_name), self.attr_names
        )


def _parse_root_scope(segs: list[str], text: str) -> tuple[ResourceId, int]:
    lowered = [s.lower() for s in segs]
    if lowered[0] == "subscriptions":
        if len(segs) < 2:
            raise ResourceIdError(f"missing subscription id in {text!r}")
        if len(segs) >= 3 and lowered[2] == "resourcegroups":
            if len(segs) < 4:
                raise ResourceIdError(f"missing resource group name in {text!r}")
            return ResourceId.resource_group(segs[1], segs[3]), 4
        return ResourceId.subscription(segs[1]), 2
    if lowered[:3] == ["providers", "microsoft.management", "managementgroups"]:
        if len(segs) < 4:
            raise ResourceIdError(f"missing management group name in {text!r}")
        return ResourceId.management_group(segs[3]), 4
    return ResourceId.tenant(), 0


def _parse_scoped(scope: ResourceId, segs: list[str], pos: int, text: str) -> tuple[ResourceId, int]:
    if segs[pos].lower() != "providers":
        raise ResourceIdError(f"expect a 'providers' segment at {segs[pos]!r} in {text!r}")
    if pos + 1 >= len(segs):
        raise ResourceIdError(f"missing provider namespace in {text!r}")
    provider = segs[pos + 1]
    pos += 2
    types: list[str] = []
    names: list[str] = []
    while pos < len(segs) and segs[pos].lower() != "providers":
        if pos + 1 >= len(segs):
            raise ResourceIdError(f"missing name for resource type {segs[pos]!r} in {text!r}")
        types.append(segs[pos])
        names.append(segs[pos + 1])
        pos += 2
    if not types:
        raise ResourceIdError(f"missing resource type under provider {provider!r} in {text!r}")
    return ResourceId.scoped(scope, provider, types, names), pos


def parse_resource_id(id: str) -> ResourceId:
    """Parse an Azure resource id string.

    Raises ResourceIdError if the id is malformed.
    """
    if not id.startswith("/"):
        raise ResourceIdError(f"resource id should start with '/': {id!r}")
    if id == "/":
        return ResourceId.tenant()
    segs = id[1:].split("/")
    if any(not seg for seg in segs):
        raise ResourceIdError(f"resource id has an empty segment: {id!r}")
    scope, pos = _parse_root_scope(segs, id)
    while pos < len(segs):
        scope, pos = _parse_scoped(scope, segs, pos, id)
    return scope