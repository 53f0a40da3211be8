"""Items to import into Terraform and filters over lists of them."""

from __future__ import annotations

from dataclasses import dataclass, field

from .resourceid import ResourceId
from .tfaddr import TFAddr


@dataclass
class ImportItem:
    """An Azure resource and the Terraform resource it is imported as."""

    azure_resource_id: ResourceId | None = None
    tf_resource_id: str = ""
    import_error: Exception | None = None
    imported: bool = False
    validate_error: Exception | None = None
    tf_addr: TFAddr = field(default_factory=TFAddr)
    tf_addr_cache: TFAddr = field(default_factory=TFAddr)
    is_recommended: bool = False
    recommendations: list[str] = field(default_factory=list)

    def skip(self) -> bool:
        """Whether the item is skipped, i.e. has no Terraform resource type."""
        return self.tf_addr.type == ""


class ImportList(list):
    """A list of import items with filtering helpers."""

    def skipped(self) -> ImportList:
        return ImportList(item for item in self if item.skip())

    def non_skipped(self) -> ImportList:
        return ImportList(item for item in self if not item.skip())

    def import_errored(self) -> ImportList:
        return ImportList(item for item in self if item.import_error is not None)

    def imported(self) -> ImportList:
        return ImportList(item for item in self if item.imported)