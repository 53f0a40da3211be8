"""Terraform resource addresses of the form ``<type>.<name>``."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TFAddr:
    """A Terraform resource address made of a resource type and a name."""

    type: str = ""
    name: str = ""

    def __str__(self) -> str:
        if not self.type:
            return ""
        return f"{self.type}.{self.name}"


def parse_tf_resource_addr(v: str) -> TFAddr:
    """Parse ``<type>.<name>`` into a :class:`TFAddr`.

    Raises ValueError if the address is malformed.
    """
    segs = v.split(".")
    if len(segs) != 2 or not segs[0] or not segs[1]:
        raise ValueError(f"malformed resource address: {v}")
    return TFAddr(type=segs[0], name=segs[1])