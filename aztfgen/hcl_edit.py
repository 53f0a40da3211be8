"""A small HCL body model used to add meta arguments to generated resources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Union

_INDENT = "  "
_OPENERS = "([{"
_CLOSERS = ")]}"


@dataclass
class _Attribute:
    name: str
    expr: str

    def is_multiline(self) -> bool:
        return "\n" in self.expr.strip()


def _bracket_delta(line: str) -> int:
    """Net count of opened brackets on a line, ignoring strings and comments."""
    delta = 0
    in_string = False
    pos = 0
    while pos < len(line):
        c = line[pos]
        if in_string:
            if c == "\\":
                pos += 2
                continue
            if c == '"':
                in_string = False
        elif c == '"':
            in_string = True
        elif c == "#" or line.startswith("//", pos):
            break
        elif c in _OPENERS:
            delta += 1
        elif c in _CLOSERS:
            delta -= 1
        pos += 1
    return delta


def _leading_closers(line: str) -> int:
    count = 0
    for c in line:
        if c not in _CLOSERS:
            break
        count += 1
    return count


def _attribute_lines(attr: _Attribute, width: int, indent: int) -> list[str]:
    pad = _INDENT * indent
    expr_lines = attr.expr.strip().split("\n")
    first = expr_lines[0].strip()
    out = [f"{pad}{attr.name.ljust(width)} = {first}\n"]
    depth = _bracket_delta(first)
    for raw in expr_lines[1:]:
        line = raw.strip()
        if not line:
            out.append("\n")
            continue
        level = max(depth - _leading_closers(line), 0)
        out.append(f"{pad}{_INDENT * level}{line}\n")
        depth += _bracket_delta(line)
    return out


@dataclass
class Body:
    """The attributes and nested blocks of an HCL body, in order."""

    items: list[Union[_Attribute, "Block"]] = field(default_factory=list)

    def set_attribute_raw(self, name: str, expr: str) -> None:
        """Set an attribute to a raw expression, replacing any attribute of that name."""
        for index, item in enumerate(self.items):
            if isinstance(item, _Attribute) and item.name == name:
                self.items[index] = _Attribute(name, expr)
                return
        self.items.append(_Attribute(name, expr))

    def append_block(self, block: Block) -> Block:
        """Append a nested block to the body."""
        self.items.append(block)
        return block

    @property
    def attributes(self) -> dict[str, str]:
        return {item.name: item.expr for item in self.items if isinstance(item, _Attribute)}

    @property
    def blocks(self) -> list[Block]:
        return [item for item in self.items if isinstance(item, Block)]

    def render(self) -> str:
        """Render the body as formatted HCL."""
        return "".join(self._lines(0))

    def _lines(self, indent: int) -> list[str]:
        out: list[str] = []
        group: list[_Attribute] = []

        def flush() -> None:
            if group:
                width = max(len(attr.name) for attr in group)
                for attr in group:
                    out.extend(_attribute_lines(attr, width, indent))
                group.clear()

        for item in self.items:
            if isinstance(item, _Attribute):
                group.append(item)
                if item.is_multiline():
                    flush()
            else:
                flush()
                out.extend(item._lines(indent))
        flush()
        return out


@dataclass
class Block:
    """A named HCL block with optional labels."""

    type: str
    labels: tuple[str, ...] = ()
    body: Body = field(default_factory=Body)

    def _lines(self, indent: int) -> list[str]:
        pad = _INDENT * indent
        labels = "".join(f' "{label}"' for label in self.labels)
        return [f"{pad}{self.type}{labels} {{\n", *self.body._lines(indent + 1), f"{pad}}}\n"]


def append_dependency(body: Body, deps: Iterable, cfgset: Mapping) -> None:
    """Add a ``depends_on`` attribute for the dependencies to the body.

    ``cfgset`` maps Azure resource ids to configs carrying a ``tf_addr``.
    """

    def addr_of(azure_id: str) -> str:
        cfg = cfgset.get(azure_id)
        return "" if cfg is None else str(cfg.tf_addr)

    dependencies: list[str] = []
    for dep in deps:
        candidates = list(dep.candidates)
        if len(candidates) > 1:
            joined = ",".join(addr_of(azure_id) for azure_id in candidates)
            dependencies.append(
                f"# One of {joined} (can't auto-resolve as their ids are identical)"
            )
            continue
        dependencies.append(addr_of(candidates[0]) + ",")
    if dependencies:
        body.set_attribute_raw("depends_on", "[\n" + "\n".join(dependencies) + "\n]")


def append_lifecycle(body: Body, ignore_changes: Iterable[str] | None) -> None:
    """Append a ``lifecycle`` block ignoring changes of the given attributes."""
    entries = [f"{name}," for name in ignore_changes or ()]
    if not entries:
        return
    block = Block("lifecycle")
    block.body.set_attribute_raw("ignore_changes", "[\n" + "\n".join(entries) + "\n]")
    body.append_block(block)