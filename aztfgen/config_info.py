"""Generated resource configurations and the dependencies between them."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator

from .hcl_edit import Body
from .importlist import ImportItem
from .resourceid import ResourceId
from .tfaddr import TFAddr

_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", '"': '"', "\\": "\\"}
_HEREDOC = re.compile(r"<<(-?)([A-Za-z_][\w-]*)[ \t]*\r?\n")


@dataclass(frozen=True)
class Dependency:
    """A dependency on one resource, or on one of several indistinguishable ones."""

    candidates: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "candidates", tuple(self.candidates))


@dataclass
class ConfigInfo:
    """The generated configuration of an imported item.

    ``hcl`` is the text of the resource block; ``body`` holds content to be
    added at the end of that block.
    """

    item: ImportItem
    hcl: str = ""
    depends_on: list[Dependency] = field(default_factory=list)
    body: Body = field(default_factory=Body)

    @property
    def azure_resource_id(self) -> ResourceId | None:
        return self.item.azure_resource_id

    @property
    def tf_resource_id(self) -> str:
        return self.item.tf_resource_id

    @property
    def tf_addr(self) -> TFAddr:
        return self.item.tf_addr

    def dump_hcl(self) -> str:
        """The resource block text with the added content inserted."""
        extra = self.body.render()
        if not extra:
            return self.hcl
        end = self.hcl.rfind("}")
        if end == -1:
            raise ValueError(f"no block to append to in the configuration of {self.tf_addr}")
        head = self.hcl[:end]
        if not head.endswith("\n"):
            head += "\n"
        indented = "".join(f"  {line}\n" if line else "\n" for line in extra.splitlines())
        return head + indented + self.hcl[end:]


class _LiteralScanner:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.found: list[str] = []

    def scan(self) -> list[str]:
        text = self.text
        while self.pos < len(text):
            c = text[self.pos]
            if c == "#" or text.startswith("//", self.pos):
                newline = text.find("\n", self.pos)
                self.pos = len(text) if newline == -1 else newline + 1
            elif text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                if end == -1:
                    raise ValueError("unterminated comment")
                self.pos = end + 2
            elif c == '"':
                self.pos += 1
                self._quoted()
            elif text.startswith("<<", self.pos):
                match = _HEREDOC.match(text, self.pos)
                if match:
                    self.pos = match.end()
                    self._heredoc(match.group(2))
                else:
                    self.pos += 2
            else:
                self.pos += 1
        return self.found

    def _heredoc(self, marker: str) -> None:
        text = self.text
        while self.pos < len(text):
            newline = text.find("\n", self.pos)
            end = len(text) if newline == -1 else newline
            line = text[self.pos:end]
            self.pos = end + 1
            if line.strip() == marker:
                return
            self.found.append(line + "\n")
        raise ValueError(f"unterminated heredoc {marker!r}")

    def _quoted(self) -> None:
        text = self.text
        buf: list[str] = []
        parts = 0

        def flush() -> None:
            nonlocal parts
            if buf:
                self.found.append("".join(buf))
                buf.clear()
                parts += 1

        while True:
            if self.pos >= len(text) or text[self.pos] == "\n":
                raise ValueError("unterminated string literal")
            c = text[self.pos]
            if c == '"':
                self.pos += 1
                flush()
                if parts == 0:
                    self.found.append("")
                return
            if c == "\\":
                buf.append(self._escape())
            elif text.startswith("$${", self.pos) or text.startswith("%%{", self.pos):
                buf.append(c + "{")
                self.pos += 3
            elif text.startswith("${", self.pos) or text.startswith("%{", self.pos):
                flush()
                parts += 1
                self.pos += 2
                self._interpolation()
            else:
                buf.append(c)
                self.pos += 1

    def _escape(self) -> str:
        text = self.text
        if self.pos + 1 >= len(text):
            raise ValueError("unterminated escape sequence")
        code = text[self.pos + 1]
        if code in _ESCAPES:
            self.pos += 2
            return _ESCAPES[code]
        if code in "uU":
            size = 4 if code == "u" else 8
            digits = text[self.pos + 2:self.pos + 2 + size]
            if len(digits) != size or any(d not in "0123456789abcdefABCDEF" for d in digits):
                raise ValueError(f"invalid unicode escape \\{code}{digits}")
            self.pos += 2 + size
            return chr(int(digits, 16))
        raise ValueError(f"invalid escape sequence \\{code}")

    def _interpolation(self) -> None:
        text = self.text
        depth = 1
        while self.pos < len(text):
            c = text[self.pos]
            if c == '"':
                self.pos += 1
                self._quoted()
                continue
            if c == "{":
                depth += 1
            elif c == "}":
                depth -= 1
                if depth == 0:
                    self.pos += 1
                    return
            self.pos += 1
        raise ValueError("unterminated template interpolation")


def string_literals(hcl_text: str) -> list[str]:
    """All literal string values in HCL text, in order of appearance.

    Raises ValueError if the text has an unterminated string, comment or template.
    """
    return _LiteralScanner(hcl_text).scan()


def _add_parent_child_dependency(configs: list[ConfigInfo]) -> None:
    for cfg in configs:
        azure_id = cfg.azure_resource_id
        parent = azure_id.parent()
        if parent is None:
            parent = azure_id.parent_scope()
            if parent is None:
                continue
        for other in configs:
            if azure_id == other.azure_resource_id:
                continue
            if parent == other.azure_resource_id:
                cfg.depends_on = [Dependency((str(other.azure_resource_id),))]
                break


def _add_reference_dependency(configs: list[ConfigInfo]) -> None:
    by_tf_id: dict[str, list[str]] = {}
    for cfg in configs:
        by_tf_id.setdefault(cfg.tf_resource_id, []).append(str(cfg.azure_resource_id))

    for cfg in configs:
        self_id = str(cfg.azure_resource_id)
        try:
            literals = string_literals(cfg.hcl)
        except ValueError as err:
            raise ValueError(f"parsing hcl for {self_id}: {err}") from err
        for literal in literals:
            depending = by_tf_id.get(literal)
            if depending is None:
                continue
            others = tuple(azure_id for azure_id in depending if azure_id != self_id)
            if others:
                cfg.depends_on.append(Dependency(others))


def _reduce(deps: list[Dependency]) -> list[Dependency]:
    singles = list(dict.fromkeys(dep.candidates[0] for dep in deps if len(dep.candidates) == 1))
    multiples = [dep for dep in deps if len(dep.candidates) != 1]

    upper = {dep: dep.upper() for dep in singles}
    covered = {
        dep
        for dep in singles
        if any(other != dep and upper[other].startswith(upper[dep]) for other in singles)
    }
    singles = [dep for dep in singles if dep not in covered]

    covered = {
        dep
        for dep in singles
        if any(
            all(candidate.upper().startswith(upper[dep]) for candidate in multi.candidates)
            for multi in multiples
        )
    }
    result = multiples + [Dependency((dep,)) for dep in singles if dep not in covered]
    result.sort(key=lambda dep: (len(dep.candidates), "".join(dep.candidates)))
    return result


def add_dependency(configs: list[ConfigInfo]) -> None:
    """Work out the dependencies of each config from parentage and references.

    Each config's ``depends_on`` is updated in place, deduplicated and sorted.
    """
    _add_parent_child_dependency(configs)
    _add_reference_dependency(configs)
    for cfg in configs:
        if cfg.depends_on:
            cfg.depends_on = _reduce(cfg.depends_on)


def _iter_literals(hcl_text: str) -> Iterator[str]:
    yield from string_literals(hcl_text)