"""The output workspace: its Terraform scaffolding and exported side files."""

from __future__ import annotations

import json
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .importlist import ImportItem
from .resmap import ResourceMapEntity, dump_resource_mapping

RESOURCE_MAPPING_FILE_NAME = "aztfyResourceMapping.json"
SKIPPED_RESOURCES_FILE_NAME = "aztfySkippedResources.txt"

_DEFAULT_TERRAFORM_FILE = "terraform.tf"
_DEFAULT_PROVIDER_FILE = "provider.tf"
_DEFAULT_MAIN_FILE = "main.tf"


def resource_name_pattern(p: str) -> tuple[str, str]:
    """Split a resource name pattern at its last ``*`` into a prefix and a suffix."""
    prefix, star, suffix = p.rpartition("*")
    if not star:
        return p, ""
    return prefix, suffix


def module_address(module_path: str) -> str:
    """The Terraform module address of a dotted module path, e.g. ``module.a.module.b``."""
    if not module_path:
        return ""
    return ".".join(f"module.{name}" for name in module_path.split("."))


@dataclass
class OutputFileNames:
    """Names of the files generated in the output directory; empty names take defaults."""

    terraform_file_name: str = _DEFAULT_TERRAFORM_FILE
    provider_file_name: str = _DEFAULT_PROVIDER_FILE
    main_file_name: str = _DEFAULT_MAIN_FILE

    def __post_init__(self) -> None:
        self.terraform_file_name = self.terraform_file_name or _DEFAULT_TERRAFORM_FILE
        self.provider_file_name = self.provider_file_name or _DEFAULT_PROVIDER_FILE
        self.main_file_name = self.main_file_name or _DEFAULT_MAIN_FILE


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


@dataclass
class Workspace:
    """The output directory and the settings that shape what is written to it."""

    outdir: Path
    provider_version: str
    output_file_names: OutputFileNames = field(default_factory=OutputFileNames)
    dev_provider: bool = False
    backend_type: str = "local"
    backend_config: list[str] = field(default_factory=list)
    provider_config: dict[str, str] = field(default_factory=dict)
    full_config: bool = False
    parallelism: int = 1
    hcl_only: bool = False
    module_addr: str = ""
    module_dir: Path | None = None

    def __post_init__(self) -> None:
        if self.parallelism == 0:
            raise ValueError("Parallelism not set in the config")
        self.outdir = Path(self.outdir)
        self.module_dir = self.outdir if self.module_dir is None else Path(self.module_dir)

    def build_terraform_config_for_import_dir(self) -> str:
        """The terraform block written to each temporary import directory."""
        if self.dev_provider:
            return "terraform {}"
        return (
            "terraform {\n"
            "  required_providers {\n"
            "    azurerm = {\n"
            '      source = "hashicorp/azurerm"\n'
            f'      version = "{self.provider_version}"\n'
            "    }\n"
            "  }\n"
            "}\n"
        )

    def build_terraform_config(self, backend_type: str) -> str:
        """The terraform block, with the given backend, for the output directory."""
        if self.dev_provider:
            return f"terraform {{\n  backend {_quote(backend_type)} {{}}\n}}\n"
        return (
            "terraform {\n"
            f"  backend {_quote(backend_type)} {{}}\n"
            "  required_providers {\n"
            "    azurerm = {\n"
            '      source = "hashicorp/azurerm"\n'
            f'      version = "{self.provider_version}"\n'
            "    }\n"
            "  }\n"
            "}\n"
        )

    def build_provider_config(self) -> str:
        """The azurerm provider block with the configured provider settings."""
        lines = ["  features {}"]
        lines.extend(f"  {key} = {value}" for key, value in self.provider_config.items())
        body = "\n".join(lines)
        return f'provider "azurerm" {{\n{body}\n}}\n'

    def export_resource_mapping(self, items: Iterable[ImportItem]) -> Path:
        """Write the mapping of non-skipped items to the output directory."""
        mapping = {
            str(item.azure_resource_id): ResourceMapEntity(
                resource_id=item.tf_resource_id,
                resource_type=item.tf_addr.type,
                resource_name=item.tf_addr.name,
            )
            for item in items
            if not item.skip()
        }
        output = self.outdir / RESOURCE_MAPPING_FILE_NAME
        output.write_text(dump_resource_mapping(mapping), encoding="utf-8")
        return output

    def export_skipped_resources(self, items: Iterable[ImportItem]) -> Path | None:
        """Write the list of skipped items, if any, to the output directory."""
        skipped = [f"- {item.azure_resource_id}" for item in items if item.skip()]
        if not skipped:
            return None
        output = self.outdir / SKIPPED_RESOURCES_FILE_NAME
        content = "Following resources are marked to be skipped:\n\n" + "\n".join(skipped) + "\n"
        output.write_text(content, encoding="utf-8")
        return output

    def clean_up_workspace(self) -> None:
        """Remove everything in the output directory except the generated configuration.

        Does nothing unless ``hcl_only`` is set.
        """
        if not self.hcl_only:
            return
        names = (self.output_file_names.main_file_name, self.output_file_names.provider_file_name)
        with tempfile.TemporaryDirectory() as tmp:
            tmp_dir = Path(tmp)
            for name in names:
                shutil.copyfile(self.outdir / name, tmp_dir / name)
            for entry in self.outdir.iterdir():
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
            for name in names:
                shutil.copyfile(tmp_dir / name, self.outdir / name)