"""Running a whole non-interactive import: list, import, generate and clean up."""

from __future__ import annotations

import contextlib
import sys
import time
from dataclasses import dataclass, field
from typing import Protocol, TextIO

from .importlist import ImportList
from .listing import DummyMeta


class Messager(Protocol):
    """Receives progress messages during a run."""

    def set_status(self, msg: str) -> None: ...

    def set_detail(self, msg: str) -> None: ...


class StdoutMessager:
    """Writes every message as a timestamped, prefixed log line."""

    def __init__(self, stream: TextIO | None = None, prefix: str = "[aztfy] ") -> None:
        self._stream = stream
        self.prefix = prefix

    def _write(self, msg: str) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        stamp = time.strftime("%Y/%m/%d %H:%M:%S")
        stream.write(f"{self.prefix}{stamp} {msg}\n")
        stream.flush()

    def set_status(self, msg: str) -> None:
        self._write(msg)

    def set_detail(self, msg: str) -> None:
        self._write(msg)


@dataclass
class InteractiveModeConfig:
    """Settings of an interactive run."""

    resource_group_name: str = ""
    parallelism: int = 1
    continue_on_error: bool = False
    mock_meta: bool = False


@dataclass
class NonInteractiveModeConfig:
    """Settings of a non-interactive (batch) run."""

    resource_group_name: str = ""
    parallelism: int = 1
    continue_on_error: bool = False
    mock_meta: bool = False
    plain_ui: bool = False
    gen_mapping_file_only: bool = False


class BatchImportError(Exception):
    """Raised when a batch import fails."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


def _run(meta, cfg: NonInteractiveModeConfig, msg: Messager) -> list[str]:
    errors: list[str] = []

    msg.set_status("Initializing...")
    meta.init()
    try:
        msg.set_status("Listing resources...")
        items = ImportList(meta.list_resource())

        msg.set_status("Exporting Skipped Resource file...")
        try:
            meta.export_skipped_resources(items)
        except Exception as err:
            raise BatchImportError(f"exporting Skipped Resource file: {err}") from err

        msg.set_status("Exporting Resource Mapping file...")
        try:
            meta.export_resource_mapping(items)
        except Exception as err:
            raise BatchImportError(f"exporting Resource Mapping file: {err}") from err

        if cfg.gen_mapping_file_only:
            return errors

        total = len(items)
        for start in range(0, total, cfg.parallelism):
            batch = items[start:start + cfg.parallelism]
            messages = ["Importing resources..."]
            for pos, item in enumerate(batch, start=start + 1):
                if item.skip():
                    messages.append(f"({pos}/{total}) Skipping {item.tf_resource_id}")
                else:
                    messages.append(
                        f"({pos}/{total}) Importing {item.tf_resource_id} as {item.tf_addr}"
                    )
            msg.set_status("\n".join(messages))
            try:
                meta.parallel_import(list(batch))
            except Exception as err:
                raise BatchImportError(f"parallel importing: {err}") from err

            batch_errors = [
                f"Failed to import {item.tf_resource_id} as {item.tf_addr}: {item.import_error}"
                for item in batch
                if item.import_error is not None
            ]
            if batch_errors:
                errors.extend(batch_errors)
                if not cfg.continue_on_error:
                    raise BatchImportError("\n".join(batch_errors), batch_errors)

        try:
            meta.push_state()
        except Exception as err:
            raise BatchImportError(f"failed to push state: {err}") from err

        msg.set_status("Generating Terraform configurations...")
        try:
            meta.generate_cfg(items)
        except Exception as err:
            raise BatchImportError(f"generating Terraform configuration: {err}") from err

        msg.set_status("Cleaning up...")
        try:
            meta.clean_up_workspace()
        except Exception as err:
            raise BatchImportError(f"cleaning up main workspace: {err}") from err

        return errors
    finally:
        msg.set_status("DeInitializing...")
        with contextlib.suppress(Exception):
            meta.deinit()


def batch_import(meta=None, cfg: NonInteractiveModeConfig | None = None, messager=None) -> list[str]:
    """Import every listed resource in batches and generate their configuration.

    Without ``meta``, a stand-in is used if ``cfg.mock_meta`` is set. Import
    failures tolerated by ``continue_on_error`` are printed to stderr and
    returned.
    """
    cfg = cfg if cfg is not None else NonInteractiveModeConfig()
    if cfg.parallelism < 1:
        raise ValueError("Parallelism not set in the config")
    if meta is None:
        if not cfg.mock_meta:
            raise ValueError("no workspace to import into was given")
        meta = DummyMeta(cfg.resource_group_name)
    msg = messager if messager is not None else StdoutMessager()

    errors = _run(meta, cfg, msg)
    if errors:
        print("Errors:\n" + "\n".join(errors), file=sys.stderr)
    return errors