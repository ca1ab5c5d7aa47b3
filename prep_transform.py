#!/usr/bin/env python3
"""
Image Transformation Module.

Drives sips over each selected source image. Every image is staged as a
TIFF working file beside its output, then has its actions, resolution
change and (re)format written in a fixed order:

    stage -> actions (in order) -> dpi -> format/write back -> cleanup

A failed sips step is reported and the remaining steps still run. Empty
or unreadable inputs, and reformatted outputs that already exist (without
--overwrite), skip the file. Neither stops the batch.

SPDX-License-Identifier: MPL-2.0
Copyright (c) 2025-2026 Aryan Ameri
"""

from __future__ import annotations

import contextlib
import shutil
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum, auto
from pathlib import Path
from typing import Final, Protocol

from rich.markup import escape

from prep_args import SUPPORTED_FORMATS, RunConfig
from prep_geometry import resolve
from prep_image import ProbeError, probe_image
from prep_paths import Layout, final_output_path
from prep_report import Reporter
from prep_sips import ToolResult, action_args, dpi_args, format_args

__all__: Final[list[str]] = [
    "FileOutcome",
    "RunState",
    "Runner",
    "STAGING_FORMAT",
    "TransformOrchestrator",
    "WORK_SUFFIX",
]

STAGING_FORMAT: Final[str] = "tiff"
WORK_SUFFIX: Final[str] = ".sipstmp"


class Runner(Protocol):
    def run(self, args: Sequence[str]) -> ToolResult: ...


class FileOutcome(StrEnum):
    """Terminal state of one source file."""

    SUCCESS = auto()
    SKIPPED = auto()
    FAILED = auto()
    INFO = auto()


@dataclass(slots=True)
class RunState:
    """Per-run counters, owned by the orchestrator."""

    converted: int = 0
    skipped: int = 0
    failed: int = 0
    work_file: Path | None = None

    def record(self, outcome: FileOutcome) -> None:
        match outcome:
            case FileOutcome.SUCCESS:
                self.converted += 1
            case FileOutcome.SKIPPED:
                self.skipped += 1
            case FileOutcome.FAILED:
                self.failed += 1
            case FileOutcome.INFO:
                pass


@dataclass(slots=True, kw_only=True)
class TransformOrchestrator:
    """Applies a RunConfig to every file of a Layout, one file at a time."""

    config: RunConfig
    layout: Layout
    runner: Runner
    reporter: Reporter
    state: RunState = field(default_factory=RunState)
    _step_failed: bool = field(default=False, init=False)

    def run_all(self) -> RunState:
        files = self.layout.sources.files
        total = len(files)
        for index, source in enumerate(files, 1):
            outcome = self.process_file(source, index=index, total=total)
            self.state.record(outcome)
        return self.state

    # ───────────────────────────────────────────────────────────────
    # Per-file pipeline
    # ───────────────────────────────────────────────────────────────

    def process_file(self, source: Path, *, index: int = 1, total: int = 1) -> FileOutcome:
        config = self.config
        output_path = self.layout.output_path(source)
        self._step_failed = False

        try:
            info = probe_image(source)
        except ProbeError as e:
            self.reporter.warning(f"{e} -- skipping")
            return FileOutcome.SKIPPED

        if config.info_only:
            self.reporter.data(info.describe())
            return FileOutcome.INFO

        work_file = output_path.with_name(output_path.name + WORK_SUFFIX)
        if not self._stage(source, work_file):
            return FileOutcome.SKIPPED

        for action in config.actions:
            geometry = resolve(
                action,
                info,
                anchor=config.crop_anchor,
                offset=config.crop_offset,
            )
            self._run(action_args(work_file, action.kind, geometry, action.pad_colour))

        if config.dpi is not None:
            self._run(dpi_args(work_file, config.dpi))

        final_path = self._write_output(source, work_file, output_path)

        self._remove_work_file(work_file)

        if final_path is None:
            return FileOutcome.SKIPPED

        if self._step_failed:
            self.reporter.error(
                f"[{index}/{total}] {source.name} was not fully processed"
            )
            return FileOutcome.FAILED

        if self.layout.delete_source and source != final_path:
            try:
                source.unlink()
            except OSError as e:
                self.reporter.warning(
                    f"Could not delete source file {source.name} after processing: {e}"
                )

        self.reporter.progress(
            f"[green]✓[/] [{index}/{total}] "
            f"{escape(str(source))} → {escape(str(final_path))}"
        )
        return FileOutcome.SUCCESS

    def _stage(self, source: Path, work_file: Path) -> bool:
        """Create the TIFF working file. Returns False if the file must be skipped."""
        self.state.work_file = work_file

        if SUPPORTED_FORMATS.get(source.suffix.lower().lstrip(".")) == STAGING_FORMAT:
            try:
                shutil.copyfile(source, work_file)
            except OSError as e:
                self.reporter.warning(f"Could not write {work_file}: {e} -- skipping")
                self.state.work_file = None
                return False
        else:
            self._run(format_args(source, STAGING_FORMAT, work_file))

        return True

    def _write_output(self, source: Path, work_file: Path, output_path: Path) -> Path | None:
        """Write the working file to its final location.

        Returns the final path, or None when a reformatted output already
        exists and may not be overwritten.
        """
        config = self.config

        if config.target_format is not None:
            final_path = final_output_path(output_path, config.format_extension)
            if final_path.exists() and not config.overwrite:
                self.reporter.warning(
                    f"Target file {final_path} already exists -- skipping"
                )
                return None
            self._run(
                format_args(
                    work_file, config.target_format, final_path, config.jpeg_compression
                )
            )
            return final_path

        source_format = SUPPORTED_FORMATS[source.suffix.lower().lstrip(".")]
        self._run(
            format_args(work_file, source_format, output_path, config.jpeg_compression)
        )
        return output_path

    def _remove_work_file(self, work_file: Path) -> None:
        try:
            work_file.unlink(missing_ok=True)
        except OSError as e:
            self.reporter.warning(
                f"Could not delete temporary file {work_file} after processing: {e}"
            )
        self.state.work_file = None

    def _run(self, args: Sequence[str]) -> ToolResult:
        result = self.runner.run(args)
        if not result.ok:
            self._step_failed = True
            self.reporter.error(result.describe())
        return result

    def cleanup(self) -> None:
        """Best-effort removal of the working file after an interrupt."""
        work_file = self.state.work_file
        if work_file is not None:
            with contextlib.suppress(OSError):
                work_file.unlink(missing_ok=True)
            self.state.work_file = None
