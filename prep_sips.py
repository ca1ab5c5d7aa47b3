#!/usr/bin/env python3
"""
sips Invocation Module.

Builds argument vectors for macOS `sips` and runs it synchronously,
capturing combined stdout/stderr. Failures are returned, never raised:
callers decide whether a failed step is worth reporting.

SPDX-License-Identifier: MPL-2.0
Copyright (c) 2025-2026 Aryan Ameri
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Self

from prep_actions import ActionKind
from prep_geometry import Geometry

__all__: Final[list[str]] = [
    "DEFAULT_SIPS",
    "LAUNCH_FAILURE",
    "SipsRunner",
    "ToolResult",
    "action_args",
    "dpi_args",
    "format_args",
]

logger = logging.getLogger(__name__)

DEFAULT_SIPS: Final[Path] = Path("/usr/bin/sips")

# Exit code reported when the tool could not be started at all
LAUNCH_FAILURE: Final[int] = 127

type Argv = list[str]


def _get_env_path(var_name: str, /) -> Path | None:
    """Get a Path from environment variable, or None if not set/empty."""
    value = os.environ.get(var_name, "").strip()
    return Path(value) if value else None


def _format_number(value: float) -> str:
    """Render numbers in plain decimal form (500.0 -> '500', 1e6 -> '1000000')."""
    if float(value).is_integer():
        return str(int(value))
    return format(value, "f").rstrip("0").rstrip(".")


# ═══════════════════════════════════════════════════════════════════
#                        ARGUMENT BUILDERS
# ═══════════════════════════════════════════════════════════════════


def action_args(
    work_file: Path, kind: ActionKind, geometry: Geometry, pad_colour: str
) -> Argv:
    """Arguments for a crop, pad or scale on the working file.

    sips takes height before width. Scales never get a pad colour, which
    would flatten any alpha channel.
    """
    args = [str(work_file), kind.verb, str(geometry.height), str(geometry.width)]

    if kind is ActionKind.CROP and geometry.has_offset:
        assert geometry.x_offset is not None and geometry.y_offset is not None
        args += [
            "--cropOffset",
            _format_number(geometry.y_offset),
            _format_number(geometry.x_offset),
        ]

    if kind is not ActionKind.SCALE:
        args += ["--padColor", pad_colour]

    return args


def dpi_args(file: Path, dpi: int) -> Argv:
    """Arguments to set both resolution axes."""
    return [str(file), "-s", "dpiHeight", str(dpi), "-s", "dpiWidth", str(dpi)]


def format_args(
    file: Path, sips_format: str, out_file: Path, quality: float | None = None
) -> Argv:
    """Arguments to write `file` to `out_file` in `sips_format`.

    `quality` (a percentage) is only applied to JPEG output.
    """
    args = [str(file), "-s", "format", sips_format, "--out", str(out_file)]
    if sips_format == "jpeg" and quality is not None:
        args += ["-s", "formatOptions", _format_number(quality)]
    return args


# ═══════════════════════════════════════════════════════════════════
#                        RUNNER
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True, kw_only=True)
class ToolResult:
    """Outcome of one sips call."""

    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def describe(self) -> str:
        text = self.output.strip()
        if text:
            return f"sips reported an error: {text}"
        return f"sips exited with code {self.returncode}"


@dataclass(frozen=True, slots=True, kw_only=True)
class SipsRunner:
    """Blocking sips runner."""

    executable: Path

    @classmethod
    def create(cls, executable: Path | None = None) -> Self:
        """Create a runner, falling back to $IMAGEPREP_SIPS, then PATH."""
        found = shutil.which("sips")
        return cls(
            executable=(
                executable
                or _get_env_path("IMAGEPREP_SIPS")
                or (Path(found) if found else DEFAULT_SIPS)
            )
        )

    def run(self, args: Sequence[str]) -> ToolResult:
        """Run sips to completion and return its status and output."""
        cmd = [str(self.executable), *args]
        logger.debug("Running: %s", cmd)

        try:
            result = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=False,
            )
        except OSError as e:
            logger.debug("Cannot launch %s: %s", self.executable, e)
            return ToolResult(
                returncode=LAUNCH_FAILURE,
                output=f"cannot launch {self.executable}: {e}",
            )

        if result.returncode != 0:
            logger.debug(
                "Command failed (%d): %s\n%s",
                result.returncode,
                cmd,
                result.stdout or "(no output)",
            )

        return ToolResult(returncode=result.returncode, output=result.stdout or "")
