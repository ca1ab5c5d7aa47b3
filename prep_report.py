#!/usr/bin/env python3
"""
Console Reporting Module.

User-facing output for imageprep: progress and data lines on stdout,
warnings and errors on stderr, plus the coloured logging setup used for
diagnostic tracing.

SPDX-License-Identifier: MPL-2.0
Copyright (c) 2025-2026 Aryan Ameri
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from enum import StrEnum
from typing import ClassVar, Final, override

from rich.console import Console
from rich.markup import escape

__all__: Final[list[str]] = [
    "Reporter",
    "configure_logging",
    "plural",
]


class _AnsiColor(StrEnum):
    """ANSI color codes for log output."""

    GREEN = "\033[0;32m"
    YELLOW = "\033[1;33m"
    RED = "\033[0;31m"
    GRAY = "\033[0;37m"
    RESET = "\033[0m"


class _ColoredFormatter(logging.Formatter):
    """Logging formatter with colored level names."""

    _LEVEL_COLORS: ClassVar[dict[int, str]] = {
        logging.DEBUG: _AnsiColor.GRAY,
        logging.INFO: _AnsiColor.GREEN,
        logging.WARNING: _AnsiColor.YELLOW,
        logging.ERROR: _AnsiColor.RED,
    }

    @override
    def format(self, record: logging.LogRecord) -> str:
        color = self._LEVEL_COLORS.get(record.levelno, _AnsiColor.RESET)
        return (
            f"{color}[{record.levelname}]{_AnsiColor.RESET} "
            f"{record.name}: {record.getMessage()}"
        )


class _StderrHandler(logging.StreamHandler):
    """Marker class so repeated setup does not stack handlers."""


def configure_logging(verbose: bool = False) -> None:
    """Attach the colored stderr handler to the root logger."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if not any(isinstance(h, _StderrHandler) for h in root.handlers):
        handler = _StderrHandler(sys.stderr)
        handler.setFormatter(_ColoredFormatter())
        root.addHandler(handler)


def plural(count: int, noun: str) -> str:
    """Return '1 file' / '3 files' style counts."""
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


@dataclass(slots=True, kw_only=True)
class Reporter:
    """Routes messages to stdout/stderr consoles, honouring quiet mode."""

    quiet: bool = False
    out: Console = field(default_factory=Console)
    err: Console = field(default_factory=lambda: Console(stderr=True))

    def progress(self, message: str) -> None:
        """Per-file progress and notices (suppressed when quiet)."""
        if not self.quiet:
            self.out.print(message, highlight=False)

    def data(self, line: str) -> None:
        """Plain data line, always printed without markup."""
        self.out.print(line, markup=False, highlight=False, soft_wrap=True)

    def warning(self, message: str) -> None:
        if not self.quiet:
            self.err.print(f"[yellow]Warning:[/] {escape(message)}", highlight=False)

    def error(self, message: str) -> None:
        self.err.print(f"[red]Error:[/] {escape(message)}", highlight=False)

    def fatal(self, message: str) -> None:
        """Report a run-ending configuration error."""
        self.err.print(f"\n[red]Configuration error:[/] {escape(message)}", highlight=False)

    def summary(self, converted: int, skipped: int = 0, failed: int = 0) -> None:
        """Final human-readable count of converted files."""
        if self.quiet:
            return

        if converted == 0:
            line = "No files converted"
        else:
            line = f"{plural(converted, 'file')} converted"

        extras = []
        if skipped:
            extras.append(f"{skipped} skipped")
        if failed:
            extras.append(f"{failed} with errors")
        if extras:
            line += f" ({', '.join(extras)})"

        self.out.print(f"\n[bold green]Done![/] {line}", highlight=False)
