#!/usr/bin/env python3
"""
Source/Destination Resolution Module.

Turns the user's source and destination strings into absolute paths,
decides the output path for each source image, and works out whether it
is safe to delete originals after conversion.

SPDX-License-Identifier: MPL-2.0
Copyright (c) 2025-2026 Aryan Ameri
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from prep_args import SUPPORTED_FORMATS, ConfigurationError, RunConfig
from prep_report import Reporter

__all__: Final[list[str]] = [
    "ConfigurationError",
    "Destination",
    "Layout",
    "ResolvedPath",
    "SourceSet",
    "absolute_path",
    "deletion_allowed",
    "final_output_path",
    "is_supported",
    "plan_layout",
    "resolve_destination",
    "resolve_path",
    "resolve_sources",
    "scan_images",
]


def absolute_path(spec: str, cwd: Path | None = None) -> Path:
    """Join a relative path to the working directory and normalise it."""
    base = cwd if cwd is not None else Path.cwd()
    expanded = os.path.expanduser(spec)
    return Path(os.path.normpath(os.path.join(base, expanded)))


def is_supported(path: Path) -> bool:
    return path.suffix.lower().lstrip(".") in SUPPORTED_FORMATS


@dataclass(frozen=True, slots=True)
class ResolvedPath:
    """An absolute location and what it currently is on disk."""

    path: Path
    exists: bool
    is_dir: bool


def resolve_path(spec: str, cwd: Path | None = None) -> ResolvedPath:
    path = absolute_path(spec, cwd)
    return ResolvedPath(path=path, exists=path.exists(), is_dir=path.is_dir())


def scan_images(source_dir: Path) -> tuple[Path, ...]:
    """Immediate image files of a directory, sorted by name."""
    images = [f for f in source_dir.iterdir() if f.is_file() and is_supported(f)]
    return tuple(sorted(images, key=lambda p: p.name))


# ═══════════════════════════════════════════════════════════════════
#                        SOURCES
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True, kw_only=True)
class SourceSet:
    """The image files selected for a run."""

    files: tuple[Path, ...]
    directory: Path | None = None

    @property
    def is_directory(self) -> bool:
        return self.directory is not None


def _explicit_files(
    specs: list[str], reporter: Reporter, cwd: Path | None
) -> tuple[Path, ...]:
    files: list[Path] = []
    for spec in specs:
        resolved = resolve_path(spec, cwd)
        if not resolved.exists:
            reporter.warning(f"Source {resolved.path} cannot be found -- ignoring")
        elif resolved.is_dir:
            reporter.warning(f"Source {resolved.path} is a directory -- ignoring")
        elif not is_supported(resolved.path):
            reporter.warning(
                f"Source {resolved.path} is not a supported image type -- ignoring"
            )
        elif resolved.path not in files:
            files.append(resolved.path)
    return tuple(files)


def resolve_sources(
    config: RunConfig, reporter: Reporter, cwd: Path | None = None
) -> SourceSet:
    """Select source files from bare file arguments or the -s path.

    Bare file arguments (plus any -s path) form an explicit list whose bad
    entries are dropped with a warning. Otherwise the -s path, or the
    working directory, must exist: a directory is scanned, a file is used
    as-is.
    """
    if config.source_files:
        specs = list(config.source_files)
        if config.source is not None:
            specs.append(config.source)
        return SourceSet(files=_explicit_files(specs, reporter, cwd))

    resolved = resolve_path(config.source if config.source is not None else ".", cwd)
    if not resolved.exists:
        raise ConfigurationError(f"Source {resolved.path} cannot be found")

    if resolved.is_dir:
        return SourceSet(files=scan_images(resolved.path), directory=resolved.path)

    return SourceSet(files=_explicit_files([str(resolved.path)], reporter, cwd))


# ═══════════════════════════════════════════════════════════════════
#                        DESTINATION
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True, kw_only=True)
class Destination:
    """Where output goes: a directory, a single file, or beside each source."""

    directory: Path | None = None
    file_name: str | None = None
    missing_directory: Path | None = None

    @property
    def is_file(self) -> bool:
        return self.file_name is not None

    @property
    def in_place(self) -> bool:
        return self.directory is None

    def output_path(self, source: Path) -> Path:
        if self.directory is None:
            return source
        if self.file_name is not None:
            return self.directory / self.file_name
        return self.directory / source.name


def resolve_destination(spec: str | None, cwd: Path | None = None) -> Destination:
    """Classify the destination without touching the filesystem.

    An existing directory is a directory destination and an existing file is
    a file destination. A missing path with a file extension is a file whose
    parent may need creating; otherwise it is a directory to create.
    """
    if spec is None:
        return Destination()

    resolved = resolve_path(spec, cwd)
    path = resolved.path

    if resolved.is_dir:
        return Destination(directory=path)

    if resolved.exists or path.suffix:
        parent = path.parent
        return Destination(
            directory=parent,
            file_name=path.name,
            missing_directory=None if parent.is_dir() else parent,
        )

    return Destination(directory=path, missing_directory=path)


def _create_directory(path: Path, create: bool) -> None:
    if not create:
        raise ConfigurationError(f"Destination {path} cannot be found")
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(
            f"Destination {path} does not exist and cannot be created: {e}"
        ) from e


# ═══════════════════════════════════════════════════════════════════
#                        LAYOUT
# ═══════════════════════════════════════════════════════════════════


def deletion_allowed(
    sources: SourceSet, destination: Destination, requested: bool
) -> bool:
    """Whether originals may be deleted after conversion.

    Never when a source's output path is the source itself. For directory
    or multi-file sources, one source sharing the destination directory
    disables deletion for the whole batch.
    """
    if not requested:
        return False

    batch = sources.is_directory or len(sources.files) > 1
    for source in sources.files:
        if destination.output_path(source) == source:
            return False
        if batch and source.parent == destination.directory:
            return False

    return True


@dataclass(frozen=True, slots=True, kw_only=True)
class Layout:
    """Resolved sources, destination and deletion policy for a run."""

    sources: SourceSet
    destination: Destination
    delete_source: bool

    def output_path(self, source: Path) -> Path:
        return self.destination.output_path(source)


def final_output_path(output: Path, extension: str | None) -> Path:
    """The file a run finally writes: the output, re-suffixed when reformatting."""
    if extension is None:
        return output
    return output.with_suffix(f".{extension}")


def _check_collisions(
    sources: SourceSet, destination: Destination, extension: str | None
) -> None:
    """Refuse a layout in which two sources would be written to one file."""
    written: dict[Path, Path] = {}
    for source in sources.files:
        target = final_output_path(destination.output_path(source), extension)
        if target in written:
            raise ConfigurationError(
                f"Sources {written[target]} and {source} would both be written to {target}"
            )
        written[target] = source


def plan_layout(
    config: RunConfig, reporter: Reporter, cwd: Path | None = None
) -> Layout:
    """Resolve and validate the run's file layout.

    Destination directories are only created once the layout is known to
    be valid. Info-only runs and runs with nothing to convert never look
    at the destination.

    Raises:
        ConfigurationError: On a missing source, an uncreatable destination,
            a source/destination mismatch or two sources sharing an output.
    """
    sources = resolve_sources(config, reporter, cwd)

    if config.info_only or not sources.files:
        return Layout(sources=sources, destination=Destination(), delete_source=False)

    destination = resolve_destination(config.destination, cwd)

    if destination.is_file:
        if sources.is_directory:
            raise ConfigurationError(
                "Source (directory) and destination (file) are mismatched"
            )
        if len(sources.files) != 1:
            raise ConfigurationError(
                f"A destination file needs exactly one source file "
                f"({len(sources.files)} selected)"
            )

    _check_collisions(sources, destination, config.format_extension)

    if destination.missing_directory is not None:
        _create_directory(destination.missing_directory, config.create_dirs)

    delete_source = deletion_allowed(sources, destination, config.delete_source)
    if config.delete_source and not delete_source:
        reporter.progress(
            "[dim]Sources share the destination -- originals will be kept[/]"
        )

    return Layout(sources=sources, destination=destination, delete_source=delete_source)
