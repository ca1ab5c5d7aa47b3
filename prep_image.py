#!/usr/bin/env python3
"""
Image Probe Module.

Reads an image's header (not its pixel data) to get the dimensions,
resolution and alpha information the geometry resolver needs.

SPDX-License-Identifier: MPL-2.0
Copyright (c) 2025-2026 Aryan Ameri
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final, Self

from PIL import Image, UnidentifiedImageError

__all__: Final[list[str]] = [
    "BASE_DPI",
    "ImageInfo",
    "ProbeError",
    "probe_image",
]

# Resolution reported when the file carries none
BASE_DPI: Final[float] = 72.0

_ALPHA_MODES: Final[frozenset[str]] = frozenset({"RGBA", "LA", "PA", "RGBa", "La"})


class ProbeError(Exception):
    """Raised when an image is empty or cannot be identified."""


@dataclass(frozen=True, slots=True, kw_only=True)
class ImageInfo:
    """Immutable image metadata for a single source file."""

    path: Path
    width: int
    height: int
    dpi: float = BASE_DPI
    has_alpha: bool = False

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        if self.height == 0:
            return 1.0
        return self.width / self.height

    def describe(self) -> str:
        """Single-line summary used by --info."""
        alpha = "alpha" if self.has_alpha else "no-alpha"
        return (
            f"{self.path} {self.width} {self.height} "
            f"{self.dpi:g} {self.aspect_ratio:g} {alpha}"
        )

    @classmethod
    def from_image(cls, path: Path, img: Image.Image) -> Self:
        """Factory method to read metadata from an opened (lazy) PIL image."""
        width, height = img.size

        dpi = BASE_DPI
        raw_dpi = img.info.get("dpi")
        if isinstance(raw_dpi, tuple) and raw_dpi:
            try:
                dpi = float(raw_dpi[0]) or BASE_DPI
            except (TypeError, ValueError):
                dpi = BASE_DPI

        has_alpha = img.mode in _ALPHA_MODES or "transparency" in img.info

        return cls(path=path, width=width, height=height, dpi=dpi, has_alpha=has_alpha)


def probe_image(path: Path) -> ImageInfo:
    """Extract image metadata from the file header.

    Raises:
        ProbeError: If the file is empty, missing or not a readable image.
    """
    try:
        if path.stat().st_size == 0:
            raise ProbeError(f"File {path.name} has no content")
    except OSError as e:
        raise ProbeError(f"File {path.name} cannot be read: {e}") from e

    try:
        # Image.open only parses the header until pixel data is requested
        with Image.open(path) as img:
            info = ImageInfo.from_image(path, img)
    except (UnidentifiedImageError, OSError) as e:
        raise ProbeError(f"File {path.name} is not a readable image: {e}") from e

    if info.width <= 0 or info.height <= 0:
        raise ProbeError(f"File {path.name} reports no usable dimensions")

    return info
