#!/usr/bin/env python3
"""
Geometry Resolution Module.

Turns an action's symbolic width/height into concrete pixel values for a
probed image, and works out crop offsets from the 3x3 anchor grid:

    0 (tl)  1 (tc)  2 (tr)
    3 (cl)  4 (cc)  5 (cr)
    6 (bl)  7 (bc)  8 (br)

Anchor 4 means "no anchoring": the crop uses an explicit offset if one was
given, otherwise sips' own default placement.

SPDX-License-Identifier: MPL-2.0
Copyright (c) 2025-2026 Aryan Ameri
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from prep_actions import (
    Action,
    ActionKind,
    Dimension,
    MatchHeight,
    MatchWidth,
    Pixels,
    UseNative,
)
from prep_image import ImageInfo

__all__: Final[list[str]] = [
    "NO_ANCHOR",
    "ZERO_OFFSET_PLACEHOLDER",
    "Geometry",
    "anchor_offsets",
    "resolve",
    "resolve_size",
    "sips_offset",
]

NO_ANCHOR: Final[int] = 4

# sips misplaces crops when a --cropOffset component is exactly zero, but
# accepts fractional values
ZERO_OFFSET_PLACEHOLDER: Final[float] = 0.0001


@dataclass(frozen=True, slots=True, kw_only=True)
class Geometry:
    """Concrete target size and (optional) crop offset for one action."""

    width: int
    height: int
    x_offset: float | None = None
    y_offset: float | None = None

    @property
    def has_offset(self) -> bool:
        return self.x_offset is not None and self.y_offset is not None


def _literal(dim: Dimension, native: int) -> int | None:
    match dim:
        case Pixels(value=value):
            return value
        case UseNative():
            return native
        case _:
            return None


def resolve_size(action: Action, info: ImageInfo) -> tuple[int, int]:
    """Resolve an action's width and height against a probed image.

    Literal and native dimensions are resolved first; a derived dimension
    then uses the resolved opposite dimension and the image aspect ratio.
    """
    width = _literal(action.width, info.width)
    height = _literal(action.height, info.height)

    if isinstance(action.width, MatchHeight):
        if height is None:
            raise ValueError(f"Cannot derive both dimensions of {action}")
        width = round(height * info.aspect_ratio)

    if isinstance(action.height, MatchWidth):
        if width is None:
            raise ValueError(f"Cannot derive both dimensions of {action}")
        height = round(width / info.aspect_ratio)

    if width is None or height is None:
        raise ValueError(f"Unresolvable dimensions for {action}")

    return width, height


def anchor_offsets(
    anchor: int, native_width: int, native_height: int, width: int, height: int
) -> tuple[float, float]:
    """Return (x_offset, y_offset) for an anchor point in the 3x3 grid.

    Edge rows/columns use the full size difference, the centre row/column
    half of it. Differences may be zero or negative when the target is not
    smaller than the image.
    """
    if not 0 <= anchor <= 8:
        raise ValueError(f"Anchor point out of range: {anchor}")

    row, col = divmod(anchor, 3)

    y_delta = native_height - height
    x_delta = native_width - width

    y_offset = (0, y_delta // 2, y_delta)[row]
    x_offset = (0, x_delta // 2, x_delta)[col]

    return float(x_offset), float(y_offset)


def sips_offset(value: float) -> float:
    """Replace a zero offset component with a negligible non-zero value."""
    if value == 0:
        return ZERO_OFFSET_PLACEHOLDER
    return float(value)


def resolve(
    action: Action,
    info: ImageInfo,
    *,
    anchor: int = NO_ANCHOR,
    offset: tuple[int, int] | None = None,
) -> Geometry:
    """Resolve one action against an image, including crop placement.

    Only crops carry offsets. An anchor other than 4 takes precedence over
    an explicit (x, y) offset; with neither, no offset is produced.
    """
    width, height = resolve_size(action, info)

    if action.kind is not ActionKind.CROP:
        return Geometry(width=width, height=height)

    if anchor != NO_ANCHOR:
        x, y = anchor_offsets(anchor, info.width, info.height, width, height)
    elif offset is not None:
        x, y = float(offset[0]), float(offset[1])
    else:
        return Geometry(width=width, height=height)

    return Geometry(
        width=width,
        height=height,
        x_offset=sips_offset(x),
        y_offset=sips_offset(y),
    )
