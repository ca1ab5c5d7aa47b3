from __future__ import annotations

from pathlib import Path

import pytest

from prep_actions import Action, ActionKind, MatchHeight, MatchWidth, Pixels, UseNative
from prep_geometry import (
    NO_ANCHOR,
    ZERO_OFFSET_PLACEHOLDER,
    anchor_offsets,
    resolve,
    resolve_size,
    sips_offset,
)
from prep_image import ImageInfo


def _info(width: int = 800, height: int = 600) -> ImageInfo:
    return ImageInfo(path=Path("/tmp/img.png"), width=width, height=height)


def _crop(width: int, height: int) -> Action:
    return Action(kind=ActionKind.CROP, width=Pixels(width), height=Pixels(height))


def test_resolve_size_scale_to_width_derives_height() -> None:
    action = Action(kind=ActionKind.SCALE, width=Pixels(400), height=MatchWidth())
    assert resolve_size(action, _info(800, 600)) == (400, 300)


def test_resolve_size_scale_to_height_derives_width() -> None:
    action = Action(kind=ActionKind.SCALE, width=MatchHeight(), height=Pixels(300))
    assert resolve_size(action, _info(800, 600)) == (400, 300)


def test_resolve_size_native_dimensions() -> None:
    action = Action(kind=ActionKind.PAD, width=UseNative(), height=Pixels(1000))
    assert resolve_size(action, _info(800, 600)) == (800, 1000)


def test_resolve_size_derives_from_resolved_native_dimension() -> None:
    action = Action(kind=ActionKind.SCALE, width=UseNative(), height=MatchWidth())
    assert resolve_size(action, _info(800, 600)) == (800, 600)


def test_resolve_size_rounds_derived_dimension() -> None:
    action = Action(kind=ActionKind.SCALE, width=Pixels(100), height=MatchWidth())
    # 100 / (1000 / 333) = 33.3
    assert resolve_size(action, _info(1000, 333)) == (100, 33)


def test_resolve_size_rejects_two_derived_dimensions() -> None:
    action = Action(kind=ActionKind.SCALE, width=MatchHeight(), height=MatchWidth())
    with pytest.raises(ValueError):
        resolve_size(action, _info())


def test_center_anchor_halves_the_difference() -> None:
    x, y = anchor_offsets(4, 3000, 2000, 1000, 1000)
    assert y == 500
    assert x == 1000


@pytest.mark.parametrize(
    ("anchor", "expected_y"),
    [(0, 0), (1, 0), (2, 0), (3, 500), (4, 500), (5, 500), (6, 1000), (7, 1000), (8, 1000)],
)
def test_anchor_rows_set_y_offset(anchor: int, expected_y: int) -> None:
    _, y = anchor_offsets(anchor, 1000, 2000, 1000, 1000)
    assert y == expected_y


@pytest.mark.parametrize(
    ("anchor", "expected_x"),
    [(0, 0), (3, 0), (6, 0), (1, 150), (4, 150), (7, 150), (2, 300), (5, 300), (8, 300)],
)
def test_anchor_columns_set_x_offset(anchor: int, expected_x: int) -> None:
    x, _ = anchor_offsets(anchor, 800, 600, 500, 600)
    assert x == expected_x


def test_anchor_offsets_may_be_negative_when_target_is_larger() -> None:
    x, y = anchor_offsets(8, 100, 100, 150, 120)
    assert (x, y) == (-50, -20)


def test_anchor_out_of_range() -> None:
    with pytest.raises(ValueError):
        anchor_offsets(9, 100, 100, 50, 50)


def test_sips_offset_replaces_zero_only() -> None:
    assert sips_offset(0) == ZERO_OFFSET_PLACEHOLDER
    assert sips_offset(0.0) == 0.0001
    assert sips_offset(12) == 12.0
    assert sips_offset(-5) == -5.0


def test_resolve_crop_top_left_uses_placeholder_on_both_axes() -> None:
    geometry = resolve(_crop(400, 300), _info(), anchor=0)
    assert geometry.x_offset == ZERO_OFFSET_PLACEHOLDER
    assert geometry.y_offset == ZERO_OFFSET_PLACEHOLDER


def test_resolve_crop_top_right_fixes_only_zero_axis() -> None:
    geometry = resolve(_crop(400, 300), _info(), anchor=2)
    assert geometry.x_offset == 400
    assert geometry.y_offset == ZERO_OFFSET_PLACEHOLDER


def test_resolve_crop_without_anchor_or_offset_has_no_offset() -> None:
    geometry = resolve(_crop(400, 300), _info(), anchor=NO_ANCHOR)
    assert not geometry.has_offset
    assert (geometry.width, geometry.height) == (400, 300)


def test_resolve_crop_uses_explicit_offset_without_anchor() -> None:
    geometry = resolve(_crop(400, 300), _info(), offset=(10, 0))
    assert geometry.x_offset == 10
    assert geometry.y_offset == ZERO_OFFSET_PLACEHOLDER


def test_resolve_crop_anchor_overrides_explicit_offset() -> None:
    geometry = resolve(_crop(400, 300), _info(), anchor=8, offset=(10, 20))
    assert (geometry.x_offset, geometry.y_offset) == (400, 300)


@pytest.mark.parametrize("kind", [ActionKind.PAD, ActionKind.SCALE])
def test_pad_and_scale_never_get_offsets(kind: ActionKind) -> None:
    action = Action(kind=kind, width=Pixels(400), height=Pixels(300))
    geometry = resolve(action, _info(), anchor=8, offset=(5, 5))
    assert not geometry.has_offset
