#!/usr/bin/env python3
"""
Image Action Module.

Holds the crop/pad/scale actions requested on the command line and the
symbolic dimensions they may carry until an image is probed.

Dimensions are one of:
    Pixels(n)    A literal pixel count
    UseNative    Keep the image's own width or height
    MatchHeight  Width derived from the (resolved) height and aspect ratio
    MatchWidth   Height derived from the (resolved) width and aspect ratio

SPDX-License-Identifier: MPL-2.0
Copyright (c) 2025-2026 Aryan Ameri
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

__all__: Final[list[str]] = [
    "Action",
    "ActionKind",
    "ActionList",
    "Dimension",
    "MatchHeight",
    "MatchWidth",
    "Pixels",
    "UseNative",
    "DEFAULT_PAD_COLOUR",
]

DEFAULT_PAD_COLOUR: Final[str] = "FFFFFF"


class ActionKind(StrEnum):
    """Action markers as typed after -a on the command line."""

    CROP = "c"
    PAD = "p"
    SCALE = "s"

    @property
    def verb(self) -> str:
        """The sips flag that performs this action."""
        return {"c": "-c", "p": "-p", "s": "-z"}[self.value]

    @property
    def label(self) -> str:
        """Human-readable name, used only in diagnostics."""
        return {"c": "crop", "p": "pad", "s": "scale"}[self.value]


@dataclass(frozen=True, slots=True)
class Pixels:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class UseNative:
    def __str__(self) -> str:
        return "x"


@dataclass(frozen=True, slots=True)
class MatchHeight:
    def __str__(self) -> str:
        return "m"


@dataclass(frozen=True, slots=True)
class MatchWidth:
    def __str__(self) -> str:
        return "m"


type Dimension = Pixels | UseNative | MatchHeight | MatchWidth


@dataclass(frozen=True, slots=True, kw_only=True)
class Action:
    """One ordered geometric transformation."""

    kind: ActionKind
    width: Dimension
    height: Dimension
    pad_colour: str = DEFAULT_PAD_COLOUR

    @property
    def is_noop(self) -> bool:
        """True if neither dimension can change the image."""
        both_native = isinstance(self.width, UseNative) and isinstance(
            self.height, UseNative
        )
        both_derived = isinstance(self.width, MatchHeight) and isinstance(
            self.height, MatchWidth
        )
        return both_native or both_derived

    def __str__(self) -> str:
        return f"{self.kind.label} {self.width}x{self.height}"


@dataclass(slots=True)
class ActionList:
    """Ordered, validated list of actions built during argument parsing.

    Insertion order is execution order. Actions that cannot change the
    image are dropped and a warning is recorded instead.
    """

    actions: list[Action] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add(
        self,
        kind: ActionKind,
        width: Dimension,
        height: Dimension,
        pad_colour: str = DEFAULT_PAD_COLOUR,
    ) -> bool:
        """Append an action unless it is a no-op. Returns True if added."""
        action = Action(kind=kind, width=width, height=height, pad_colour=pad_colour)
        if action.is_noop:
            self.warnings.append(
                f"Action {kind.label} will not change the image -- ignoring"
            )
            return False

        self.actions.append(action)
        return True

    def __len__(self) -> int:
        return len(self.actions)

    def __iter__(self) -> Iterator[Action]:
        return iter(self.actions)
