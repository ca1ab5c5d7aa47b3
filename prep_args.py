#!/usr/bin/env python3
"""
Command-Line Parsing Module.

imageprep's options take one to three values each, and bare tokens are
source files, so arguments are read by a small state machine rather than
argparse. The machine is either waiting for a flag (Slot.FLAG) or waiting
for the value that fills a particular slot; multi-value options step
through consecutive slots before returning to Slot.FLAG.

SPDX-License-Identifier: MPL-2.0
Copyright (c) 2025-2026 Aryan Ameri
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum, StrEnum, auto
from typing import Final

from prep_actions import (
    DEFAULT_PAD_COLOUR,
    Action,
    ActionKind,
    ActionList,
    Dimension,
    MatchHeight,
    MatchWidth,
    Pixels,
    UseNative,
)
from prep_geometry import NO_ANCHOR

__all__: Final[list[str]] = [
    "ArgumentStateMachine",
    "Command",
    "ConfigurationError",
    "RunConfig",
    "Slot",
    "SUPPORTED_FORMATS",
    "parse_arguments",
    "process_action_type",
    "process_action_value",
    "process_colour",
    "process_compression",
    "process_crop_anchor",
    "process_crop_offset",
    "process_dpi",
    "process_format",
]

# File extension -> sips format name
SUPPORTED_FORMATS: Final[dict[str, str]] = {
    "png": "png",
    "jpg": "jpeg",
    "jpeg": "jpeg",
    "tif": "tiff",
    "tiff": "tiff",
}

DEFAULT_JPEG_COMPRESSION: Final[float] = 80.0

_COLOUR_PREFIXES: Final[tuple[str, ...]] = ("#", "0x", "\\x", "x", "$")
_HEX_RE: Final[re.Pattern[str]] = re.compile(r"[0-9a-fA-F]{1,6}")

_ANCHOR_ROWS: Final[dict[str, int]] = {"t": 0, "c": 1, "m": 1, "b": 2}
_ANCHOR_COLS: Final[dict[str, int]] = {"l": 0, "c": 1, "r": 2}


class ConfigurationError(Exception):
    """Raised for a bad flag, value or path layout. Always fatal."""


class Command(StrEnum):
    """What the parsed command line asks the program to do."""

    RUN = "run"
    HELP = "help"
    VERSION = "version"


class Slot(Enum):
    """Parser states: FLAG, or the value slot currently expected."""

    FLAG = auto()
    SOURCE = auto()
    DESTINATION = auto()
    COLOUR = auto()
    RESOLUTION = auto()
    FORMAT = auto()
    JPEG = auto()
    ACTION_TYPE = auto()
    ACTION_WIDTH = auto()
    ACTION_HEIGHT = auto()
    ANCHOR = auto()
    OFFSET_X = auto()
    OFFSET_Y = auto()


# Options that take values: flag -> first value slot
VALUE_FLAGS: Final[dict[str, Slot]] = {
    "-s": Slot.SOURCE,
    "--source": Slot.SOURCE,
    "-d": Slot.DESTINATION,
    "--destination": Slot.DESTINATION,
    "-c": Slot.COLOUR,
    "--colour": Slot.COLOUR,
    "--color": Slot.COLOUR,
    "-r": Slot.RESOLUTION,
    "--resolution": Slot.RESOLUTION,
    "-f": Slot.FORMAT,
    "--format": Slot.FORMAT,
    "-j": Slot.JPEG,
    "--jpeg": Slot.JPEG,
    "-a": Slot.ACTION_TYPE,
    "--action": Slot.ACTION_TYPE,
    "--cropfrom": Slot.ANCHOR,
    "--offset": Slot.OFFSET_X,
}

# Options without values: flag -> RunConfig boolean field
SWITCH_FLAGS: Final[dict[str, str]] = {
    "-o": "overwrite",
    "--overwrite": "overwrite",
    "-x": "delete_source",
    "--createdirs": "create_dirs",
    "--info": "info_only",
    "-q": "quiet",
    "--quiet": "quiet",
    "-v": "verbose",
    "--verbose": "verbose",
}

COMMAND_FLAGS: Final[dict[str, Command]] = {
    "-h": Command.HELP,
    "--help": Command.HELP,
    "--version": Command.VERSION,
}

# Slot transitions after a value is consumed; anything absent returns to FLAG
NEXT_SLOT: Final[dict[Slot, Slot]] = {
    Slot.ACTION_TYPE: Slot.ACTION_WIDTH,
    Slot.ACTION_WIDTH: Slot.ACTION_HEIGHT,
    Slot.OFFSET_X: Slot.OFFSET_Y,
}


# ═══════════════════════════════════════════════════════════════════
#                        VALUE VALIDATORS
# ═══════════════════════════════════════════════════════════════════


def process_colour(colour: str) -> str:
    """Validate a hex colour and normalise it to six digits.

    Leading '#', '0x', '\\x', 'x' or '$' markers are removed and short
    values are left-padded with zeros: 'f' -> '00000f'.
    """
    work = colour.strip()
    stripped = True
    while stripped:
        stripped = False
        for prefix in _COLOUR_PREFIXES:
            if work.lower().startswith(prefix):
                work = work[len(prefix) :]
                stripped = True

    if not _HEX_RE.fullmatch(work):
        raise ConfigurationError(f"Invalid hex colour value supplied {colour}")

    return work.rjust(6, "0")


def process_format(fmt: str) -> tuple[str, str]:
    """Validate an image format.

    Returns:
        Tuple of (sips format name, output file extension)
    """
    ext = fmt.strip().lower().lstrip(".")
    if ext not in SUPPORTED_FORMATS:
        raise ConfigurationError(f"Invalid image format selected: {fmt}")
    return SUPPORTED_FORMATS[ext], ext


def process_action_type(arg: str) -> ActionKind:
    try:
        return ActionKind(arg.lower())
    except ValueError:
        raise ConfigurationError(f"Invalid action selected: {arg}") from None


def process_action_value(arg: str, kind: ActionKind, is_width: bool) -> Dimension:
    """Parse a width/height spec: an integer >= 1, 'x' (native) or 'm' (aspect)."""
    work = arg.strip().lower()
    if work == "x":
        return UseNative()
    if work == "m":
        return MatchHeight() if is_width else MatchWidth()

    try:
        value = int(work)
    except ValueError:
        value = 0

    if value < 1:
        dimension = "width" if is_width else "height"
        raise ConfigurationError(f"Invalid {kind.label} {dimension} value: {arg}")

    return Pixels(value)


def process_crop_anchor(arg: str) -> int:
    """Decode an anchor point: 0-8, or a row/column code such as 'br'."""
    work = arg.strip().lower()

    if work.isdigit():
        value = int(work)
    elif len(work) == 2 and work[0] in _ANCHOR_ROWS and work[1] in _ANCHOR_COLS:
        value = _ANCHOR_ROWS[work[0]] * 3 + _ANCHOR_COLS[work[1]]
    else:
        value = -1

    if not 0 <= value <= 8:
        raise ConfigurationError(f"Invalid crop anchor point: {arg}")

    return value


def process_crop_offset(arg: str) -> int:
    try:
        value = int(arg.strip())
    except ValueError:
        value = -1

    if value < 0:
        raise ConfigurationError(f"Invalid crop offset: {arg}")

    return value


def process_compression(arg: str) -> float:
    """Parse a JPEG compression percentage, with or without '%'."""
    work = arg.strip().removesuffix("%")
    try:
        value = float(work)
    except ValueError:
        value = -1.0

    if not 0 < value <= 100:
        raise ConfigurationError(f"Invalid JPEG compression level: {arg}")

    return value


def process_dpi(arg: str) -> int:
    try:
        value = int(arg.strip())
    except ValueError:
        value = 0

    if value < 1:
        raise ConfigurationError(f"Invalid resolution: {arg}")

    return value


# ═══════════════════════════════════════════════════════════════════
#                        RUN CONFIGURATION
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True, kw_only=True)
class RunConfig:
    """Configuration for one run. Immutable once parsing completes."""

    command: Command = Command.RUN
    source: str | None = None
    source_files: tuple[str, ...] = ()
    destination: str | None = None
    overwrite: bool = False
    delete_source: bool = False
    create_dirs: bool = False
    info_only: bool = False
    quiet: bool = False
    verbose: bool = False
    target_format: str | None = None
    format_extension: str | None = None
    dpi: int | None = None
    jpeg_compression: float = DEFAULT_JPEG_COMPRESSION
    crop_anchor: int = NO_ANCHOR
    crop_offset: tuple[int, int] | None = None
    actions: tuple[Action, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def do_reformat(self) -> bool:
        return self.target_format is not None

    @property
    def do_change_resolution(self) -> bool:
        return self.dpi is not None


@dataclass(slots=True)
class ArgumentStateMachine:
    """Consumes command-line tokens left to right into a RunConfig."""

    slot: Slot = Slot.FLAG
    previous_flag: str = ""
    command: Command = Command.RUN
    action_list: ActionList = field(default_factory=ActionList)
    pad_colour: str = DEFAULT_PAD_COLOUR
    switches: dict[str, bool] = field(default_factory=dict)
    values: dict[str, object] = field(default_factory=dict)
    source_files: list[str] = field(default_factory=list)
    _action_kind: ActionKind = ActionKind.CROP
    _action_width: Dimension = field(default_factory=UseNative)
    _offset_x: int = 0

    @property
    def done(self) -> bool:
        """True once --help or --version has ended parsing."""
        return self.command is not Command.RUN

    def feed(self, token: str) -> None:
        """Consume one token."""
        if self.done:
            return

        if self.slot is Slot.FLAG:
            self._read_flag(token)
            return

        if token.startswith("-"):
            raise ConfigurationError(f"Missing value for {self.previous_flag}")

        self._read_value(self.slot, token)
        self.slot = NEXT_SLOT.get(self.slot, Slot.FLAG)

    def _read_flag(self, token: str) -> None:
        if token in VALUE_FLAGS:
            self.slot = VALUE_FLAGS[token]
        elif token in SWITCH_FLAGS:
            self.switches[SWITCH_FLAGS[token]] = True
        elif token in COMMAND_FLAGS:
            self.command = COMMAND_FLAGS[token]
        elif token.startswith("-") and token != "-":
            raise ConfigurationError(f"Unknown argument: {token}")
        else:
            # Bare token: a candidate source file
            self.source_files.append(token)
            return

        self.previous_flag = token

    def _read_value(self, slot: Slot, token: str) -> None:
        match slot:
            case Slot.SOURCE:
                self.values["source"] = token
            case Slot.DESTINATION:
                self.values["destination"] = token
            case Slot.COLOUR:
                self.pad_colour = process_colour(token)
            case Slot.RESOLUTION:
                self.values["dpi"] = process_dpi(token)
            case Slot.FORMAT:
                sips_format, extension = process_format(token)
                self.values["target_format"] = sips_format
                self.values["format_extension"] = extension
            case Slot.JPEG:
                self.values["jpeg_compression"] = process_compression(token)
            case Slot.ACTION_TYPE:
                self._action_kind = process_action_type(token)
            case Slot.ACTION_WIDTH:
                self._action_width = process_action_value(
                    token, self._action_kind, is_width=True
                )
            case Slot.ACTION_HEIGHT:
                height = process_action_value(token, self._action_kind, is_width=False)
                self.action_list.add(
                    self._action_kind, self._action_width, height, self.pad_colour
                )
            case Slot.ANCHOR:
                self.values["crop_anchor"] = process_crop_anchor(token)
            case Slot.OFFSET_X:
                self._offset_x = process_crop_offset(token)
            case Slot.OFFSET_Y:
                self.values["crop_offset"] = (self._offset_x, process_crop_offset(token))
            case Slot.FLAG:
                raise ConfigurationError(f"Unknown argument: {token}")

    def finish(self) -> RunConfig:
        """Close the token stream and build the run configuration.

        Raises:
            ConfigurationError: If a value is still expected, or nothing
                would be done to the images.
        """
        if self.done:
            return RunConfig(command=self.command)

        if self.slot is not Slot.FLAG:
            raise ConfigurationError(f"Missing value for {self.previous_flag}")

        config = RunConfig(
            source_files=tuple(self.source_files),
            actions=tuple(self.action_list),
            warnings=tuple(self.action_list.warnings),
            **self.switches,
            **self.values,  # type: ignore[arg-type]
        )

        if not (
            config.actions
            or config.do_reformat
            or config.do_change_resolution
            or config.info_only
        ):
            raise ConfigurationError("No actions specified")

        return config


def parse_arguments(argv: Iterable[str]) -> RunConfig:
    """Parse command-line tokens (without the program name)."""
    machine = ArgumentStateMachine()
    for token in argv:
        machine.feed(token)
        if machine.done:
            break
    return machine.finish()
