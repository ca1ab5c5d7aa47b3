#!/usr/bin/env -S uv run --quiet --script
# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "rich>=14.0",
#     "Pillow>=10.0",
# ]
# ///
#
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025-2026 Aryan Ameri
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#

"""
Image Preparation Utility

Batch crops, pads, scales, re-formats and sets the resolution of images
using macOS `sips`. Sources may be a directory, a single image or a list of
images; results go to a directory, a single file, or back over the sources.

Actions always run in the order given on the command line, followed by any
resolution change and then any format change.

Prerequisites:
    - Requires: sips (set IMAGEPREP_SIPS to use a different binary)

Usage:
    ./imageprep.py -s ~/Pictures/scans -d ~/Pictures/out -a s 1000 m
    ./imageprep.py photo.png -a c 800 800 --cropfrom br -f jpg -j 70
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import Final

from prep_args import Command, ConfigurationError, RunConfig, parse_arguments
from prep_paths import plan_layout
from prep_report import Reporter, configure_logging, plural
from prep_sips import SipsRunner
from prep_transform import RunState, TransformOrchestrator

__all__: Final[list[str]] = ["main", "run"]

__version__: Final[str] = "7.0.0"

EXIT_OK: Final[int] = 0
EXIT_ERROR: Final[int] = 1
EXIT_INTERRUPTED: Final[int] = 130

HELP_TEXT: Final[str] = """\
A macOS image preparation utility

Usage:
    imageprep [-s path] [-d path] [-c pad_colour] [-a type width height] ...
              [--cropfrom anchor | --offset x y] [-r dpi] [-f format]
              [-j percent] [-o] [-x] [--createdirs] [--info] [-q] [-v]
    imageprep file1 [file2 ...] [options]

    Actions run in the order they are given. A pad colour applies to the
    actions that follow it.

Options:
    -s / --source      [path]           An image or a directory of images.
                                        Default: current working directory.
    -d / --destination [path]           A directory or a single file.
                                        Default: alongside each source.
    -a / --action      [type] [w] [h]   Add an action. Type is c (crop), p (pad)
                                        or s (scale). Width and height are pixel
                                        values, 'x' (keep the image's own value)
                                        or 'm' (derive from the aspect ratio).
    -c / --colour      [colour]         Pad colour in hex, eg. A1B2C3. Default: FFFFFF.
    --cropfrom         [anchor]         Crop anchor 0-8 or tl, tc, tr, cl, cc, cr,
                                        bl, bc, br. Default: 4 (no anchoring).
    --offset           [x] [y]          Explicit crop offset, used if no anchor is set.
    -r / --resolution  [dpi]            Set the image dpi, eg. 300.
    -f / --format      [format]         Output format: JPG/JPEG, PNG or TIF/TIFF.
    -j / --jpeg        [percent]        JPEG compression level. Default: 80.
    -o / --overwrite                    Overwrite existing re-formatted files.
    -x                                  Delete source files after processing.
    --createdirs                        Create missing destination directories.
    --info                              Print image information only.
    -q / --quiet                        Silence output messages (errors excepted).
    -v / --verbose                      Log each sips call.
    -h / --help                         This help screen.
    --version                           Show the version.
"""


def show_help(reporter: Reporter) -> None:
    show_header(reporter)
    reporter.data(HELP_TEXT)


def show_version(reporter: Reporter) -> None:
    show_header(reporter)
    reporter.data(
        "Copyright 2025-2026. Source code available under the Mozilla Public License 2.0.\n"
    )


def show_header(reporter: Reporter) -> None:
    reporter.data(f"\nimageprep {__version__}")


def run(config: RunConfig, reporter: Reporter, runner: SipsRunner | None = None) -> RunState:
    """Resolve the file layout and process every source image.

    Raises:
        ConfigurationError: If the source/destination layout is invalid.
    """
    layout = plan_layout(config, reporter)

    if not layout.sources.files:
        reporter.progress("[yellow]No files to convert[/]")
        return RunState()

    if not config.info_only:
        reporter.progress(
            f"Found {plural(len(layout.sources.files), 'image')} to process\n"
        )

    orchestrator = TransformOrchestrator(
        config=config,
        layout=layout,
        runner=runner or SipsRunner.create(),
        reporter=reporter,
    )
    try:
        return orchestrator.run_all()
    except KeyboardInterrupt:
        orchestrator.cleanup()
        raise


def main(argv: Sequence[str] | None = None) -> None:
    """Script entry point."""
    reporter = Reporter()

    try:
        config = parse_arguments(sys.argv[1:] if argv is None else argv)

        if config.command is Command.HELP:
            show_help(reporter)
            return
        if config.command is Command.VERSION:
            show_version(reporter)
            return

        reporter.quiet = config.quiet
        configure_logging(config.verbose)

        for warning in config.warnings:
            reporter.warning(warning)

        state = run(config, reporter)

        if not config.info_only:
            reporter.summary(state.converted, state.skipped, state.failed)

    except KeyboardInterrupt:
        reporter.err.print("\n[yellow]Interrupted by user[/]")
        sys.exit(EXIT_INTERRUPTED)
    except ConfigurationError as e:
        reporter.fatal(str(e))
        sys.exit(EXIT_ERROR)


if __name__ == "__main__":
    main()
