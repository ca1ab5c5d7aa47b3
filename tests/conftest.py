from __future__ import annotations

import io
import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from PIL import Image
from rich.console import Console

from prep_report import Reporter
from prep_sips import ToolResult


@dataclass
class FakeRunner:
    """Records sips calls; honours --out by copying the input file."""

    calls: list[list[str]] = field(default_factory=list)
    fail_on: set[str] = field(default_factory=set)
    interrupt_on: str | None = None

    def run(self, args: Sequence[str]) -> ToolResult:
        args = list(args)
        self.calls.append(args)

        if self.interrupt_on is not None and self.interrupt_on in args:
            raise KeyboardInterrupt

        if self.fail_on.intersection(args):
            return ToolResult(returncode=1, output="Error: simulated failure")

        if "--out" in args:
            out = Path(args[args.index("--out") + 1])
            shutil.copyfile(args[0], out)

        return ToolResult(returncode=0)

    def verbs(self) -> list[str]:
        return [call[1] for call in self.calls]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def reporter() -> Reporter:
    return Reporter(
        out=Console(file=io.StringIO(), width=240),
        err=Console(file=io.StringIO(), width=240),
    )


def output_of(console: Console) -> str:
    return console.file.getvalue()  # type: ignore[attr-defined]


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    def _make(
        name: str,
        size: tuple[int, int] = (800, 600),
        *,
        mode: str = "RGB",
        directory: Path | None = None,
        dpi: tuple[int, int] | None = None,
    ) -> Path:
        path = (directory or tmp_path) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        img = Image.new(mode, size)
        if dpi is not None:
            img.save(path, dpi=dpi)
        else:
            img.save(path)
        return path

    return _make
