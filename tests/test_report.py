from __future__ import annotations

import pytest

from conftest import output_of
from prep_report import Reporter, plural


def test_plural() -> None:
    assert plural(1, "file") == "1 file"
    assert plural(0, "file") == "0 files"
    assert plural(5, "image") == "5 images"


@pytest.mark.parametrize(
    ("counts", "expected"),
    [
        ((0, 0, 0), "No files converted"),
        ((1, 0, 0), "1 file converted"),
        ((4, 2, 0), "4 files converted (2 skipped)"),
        ((2, 1, 3), "2 files converted (1 skipped, 3 with errors)"),
    ],
)
def test_summary_wording(reporter: Reporter, counts: tuple[int, int, int], expected: str) -> None:
    reporter.summary(*counts)
    assert expected in output_of(reporter.out)


def test_quiet_keeps_errors_and_data(reporter: Reporter) -> None:
    reporter.quiet = True
    reporter.progress("working")
    reporter.warning("careful")
    reporter.summary(3)
    reporter.data("/a/b.png 1 1 72 1 no-alpha")
    reporter.error("broken [tag]")

    assert output_of(reporter.out) == "/a/b.png 1 1 72 1 no-alpha\n"
    assert "broken [tag]" in output_of(reporter.err)
    assert "careful" not in output_of(reporter.err)
