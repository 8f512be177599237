"""Tests for the ``raster-plotter`` command-line entrypoint."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest
from PIL import Image

from raster_plotter.scripts.trace_image import build_parser, main
from raster_plotter.utils.logging_config import pop_context


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _restore_logging(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """main() installs root handlers and an excepthook; undo both."""
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    pop_context()


@pytest.fixture()
def square_png(tmp_path: Path) -> Path:
    """12x12 white image with a black 4x4 square in the middle."""
    img = Image.new("RGB", (12, 12), (255, 255, 255))
    img.paste((0, 0, 0), (4, 4, 8, 8))
    path = tmp_path / "square.png"
    img.save(path)
    return path


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class TestParser:
    def test_mode_flags_default_to_none(self) -> None:
        args = build_parser().parse_args(["img.png"])
        assert args.use_z is None
        assert args.laser is None
        assert args.output_dir == "."

    def test_values_stay_strings(self) -> None:
        args = build_parser().parse_args(["img.png", "--scale", "abc", "-t", "90"])
        assert args.scale == "abc"
        assert args.threshold == "90"

    def test_log_level_case_insensitive(self) -> None:
        args = build_parser().parse_args(["img.png", "--log-level", "debug"])
        assert args.log_level == "DEBUG"

    def test_unknown_log_level_rejected(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc:
            build_parser().parse_args(["img.png", "--log-level", "bogus"])
        assert exc.value.code == 2
        assert "invalid choice" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# main()
# ---------------------------------------------------------------------------


class TestMain:
    def test_writes_gcode(self, square_png: Path, tmp_path: Path) -> None:
        out_dir = tmp_path / "out"
        rc = main([str(square_png), "-o", str(out_dir), "--use-z", "--scale", "1"])
        assert rc == 0
        text = (out_dir / "plot.gcode").read_text()
        assert text.startswith("; Generated by raster_plotter\n")
        assert text.endswith("; end\n")
        assert "; scale: 1 mm/px" in text
        assert "G0 Z5.000" in text

    def test_dry_run_prints(
        self, square_png: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        rc = main([str(square_png), "-o", str(tmp_path), "--laser", "--dry-run"])
        assert rc == 0
        out = capsys.readouterr().out
        assert "M3" in out and "M5" in out
        assert not (tmp_path / "plot.gcode").exists()

    def test_preview_written(self, square_png: Path, tmp_path: Path) -> None:
        rc = main([str(square_png), "-o", str(tmp_path), "--preview"])
        assert rc == 0
        assert (tmp_path / "preview.png").exists()

    def test_threshold_zero_gives_empty_program(
        self, square_png: Path, tmp_path: Path,
    ) -> None:
        rc = main([str(square_png), "-o", str(tmp_path), "-t", "0"])
        assert rc == 0
        assert "G0 X" not in (tmp_path / "plot.gcode").read_text()

    def test_missing_image(self, tmp_path: Path) -> None:
        assert main([str(tmp_path / "nope.png"), "-o", str(tmp_path)]) == 1

    def test_missing_config(self, square_png: Path, tmp_path: Path) -> None:
        rc = main([str(square_png), "-c", str(tmp_path / "nope.yaml")])
        assert rc == 2

    def test_malformed_config(self, square_png: Path, tmp_path: Path) -> None:
        bad = tmp_path / "plotter.yaml"
        bad.write_text("schema: plotter.v1\ntrace: [unclosed\n")
        rc = main([str(square_png), "-c", str(bad), "--dry-run"])
        assert rc == 2
