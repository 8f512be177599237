"""Tests for G-code generator.

Validates program layout, origin normalization and Y flip, tool framing
in Z and laser modes, number formatting and contained failures.
"""

from __future__ import annotations

import pytest

from raster_plotter.configs.loader import ToolpathOptions
from raster_plotter.contour.geometry import BoundingBox, Point
from raster_plotter.gcode.generator import (
    ERROR_PLACEHOLDER,
    GCodeError,
    GCodeGenerator,
    _num,
    emit_toolpath,
    to_device,
)
from raster_plotter.results import FailureKind

HEADER = [
    "; Generated by raster_plotter",
    "G21 ; units = mm",
    "G90 ; absolute coords",
    "",
]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def pen_opts() -> ToolpathOptions:
    return ToolpathOptions(
        scale=1.0, feed_rate=500.0, travel_rate=2000.0,
        use_z_axis=True, z_up=5.0, z_down=0.0,
    )


@pytest.fixture()
def laser_opts() -> ToolpathOptions:
    return ToolpathOptions(scale=1.0, laser_mode=True)


@pytest.fixture()
def gen() -> GCodeGenerator:
    """Generator with the documented defaults."""
    return GCodeGenerator(ToolpathOptions())


def _lines(gcode: str) -> list[str]:
    return gcode.split("\n")


# ---------------------------------------------------------------------------
# Program layout
# ---------------------------------------------------------------------------


class TestProgramLayout:
    def test_pen_program_exact(self, pen_opts: ToolpathOptions) -> None:
        gcode = GCodeGenerator(pen_opts).generate([[Point(0, 0), Point(10, 0)]])
        assert _lines(gcode) == HEADER + [
            "; scale: 1 mm/px",
            "F2000",
            "G0 Z5.000",
            "G0 X0.000 Y0.000",
            "G0 Z0.000",
            "F500",
            "G1 X10.000 Y0.000",
            "G0 Z5.000",
            "",
            "; end",
        ]

    def test_empty_paths_header_only(self, gen: GCodeGenerator) -> None:
        gcode = gen.generate([])
        assert _lines(gcode) == HEADER + ["; scale: 0.25 mm/px", "F3000", "; end"]

    def test_no_trailing_newline(self, gen: GCodeGenerator) -> None:
        gcode = gen.generate([[Point(0, 0), Point(1, 1)]])
        assert gcode.endswith("; end")
        assert not gcode.endswith("\n")

    def test_empty_polylines_skipped(self, gen: GCodeGenerator) -> None:
        gcode = gen.generate([[], [Point(0, 0), Point(1, 1)], []])
        assert sum(l.startswith("G0 X") for l in _lines(gcode)) == 1

    def test_one_block_per_path(self, gen: GCodeGenerator) -> None:
        paths = [
            [Point(0, 0), Point(1, 0)],
            [Point(2, 2), Point(3, 2), Point(3, 3)],
        ]
        lines = _lines(gen.generate(paths))
        assert sum(l.startswith("G0 X") for l in lines) == 2
        assert sum(l.startswith("G1 ") for l in lines) == 3
        assert lines.count("F1000") == 2

    @pytest.mark.parametrize("scale", [0.25, 1.0, 3.7, 100.0])
    def test_single_point_path_has_no_draw_moves(self, scale: float) -> None:
        gen = GCodeGenerator(ToolpathOptions(scale=scale))
        lines = _lines(gen.generate([[Point(3, 4)]]))
        assert "G0 X0.000 Y0.000" in lines
        assert not any(l.startswith("G1 ") for l in lines)


# ---------------------------------------------------------------------------
# Coordinate transform
# ---------------------------------------------------------------------------


class TestCoordinateTransform:
    def test_to_device(self) -> None:
        bbox = BoundingBox(2.0, 1.0, 6.0, 5.0)
        assert to_device(Point(2.0, 5.0), bbox, 0.5) == (0.0, 0.0)
        assert to_device(Point(6.0, 1.0), bbox, 0.5) == (2.0, 2.0)

    def test_origin_normalized(self, pen_opts: ToolpathOptions) -> None:
        gcode = GCodeGenerator(pen_opts).generate([[Point(5, 5), Point(7, 9)]])
        assert "G0 X0.000 Y4.000" in gcode
        assert "G1 X2.000 Y0.000" in gcode

    def test_y_flipped_and_scaled(self) -> None:
        gen = GCodeGenerator(ToolpathOptions(scale=0.5))
        lines = _lines(gen.generate([[Point(0, 0), Point(0, 2)]]))
        assert "G0 X0.000 Y1.000" in lines
        assert "G1 X0.000 Y0.000" in lines

    def test_bbox_spans_all_paths(self, pen_opts: ToolpathOptions) -> None:
        paths = [[Point(10, 10), Point(11, 10)], [Point(0, 0), Point(1, 0)]]
        gcode = GCodeGenerator(pen_opts).generate(paths)
        assert "G0 X10.000 Y0.000" in gcode
        assert "G0 X0.000 Y10.000" in gcode

    def test_bbox_recomputed_per_call(self, pen_opts: ToolpathOptions) -> None:
        gen = GCodeGenerator(pen_opts)
        gen.generate([[Point(100, 100), Point(200, 200)]])
        gcode = gen.generate([[Point(5, 5), Point(6, 5)]])
        assert "G0 X0.000 Y0.000" in gcode

    def test_three_decimals(self) -> None:
        gen = GCodeGenerator(ToolpathOptions(scale=1 / 3))
        gcode = gen.generate([[Point(0, 0), Point(1, 0)]])
        assert "G1 X0.333 Y0.000" in gcode


# ---------------------------------------------------------------------------
# Tool framing
# ---------------------------------------------------------------------------


class TestToolFraming:
    def test_laser_toggles(self, laser_opts: ToolpathOptions) -> None:
        lines = _lines(GCodeGenerator(laser_opts).generate([[Point(0, 0), Point(1, 0)]]))
        block = lines[lines.index("F3000") + 1:]
        assert block[:5] == ["M5", "G0 X0.000 Y0.000", "M3", "F1000", "G1 X1.000 Y0.000"]
        assert block[5] == "M5"

    def test_laser_takes_precedence_over_z(self) -> None:
        opts = ToolpathOptions(laser_mode=True, use_z_axis=True)
        gcode = GCodeGenerator(opts).generate([[Point(0, 0), Point(1, 0)]])
        assert "M3" in gcode
        assert " Z" not in gcode

    def test_no_framing_when_neither_mode(self, gen: GCodeGenerator) -> None:
        lines = _lines(gen.generate([[Point(0, 0), Point(1, 0)]]))
        block = lines[lines.index("F3000") + 1:]
        assert block == ["G0 X0.000 Y0.000", "F1000", "G1 X0.250 Y0.000", "", "; end"]

    def test_z_heights_formatted(self) -> None:
        opts = ToolpathOptions(use_z_axis=True, z_up=4, z_down=-0.5)
        gcode = GCodeGenerator(opts).generate([[Point(0, 0), Point(1, 0)]])
        assert "G0 Z4.000" in gcode
        assert "G0 Z-0.500" in gcode


# ---------------------------------------------------------------------------
# Number formatting
# ---------------------------------------------------------------------------


class TestNumberFormat:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (1000.0, "1000"),
            (3000, "3000"),
            (0.25, "0.25"),
            (1500.5, "1500.5"),
            (0, "0"),
            (1e-05, "0.00001"),
            (2.5e-07, "0.00000025"),
        ],
    )
    def test_num(self, value: float, expected: str) -> None:
        assert _num(value) == expected


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_non_finite_raises(self, gen: GCodeGenerator) -> None:
        with pytest.raises(GCodeError, match="Non-finite"):
            gen.generate([[Point(0, 0), Point(float("nan"), 1.0)]])

    def test_emit_contains_failure(self, pen_opts: ToolpathOptions) -> None:
        result = emit_toolpath([[Point(0, 0), Point(float("nan"), 1.0)]], pen_opts)
        assert not result.ok
        assert result.value == ERROR_PLACEHOLDER
        assert result.failure.kind is FailureKind.EMISSION
        assert "Non-finite" in result.failure.message

    def test_emit_success(self, pen_opts: ToolpathOptions) -> None:
        result = emit_toolpath([[Point(0, 0), Point(10, 0)]], pen_opts)
        assert result.ok
        assert result.unwrap().startswith("; Generated by raster_plotter")
