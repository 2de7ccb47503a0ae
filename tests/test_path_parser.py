"""Tests for visitmap.path_parser - path-language parsing and serialization."""

from __future__ import annotations

import pytest

from visitmap.models import Close, CubicTo, LineTo, MoveTo, ParsedPath, QuadTo
from visitmap.path_parser import MalformedPathError, PathLanguageParser, format_path


@pytest.fixture
def parser() -> PathLanguageParser:
    return PathLanguageParser()


# ---------------------------------------------------------------------------
# Moves, lines, close
# ---------------------------------------------------------------------------

class TestLines:
    def test_absolute_triangle(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M10 10 L20 10 L20 20 Z")
        assert path.segments == (
            MoveTo((10.0, 10.0)),
            LineTo((20.0, 10.0)),
            LineTo((20.0, 20.0)),
            Close((10.0, 10.0)),
        )

    def test_relative_commands_resolve_against_current_point(self, parser: PathLanguageParser) -> None:
        path = parser.parse("m10,10 l5,0 l0,5 z")
        assert path.segments == (
            MoveTo((10.0, 10.0)),
            LineTo((15.0, 10.0)),
            LineTo((15.0, 15.0)),
            Close((10.0, 10.0)),
        )

    def test_horizontal_and_vertical_shorthands(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M0 0 H10 V5 h-3 v-2")
        assert path.segments[1:] == (
            LineTo((10.0, 0.0)),
            LineTo((10.0, 5.0)),
            LineTo((7.0, 5.0)),
            LineTo((7.0, 3.0)),
        )

    def test_extra_pairs_after_move_are_lines(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M0 0 10 0 10 10")
        assert path.segments == (
            MoveTo((0.0, 0.0)),
            LineTo((10.0, 0.0)),
            LineTo((10.0, 10.0)),
        )

    def test_extra_pairs_after_relative_move_are_relative_lines(self, parser: PathLanguageParser) -> None:
        path = parser.parse("m1 1 2 2")
        assert path.segments == (MoveTo((1.0, 1.0)), LineTo((3.0, 3.0)))

    def test_empty_input_gives_empty_path(self, parser: PathLanguageParser) -> None:
        assert parser.parse("   ").is_empty


class TestNumberTokenizing:
    def test_densely_packed_numbers(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M10-5.5.5.25L1e1,2")
        assert path.segments == (
            MoveTo((10.0, -5.5)),
            LineTo((0.5, 0.25)),
            LineTo((10.0, 2.0)),
        )

    def test_commas_and_mixed_whitespace(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M 1,2\n\tL\t3 ,4")
        assert path.segments == (MoveTo((1.0, 2.0)), LineTo((3.0, 4.0)))

    def test_leading_plus_and_exponent(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M+1.5e2 -2E-1")
        assert path.segments == (MoveTo((150.0, -0.2)),)


# ---------------------------------------------------------------------------
# Curves
# ---------------------------------------------------------------------------

class TestCurves:
    def test_absolute_cubic(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M0 0 C1 2 3 4 5 6")
        assert path.segments[1] == CubicTo((1.0, 2.0), (3.0, 4.0), (5.0, 6.0))

    def test_relative_cubic(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M10 10 c1 2 3 4 5 6")
        assert path.segments[1] == CubicTo((11.0, 12.0), (13.0, 14.0), (15.0, 16.0))

    def test_smooth_cubic_reflects_previous_control(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M0 0 C0 10 10 10 10 0 S20 -10 20 0")
        assert path.segments[2] == CubicTo((10.0, -10.0), (20.0, -10.0), (20.0, 0.0))

    def test_smooth_cubic_without_previous_curve_uses_current_point(
        self, parser: PathLanguageParser
    ) -> None:
        path = parser.parse("M5 5 S10 10 15 5")
        assert path.segments[1] == CubicTo((5.0, 5.0), (10.0, 10.0), (15.0, 5.0))

    def test_smooth_cubic_after_line_uses_current_point(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M0 0 C1 1 2 2 3 3 L4 4 S5 5 6 6")
        assert path.segments[3] == CubicTo((4.0, 4.0), (5.0, 5.0), (6.0, 6.0))

    def test_quadratic_and_smooth_chain(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M0 0 Q5 10 10 0 T20 0 T30 0")
        assert path.segments[1:] == (
            QuadTo((5.0, 10.0), (10.0, 0.0)),
            QuadTo((15.0, -10.0), (20.0, 0.0)),
            QuadTo((25.0, 10.0), (30.0, 0.0)),
        )

    def test_relative_quadratic_and_smooth(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M0 0 q5 10 10 0 t10 0")
        assert path.segments[1:] == (
            QuadTo((5.0, 10.0), (10.0, 0.0)),
            QuadTo((15.0, -10.0), (20.0, 0.0)),
        )

    def test_smooth_quadratic_does_not_reflect_cubic_control(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M0 0 C0 10 10 10 10 0 T20 0")
        assert path.segments[2] == QuadTo((10.0, 0.0), (20.0, 0.0))


class TestControlStateReset:
    def test_move_resets_reflection(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M0 0 C0 10 10 10 10 0 M50 50 S60 60 70 50")
        assert path.segments[3] == CubicTo((50.0, 50.0), (60.0, 60.0), (70.0, 50.0))

    def test_close_resets_reflection_and_reopens_at_start(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M0 0 C0 10 10 10 10 0 Z S5 5 6 6")
        assert path.segments[2:] == (
            Close((0.0, 0.0)),
            MoveTo((0.0, 0.0)),
            CubicTo((0.0, 0.0), (5.0, 5.0), (6.0, 6.0)),
        )

    def test_relative_line_after_close_starts_from_figure_start(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M10 10 l10 0 z l0 5")
        assert path.segments == (
            MoveTo((10.0, 10.0)),
            LineTo((20.0, 10.0)),
            Close((10.0, 10.0)),
            MoveTo((10.0, 10.0)),
            LineTo((10.0, 15.0)),
        )

    def test_multiple_sub_figures(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M0 0 l10 0 0 10 z m20 0 l5 0 0 5 z")
        assert path.subpath_count == 2
        assert path.segments[4] == MoveTo((20.0, 0.0))


# ---------------------------------------------------------------------------
# Arcs
# ---------------------------------------------------------------------------

class TestArcs:
    def test_semicircle_becomes_cubics_ending_exactly(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M0 0 A10 10 0 0 1 20 0")
        curves = path.segments[1:]
        assert len(curves) == 2
        assert all(isinstance(segment, CubicTo) for segment in curves)
        assert curves[0].point == pytest.approx((10.0, -10.0))
        assert curves[-1].point == (20.0, 0.0)

    def test_sweep_flag_picks_the_other_side(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M0 0 A10 10 0 0 0 20 0")
        assert path.segments[1].point == pytest.approx((10.0, 10.0))

    def test_packed_flags(self, parser: PathLanguageParser) -> None:
        packed = parser.parse("M0 0a10 10 0 0120 0")
        spaced = parser.parse("M0 0 a10 10 0 0 1 20 0")
        assert packed == spaced

    def test_zero_radius_is_a_line(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M0 0 A0 5 0 0 1 10 10")
        assert path.segments[1] == LineTo((10.0, 10.0))

    def test_same_endpoint_is_skipped(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M5 5 A5 5 0 0 1 5 5 L10 10")
        assert path.segments == (MoveTo((5.0, 5.0)), LineTo((10.0, 10.0)))

    def test_small_radii_are_scaled_up(self, parser: PathLanguageParser) -> None:
        path = parser.parse("M0 0 A1 1 0 0 1 20 0")
        assert path.end_point == (20.0, 0.0)
        assert path.segments[1].point == pytest.approx((10.0, -10.0))


# ---------------------------------------------------------------------------
# Malformed input
# ---------------------------------------------------------------------------

class TestMalformed:
    @pytest.mark.parametrize("path_data", [
        "L10 10",
        "10 10",
        "M10",
        "M10 10 L",
        "M10 10 L5 abc",
        "M10 10 C1 2 3 4",
        "M0 0 A5 5 0 2 1 10 10",
        "M1e999 0",
        "M0 0 L1 1 #",
        "M0 0 L0 10 L1e-200 0 A 1 1 0 0 1 0 0 Z",
        "M0 0 A1e200 1e200 0 0 1 10 0 L0 10 Z",
        "M1e308 0 l1e308 0 l0 10 z",
        "M1e308 0 h1e308",
        "M0 -1e308 v-1e308",
        "M0 0 C0 0 -1e308 0 1e308 0 S1 1 2 2",
    ])
    def test_rejected(self, parser: PathLanguageParser, path_data: str) -> None:
        with pytest.raises(MalformedPathError):
            parser.parse(path_data)

    def test_unknown_command_reports_position(self, parser: PathLanguageParser) -> None:
        with pytest.raises(MalformedPathError) as excinfo:
            parser.parse("M10 10 X5 5")
        assert excinfo.value.position == 7
        assert "'X'" in str(excinfo.value)

    def test_relative_overflow_reports_token_position(self, parser: PathLanguageParser) -> None:
        with pytest.raises(MalformedPathError) as excinfo:
            parser.parse("M1e308 0 l1e308 0")
        assert excinfo.value.position == 10
        assert "out of range" in str(excinfo.value)

    def test_unresolvable_arc_is_malformed(self, parser: PathLanguageParser) -> None:
        with pytest.raises(MalformedPathError, match="Arc cannot be resolved"):
            parser.parse("M1e-200 0 A1 1 0 0 1 0 0")

    def test_is_a_value_error(self) -> None:
        assert issubclass(MalformedPathError, ValueError)


# ---------------------------------------------------------------------------
# Serialization and terminal cursor position
# ---------------------------------------------------------------------------

class TestFormatPath:
    @pytest.mark.parametrize("path_data,end_point", [
        ("M10 10 l5 5 h10 v-3", (25.0, 12.0)),
        ("m0 0 c1 1 2 2 3 3 s4 4 5 5", (8.0, 8.0)),
        ("M0 0 q1 1 2 0 t2 0 t2 0", (6.0, 0.0)),
        ("M1 1 L4 5 Z", (1.0, 1.0)),
        ("M0 0 l10 0 z m5 5 l1 1", (6.0, 6.0)),
        ("M0 0 a10 10 0 0 1 20 0", (20.0, 0.0)),
    ])
    def test_reparse_keeps_segments_and_end_point(
        self, parser: PathLanguageParser, path_data: str, end_point: tuple[float, float]
    ) -> None:
        parsed = parser.parse(path_data)
        reparsed = parser.parse(format_path(parsed))
        assert parsed.end_point == end_point
        assert reparsed == parsed
        assert reparsed.end_point == end_point

    def test_uses_absolute_commands(self, parser: PathLanguageParser) -> None:
        text = format_path(parser.parse("m1.5 2 l1 1 z"))
        assert text == "M1.5 2 L2.5 3 Z"

    def test_empty_path(self) -> None:
        assert format_path(ParsedPath()) == ""
