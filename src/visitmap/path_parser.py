"""Path-language parsing into plain segment lists.

The grammar is the SVG path-data mini language: move, line (with
horizontal/vertical shorthands), cubic and quadratic Bezier curves
(with smooth variants), elliptical arcs and close-path, each in
absolute (upper-case) and relative (lower-case) form. Numbers may be
separated by whitespace/commas or packed densely (`10-5.5.5`), so they
are scanned greedily instead of split on delimiters.
"""

from __future__ import annotations

import math
import re

from .models import Close, CubicTo, LineTo, MoveTo, ParsedPath, Point, QuadTo, Segment

_COMMAND_LETTERS = frozenset("MmLlHhVvCcSsQqTtAaZz")
_SEPARATORS = frozenset(" \t\r\n\f,")
_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


class MalformedPathError(ValueError):
    """Raised when a path-language string cannot be turned into segments."""

    def __init__(self, message: str, position: int) -> None:
        super().__init__(f"{message} (at position {position})")
        self.position = position


class _Scanner:
    __slots__ = ("text", "pos")

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def skip_separators(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in _SEPARATORS:
            self.pos += 1

    def at_end(self) -> bool:
        self.skip_separators()
        return self.pos >= len(self.text)

    def peek_command(self) -> str | None:
        self.skip_separators()
        if self.pos < len(self.text) and self.text[self.pos] in _COMMAND_LETTERS:
            return self.text[self.pos]
        return None

    def has_number(self) -> bool:
        self.skip_separators()
        return _NUMBER_RE.match(self.text, self.pos) is not None

    def read_number(self) -> float:
        self.skip_separators()
        match = _NUMBER_RE.match(self.text, self.pos)
        if match is None:
            raise MalformedPathError(f"Expected number, found {self.describe_here()}", self.pos)
        value = float(match.group())
        if not math.isfinite(value):
            raise MalformedPathError(f"Coordinate out of range: {match.group()!r}", self.pos)
        self.pos = match.end()
        return value

    def read_flag(self) -> bool:
        self.skip_separators()
        if self.pos < len(self.text) and self.text[self.pos] in "01":
            flag = self.text[self.pos] == "1"
            self.pos += 1
            return flag
        raise MalformedPathError(f"Expected arc flag 0 or 1, found {self.describe_here()}", self.pos)

    def describe_here(self) -> str:
        if self.pos >= len(self.text):
            return "end of input"
        return repr(self.text[self.pos])


class _PathBuilder:
    """Scan state for one parse: cursor, sub-figure start, last control points."""

    def __init__(self) -> None:
        self.segments: list[Segment] = []
        self.current: Point = (0.0, 0.0)
        self.start: Point = (0.0, 0.0)
        self.last_cubic_control: Point | None = None
        self.last_quad_control: Point | None = None
        self.needs_move = False

    def move(self, point: Point) -> None:
        self.segments.append(MoveTo(point))
        self.current = point
        self.start = point
        self.needs_move = False
        self._reset_controls()

    def line(self, point: Point) -> None:
        self._reopen()
        self.segments.append(LineTo(point))
        self.current = point
        self._reset_controls()

    def cubic(self, control1: Point, control2: Point, point: Point) -> None:
        self._reopen()
        self.segments.append(CubicTo(control1, control2, point))
        self.current = point
        self.last_cubic_control = control2
        self.last_quad_control = None

    def quad(self, control: Point, point: Point) -> None:
        self._reopen()
        self.segments.append(QuadTo(control, point))
        self.current = point
        self.last_quad_control = control
        self.last_cubic_control = None

    def close(self) -> None:
        if self.needs_move:
            return
        self.segments.append(Close(self.start))
        self.current = self.start
        self.needs_move = True
        self._reset_controls()

    def reflect(self, control: Point | None) -> Point:
        if control is None:
            return self.current
        return (2.0 * self.current[0] - control[0], 2.0 * self.current[1] - control[1])

    def _reopen(self) -> None:
        # Drawing after a close starts a new sub-figure at the closed figure's start.
        if self.needs_move:
            self.segments.append(MoveTo(self.start))
            self.needs_move = False

    def _reset_controls(self) -> None:
        self.last_cubic_control = None
        self.last_quad_control = None


class PathLanguageParser:
    """Parse path-language strings into :class:`ParsedPath` objects.

    Parsing is a single left-to-right scan. Relative coordinates resolve
    against the current point; smooth curve shorthands reflect the
    previous control point of the same curve family, or fall back to the
    current point when the previous command was of another kind. Control
    state resets at every move and close.
    """

    def parse(self, path_data: str) -> ParsedPath:
        scanner = _Scanner(path_data)
        builder = _PathBuilder()
        if scanner.at_end():
            return ParsedPath()
        if scanner.peek_command() not in ("M", "m"):
            raise MalformedPathError(
                f"Path must begin with a move command, found {scanner.describe_here()}",
                scanner.pos,
            )

        while not scanner.at_end():
            letter = scanner.peek_command()
            if letter is None:
                raise MalformedPathError(f"Unknown command {scanner.describe_here()}", scanner.pos)
            scanner.pos += 1
            self._run_command(letter, scanner, builder)
        path = ParsedPath(tuple(builder.segments))
        # Reflected control points can overflow even when every token is finite.
        if not all(math.isfinite(x) and math.isfinite(y) for x, y in path.vertices()):
            raise MalformedPathError("Coordinate out of range", scanner.pos)
        return path

    def _run_command(self, letter: str, scanner: _Scanner, builder: _PathBuilder) -> None:
        kind = letter.upper()
        relative = letter != kind
        if kind == "Z":
            builder.close()
            return

        self._apply(kind, relative, scanner, builder)
        # Extra argument groups repeat the command; after a move they are line-tos.
        repeat_kind = "L" if kind == "M" else kind
        while scanner.has_number():
            self._apply(repeat_kind, relative, scanner, builder)

    def _apply(self, kind: str, relative: bool, scanner: _Scanner, builder: _PathBuilder) -> None:
        base = builder.current if relative else (0.0, 0.0)

        if kind == "M":
            builder.move(_read_point(scanner, base))
        elif kind == "L":
            builder.line(_read_point(scanner, base))
        elif kind == "H":
            builder.line((_read_coordinate(scanner, base[0]), builder.current[1]))
        elif kind == "V":
            builder.line((builder.current[0], _read_coordinate(scanner, base[1])))
        elif kind == "C":
            control1 = _read_point(scanner, base)
            control2 = _read_point(scanner, base)
            builder.cubic(control1, control2, _read_point(scanner, base))
        elif kind == "S":
            control1 = builder.reflect(builder.last_cubic_control)
            control2 = _read_point(scanner, base)
            builder.cubic(control1, control2, _read_point(scanner, base))
        elif kind == "Q":
            control = _read_point(scanner, base)
            builder.quad(control, _read_point(scanner, base))
        elif kind == "T":
            control = builder.reflect(builder.last_quad_control)
            builder.quad(control, _read_point(scanner, base))
        elif kind == "A":
            self._apply_arc(scanner, builder, base)
        else:  # pragma: no cover
            raise MalformedPathError(f"Unsupported command {kind!r}", scanner.pos)

    def _apply_arc(self, scanner: _Scanner, builder: _PathBuilder, base: Point) -> None:
        rx = abs(scanner.read_number())
        ry = abs(scanner.read_number())
        rotation = scanner.read_number()
        large_arc = scanner.read_flag()
        sweep = scanner.read_flag()
        end = _read_point(scanner, base)

        start = builder.current
        if start == end:
            return
        if rx == 0.0 or ry == 0.0:
            builder.line(end)
            return
        try:
            curves = _arc_to_cubics(start, end, rx, ry, rotation, large_arc, sweep)
        except (ArithmeticError, ValueError) as exc:
            raise MalformedPathError(f"Arc cannot be resolved: {exc}", scanner.pos) from exc
        if not all(math.isfinite(value) for curve in curves for point in curve for value in point):
            raise MalformedPathError("Arc cannot be resolved: coordinate out of range", scanner.pos)
        for control1, control2, point in curves:
            builder.cubic(control1, control2, point)
        builder.last_cubic_control = None


def _read_coordinate(scanner: _Scanner, origin: float) -> float:
    scanner.skip_separators()
    token_start = scanner.pos
    value = scanner.read_number() + origin
    if not math.isfinite(value):
        raise MalformedPathError("Coordinate out of range", token_start)
    return value


def _read_point(scanner: _Scanner, base: Point) -> Point:
    return (_read_coordinate(scanner, base[0]), _read_coordinate(scanner, base[1]))


def _vector_angle(ux: float, uy: float, vx: float, vy: float) -> float:
    return math.atan2(ux * vy - uy * vx, ux * vx + uy * vy)


def _arc_to_cubics(
    start: Point,
    end: Point,
    rx: float,
    ry: float,
    rotation_deg: float,
    large_arc: bool,
    sweep: bool,
) -> list[tuple[Point, Point, Point]]:
    """Approximate an endpoint-parameterised elliptical arc with cubic curves."""
    x1, y1 = start
    x2, y2 = end
    phi = math.radians(rotation_deg % 360.0)
    cos_phi = math.cos(phi)
    sin_phi = math.sin(phi)

    half_dx = (x1 - x2) / 2.0
    half_dy = (y1 - y2) / 2.0
    x1p = cos_phi * half_dx + sin_phi * half_dy
    y1p = -sin_phi * half_dx + cos_phi * half_dy

    radii_check = (x1p * x1p) / (rx * rx) + (y1p * y1p) / (ry * ry)
    if radii_check > 1.0:
        factor = math.sqrt(radii_check)
        rx *= factor
        ry *= factor

    numerator = rx * rx * ry * ry - rx * rx * y1p * y1p - ry * ry * x1p * x1p
    denominator = rx * rx * y1p * y1p + ry * ry * x1p * x1p
    if denominator == 0.0:
        raise ValueError("endpoints too close together for the radii")
    coef = math.sqrt(max(numerator, 0.0) / denominator)
    if large_arc == sweep:
        coef = -coef
    cxp = coef * rx * y1p / ry
    cyp = -coef * ry * x1p / rx
    cx = cos_phi * cxp - sin_phi * cyp + (x1 + x2) / 2.0
    cy = sin_phi * cxp + cos_phi * cyp + (y1 + y2) / 2.0

    ux = (x1p - cxp) / rx
    uy = (y1p - cyp) / ry
    vx = (-x1p - cxp) / rx
    vy = (-y1p - cyp) / ry
    theta = _vector_angle(1.0, 0.0, ux, uy)
    delta = _vector_angle(ux, uy, vx, vy)
    if not sweep and delta > 0.0:
        delta -= 2.0 * math.pi
    elif sweep and delta < 0.0:
        delta += 2.0 * math.pi
    if not math.isfinite(delta):
        raise ValueError("arc angle is not finite")

    count = max(1, math.ceil(abs(delta) / (math.pi / 2.0) - 1e-9))
    step = delta / count
    k = 4.0 / 3.0 * math.tan(step / 4.0)

    def to_surface(px: float, py: float) -> Point:
        return (
            cx + rx * px * cos_phi - ry * py * sin_phi,
            cy + rx * px * sin_phi + ry * py * cos_phi,
        )

    curves: list[tuple[Point, Point, Point]] = []
    for idx in range(count):
        t1 = theta + idx * step
        t2 = t1 + step
        cos1, sin1 = math.cos(t1), math.sin(t1)
        cos2, sin2 = math.cos(t2), math.sin(t2)
        curves.append(
            (
                to_surface(cos1 - k * sin1, sin1 + k * cos1),
                to_surface(cos2 + k * sin2, sin2 - k * cos2),
                to_surface(cos2, sin2),
            )
        )
    control1, control2, _ = curves[-1]
    curves[-1] = (control1, control2, end)
    return curves


def _format_number(value: float) -> str:
    if value == 0.0:
        return "0"
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return text


def _format_point(point: Point) -> str:
    return f"{_format_number(point[0])} {_format_number(point[1])}"


def format_path(path: ParsedPath) -> str:
    """Serialize a parsed path back to absolute path-language commands."""
    parts: list[str] = []
    for segment in path.segments:
        if isinstance(segment, MoveTo):
            parts.append(f"M{_format_point(segment.point)}")
        elif isinstance(segment, LineTo):
            parts.append(f"L{_format_point(segment.point)}")
        elif isinstance(segment, CubicTo):
            parts.append(
                f"C{_format_point(segment.control1)} {_format_point(segment.control2)} "
                f"{_format_point(segment.point)}"
            )
        elif isinstance(segment, QuadTo):
            parts.append(f"Q{_format_point(segment.control)} {_format_point(segment.point)}")
        else:
            parts.append("Z")
    return " ".join(parts)
