"""Domain models shared across the map pipeline modules."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator

Point = tuple[float, float]
PointMapper = Callable[[Point], Point]


def _require_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def normalize_country_code(value: str) -> str:
    normalized = value.strip().upper()
    if len(normalized) not in (2, 3) or not normalized.isalpha() or not normalized.isascii():
        raise ValueError(f"Invalid country code: '{value}'")
    return normalized


@dataclass(frozen=True, slots=True)
class RawGeometryRecord:
    """One country outline as authored in the static path bundle."""

    country_code: str
    path_data: str

    @classmethod
    def from_item(cls, code: Any, path_data: Any) -> RawGeometryRecord:
        country_code = normalize_country_code(_require_str(code, "country code"))
        return cls(
            country_code=country_code,
            path_data=_require_str(path_data, f"path data for {country_code}"),
        )


@dataclass(frozen=True, slots=True)
class MoveTo:
    point: Point

    @property
    def points(self) -> tuple[Point, ...]:
        return (self.point,)

    def map_points(self, fn: PointMapper) -> MoveTo:
        return MoveTo(fn(self.point))


@dataclass(frozen=True, slots=True)
class LineTo:
    point: Point

    @property
    def points(self) -> tuple[Point, ...]:
        return (self.point,)

    def map_points(self, fn: PointMapper) -> LineTo:
        return LineTo(fn(self.point))


@dataclass(frozen=True, slots=True)
class QuadTo:
    control: Point
    point: Point

    @property
    def points(self) -> tuple[Point, ...]:
        return (self.control, self.point)

    def map_points(self, fn: PointMapper) -> QuadTo:
        return QuadTo(fn(self.control), fn(self.point))


@dataclass(frozen=True, slots=True)
class CubicTo:
    control1: Point
    control2: Point
    point: Point

    @property
    def points(self) -> tuple[Point, ...]:
        return (self.control1, self.control2, self.point)

    def map_points(self, fn: PointMapper) -> CubicTo:
        return CubicTo(fn(self.control1), fn(self.control2), fn(self.point))


@dataclass(frozen=True, slots=True)
class Close:
    """Close the current sub-figure; `point` is the sub-figure start it returns to."""

    point: Point

    @property
    def points(self) -> tuple[Point, ...]:
        return ()

    def map_points(self, fn: PointMapper) -> Close:
        return Close(fn(self.point))


Segment = MoveTo | LineTo | QuadTo | CubicTo | Close


@dataclass(frozen=True, slots=True)
class BoundingBox:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def __post_init__(self) -> None:
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise ValueError(
                f"Inverted bounding box: ({self.min_x}, {self.min_y}, {self.max_x}, {self.max_y})"
            )

    @classmethod
    def empty(cls) -> BoundingBox:
        return cls(0.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> BoundingBox:
        xs: list[float] = []
        ys: list[float] = []
        for x, y in points:
            xs.append(x)
            ys.append(y)
        if not xs:
            return cls.empty()
        return cls(min(xs), min(ys), max(xs), max(ys))

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0.0 or self.height <= 0.0

    def contains(self, point: Point) -> bool:
        x, y = point
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def within(self, width: float, height: float) -> bool:
        return self.min_x >= 0.0 and self.min_y >= 0.0 and self.max_x <= width and self.max_y <= height


@dataclass(frozen=True, slots=True)
class ParsedPath:
    """Immutable segment list in the logical coordinate space.

    A non-empty path always starts with a move; further moves open
    additional disjoint sub-figures (islands, exclaves).
    """

    segments: tuple[Segment, ...] = ()

    def __post_init__(self) -> None:
        if self.segments and not isinstance(self.segments[0], MoveTo):
            raise ValueError("A non-empty path must start with a move segment")

    @property
    def is_empty(self) -> bool:
        return not self.segments

    @property
    def subpath_count(self) -> int:
        return sum(1 for segment in self.segments if isinstance(segment, MoveTo))

    @property
    def end_point(self) -> Point | None:
        if not self.segments:
            return None
        return self.segments[-1].point

    def vertices(self) -> Iterator[Point]:
        """Yield every on-curve and control point in segment order."""
        for segment in self.segments:
            yield from segment.points

    def bounds(self) -> BoundingBox:
        # Control-point hull: conservative for curves, exact for polygons.
        return BoundingBox.from_points(self.vertices())

    def map_points(self, fn: PointMapper) -> ParsedPath:
        return ParsedPath(tuple(segment.map_points(fn) for segment in self.segments))


@dataclass(frozen=True, slots=True)
class CountryGeometry:
    """Parse-once unit owned by the geometry cache."""

    country_code: str
    path: ParsedPath
    bounds: BoundingBox


@dataclass(frozen=True, slots=True)
class ViewportTransform:
    scale: float
    offset_x: float
    offset_y: float

    def apply(self, point: Point, *, dx: float = 0.0, dy: float = 0.0) -> Point:
        x, y = point
        return (x * self.scale + self.offset_x + dx, y * self.scale + self.offset_y + dy)


class StyleTag(enum.Enum):
    VISITED = "visited"
    UNVISITED = "unvisited"


@dataclass(frozen=True, slots=True)
class VerticalGradient:
    """Top-to-bottom color stops."""

    colors: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.colors) < 2:
            raise ValueError("A vertical gradient needs at least two color stops")


@dataclass(frozen=True, slots=True)
class FillBackground:
    gradient: VerticalGradient


@dataclass(frozen=True, slots=True)
class DrawShadow:
    country_code: str
    path: ParsedPath


@dataclass(frozen=True, slots=True)
class DrawFill:
    country_code: str
    path: ParsedPath
    style: StyleTag


@dataclass(frozen=True, slots=True)
class DrawBorder:
    country_code: str
    path: ParsedPath
    style: StyleTag


DrawInstruction = FillBackground | DrawShadow | DrawFill | DrawBorder
