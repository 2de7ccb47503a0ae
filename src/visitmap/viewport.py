"""Fit the logical map space onto a drawing surface."""

from __future__ import annotations

import math

from .models import ParsedPath, ViewportTransform

# Authoring space of the bundled outlines.
LOGICAL_WIDTH = 1008.0
LOGICAL_HEIGHT = 651.0


class InvalidSurfaceError(ValueError):
    """Raised for zero, negative or non-finite surface sizes."""


class ViewportTransformer:
    """Uniform scale plus centering offset; no distortion, no hidden state."""

    def __init__(
        self,
        logical_width: float = LOGICAL_WIDTH,
        logical_height: float = LOGICAL_HEIGHT,
    ) -> None:
        if logical_width <= 0 or logical_height <= 0:
            raise ValueError("Logical map dimensions must be > 0")
        self.logical_width = float(logical_width)
        self.logical_height = float(logical_height)

    def compute(self, surface_width: float, surface_height: float) -> ViewportTransform:
        if not _is_positive(surface_width) or not _is_positive(surface_height):
            raise InvalidSurfaceError(
                f"Surface must have positive finite size, got {surface_width}x{surface_height}"
            )
        scale = min(surface_width / self.logical_width, surface_height / self.logical_height)
        return ViewportTransform(
            scale=scale,
            offset_x=(surface_width - self.logical_width * scale) / 2.0,
            offset_y=(surface_height - self.logical_height * scale) / 2.0,
        )


def compute_viewport_transform(surface_width: float, surface_height: float) -> ViewportTransform:
    return ViewportTransformer().compute(surface_width, surface_height)


def transform_path(
    path: ParsedPath,
    transform: ViewportTransform,
    *,
    dx: float = 0.0,
    dy: float = 0.0,
) -> ParsedPath:
    """Map every coordinate into surface space; `dx`/`dy` shift in surface pixels."""
    return path.map_points(lambda point: transform.apply(point, dx=dx, dy=dy))


def _is_positive(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0
