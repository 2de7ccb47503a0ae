"""Map composition: cached outlines + viewport + visited set -> draw list."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Collection, Iterable, Sequence

from .accessibility import describe_visited
from .models import (
    CountryGeometry,
    DrawBorder,
    DrawFill,
    DrawInstruction,
    DrawShadow,
    FillBackground,
    ParsedPath,
    StyleTag,
    VerticalGradient,
    ViewportTransform,
)
from .path_cache import ParsedGeometryCache
from .viewport import ViewportTransformer, transform_path

_LOGGER = logging.getLogger("visitmap.compose")

OCEAN_GRADIENT = VerticalGradient(("#B8D4E8", "#9AC5E0", "#7FB3D8"))
SHADOW_OFFSET_PX = (2.0, 2.0)


@dataclass(frozen=True, slots=True)
class CountryLayer:
    """Surface-space outlines for one country; independent of visited state."""

    country_code: str
    fill_path: ParsedPath
    shadow_path: ParsedPath


class MapCompositor:
    """Turn geometry into an ordered draw list.

    Order is background first, then per country shadow, fill, border, so
    the shadow sits under the land and the border stays crisp on top.
    The expensive half (`transform_layers`) depends only on geometry and
    transform; `style_layers` is the cheap half that reacts to the
    visited set.
    """

    def __init__(
        self,
        *,
        background: VerticalGradient = OCEAN_GRADIENT,
        shadow_offset: tuple[float, float] = SHADOW_OFFSET_PX,
    ) -> None:
        self.background = background
        self.shadow_offset = shadow_offset

    def compose(
        self,
        geometries: Sequence[CountryGeometry],
        transform: ViewportTransform,
        visited: Collection[str],
    ) -> list[DrawInstruction]:
        return self.style_layers(self.transform_layers(geometries, transform), visited)

    def transform_layers(
        self,
        geometries: Iterable[CountryGeometry],
        transform: ViewportTransform,
    ) -> tuple[CountryLayer, ...]:
        dx, dy = self.shadow_offset
        return tuple(
            CountryLayer(
                country_code=geometry.country_code,
                fill_path=transform_path(geometry.path, transform),
                shadow_path=transform_path(geometry.path, transform, dx=dx, dy=dy),
            )
            for geometry in geometries
        )

    def style_layers(
        self,
        layers: Iterable[CountryLayer],
        visited: Collection[str],
    ) -> list[DrawInstruction]:
        instructions: list[DrawInstruction] = [FillBackground(self.background)]
        for layer in layers:
            style = StyleTag.VISITED if layer.country_code in visited else StyleTag.UNVISITED
            instructions.append(DrawShadow(layer.country_code, layer.shadow_path))
            instructions.append(DrawFill(layer.country_code, layer.fill_path, style))
            instructions.append(DrawBorder(layer.country_code, layer.fill_path, style))
        return instructions


class WorldMapCanvas:
    """One map on screen, bound to the shared geometry cache.

    Transformed outlines are kept for the last surface size and geometry
    list; a draw with the same size only re-tags styles. While the cache
    is still loading the canvas draws the background alone, and picks up
    the outlines on the first draw after population.
    """

    def __init__(
        self,
        cache: ParsedGeometryCache,
        *,
        compositor: MapCompositor | None = None,
        transformer: ViewportTransformer | None = None,
    ) -> None:
        self._cache = cache
        self._compositor = compositor or MapCompositor()
        self._transformer = transformer or ViewportTransformer()
        self._size: tuple[float, float] | None = None
        self._geometries: list[CountryGeometry] | None = None
        self._transform: ViewportTransform | None = None
        self._layers: tuple[CountryLayer, ...] = ()
        self._description = describe_visited(())
        self.transform_passes = 0

    @property
    def transform(self) -> ViewportTransform | None:
        return self._transform

    @property
    def content_description(self) -> str:
        return self._description

    def draw(
        self,
        surface_width: float,
        surface_height: float,
        visited: Iterable[str],
    ) -> list[DrawInstruction]:
        visited_snapshot = frozenset(visited)
        self._refresh_layers(surface_width, surface_height)
        self._description = describe_visited(visited_snapshot)
        return self._compositor.style_layers(self._layers, visited_snapshot)

    def _refresh_layers(self, surface_width: float, surface_height: float) -> None:
        geometries = self._cache.snapshot()
        size = (surface_width, surface_height)
        if size == self._size and _same_geometries(geometries, self._geometries):
            return
        transform = self._transformer.compute(surface_width, surface_height)
        self._layers = self._compositor.transform_layers(geometries, transform)
        self._size = size
        self._geometries = geometries
        self._transform = transform
        self.transform_passes += 1
        _LOGGER.debug(
            "Transformed %d outlines for %sx%s surface (scale=%.4f)",
            len(self._layers),
            surface_width,
            surface_height,
            transform.scale,
        )


def _same_geometries(
    current: list[CountryGeometry],
    previous: list[CountryGeometry] | None,
) -> bool:
    if previous is None:
        return False
    return current is previous or (not current and not previous)
