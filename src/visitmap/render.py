"""World map rendering: draw list -> PNG via matplotlib."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Collection, Sequence

import numpy as np

from .bundle import FileBundle, GeometryRepository
from .compose import MapCompositor, WorldMapCanvas
from .config import AppConfig, RenderConfig
from .models import (
    Close,
    CubicTo,
    DrawBorder,
    DrawFill,
    DrawInstruction,
    DrawShadow,
    FillBackground,
    LineTo,
    MoveTo,
    ParsedPath,
    QuadTo,
    StyleTag,
    VerticalGradient,
)
from .path_cache import ParsedGeometryCache
from .util import format_code_list, write_json
from .viewport import InvalidSurfaceError

_LOGGER = logging.getLogger("visitmap.render")

# Radial highlight over the ocean, as fractions of the surface size.
_HIGHLIGHT_CENTER_X_RATIO = 0.3
_HIGHLIGHT_CENTER_Y_RATIO = 0.2
_HIGHLIGHT_RADIUS_RATIO = 0.5
_GRADIENT_STEPS = 256


@dataclass(slots=True)
class RenderMapReport:
    output_path: Path | None = None
    description: str = ""
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


class MapRasterizer:
    """Paint draw instructions onto a matplotlib (Agg) surface.

    Surface coordinates are y-down pixels, matching the instructions.
    """

    def __init__(self, cfg: RenderConfig) -> None:
        self.cfg = cfg

    def rasterize(
        self,
        instructions: Sequence[DrawInstruction],
        *,
        width_px: int,
        height_px: int,
        output_path: Path,
    ) -> Path:
        plt, mpl = _require_matplotlib()
        dpi = self.cfg.image.dpi
        fig = plt.figure(figsize=(width_px / dpi, height_px / dpi), dpi=dpi)
        try:
            ax = fig.add_axes((0.0, 0.0, 1.0, 1.0))
            ax.set_axis_off()
            for zorder, instruction in enumerate(instructions, start=1):
                self._paint(ax, mpl, instruction, width_px, height_px, zorder)
            ax.set_xlim(0.0, float(width_px))
            ax.set_ylim(float(height_px), 0.0)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            fig.savefig(output_path, dpi=dpi, format=self.cfg.image.format)
        finally:
            plt.close(fig)
        return output_path

    def _paint(
        self,
        ax: Any,
        mpl: Any,
        instruction: DrawInstruction,
        width_px: int,
        height_px: int,
        zorder: int,
    ) -> None:
        style = self.cfg.style
        if isinstance(instruction, FillBackground):
            _draw_vertical_gradient(
                ax,
                mpl,
                instruction.gradient.colors,
                extent=(0.0, float(width_px), float(height_px), 0.0),
                zorder=zorder,
            )
            _draw_highlight(ax, width_px, height_px, alpha=style.highlight_alpha, zorder=zorder)
            return
        if instruction.path.is_empty:
            return

        mpl_path = _to_mpl_path(instruction.path, mpl)
        if isinstance(instruction, DrawShadow):
            ax.add_patch(
                mpl.patches.PathPatch(
                    mpl_path, facecolor=style.shadow_color, edgecolor="none", zorder=zorder
                )
            )
        elif isinstance(instruction, DrawFill):
            patch = mpl.patches.PathPatch(
                mpl_path, facecolor="none", edgecolor="none", zorder=zorder
            )
            ax.add_patch(patch)
            colors = (
                style.visited_gradient
                if instruction.style is StyleTag.VISITED
                else style.land_gradient
            )
            # One gradient across the whole surface height, cut out by the outline.
            image = _draw_vertical_gradient(
                ax,
                mpl,
                colors,
                extent=(0.0, float(width_px), float(height_px), 0.0),
                zorder=zorder,
            )
            image.set_clip_path(patch)
        elif isinstance(instruction, DrawBorder):
            color = (
                style.visited_border_color
                if instruction.style is StyleTag.VISITED
                else style.border_color
            )
            ax.add_patch(
                mpl.patches.PathPatch(
                    mpl_path,
                    facecolor="none",
                    edgecolor=color,
                    linewidth=_px_to_points(style.border_width, self.cfg.image.dpi),
                    joinstyle="round",
                    zorder=zorder,
                )
            )


def run_render_map(
    cfg: AppConfig,
    *,
    visited: Collection[str],
    width_px: int | None = None,
    height_px: int | None = None,
    output_path: Path | None = None,
    repository: GeometryRepository | None = None,
    cache: ParsedGeometryCache | None = None,
) -> RenderMapReport:
    """Render the world map with `visited` highlighted, plus a JSON sidecar."""
    width = width_px if width_px is not None else cfg.render.image.width_px
    height = height_px if height_px is not None else cfg.render.image.height_px
    target = output_path or cfg.paths.output_dir / f"world_map.{cfg.render.image.format}"
    report = RenderMapReport(output_path=target)
    repository = repository or GeometryRepository()
    cache = cache or ParsedGeometryCache()
    t0 = time.perf_counter()

    bundle = FileBundle(cfg.paths.bundle)
    try:
        count = repository.load(bundle)
    except Exception as exc:
        report.add_error(f"Failed loading path bundle '{bundle.name}': {exc}")
        return report
    report.add_info(f"Loaded {count} country outlines from {bundle.name}")

    geometries = cache.ensure(repository)
    if cache.failures:
        report.add_warning(
            "Countries left off the map (unparseable outline): "
            + format_code_list(sorted(failure.country_code for failure in cache.failures))
        )

    unknown_visited = sorted(set(visited) - set(repository.entries()))
    if unknown_visited:
        report.add_warning(
            "Visited codes without an outline in the bundle: " + format_code_list(unknown_visited)
        )

    style = cfg.render.style
    canvas = WorldMapCanvas(
        cache,
        compositor=MapCompositor(
            background=VerticalGradient(style.ocean_gradient),
            shadow_offset=style.shadow_offset_px,
        ),
    )
    try:
        instructions = canvas.draw(width, height, visited)
    except InvalidSurfaceError as exc:
        report.add_error(f"Cannot render map: {exc}")
        return report
    report.description = canvas.content_description

    try:
        MapRasterizer(cfg.render).rasterize(
            instructions,
            width_px=width,
            height_px=height,
            output_path=target,
        )
    except Exception as exc:
        _LOGGER.exception("Rasterizing %s failed", target)
        report.add_error(f"Map rasterization failed: {exc}")
        return report

    visited_drawn = sorted(set(visited) & {geometry.country_code for geometry in geometries})
    sidecar_path = target.with_suffix(".json")
    write_json(
        sidecar_path,
        {
            "image": str(target),
            "width_px": width,
            "height_px": height,
            "description": canvas.content_description,
            "visited": sorted(set(visited)),
            "visited_drawn": visited_drawn,
            "parse_failures": [failure.to_dict() for failure in cache.failures],
        },
    )

    report.summary = {
        "countries_loaded": count,
        "countries_drawn": len(geometries),
        "countries_failed": len(cache.failures),
        "visited_drawn": len(visited_drawn),
        "draw_instructions": len(instructions),
    }
    report.add_info(
        "Render summary: "
        f"countries_drawn={len(geometries)}, "
        f"countries_failed={len(cache.failures)}, "
        f"visited_drawn={len(visited_drawn)}, "
        f"draw_instructions={len(instructions)}, "
        f"elapsed={time.perf_counter() - t0:.2f}s"
    )
    report.add_info(f"Map written to {target} (metadata: {sidecar_path})")
    return report


def format_render_lines(report: RenderMapReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.ok:
        lines.append("[OK] Map rendering completed with no errors.")
    return lines


def _to_mpl_path(path: ParsedPath, mpl: Any) -> Any:
    codes_cls = mpl.path.Path
    vertices: list[tuple[float, float]] = []
    codes: list[int] = []
    for segment in path.segments:
        if isinstance(segment, MoveTo):
            vertices.append(segment.point)
            codes.append(codes_cls.MOVETO)
        elif isinstance(segment, LineTo):
            vertices.append(segment.point)
            codes.append(codes_cls.LINETO)
        elif isinstance(segment, QuadTo):
            vertices.extend((segment.control, segment.point))
            codes.extend((codes_cls.CURVE3, codes_cls.CURVE3))
        elif isinstance(segment, CubicTo):
            vertices.extend((segment.control1, segment.control2, segment.point))
            codes.extend((codes_cls.CURVE4, codes_cls.CURVE4, codes_cls.CURVE4))
        elif isinstance(segment, Close):
            vertices.append(segment.point)
            codes.append(codes_cls.CLOSEPOLY)
    return codes_cls(vertices, codes)


def _draw_vertical_gradient(
    ax: Any,
    mpl: Any,
    colors: Sequence[str],
    *,
    extent: tuple[float, float, float, float],
    zorder: int,
) -> Any:
    cmap = mpl.colors.LinearSegmentedColormap.from_list("map_gradient", list(colors))
    ramp = np.linspace(0.0, 1.0, _GRADIENT_STEPS).reshape(-1, 1)
    return ax.imshow(
        ramp,
        cmap=cmap,
        extent=extent,
        origin="upper",
        aspect="auto",
        interpolation="bilinear",
        zorder=zorder,
    )


def _draw_highlight(ax: Any, width_px: int, height_px: int, *, alpha: float, zorder: int) -> None:
    if alpha <= 0.0:
        return
    cols = _GRADIENT_STEPS
    rows = max(2, round(_GRADIENT_STEPS * height_px / width_px))
    xs, ys = np.meshgrid(
        np.linspace(0.0, float(width_px), cols),
        np.linspace(0.0, float(height_px), rows),
    )
    radius = width_px * _HIGHLIGHT_RADIUS_RATIO
    distance = np.hypot(
        xs - width_px * _HIGHLIGHT_CENTER_X_RATIO,
        ys - height_px * _HIGHLIGHT_CENTER_Y_RATIO,
    )
    rgba = np.ones((rows, cols, 4), dtype=float)
    rgba[..., 3] = np.clip(1.0 - distance / radius, 0.0, 1.0) * alpha
    ax.imshow(
        rgba,
        extent=(0.0, float(width_px), float(height_px), 0.0),
        origin="upper",
        aspect="auto",
        interpolation="bilinear",
        zorder=zorder,
    )


def _px_to_points(px: float, dpi: int) -> float:
    return px * 72.0 / dpi


def _require_matplotlib() -> tuple[Any, Any]:
    try:
        import matplotlib

        matplotlib.use("Agg", force=False)
        import matplotlib.colors
        import matplotlib.patches
        import matplotlib.path
        import matplotlib.pyplot as plt
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for map rendering") from exc
    return (plt, matplotlib)
