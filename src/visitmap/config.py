"""Typed configuration loader for `config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _int(value: Any, field_name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _positive_int(value: Any, field_name: str) -> int:
    number = _int(value, field_name)
    if number <= 0:
        raise ValueError(f"{field_name} must be > 0")
    return number


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Expected bool for '{field_name}'")
    return value


def _str_list(value: Any, field_name: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Expected list for '{field_name}'")
    out: list[str] = []
    for idx, item in enumerate(value):
        out.append(_str(item, f"{field_name}[{idx}]"))
    return tuple(out)


def _gradient(value: Any, field_name: str) -> tuple[str, ...]:
    colors = _str_list(value, field_name)
    if len(colors) < 2:
        raise ValueError(f"{field_name} needs at least two colors")
    return colors


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


@dataclass(frozen=True, slots=True)
class PathsConfig:
    bundle: Path
    visited: Path
    output_dir: Path
    reports_dir: Path
    logs_dir: Path

    @property
    def build_directories(self) -> tuple[Path, ...]:
        return (self.output_dir, self.reports_dir, self.logs_dir)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        return cls(
            bundle=_path_from_cfg(raw.get("bundle"), "paths.bundle", root_dir),
            visited=_path_from_cfg(raw.get("visited"), "paths.visited", root_dir),
            output_dir=_path_from_cfg(raw.get("output_dir"), "paths.output_dir", root_dir),
            reports_dir=_path_from_cfg(raw.get("reports_dir"), "paths.reports_dir", root_dir),
            logs_dir=_path_from_cfg(raw.get("logs_dir"), "paths.logs_dir", root_dir),
        )


@dataclass(frozen=True, slots=True)
class RenderImageConfig:
    width_px: int
    height_px: int
    dpi: int
    format: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RenderImageConfig:
        return cls(
            width_px=_positive_int(raw.get("width_px"), "render.image.width_px"),
            height_px=_positive_int(raw.get("height_px"), "render.image.height_px"),
            dpi=_positive_int(raw.get("dpi"), "render.image.dpi"),
            format=_str(raw.get("format"), "render.image.format"),
        )


@dataclass(frozen=True, slots=True)
class MapStyleConfig:
    ocean_gradient: tuple[str, ...]
    highlight_alpha: float
    land_gradient: tuple[str, ...]
    visited_gradient: tuple[str, ...]
    border_color: str
    visited_border_color: str
    shadow_color: str
    border_width: float
    shadow_offset_px: tuple[float, float]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> MapStyleConfig:
        highlight_alpha = _float(raw.get("highlight_alpha", 0.15), "render.style.highlight_alpha")
        if not 0.0 <= highlight_alpha <= 1.0:
            raise ValueError("render.style.highlight_alpha must be between 0 and 1")
        border_width = _float(raw.get("border_width"), "render.style.border_width")
        if border_width <= 0:
            raise ValueError("render.style.border_width must be > 0")

        offset_raw = raw.get("shadow_offset_px", [2.0, 2.0])
        if not isinstance(offset_raw, list) or len(offset_raw) != 2:
            raise ValueError("Expected [dx, dy] for 'render.style.shadow_offset_px'")
        shadow_offset = (
            _float(offset_raw[0], "render.style.shadow_offset_px[0]"),
            _float(offset_raw[1], "render.style.shadow_offset_px[1]"),
        )

        return cls(
            ocean_gradient=_gradient(raw.get("ocean_gradient"), "render.style.ocean_gradient"),
            highlight_alpha=highlight_alpha,
            land_gradient=_gradient(raw.get("land_gradient"), "render.style.land_gradient"),
            visited_gradient=_gradient(raw.get("visited_gradient"), "render.style.visited_gradient"),
            border_color=_str(raw.get("border_color"), "render.style.border_color"),
            visited_border_color=_str(
                raw.get("visited_border_color"), "render.style.visited_border_color"
            ),
            shadow_color=_str(raw.get("shadow_color"), "render.style.shadow_color"),
            border_width=border_width,
            shadow_offset_px=shadow_offset,
        )

    @classmethod
    def default(cls) -> MapStyleConfig:
        return cls(
            ocean_gradient=("#B8D4E8", "#9AC5E0", "#7FB3D8"),
            highlight_alpha=0.15,
            land_gradient=("#F8F9FA", "#E9ECEF"),
            visited_gradient=("#66BB6A", "#43A047"),
            border_color="#CED4DA",
            visited_border_color="#2E7D32",
            shadow_color="#00000033",
            border_width=0.8,
            shadow_offset_px=(2.0, 2.0),
        )


@dataclass(frozen=True, slots=True)
class RenderConfig:
    image: RenderImageConfig
    style: MapStyleConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RenderConfig:
        style_raw = raw.get("style")
        style = (
            MapStyleConfig.default()
            if style_raw is None
            else MapStyleConfig.from_mapping(_mapping(style_raw, "render.style"))
        )
        return cls(
            image=RenderImageConfig.from_mapping(_mapping(raw.get("image"), "render.image")),
            style=style,
        )


@dataclass(frozen=True, slots=True)
class BundlePolicyConfig:
    strict: bool

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> BundlePolicyConfig:
        return cls(strict=_bool(raw.get("strict"), "bundle_policy.strict"))


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path
    paths: PathsConfig
    render: RenderConfig
    bundle_policy: BundlePolicyConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        return cls(
            source_path=source_path.resolve(),
            paths=PathsConfig.from_mapping(_mapping(raw.get("paths"), "paths"), root_dir),
            render=RenderConfig.from_mapping(_mapping(raw.get("render"), "render")),
            bundle_policy=BundlePolicyConfig.from_mapping(
                _mapping(raw.get("bundle_policy"), "bundle_policy")
            ),
        )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
