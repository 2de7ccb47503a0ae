"""Validation layer for the path bundle and visited list."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .bundle import FileBundle, GeometryRepository
from .config import AppConfig
from .models import CountryGeometry
from .path_cache import ParsedGeometryCache
from .util import format_code_list, write_json
from .viewport import LOGICAL_HEIGHT, LOGICAL_WIDTH
from .visited import load_visited_codes


@dataclass(slots=True)
class ValidationReport:
    report_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


class Validator:
    """Check that every bundled outline parses and fits the logical space."""

    def __init__(self, cfg: AppConfig) -> None:
        self.cfg = cfg

    def run(self, *, strict: bool = False) -> ValidationReport:
        report = ValidationReport()
        hard_fail = strict or self.cfg.bundle_policy.strict

        bundle_path = self.cfg.paths.bundle
        if not bundle_path.exists():
            report.add_error(f"Missing path bundle: {bundle_path}")
            return report

        repository = GeometryRepository()
        try:
            count = repository.load(FileBundle(bundle_path))
        except Exception as exc:
            report.add_error(f"Failed decoding path bundle '{bundle_path}': {exc}")
            return report
        if count == 0:
            report.add_error(f"Path bundle is empty: {bundle_path}")
            return report
        report.add_info(f"Loaded {count} country outlines from {bundle_path}")

        cache = ParsedGeometryCache()
        geometries = cache.ensure(repository)
        failed_codes = sorted(failure.country_code for failure in cache.failures)
        if failed_codes:
            msg = f"Outlines that failed to parse: {format_code_list(failed_codes)}"
            if hard_fail:
                report.add_error(msg)
            else:
                report.add_warning(msg)

        out_of_space = _out_of_space_codes(geometries)
        if out_of_space:
            report.add_warning(
                f"Outlines extending past the {LOGICAL_WIDTH:g}x{LOGICAL_HEIGHT:g} logical space: "
                f"{format_code_list(out_of_space)}"
            )

        self._validate_visited(report, known_codes=set(repository.entries()))

        report.report_path = self.cfg.paths.reports_dir / "geometry_report.json"
        write_json(
            report.report_path,
            {
                "bundle": str(bundle_path),
                "countries_total": count,
                "countries_parsed": len(geometries),
                "parse_failures": [failure.to_dict() for failure in cache.failures],
                "out_of_space": out_of_space,
                "bounds": {
                    geometry.country_code: [
                        geometry.bounds.min_x,
                        geometry.bounds.min_y,
                        geometry.bounds.max_x,
                        geometry.bounds.max_y,
                    ]
                    for geometry in geometries
                },
            },
        )
        report.add_info(
            "Geometry check summary: "
            f"countries={count}, parsed={len(geometries)}, failed={len(failed_codes)}, "
            f"out_of_space={len(out_of_space)}"
        )
        report.add_info(f"Geometry report written to {report.report_path}")
        return report

    def _validate_visited(self, report: ValidationReport, *, known_codes: set[str]) -> None:
        path = self.cfg.paths.visited
        if not path.exists():
            report.add_info(f"No visited list at {path}; nothing to cross-check.")
            return
        try:
            visited = load_visited_codes(path)
        except Exception as exc:
            report.add_error(f"Failed parsing visited list '{path}': {exc}")
            return
        report.add_info(f"Loaded {len(visited)} visited codes from {path}")
        unknown = sorted(visited - known_codes)
        if unknown:
            report.add_warning(
                f"Visited codes without an outline in the bundle: {format_code_list(unknown)}"
            )


def _out_of_space_codes(geometries: Iterable[CountryGeometry]) -> list[str]:
    return sorted(
        geometry.country_code
        for geometry in geometries
        if not geometry.bounds.within(LOGICAL_WIDTH, LOGICAL_HEIGHT)
    )


def format_report_lines(report: ValidationReport) -> Iterable[str]:
    if report.infos:
        for info in report.infos:
            yield f"[INFO] {info}"
    if report.warnings:
        for warning in report.warnings:
            yield f"[WARN] {warning}"
    if report.errors:
        for error in report.errors:
            yield f"[ERROR] {error}"
    if report.ok:
        yield "[OK] Validation completed with no errors."
