"""CLI entrypoint for the visited-countries world map."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from .accessibility import describe_visited
from .config import AppConfig, load_config
from .render import format_render_lines, run_render_map
from .util import ensure_directories, setup_logging
from .validate import Validator, format_report_lines
from .visited import load_visited_codes, merge_visited_codes

LOGGER = logging.getLogger("visitmap.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="visitmap",
        description="Visited-countries world map renderer.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    def add_visited(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--visited",
            action="append",
            default=[],
            help="Visited country code, added to the configured list. Can be repeated.",
        )
        p.add_argument(
            "--ignore-visited-file",
            action="store_true",
            help="Use only --visited codes, not the configured visited list.",
        )

    validate_p = subparsers.add_parser("validate", help="Parse the path bundle and report problems.")
    add_common(validate_p)
    validate_p.add_argument(
        "--strict",
        action="store_true",
        help="Treat outlines that fail to parse as validation errors.",
    )

    render_p = subparsers.add_parser("render", help="Render the world map to an image.")
    add_common(render_p)
    add_visited(render_p)
    render_p.add_argument("--width", type=int, default=None, help="Surface width in pixels.")
    render_p.add_argument("--height", type=int, default=None, help="Surface height in pixels.")
    render_p.add_argument("--output", default=None, help="Output image path.")

    describe_p = subparsers.add_parser(
        "describe",
        help="Print the accessibility description for the visited set.",
    )
    add_common(describe_p)
    add_visited(describe_p)

    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    log_path = cfg.paths.logs_dir / "visitmap.log"
    setup_logging(log_path, verbose=args.verbose)
    ensure_directories(cfg.paths.build_directories)
    return cfg


def _resolve_visited(cfg: AppConfig, args: argparse.Namespace) -> frozenset[str]:
    cli_codes = [str(item) for item in args.visited]
    if args.ignore_visited_file:
        return merge_visited_codes(cli_codes)
    return merge_visited_codes(load_visited_codes(cfg.paths.visited), cli_codes)


def _run_validate(cfg: AppConfig, *, strict: bool) -> int:
    report = Validator(cfg).run(strict=strict)
    for line in format_report_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_render(
    cfg: AppConfig,
    *,
    visited: frozenset[str],
    width: int | None,
    height: int | None,
    output: str | None,
) -> int:
    report = run_render_map(
        cfg,
        visited=visited,
        width_px=width,
        height_px=height,
        output_path=Path(output).resolve() if output else None,
    )
    for line in format_render_lines(report):
        LOGGER.info(line)
    if report.description:
        LOGGER.info("Description: %s", report.description)
    return 0 if report.ok else 1


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    if command == "validate":
        return _run_validate(cfg, strict=bool(args.strict))
    try:
        visited = _resolve_visited(cfg, args)
    except ValueError as exc:
        LOGGER.error("Invalid visited countries: %s", exc)
        return 1
    if command == "render":
        return _run_render(
            cfg,
            visited=visited,
            width=args.width,
            height=args.height,
            output=args.output,
        )
    if command == "describe":
        print(describe_visited(visited))
        return 0
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
