"""Shared fixtures for visitmap tests."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Callable

import pytest

SAMPLE_PATHS = {
    "US": "M160,180 L300,170 L310,240 L270,275 L200,270 L150,230 Z",
    "FR": "M480,170 l14,-6 l12,10 l-4,16 l-18,4 l-8,-12 z",
    "JP": "M860,180 l8,-10 6,4 -4,14 z m14,-24 l6,-8 5,3 -3,9 z",
    "BR": "M330,360 C360,340 400,350 410,380 S390,450 350,460 Q320,430 330,360 Z",
}


class MemoryBundle:
    """In-memory bundle that counts reads and can block until released."""

    name = "memory-bundle"

    def __init__(self, payload: dict[str, str], *, gate: threading.Event | None = None) -> None:
        self.text = json.dumps(payload)
        self.reads = 0
        self.gate = gate
        self._lock = threading.Lock()

    def read_text(self) -> str:
        with self._lock:
            self.reads += 1
        if self.gate is not None:
            self.gate.wait(timeout=5.0)
        return self.text


@pytest.fixture
def make_bundle() -> Callable[..., MemoryBundle]:
    return MemoryBundle


@pytest.fixture
def sample_paths() -> dict[str, str]:
    return dict(SAMPLE_PATHS)


def write_app_files(
    root: Path,
    *,
    paths: dict[str, str] | None = None,
    visited: list[str] | None = None,
    strict: bool = False,
) -> Path:
    data_dir = root / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "world_map_paths.json").write_text(
        json.dumps(paths if paths is not None else SAMPLE_PATHS), encoding="utf-8"
    )
    visited_lines = "\n".join(f"- {code}" for code in (visited if visited is not None else ["FR", "JP"]))
    (data_dir / "visited.yaml").write_text(visited_lines + "\n", encoding="utf-8")
    config_path = root / "config.yaml"
    config_path.write_text(
        "\n".join(
            [
                "paths:",
                "  bundle: data/world_map_paths.json",
                "  visited: data/visited.yaml",
                "  output_dir: build/maps",
                "  reports_dir: build/reports",
                "  logs_dir: build/logs",
                "render:",
                "  image:",
                "    width_px: 200",
                "    height_px: 100",
                "    dpi: 100",
                "    format: png",
                "bundle_policy:",
                f"  strict: {'true' if strict else 'false'}",
                "",
            ]
        ),
        encoding="utf-8",
    )
    return config_path


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return write_app_files(tmp_path)


@pytest.fixture
def app_files() -> Callable[..., Path]:
    return write_app_files
