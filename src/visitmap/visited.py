"""Visited-country list loading."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import yaml

from .models import normalize_country_code


def load_visited_codes(path: Path) -> frozenset[str]:
    """Load a YAML list of visited country codes; a missing file means none."""
    if not path.exists():
        return frozenset()
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        return frozenset()
    if not isinstance(raw, list):
        raise ValueError(f"Expected list of country codes in {path}")

    codes: set[str] = set()
    for idx, item in enumerate(raw):
        if not isinstance(item, str):
            raise ValueError(f"Expected country code string at index {idx} in {path}")
        codes.add(normalize_country_code(item))
    return frozenset(codes)


def merge_visited_codes(*groups: Iterable[str]) -> frozenset[str]:
    codes: set[str] = set()
    for group in groups:
        codes.update(normalize_country_code(code) for code in group)
    return frozenset(codes)
