"""Text description of the map state for non-visual consumers."""

from __future__ import annotations

from typing import Iterable

NO_VISITED_DESCRIPTION = "World map with no visited countries"


def describe_visited(visited: Iterable[str]) -> str:
    """Deterministic summary: codes sorted ascending, comma separated."""
    codes = sorted(set(visited))
    if not codes:
        return NO_VISITED_DESCRIPTION
    return f"World map with visited countries: {', '.join(codes)}"
