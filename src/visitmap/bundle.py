"""Static path bundle loading and the shared geometry repository."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Protocol

from .models import RawGeometryRecord

_LOGGER = logging.getLogger("visitmap.bundle")


class NotLoadedError(RuntimeError):
    """Raised when geometry is accessed before the one-time load completed."""


class BundleSource(Protocol):
    """Anything that can hand over the raw bundle text once."""

    @property
    def name(self) -> str: ...

    def read_text(self) -> str: ...


class FileBundle:
    """Bundle stored as a JSON file on disk."""

    def __init__(self, path: Path) -> None:
        self.path = path

    @property
    def name(self) -> str:
        return str(self.path)

    def read_text(self) -> str:
        if not self.path.exists():
            raise FileNotFoundError(f"Path bundle not found: {self.path}")
        return self.path.read_text(encoding="utf-8")


def decode_bundle(text: str, *, source_name: str = "<bundle>") -> dict[str, RawGeometryRecord]:
    """Decode `{ "<CODE>": "<path data>", ... }` into records keyed by code.

    Key order is preserved; it becomes the draw order of the map.
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {source_name}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ValueError(f"Expected JSON object at root of {source_name}")

    records: dict[str, RawGeometryRecord] = {}
    for code_raw, path_raw in raw.items():
        try:
            record = RawGeometryRecord.from_item(code_raw, path_raw)
        except ValueError as exc:
            raise ValueError(f"{exc} in {source_name}") from exc
        if record.country_code in records:
            raise ValueError(f"Duplicate country code '{record.country_code}' in {source_name}")
        records[record.country_code] = record
    return records


class GeometryRepository:
    """Country code -> raw path data, populated once from a bundle.

    `load` is idempotent and safe to call from several threads at once:
    the first caller reads and decodes the bundle, every other caller
    waits on the lock and then sees the populated map. A failed decode
    leaves the repository unloaded.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Mapping[str, str] | None = None

    @property
    def is_loaded(self) -> bool:
        return self._entries is not None

    def load(self, bundle: BundleSource) -> int:
        entries = self._entries
        if entries is not None:
            return len(entries)
        with self._lock:
            if self._entries is not None:
                return len(self._entries)
            records = decode_bundle(bundle.read_text(), source_name=bundle.name)
            self._entries = MappingProxyType(
                {code: record.path_data for code, record in records.items()}
            )
            _LOGGER.info("Loaded %d country outlines from %s", len(records), bundle.name)
            return len(records)

    def entries(self) -> Mapping[str, str]:
        entries = self._entries
        if entries is None:
            raise NotLoadedError("Geometry repository not loaded. Call load(bundle) first.")
        return entries

    def reset(self) -> None:
        """Drop loaded state. Intended for tests."""
        with self._lock:
            self._entries = None
