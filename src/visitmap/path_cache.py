"""Process-lifetime cache of parsed country outlines."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from typing import Mapping

from .bundle import BundleSource, GeometryRepository, NotLoadedError
from .models import CountryGeometry
from .path_parser import MalformedPathError, PathLanguageParser
from .util import format_code_list

_LOGGER = logging.getLogger("visitmap.path_cache")


@dataclass(frozen=True, slots=True)
class ParseFailure:
    """A country left off the map because its outline could not be used."""

    country_code: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"country_code": self.country_code, "reason": self.reason}


class ParsedGeometryCache:
    """Parse every outline once and share the result with all renderers.

    Build one instance at startup and hand it to each map. Population is
    atomic for readers: they either get `NotLoadedError` (or an empty
    snapshot) or the complete list, never a partial one. Outlines that
    fail to parse are logged, recorded in `failures`, and skipped.
    """

    def __init__(self, parser: PathLanguageParser | None = None) -> None:
        self._parser = parser or PathLanguageParser()
        self._lock = threading.RLock()
        self._geometries: list[CountryGeometry] | None = None
        self._failures: tuple[ParseFailure, ...] = ()
        self._pending: Future[list[CountryGeometry]] | None = None

    @property
    def is_populated(self) -> bool:
        return self._geometries is not None

    @property
    def geometries(self) -> list[CountryGeometry]:
        geometries = self._geometries
        if geometries is None:
            raise NotLoadedError("Geometry cache not populated. Call ensure(repository) first.")
        return geometries

    @property
    def failures(self) -> tuple[ParseFailure, ...]:
        return self._failures

    def snapshot(self) -> list[CountryGeometry]:
        """Populated list, or an empty one while loading is still in flight."""
        geometries = self._geometries
        return geometries if geometries is not None else []

    def ensure(self, repository: GeometryRepository) -> list[CountryGeometry]:
        geometries = self._geometries
        if geometries is not None:
            return geometries
        with self._lock:
            if self._geometries is None:
                built, failures = self._build(repository.entries())
                self._failures = failures
                self._geometries = built
            return self._geometries

    def populate_async(
        self,
        repository: GeometryRepository,
        bundle: BundleSource,
        executor: Executor,
    ) -> Future[list[CountryGeometry]]:
        """Load and parse off the calling thread; concurrent callers share one future."""
        with self._lock:
            if self._geometries is not None:
                done: Future[list[CountryGeometry]] = Future()
                done.set_result(self._geometries)
                return done
            pending = self._pending
            if pending is None:
                pending = executor.submit(self._load_and_ensure, repository, bundle)
                self._pending = pending
                # Runs inline when the job already finished; may clear _pending.
                pending.add_done_callback(self._clear_failed_pending)
            return pending

    def reset(self) -> None:
        """Drop parsed state. Intended for tests."""
        with self._lock:
            self._geometries = None
            self._failures = ()
            self._pending = None

    def _load_and_ensure(
        self,
        repository: GeometryRepository,
        bundle: BundleSource,
    ) -> list[CountryGeometry]:
        repository.load(bundle)
        return self.ensure(repository)

    def _clear_failed_pending(self, future: Future[list[CountryGeometry]]) -> None:
        if future.cancelled() or future.exception() is not None:
            with self._lock:
                if self._pending is future:
                    self._pending = None

    def _build(
        self,
        entries: Mapping[str, str],
    ) -> tuple[list[CountryGeometry], tuple[ParseFailure, ...]]:
        t0 = time.perf_counter()
        geometries: list[CountryGeometry] = []
        failures: list[ParseFailure] = []
        for code, path_data in entries.items():
            try:
                path = self._parser.parse(path_data)
            except MalformedPathError as exc:
                _LOGGER.warning("Skipping %s: malformed path data: %s", code, exc)
                failures.append(ParseFailure(code, str(exc)))
                continue
            bounds = path.bounds()
            if path.is_empty or bounds.is_degenerate:
                _LOGGER.warning("Skipping %s: outline has no area", code)
                failures.append(ParseFailure(code, "degenerate outline"))
                continue
            geometries.append(CountryGeometry(country_code=code, path=path, bounds=bounds))

        _LOGGER.info(
            "Parsed %d/%d country outlines in %.2fs",
            len(geometries),
            len(entries),
            time.perf_counter() - t0,
        )
        if failures:
            _LOGGER.warning(
                "Countries missing from the map: %s",
                format_code_list(sorted(failure.country_code for failure in failures)),
            )
        return geometries, tuple(failures)
