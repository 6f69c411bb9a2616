"""Ephemeris cache manager: index of loaded kernels keyed by (target, observer, frame).

A caller loads kernel files for target/observer/frame triples, then queries
availability, states and validity intervals. Loads and clears are exclusive;
queries run concurrently with each other. Loading a second file for a key
that is already indexed replaces the mapping (last load wins) and logs a
warning.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType, TracebackType
from typing import Mapping

import numpy as np

from ephemeris_cache.bodies import body_label, id_to_name, name_to_id, resolve_body
from ephemeris_cache.config import get_default_frame, get_kernel_path
from ephemeris_cache.constants import KEY_SEPARATOR
from ephemeris_cache.errors import (
    EphemerisNotLoaded,
    EpochOutOfBounds,
    UnknownBodyName,
)
from ephemeris_cache.locking import ReadWriteLock
from ephemeris_cache.spice.reader import (
    CspyceKernelReader,
    KernelHandle,
    KernelReader,
    window_hull,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class EphemerisKey:
    """State of target relative to observer, expressed in frame.

    Keys compare component-wise with no normalization: (Earth, Sun) and
    (Sun, Earth) are different keys, as are 'J2000' and 'j2000'.
    """

    target: int
    observer: int
    frame: str

    def label(self) -> str:
        """Canonical key string, e.g. 'Earth_Sun_J2000'."""
        return KEY_SEPARATOR.join(
            (body_label(self.target), body_label(self.observer), self.frame)
        )


@dataclass(frozen=True)
class LoadedSource:
    """Snapshot of one loaded kernel file.

    Attributes:
        path: Resolved kernel path.
        coverage: Covered intervals (start, stop), TDB seconds past J2000,
            for each key this file currently serves.
    """

    path: str
    coverage: Mapping[EphemerisKey, tuple[tuple[float, float], ...]]

    @property
    def keys(self) -> frozenset[EphemerisKey]:
        """Keys this file currently serves."""
        return frozenset(self.coverage)

    @property
    def bounds(self) -> dict[EphemerisKey, tuple[float, float]]:
        """Validity interval (first start, last stop) for each key."""
        return {key: window_hull(list(window)) for key, window in self.coverage.items()}


@dataclass
class _Source:
    """Manager-owned record of an open kernel; the handle never leaves the manager."""

    path: str
    handle: KernelHandle
    coverage: dict[EphemerisKey, tuple[tuple[float, float], ...]] = field(default_factory=dict)

    def snapshot(self) -> LoadedSource:
        return LoadedSource(path=self.path, coverage=MappingProxyType(dict(self.coverage)))


def _resolve_path(path: str | Path) -> str:
    """Absolute kernel path; relative paths fall back to the configured kernel directory."""
    p = Path(path).expanduser()
    if not p.is_absolute() and not p.exists():
        candidate = Path(get_kernel_path()) / p
        if candidate.exists():
            p = candidate
    return str(p.resolve())


class EphemerisCacheManager:
    """Index of loaded ephemeris kernels with state and bounds queries.

    Construct one instance at startup and pass it to consumers; the SPICE
    kernel pool behind the default reader is process-wide, so independent
    instances sharing it would interfere. Tests use fresh instances with an
    in-memory reader.

    Parameters:
        reader: Kernel reader; defaults to a CspyceKernelReader.
    """

    def __init__(self, reader: KernelReader | None = None) -> None:
        self._reader: KernelReader = reader if reader is not None else CspyceKernelReader()
        self._lock = ReadWriteLock()
        self._index: dict[EphemerisKey, _Source] = {}
        self._sources: dict[str, _Source] = {}

    # Context manager: leaving the block releases every kernel.
    def __enter__(self) -> EphemerisCacheManager:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.clear_all()

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._index)

    @staticmethod
    def body_name_to_id(name: str) -> int:
        """NAIF ID for a body name (see ephemeris_cache.bodies.name_to_id)."""
        return name_to_id(name)

    @staticmethod
    def id_to_body_name(body_id: int) -> str:
        """Canonical body name for a NAIF ID (see ephemeris_cache.bodies.id_to_name)."""
        return id_to_name(body_id)

    def _key(self, target: str | int, observer: str | int, frame: str | None) -> EphemerisKey:
        frame_name = frame.strip() if frame is not None and frame.strip() else get_default_frame()
        return EphemerisKey(resolve_body(target), resolve_body(observer), frame_name)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_source(
        self,
        path: str | Path,
        target: str | int,
        observer: str | int,
        frame: str | None = None,
    ) -> bool:
        """Load a kernel for target relative to observer in frame.

        A file that is already open is not opened twice; it is re-furnished
        so that SPICE searches it ahead of files loaded since.

        Parameters:
            path: Kernel file path (relative paths also tried under the
                configured kernel directory).
            target: Target body name (e.g. 'Earth') or NAIF ID.
            observer: Observer body name (e.g. 'Sun') or NAIF ID.
            frame: Reference frame; None for the configured default ('J2000').

        Returns:
            True if the key is now served by this file; False if the file is
            readable but does not provide the requested target/observer/frame.

        Raises:
            UnknownBodyName: A body name is not in the registry.
            KernelOpenFailure: The file is missing, corrupt or not an SPK.
        """
        return self._load(path, self._key(target, observer, frame))

    def load_source_by_ids(
        self,
        path: str | Path,
        target_id: int,
        observer_id: int,
        frame: str | None = None,
    ) -> bool:
        """Load a kernel for NAIF IDs directly, bypassing the name registry.

        Same contract and resulting index state as load_source() called with
        the corresponding names.
        """
        return self._load(path, self._key(int(target_id), int(observer_id), frame))

    def _load(self, path: str | Path, key: EphemerisKey) -> bool:
        resolved = _resolve_path(path)
        with self._lock.write():
            source = self._sources.get(resolved)
            handle = source.handle if source is not None else self._reader.open(resolved)
            keep_handle = source is not None
            try:
                if not self._reader.supports(handle, key.target, key.observer, key.frame):
                    logger.info('%s does not provide %s', resolved, key.label())
                    return False
                window = self._reader.query_coverage(
                    handle, key.target, key.observer, key.frame
                )
                if source is None:
                    source = _Source(path=resolved, handle=handle)
                    self._sources[resolved] = source
                else:
                    # An already open file goes back on top of the kernel pool.
                    self._reader.prioritize(handle)
                keep_handle = True
            finally:
                if not keep_handle:
                    self._reader.close(handle)
            coverage = tuple(sorted((float(start), float(stop)) for start, stop in window))
            self._replace(key, source, coverage)
        return True

    def _replace(
        self,
        key: EphemerisKey,
        source: _Source,
        coverage: tuple[tuple[float, float], ...],
    ) -> None:
        """Point key at source (caller holds the write lock)."""
        previous = self._index.get(key)
        start, stop = window_hull(list(coverage))
        if previous is not None and previous is not source:
            old_coverage = previous.coverage.pop(key)
            if old_coverage != coverage:
                old_start, old_stop = window_hull(list(old_coverage))
                logger.warning(
                    'Overwriting %s: %s replaces %s; validity interval changes from '
                    '[%r, %r] (%d interval(s)) to [%r, %r] (%d interval(s))',
                    key.label(),
                    source.path,
                    previous.path,
                    old_start,
                    old_stop,
                    len(old_coverage),
                    start,
                    stop,
                    len(coverage),
                )
            else:
                logger.warning(
                    'Overwriting %s: %s replaces %s', key.label(), source.path, previous.path
                )
            if not previous.coverage:
                del self._sources[previous.path]
                self._reader.close(previous.handle)
                logger.info('Closed %s (no keys left)', previous.path)
        source.coverage[key] = coverage
        self._index[key] = source
        logger.info('Loaded %s from %s [%r, %r]', key.label(), source.path, start, stop)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_available(
        self, target: str | int, observer: str | int, frame: str | None = None
    ) -> bool:
        """True if a loaded kernel serves exactly this key.

        Never loads anything; unknown body names give False.
        """
        try:
            key = self._key(target, observer, frame)
        except UnknownBodyName:
            return False
        with self._lock.read():
            return key in self._index

    def get_state(
        self,
        target: str | int,
        observer: str | int,
        frame: str | None,
        epoch: float,
    ) -> np.ndarray:
        """State of target relative to observer in frame at epoch.

        Parameters:
            target: Target body name or NAIF ID.
            observer: Observer body name or NAIF ID.
            frame: Reference frame; None for the configured default.
            epoch: TDB seconds past J2000.

        Returns:
            Length-6 array [x, y, z, vx, vy, vz] in m and m/s.

        Raises:
            UnknownBodyName: A body name is not in the registry.
            EphemerisNotLoaded: No loaded kernel serves the key.
            EpochOutOfBounds: epoch not inside any covered interval of the key.
            KernelQueryFailure: The reader could not evaluate the state.
        """
        key = self._key(target, observer, frame)
        epoch = float(epoch)
        with self._lock.read():
            source = self._index.get(key)
            if source is None:
                raise EphemerisNotLoaded(key.label())
            coverage = source.coverage[key]
            if not any(start <= epoch <= stop for start, stop in coverage):
                start, stop = window_hull(list(coverage))
                raise EpochOutOfBounds(key.label(), epoch, start, stop)
            return self._reader.query_state(
                source.handle, key.target, key.observer, key.frame, epoch
            )

    def get_time_bounds(
        self, target: str | int, observer: str | int, frame: str | None = None
    ) -> tuple[float, float]:
        """Validity interval (start, stop), TDB seconds past J2000, of the loaded key.

        This is the outer hull of the key's coverage; epochs in gaps inside it
        are rejected by get_state().

        Raises:
            UnknownBodyName: A body name is not in the registry.
            EphemerisNotLoaded: No loaded kernel serves the key.
        """
        key = self._key(target, observer, frame)
        with self._lock.read():
            source = self._index.get(key)
            if source is None:
                raise EphemerisNotLoaded(key.label())
            return window_hull(list(source.coverage[key]))

    def get_coverage(
        self, target: str | int, observer: str | int, frame: str | None = None
    ) -> list[tuple[float, float]]:
        """Covered intervals (start, stop) of the loaded key, sorted.

        Raises:
            UnknownBodyName: A body name is not in the registry.
            EphemerisNotLoaded: No loaded kernel serves the key.
        """
        key = self._key(target, observer, frame)
        with self._lock.read():
            source = self._index.get(key)
            if source is None:
                raise EphemerisNotLoaded(key.label())
            return list(source.coverage[key])

    def list_loaded(self) -> list[str]:
        """Snapshot of loaded keys as 'target_observer_frame' strings, sorted."""
        with self._lock.read():
            keys = sorted(self._index)
        return [key.label() for key in keys]

    def loaded_sources(self) -> list[LoadedSource]:
        """Snapshot of the open kernel files and the keys each one serves."""
        with self._lock.read():
            return [source.snapshot() for source in self._sources.values()]

    def clear_all(self) -> None:
        """Drop every key and close every kernel. Idempotent."""
        with self._lock.write():
            sources = list(self._sources.values())
            self._index.clear()
            self._sources.clear()
            for source in sources:
                self._reader.close(source.handle)
        if sources:
            logger.info('Cleared %d kernel file(s)', len(sources))


_default: EphemerisCacheManager | None = None
_default_lock = threading.Lock()


def default_manager() -> EphemerisCacheManager:
    """Return the process-wide manager, creating it on first use."""
    global _default
    with _default_lock:
        if _default is None:
            _default = EphemerisCacheManager()
        return _default
