"""Kernel reader: opens SPK files and evaluates states through cspyce.

The cache manager only talks to a KernelReader; CspyceKernelReader is the
production implementation. Tests substitute an in-memory reader.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import cspyce
import numpy as np

from ephemeris_cache.constants import ABERRATION_CORRECTION, METERS_PER_KM
from ephemeris_cache.errors import KernelOpenFailure, KernelQueryFailure

logger = logging.getLogger(__name__)

# cspyce translates SPICE errors into these builtin exception types.
_SPICE_ERRORS = (RuntimeError, ValueError, LookupError, OSError, ArithmeticError, TypeError)

# Coverage window: sorted, non-overlapping (start, stop) intervals, TDB seconds.
Window = list[tuple[float, float]]


@dataclass(frozen=True)
class KernelHandle:
    """Opaque reference to an opened kernel file.

    Attributes:
        path: Absolute path of the kernel file.
        body_ids: NAIF IDs of the objects the file has segments for.
    """

    path: str
    body_ids: frozenset[int] = frozenset()


class KernelReader(Protocol):
    """Operations the cache manager needs from a kernel reader."""

    def open(self, path: str) -> KernelHandle:
        """Open a kernel; raise KernelOpenFailure on I/O or format errors."""
        ...

    def supports(self, handle: KernelHandle, target: int, observer: int, frame: str) -> bool:
        """Return True if the kernel can produce target-relative-to-observer states in frame."""
        ...

    def query_coverage(
        self, handle: KernelHandle, target: int, observer: int, frame: str
    ) -> Window:
        """Return the intervals (TDB seconds past J2000) over which the pair is covered."""
        ...

    def query_bounds(
        self, handle: KernelHandle, target: int, observer: int, frame: str
    ) -> tuple[float, float]:
        """Return (start, stop) TDB seconds past J2000 of the kernel's coverage."""
        ...

    def query_state(
        self, handle: KernelHandle, target: int, observer: int, frame: str, epoch: float
    ) -> np.ndarray:
        """Return the 6-element state (m, m/s); raise KernelQueryFailure on failure."""
        ...

    def prioritize(self, handle: KernelHandle) -> None:
        """Make this kernel take precedence over every other loaded one."""
        ...

    def close(self, handle: KernelHandle) -> None:
        """Release the kernel. Never raises."""
        ...


def window_hull(window: Window) -> tuple[float, float]:
    """Return (first start, last stop) of a non-empty window."""
    return (window[0][0], window[-1][1])


def _as_window(intervals: object) -> Window:
    """Sorted (start, stop) pairs from an SPKCOV result."""
    pairs = np.asarray(intervals, dtype=np.float64).reshape(-1, 2)
    return sorted((float(start), float(stop)) for start, stop in pairs)


def _intersect_windows(a: Window, b: Window) -> Window:
    """Intervals covered by both windows."""
    out: Window = []
    i = j = 0
    while i < len(a) and j < len(b):
        start = max(a[i][0], b[j][0])
        stop = min(a[i][1], b[j][1])
        if start <= stop:
            out.append((start, stop))
        if a[i][1] < b[j][1]:
            i += 1
        else:
            j += 1
    return out


def _spkez_state(result: object) -> np.ndarray:
    """Return the 6-element km state from a cspyce.spkez result (tuple or array)."""
    state = result[0] if isinstance(result, (tuple, list)) and len(result) == 2 else result
    return np.asarray(state, dtype=np.float64).flatten()[:6]


class CspyceKernelReader:
    """KernelReader backed by the SPICE toolkit through cspyce.

    SPICE keeps one process-wide kernel pool, so there should be a single
    instance of this reader per process. CSPICE is not thread-safe; every call
    into cspyce is made under an internal lock.

    States are evaluated against the whole kernel pool. When two loaded files
    cover the same body SPICE uses the most recently furnished one;
    prioritize() re-furnishes a file to put it back on top.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def open(self, path: str) -> KernelHandle:
        """Furnish an SPK file and read the list of bodies it covers.

        Parameters:
            path: Kernel file path.

        Returns:
            KernelHandle for the file.

        Raises:
            KernelOpenFailure: Missing file, not a file, or not a readable SPK.
        """
        p = Path(path)
        if not p.exists():
            raise KernelOpenFailure(str(path), 'file does not exist')
        if not p.is_file():
            raise KernelOpenFailure(str(path), 'not a regular file')
        abspath = str(p.resolve())
        with self._lock:
            try:
                body_ids = frozenset(int(i) for i in cspyce.spkobj(abspath))
            except _SPICE_ERRORS as e:
                raise KernelOpenFailure(abspath, f'not a readable SPK file ({e})') from e
            try:
                cspyce.furnsh(abspath)
            except _SPICE_ERRORS as e:
                raise KernelOpenFailure(abspath, f'furnsh failed ({e})') from e
        logger.debug('Opened %s (bodies %s)', abspath, sorted(body_ids))
        return KernelHandle(path=abspath, body_ids=body_ids)

    def coverage_window(self, handle: KernelHandle, body_id: int) -> Window:
        """SPKCOV window of one body in the file.

        Raises:
            KernelQueryFailure: SPICE could not read the coverage.
        """
        with self._lock:
            try:
                intervals = cspyce.spkcov(handle.path, body_id)
            except _SPICE_ERRORS as e:
                raise KernelQueryFailure(
                    f'Coverage of body {body_id} unavailable from {handle.path}: {e}'
                ) from e
        return _as_window(intervals)

    def query_coverage(
        self, handle: KernelHandle, target: int, observer: int, frame: str
    ) -> Window:
        """Coverage of the pair: intersection of the windows of whichever bodies are in the file.

        A body that only appears as a segment center (e.g. the SSB) has no
        window of its own and does not narrow the coverage.

        Raises:
            KernelQueryFailure: Neither body is in the file, or the
                resulting coverage is empty.
        """
        del frame
        bodies = [body for body in (target, observer) if body in handle.body_ids]
        if not bodies:
            raise KernelQueryFailure(
                f'{handle.path} has no segments for body {target} or {observer}'
            )
        window = self.coverage_window(handle, bodies[0])
        for body in bodies[1:]:
            window = _intersect_windows(window, self.coverage_window(handle, body))
        if not window:
            raise KernelQueryFailure(
                f'{handle.path} has no coverage for {target} relative to {observer}'
            )
        return window

    def query_bounds(
        self, handle: KernelHandle, target: int, observer: int, frame: str
    ) -> tuple[float, float]:
        """Outer hull of query_coverage(); epochs in gaps inside it are not covered."""
        return window_hull(self.query_coverage(handle, target, observer, frame))

    def supports(self, handle: KernelHandle, target: int, observer: int, frame: str) -> bool:
        """True if the pair has coverage and a trial state evaluation inside it succeeds."""
        try:
            window = self.query_coverage(handle, target, observer, frame)
        except KernelQueryFailure:
            return False
        start, stop = window[0]
        try:
            self.query_state(handle, target, observer, frame, 0.5 * (start + stop))
        except KernelQueryFailure as e:
            logger.debug('Trial evaluation in %s failed: %s', handle.path, e)
            return False
        return True

    def query_state(
        self, handle: KernelHandle, target: int, observer: int, frame: str, epoch: float
    ) -> np.ndarray:
        """Geometric state of target relative to observer in frame at epoch (TDB).

        Parameters:
            handle: Kernel handle (the whole SPICE pool is consulted).
            target: NAIF ID of target body.
            observer: NAIF ID of observing body.
            frame: Reference frame name (e.g. 'J2000').
            epoch: TDB seconds past J2000.

        Returns:
            Length-6 array: position (m) and velocity (m/s).

        Raises:
            KernelQueryFailure: SPICE could not evaluate the state.
        """
        with self._lock:
            try:
                result = cspyce.spkez(target, epoch, frame, ABERRATION_CORRECTION, observer)
            except _SPICE_ERRORS as e:
                raise KernelQueryFailure(
                    f'State of {target} wrt {observer} in {frame} at {epoch!r} '
                    f'unavailable from {handle.path}: {e}'
                ) from e
        state = _spkez_state(result)
        if state.shape != (6,):
            raise KernelQueryFailure(f'Unexpected state shape {state.shape} from cspyce.spkez')
        return state * METERS_PER_KM

    def prioritize(self, handle: KernelHandle) -> None:
        """Unload and furnish the file again so SPICE searches it first.

        Raises:
            KernelQueryFailure: SPICE could not re-furnish the file.
        """
        with self._lock:
            try:
                cspyce.unload(handle.path)
                cspyce.furnsh(handle.path)
            except _SPICE_ERRORS as e:
                raise KernelQueryFailure(f'Cannot re-furnish {handle.path}: {e}') from e

    def close(self, handle: KernelHandle) -> None:
        """Unload the kernel file from the SPICE pool."""
        with self._lock:
            try:
                cspyce.unload(handle.path)
            except _SPICE_ERRORS as e:
                logger.warning('Failed to unload %s: %s', handle.path, e)
