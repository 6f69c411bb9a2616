"""In-memory kernel reader standing in for cspyce in tests."""

from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np

from ephemeris_cache.errors import KernelOpenFailure, KernelQueryFailure
from ephemeris_cache.spice.reader import KernelHandle, window_hull

Interval = tuple[float, float]
Coverage = Union[Interval, list[Interval]]


class FakeKernelReader:
    """KernelReader over a dict of fake kernel files, keyed by file name.

    Each kernel maps (target, observer, frame) to either one (start, stop)
    interval or a list of them. The state at epoch is
    [epoch, target, observer, 1, 2, 3] so tests can see what was asked.
    """

    def __init__(self) -> None:
        self.kernels: dict[str, dict[tuple[int, int, str], Coverage]] = {}
        self.opened: list[str] = []
        self.closed: list[str] = []
        self.prioritized: list[str] = []

    def add_kernel(self, name: str, coverage: dict[tuple[int, int, str], Coverage]) -> None:
        self.kernels[name] = coverage

    def open(self, path: str) -> KernelHandle:
        name = Path(path).name
        if name not in self.kernels:
            raise KernelOpenFailure(path, 'file does not exist')
        self.opened.append(name)
        bodies = frozenset(t for t, _o, _f in self.kernels[name])
        return KernelHandle(path=path, body_ids=bodies)

    def supports(self, handle: KernelHandle, target: int, observer: int, frame: str) -> bool:
        return (target, observer, frame) in self.kernels[Path(handle.path).name]

    def query_coverage(
        self, handle: KernelHandle, target: int, observer: int, frame: str
    ) -> list[Interval]:
        try:
            coverage = self.kernels[Path(handle.path).name][(target, observer, frame)]
        except KeyError:
            raise KernelQueryFailure(f'{handle.path}: no coverage') from None
        if isinstance(coverage, list):
            return list(coverage)
        return [coverage]

    def query_bounds(
        self, handle: KernelHandle, target: int, observer: int, frame: str
    ) -> Interval:
        return window_hull(self.query_coverage(handle, target, observer, frame))

    def query_state(
        self, handle: KernelHandle, target: int, observer: int, frame: str, epoch: float
    ) -> np.ndarray:
        del frame
        return np.array([epoch, float(target), float(observer), 1.0, 2.0, 3.0])

    def prioritize(self, handle: KernelHandle) -> None:
        self.prioritized.append(Path(handle.path).name)

    def close(self, handle: KernelHandle) -> None:
        self.closed.append(Path(handle.path).name)
