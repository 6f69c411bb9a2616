"""Shared fixtures: a fresh cache manager over an in-memory kernel reader."""

from __future__ import annotations

import pytest

from ephemeris_cache.manager import EphemerisCacheManager
from tests.fake_reader import FakeKernelReader


@pytest.fixture
def fake_reader() -> FakeKernelReader:
    """Reader with 'earth_sun.bsp' (Earth/Sun/J2000 over one day) preloaded."""
    reader = FakeKernelReader()
    reader.add_kernel('earth_sun.bsp', {(399, 10, 'J2000'): (0.0, 86400.0)})
    return reader


@pytest.fixture
def manager(fake_reader: FakeKernelReader, monkeypatch: pytest.MonkeyPatch) -> EphemerisCacheManager:
    """Fresh manager over the fake reader, default frame J2000."""
    monkeypatch.delenv('EPHEMERIS_CACHE_FRAME', raising=False)
    monkeypatch.delenv('EPHEMERIS_CACHE_KERNEL_PATH', raising=False)
    return EphemerisCacheManager(reader=fake_reader)
