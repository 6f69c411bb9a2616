"""Tests for epoch parsing and formatting (rms-julian calls replaced where needed)."""

from __future__ import annotations

import pytest

from ephemeris_cache import time_utils


@pytest.fixture
def fake_julian(monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, tuple[object, ...]]]:
    """Replace the rms-julian calls used by time_utils with recording stubs."""
    calls: list[tuple[str, tuple[object, ...]]] = []

    def _day_sec_from_string(text: str) -> tuple[int, float]:
        calls.append(('day_sec_from_string', (text,)))
        if text != '2000-01-02 00:00:00':
            raise ValueError(f'bad date {text!r}')
        return (1, 0.0)

    monkeypatch.setattr('julian.set_ut_model', lambda model, future=None: calls.append(('set_ut_model', (model,))))
    monkeypatch.setattr('julian.load_lsk', lambda path=None: calls.append(('load_lsk', (path,))))
    monkeypatch.setattr('julian.day_sec_from_string', _day_sec_from_string)
    monkeypatch.setattr('julian.tai_from_day_sec', lambda day, sec: day * 86400.0 + sec + 32.0)
    monkeypatch.setattr('julian.tdb_from_tai', lambda tai: tai + 32.184)
    monkeypatch.setattr('julian.tai_from_tdb', lambda tdb: tdb - 32.184)
    monkeypatch.setattr(
        'julian.iso_from_tai', lambda tai, digits=None: f'ISO({tai:.3f},{digits})'
    )
    monkeypatch.setattr('ephemeris_cache.time_utils.get_leapsecs_path', lambda: None)
    monkeypatch.setattr(time_utils, '_leapsecs_loaded', False)
    return calls


def test_numbers_are_tdb_seconds() -> None:
    """Plain numbers pass through without touching rms-julian."""
    assert time_utils.parse_epoch('43200') == 43200.0
    assert time_utils.parse_epoch(' -1.5e6 ') == -1.5e6


def test_non_finite_numbers_rejected() -> None:
    """nan and inf are not epochs."""
    with pytest.raises(ValueError):
        time_utils.parse_epoch('nan')
    with pytest.raises(ValueError):
        time_utils.parse_epoch('inf')


def test_utc_string_converted_to_tdb(fake_julian: list[tuple[str, tuple[object, ...]]]) -> None:
    """Date strings go UTC -> TAI -> TDB; leap seconds initialised with the SPICE UT model."""
    tdb = time_utils.parse_epoch('2000-01-02 00:00:00')
    assert tdb == pytest.approx(86400.0 + 32.0 + 32.184)
    assert fake_julian[0] == ('set_ut_model', ('SPICE',))
    assert fake_julian[1] == ('load_lsk', (None,))


def test_iso_z_suffix_accepted(fake_julian: list[tuple[str, tuple[object, ...]]]) -> None:
    """A trailing Z is dropped and the value parsed as UTC."""
    with_z = time_utils.parse_epoch('2000-01-02 00:00:00Z')
    without_z = time_utils.parse_epoch('2000-01-02 00:00:00')
    assert with_z == without_z


def test_unparseable_epoch(fake_julian: list[tuple[str, tuple[object, ...]]]) -> None:
    """Text that is neither a number nor a date raises ValueError."""
    with pytest.raises(ValueError, match='Unrecognized epoch'):
        time_utils.parse_epoch('next tuesday')


def test_configured_lsk_is_loaded(
    fake_julian: list[tuple[str, tuple[object, ...]]], monkeypatch: pytest.MonkeyPatch
) -> None:
    """A configured leap seconds file is passed to rms-julian."""
    monkeypatch.setattr('ephemeris_cache.time_utils.get_leapsecs_path', lambda: 'naif0012.tls')
    time_utils.parse_epoch('2000-01-02 00:00:00')
    assert ('load_lsk', ('naif0012.tls',)) in fake_julian


def test_format_epoch(fake_julian: list[tuple[str, tuple[object, ...]]]) -> None:
    """TDB is converted to TAI before ISO formatting."""
    assert time_utils.format_epoch(32.184) == 'ISO(0.000,3)'
