"""Epoch conversions (UTC strings <-> TDB seconds past J2000) via rms-julian."""

from __future__ import annotations

import logging
import math

import julian

from ephemeris_cache.config import get_leapsecs_path

logger = logging.getLogger(__name__)

# Leap seconds loaded once at first use.
_leapsecs_loaded = False


def _ensure_leapsecs() -> None:
    """Load leap seconds if not already loaded.

    Uses the configured LSK when there is one and it loads; otherwise falls
    back to rms-julian's bundled LSK.
    """
    global _leapsecs_loaded
    if _leapsecs_loaded:
        return
    # Same UTC model as SPICE, whose kernels the epochs index into.
    julian.set_ut_model('SPICE')
    path = get_leapsecs_path()
    if path is not None:
        try:
            julian.load_lsk(path)
            _leapsecs_loaded = True
            return
        except (OSError, KeyError, ValueError) as e:
            logger.info('Leap seconds from %s not used (%s); using rms-julian bundled LSK.', path, e)
    julian.load_lsk()
    _leapsecs_loaded = True


def tdb_from_tai(tai: float) -> float:
    """Convert TAI seconds to TDB seconds (SPICE ephemeris time)."""
    return float(julian.tdb_from_tai(tai))


def tai_from_tdb(tdb: float) -> float:
    """Convert TDB seconds (SPICE ephemeris time) to TAI seconds."""
    return float(julian.tai_from_tdb(tdb))


def parse_epoch(text: str) -> float:
    """Parse an epoch given as TDB seconds or as a UTC date/time string.

    Parameters:
        text: A number ('43200', '-1.5e6') is taken as TDB seconds past J2000;
            anything else is parsed as UTC by rms-julian ('2025-01-01 12:00',
            '2025-01-01T12:00:00Z').

    Returns:
        TDB seconds past J2000.

    Raises:
        ValueError: Text is neither a finite number nor a parseable date/time.
    """
    stripped = text.strip()
    try:
        value = float(stripped)
    except ValueError:
        pass
    else:
        if not math.isfinite(value):
            raise ValueError(f'Epoch must be finite: {text!r}')
        return value
    _ensure_leapsecs()
    candidates = [stripped]
    if stripped.endswith(('Z', 'z')):
        # rms-julian does not accept the ISO "Z" suffix; the value is UTC either way.
        candidates.append(stripped[:-1])
    for candidate in candidates:
        try:
            day, sec = julian.day_sec_from_string(candidate)[:2]
        except (ValueError, TypeError, LookupError, OSError):
            continue
        return tdb_from_tai(float(julian.tai_from_day_sec(int(day), float(sec))))
    raise ValueError(f'Unrecognized epoch: {text!r}')


def format_epoch(tdb: float, digits: int = 3) -> str:
    """Format TDB seconds past J2000 as an ISO UTC string.

    Parameters:
        tdb: TDB seconds past J2000.
        digits: Decimal places of seconds.

    Returns:
        ISO 8601 string, e.g. '2000-01-01T11:58:55.816'.
    """
    _ensure_leapsecs()
    return str(julian.iso_from_tai(tai_from_tdb(tdb), digits=digits))
