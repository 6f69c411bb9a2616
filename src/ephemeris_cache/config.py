"""Configuration: kernel directory, default frame and leap seconds from environment."""

from __future__ import annotations

import os
from pathlib import Path

from ephemeris_cache.constants import DEFAULT_FRAME

# Env var overrides with sensible defaults.
DEFAULT_KERNEL_PATH = '.'


def get_kernel_path() -> str:
    """Return kernel root directory (EPHEMERIS_CACHE_KERNEL_PATH env var or default).

    Relative kernel paths passed to the manager are looked up here when they
    do not exist relative to the working directory.

    Returns:
        Path string.
    """
    return os.environ.get('EPHEMERIS_CACHE_KERNEL_PATH', DEFAULT_KERNEL_PATH)


def get_default_frame() -> str:
    """Return the frame used when a caller does not name one.

    Returns:
        Frame name (EPHEMERIS_CACHE_FRAME env var or 'J2000').
    """
    frame = os.environ.get('EPHEMERIS_CACHE_FRAME', '').strip()
    return frame or DEFAULT_FRAME


def get_log_level() -> str | None:
    """Return log level name from EPHEMERIS_CACHE_LOG, or None if unset/invalid."""
    level = os.environ.get('EPHEMERIS_CACHE_LOG', '').strip().upper()
    if level in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
        return level
    return None


def get_leapsecs_path() -> str | None:
    """Return path to a NAIF LSK leap seconds file for rms-julian.

    Prefers JULIAN_LEAPSECS, then a .tls file under the kernel directory.
    None means rms-julian should use its bundled LSK.

    Returns:
        Path string to LSK, or None.
    """
    path = os.environ.get('JULIAN_LEAPSECS', '').strip()
    if path:
        return path
    base = Path(get_kernel_path())
    for name in ('naif0012.tls', 'naif0011.tls', 'naif0010.tls', 'leapseconds.tls'):
        p = base / name
        if p.exists():
            return str(p)
    return None
