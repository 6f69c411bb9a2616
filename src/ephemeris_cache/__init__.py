"""In-process cache of loaded SPK ephemeris kernels.

This package provides:
- A body-name registry mapping well-known body names to NAIF identifiers
- A cache manager indexing loaded kernels by (target, observer, frame)
- State, availability and time-bounds queries against the loaded kernels

Kernels are read through SPICE via cspyce; UTC conversions use rms-julian.
"""

from ephemeris_cache.bodies import id_to_name, name_to_id
from ephemeris_cache.errors import (
    EphemerisCacheError,
    EphemerisNotLoaded,
    EpochOutOfBounds,
    KernelOpenFailure,
    KernelQueryFailure,
    UnknownBodyId,
    UnknownBodyName,
)
from ephemeris_cache.manager import (
    EphemerisCacheManager,
    EphemerisKey,
    LoadedSource,
    default_manager,
)

__all__: list[str] = [
    'EphemerisCacheError',
    'EphemerisCacheManager',
    'EphemerisKey',
    'EphemerisNotLoaded',
    'EpochOutOfBounds',
    'KernelOpenFailure',
    'KernelQueryFailure',
    'LoadedSource',
    'UnknownBodyId',
    'UnknownBodyName',
    'default_manager',
    'id_to_name',
    'name_to_id',
]
