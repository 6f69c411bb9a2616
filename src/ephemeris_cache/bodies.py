"""Body-name registry: well-known body names <-> NAIF integer IDs.

The tables are fixed at import time and never mutated. Name lookup is
case-insensitive and ignores surrounding whitespace; the canonical spelling is
what id_to_name() returns.
"""

from __future__ import annotations

from types import MappingProxyType

from ephemeris_cache.errors import UnknownBodyId, UnknownBodyName

# Canonical names, one per NAIF ID.
_CANONICAL: tuple[tuple[int, str], ...] = (
    (0, 'SSB'),
    (1, 'Mercury Barycenter'),
    (2, 'Venus Barycenter'),
    (3, 'EMB'),
    (4, 'Mars Barycenter'),
    (5, 'Jupiter Barycenter'),
    (6, 'Saturn Barycenter'),
    (7, 'Uranus Barycenter'),
    (8, 'Neptune Barycenter'),
    (9, 'Pluto Barycenter'),
    (10, 'Sun'),
    (199, 'Mercury'),
    (299, 'Venus'),
    (301, 'Moon'),
    (399, 'Earth'),
    (401, 'Phobos'),
    (402, 'Deimos'),
    (499, 'Mars'),
    (501, 'Io'),
    (502, 'Europa'),
    (503, 'Ganymede'),
    (504, 'Callisto'),
    (599, 'Jupiter'),
    (601, 'Mimas'),
    (602, 'Enceladus'),
    (603, 'Tethys'),
    (604, 'Dione'),
    (605, 'Rhea'),
    (606, 'Titan'),
    (608, 'Iapetus'),
    (699, 'Saturn'),
    (701, 'Ariel'),
    (702, 'Umbriel'),
    (703, 'Titania'),
    (704, 'Oberon'),
    (705, 'Miranda'),
    (799, 'Uranus'),
    (801, 'Triton'),
    (899, 'Neptune'),
    (901, 'Charon'),
    (999, 'Pluto'),
)

# Additional spellings; these resolve but are never returned by id_to_name().
_ALIASES: dict[str, int] = {
    'solar system barycenter': 0,
    'solar_system_barycenter': 0,
    'earth-moon barycenter': 3,
    'earth moon barycenter': 3,
    'earth barycenter': 3,
    'luna': 301,
    'mars_barycenter': 4,
    'jupiter_barycenter': 5,
    'saturn_barycenter': 6,
    'uranus_barycenter': 7,
    'neptune_barycenter': 8,
    'pluto_barycenter': 9,
}

_ID_TO_NAME = MappingProxyType(dict(_CANONICAL))
_NAME_TO_ID = MappingProxyType(
    {**_ALIASES, **{name.lower(): body_id for body_id, name in _CANONICAL}}
)


def name_to_id(name: str) -> int:
    """Return the NAIF ID for a body name.

    Parameters:
        name: Body name, e.g. 'Earth', 'sun', 'SSB' (case-insensitive).

    Returns:
        NAIF integer ID (e.g. 399 for Earth).

    Raises:
        UnknownBodyName: The name is not in the registry.
    """
    try:
        return _NAME_TO_ID[name.strip().lower()]
    except (KeyError, AttributeError):
        raise UnknownBodyName(name) from None


def id_to_name(body_id: int) -> str:
    """Return the canonical name for a NAIF ID.

    Raises:
        UnknownBodyId: The ID is not in the registry.
    """
    try:
        return _ID_TO_NAME[body_id]
    except KeyError:
        raise UnknownBodyId(body_id) from None


def resolve_body(body: str | int) -> int:
    """Return the NAIF ID for a body given by name or by ID.

    Integers and integral strings (e.g. '-82') pass through unchanged, so
    bodies with no registry name can still be addressed by ID.

    Parameters:
        body: Body name or NAIF ID.

    Returns:
        NAIF integer ID.

    Raises:
        UnknownBodyName: A non-numeric name is not in the registry.
    """
    if isinstance(body, bool):
        raise UnknownBodyName(str(body))
    if isinstance(body, int):
        return body
    text = str(body).strip()
    try:
        return int(text)
    except ValueError:
        return name_to_id(text)


def body_label(body_id: int) -> str:
    """Canonical name for a NAIF ID, or the decimal ID when it has no name."""
    return _ID_TO_NAME.get(body_id, str(body_id))


def known_bodies() -> list[tuple[int, str]]:
    """Return the canonical (NAIF ID, name) table ordered by ID."""
    return sorted(_ID_TO_NAME.items())
