"""Exception types raised by the registry, kernel reader and cache manager.

An unsupported target/observer/frame in an otherwise readable kernel is not an
error: loads report it by returning False.
"""

from __future__ import annotations


class EphemerisCacheError(Exception):
    """Base class for all ephemeris cache failures."""


class UnknownBodyName(EphemerisCacheError, KeyError):
    """Body name not present in the registry."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f'Unknown body name: {self.name!r}'


class UnknownBodyId(EphemerisCacheError, KeyError):
    """NAIF body ID not present in the registry."""

    def __init__(self, body_id: int) -> None:
        super().__init__(body_id)
        self.body_id = body_id

    def __str__(self) -> str:
        return f'Unknown body ID: {self.body_id}'


class KernelOpenFailure(EphemerisCacheError, OSError):
    """Kernel file is missing, unreadable, corrupt or not an SPK."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f'Cannot open kernel {path}: {reason}')
        self.path = path
        self.reason = reason

    def __str__(self) -> str:
        return f'Cannot open kernel {self.path}: {self.reason}'


class EphemerisNotLoaded(EphemerisCacheError):
    """No loaded kernel serves the requested target/observer/frame."""

    def __init__(self, key_label: str) -> None:
        super().__init__(f'No ephemeris loaded for {key_label}')
        self.key_label = key_label


class EpochOutOfBounds(EphemerisCacheError):
    """Epoch lies outside the validity interval of the resolving kernel."""

    def __init__(self, key_label: str, epoch: float, start: float, stop: float) -> None:
        super().__init__(
            f'Epoch {epoch!r} outside [{start!r}, {stop!r}] for {key_label}'
        )
        self.key_label = key_label
        self.epoch = epoch
        self.start = start
        self.stop = stop


class KernelQueryFailure(EphemerisCacheError, RuntimeError):
    """Kernel reader failed while evaluating a state (e.g. coverage gap)."""
