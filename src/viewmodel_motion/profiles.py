"""Per-item animation profiles and the store that hands them out."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Mapping, Tuple
from dataclasses import dataclass

import numpy as np

from viewmodel_motion.errors import InvalidProfileError


logger = logging.getLogger(__name__)

Vector3 = Tuple[float, float, float]

ZERO_VECTOR: Vector3 = (0.0, 0.0, 0.0)

# camelCase keys accepted by Profile.from_mapping
_FIELD_ALIASES = {
    "swayAmount": "sway_amount",
    "bobAmount": "bob_amount",
    "bobSpeed": "bob_speed",
}


@dataclass(frozen=True)
class Profile:
    """Animation tuning for one held item.

    Attributes:
        sway_amount: Scale of the rotational response to look delta.
        bob_amount: Peak vertical bob offset while moving.
        bob_speed: Angular frequency of the bob oscillation (rad/s).
        smoothness: Fraction of the remaining distance closed per 1/60 s.
        offset: Static camera-local translation (x, y, z).
        rotation: Static camera-local Euler rotation (pitch, yaw, roll) in radians.

    """

    sway_amount: float = 0.6
    bob_amount: float = 0.05
    bob_speed: float = 6.0
    smoothness: float = 0.1
    offset: Vector3 = ZERO_VECTOR
    rotation: Vector3 = ZERO_VECTOR

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Profile":
        """Build a profile from a plain mapping, filling gaps with defaults."""
        fields: Dict[str, Any] = {}
        for key, value in data.items():
            name = _FIELD_ALIASES.get(key, key)
            if name not in cls.__dataclass_fields__:
                logger.warning("Ignoring unknown profile field: %s", key)
                continue
            fields[name] = value

        kwargs: Dict[str, Any] = {}
        for name in ("sway_amount", "bob_amount", "bob_speed", "smoothness"):
            if name not in fields:
                continue
            value = fields[name]
            if isinstance(value, bool) or not isinstance(value, (int, float, np.number)):
                raise InvalidProfileError(f"Profile field '{name}' must be a number, got {value!r}")
            kwargs[name] = float(value)

        for name in ("offset", "rotation"):
            if name in fields:
                kwargs[name] = _as_vector3(name, fields[name])

        return cls(**kwargs)


def _as_vector3(name: str, value: Any) -> Vector3:
    try:
        arr = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidProfileError(f"Profile field '{name}' must be a 3-vector: {exc}") from exc
    if arr.shape != (3,):
        raise InvalidProfileError(f"Profile field '{name}' must have 3 components, got shape {arr.shape}")
    return (float(arr[0]), float(arr[1]), float(arr[2]))


DEFAULT_PROFILE = Profile()


class ProfileStore:
    """Named profiles with a fixed fallback for unknown keys.

    Entries are only added or overwritten through ``put``; nothing is ever
    removed implicitly. Values are stored as given; range clamping happens
    in the integrator.
    """

    def __init__(self, default: Profile = DEFAULT_PROFILE) -> None:
        """Initialize an empty store."""
        self._default = default
        self._profiles: Dict[str, Profile] = {}

    @property
    def default(self) -> Profile:
        """Profile returned for keys that were never stored."""
        return self._default

    def put(self, key: str, profile: Profile) -> None:
        """Insert or overwrite the profile stored under ``key``."""
        replaced = key in self._profiles
        self._profiles[key] = profile
        logger.debug("%s profile '%s': %s", "Replaced" if replaced else "Added", key, profile)

    def get(self, key: str | None) -> Profile:
        """Return the profile for ``key`` or the default when absent."""
        if key is None:
            return self._default
        return self._profiles.get(key, self._default)

    def keys(self) -> Iterator[str]:
        """Iterate over stored keys."""
        return iter(list(self._profiles))

    def __contains__(self, key: object) -> bool:
        """Return True when ``key`` has an explicit entry."""
        return key in self._profiles

    def __len__(self) -> int:
        """Return the number of explicit entries."""
        return len(self._profiles)
