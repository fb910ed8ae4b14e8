"""Per-item mutable motion state and the value types flowing through a tick.

Units and frames
- Positions are camera-local translations.
- Rotations are camera-local Euler angles in radians, xyz order
  (pitch about x, yaw about y, roll about z).
- ``look_delta`` is (yaw, pitch) change since the previous tick.
"""

from __future__ import annotations
import threading
from typing import Any, Tuple
from dataclasses import field, dataclass

import numpy as np
from numpy.typing import NDArray
from scipy.spatial.transform import Rotation as R

from viewmodel_motion.profiles import DEFAULT_PROFILE, Profile


def _zeros() -> NDArray[np.float64]:
    return np.zeros(3, dtype=np.float64)


@dataclass
class Transform:
    """Rigid camera-local transform of the viewmodel."""

    position: NDArray[np.float64] = field(default_factory=_zeros)
    rotation: NDArray[np.float64] = field(default_factory=_zeros)

    def __post_init__(self) -> None:
        """Normalise both vectors to float64 3-arrays."""
        self.position = np.array(self.position, dtype=np.float64).reshape(3)
        self.rotation = np.array(self.rotation, dtype=np.float64).reshape(3)

    @classmethod
    def identity(cls) -> "Transform":
        """Zero translation, zero rotation."""
        return cls()

    def copy(self) -> "Transform":
        """Return an independent copy."""
        return Transform(self.position.copy(), self.rotation.copy())

    def lerp(self, target: "Transform", alpha: float) -> "Transform":
        """Linear blend toward ``target``; ``alpha`` 0 keeps self, 1 returns target."""
        return Transform(
            self.position + (target.position - self.position) * alpha,
            self.rotation + (target.rotation - self.rotation) * alpha,
        )

    def as_matrix(self) -> NDArray[np.float64]:
        """Return the 4x4 homogeneous matrix for sinks that take matrices."""
        matrix = np.eye(4, dtype=np.float64)
        matrix[:3, :3] = R.from_euler("xyz", self.rotation).as_matrix()
        matrix[:3, 3] = self.position
        return matrix


@dataclass(frozen=True)
class InputSample:
    """One tick of player input."""

    look_delta: Tuple[float, float] = (0.0, 0.0)
    is_moving: bool = False
    movement_speed: float = 0.0

    @classmethod
    def idle(cls) -> "InputSample":
        """No look change, standing still."""
        return cls()


@dataclass
class MotionState:
    """State of the active viewmodel, owned by the lifecycle controller.

    ``lock`` guards the (item id, profile, handle) triple and the per-tick
    accumulators; ticks and item swaps both take it so a tick always sees a
    consistent triple.
    """

    active_item_id: str | None = None
    active_profile: Profile = DEFAULT_PROFILE
    model_handle: Any = None
    current_transform: Transform = field(default_factory=Transform.identity)

    # Bob accumulators
    bob_phase: float = 0.0
    bob_half_cycle: bool = False
    bob_offset: NDArray[np.float64] = field(default_factory=_zeros)

    running: bool = False
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def has_active_item(self) -> bool:
        """Return True while a model is loaded."""
        return self.active_item_id is not None

    def reset(self) -> None:
        """Return to the unloaded idle state; ``running`` is left untouched."""
        with self.lock:
            self.active_item_id = None
            self.active_profile = DEFAULT_PROFILE
            self.model_handle = None
            self.current_transform = Transform.identity()
            self.bob_phase = 0.0
            self.bob_half_cycle = False
            self.bob_offset = _zeros()
