"""Per-frame viewmodel integration: sway, bob and frame-rate independent smoothing.

Each tick builds a target transform from the active profile and the input
sample, then moves the displayed transform toward it by

    alpha = 1 - (1 - smoothness) ** (dt * reference_rate)

so that ``smoothness`` means "fraction of the gap closed per 1/reference_rate
seconds" whatever the actual frame rate is. Splitting an interval into many
small ticks compounds to exactly the same factor as one long tick.
"""

from __future__ import annotations
import math
import time
import logging
from typing import Tuple

import numpy as np
from numpy.typing import NDArray

from viewmodel_motion.config import config
from viewmodel_motion.profiles import DEFAULT_PROFILE, Profile
from viewmodel_motion.interfaces import RenderSink
from viewmodel_motion.motion_state import Transform, InputSample, MotionState


logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi
MIN_SMOOTHNESS = 1e-4
MAX_SPEED_SCALE = 2.0


def clamp_smoothness(smoothness: float) -> float:
    """Clamp smoothness into (0, 1]; non-finite values fall back to the default."""
    if not math.isfinite(smoothness):
        return DEFAULT_PROFILE.smoothness
    return min(1.0, max(MIN_SMOOTHNESS, smoothness))


def blend_factor(smoothness: float, dt: float, reference_rate: float) -> float:
    """Return the fraction of the remaining gap to close over ``dt`` seconds."""
    if not math.isfinite(dt) or dt <= 0.0:
        return 0.0
    s = clamp_smoothness(smoothness)
    alpha = 1.0 - (1.0 - s) ** (dt * reference_rate)
    return min(1.0, max(0.0, alpha))


def compute_sway(look_delta: Tuple[float, float], sway_amount: float, max_sway: float) -> NDArray[np.float64]:
    """Return the rotational sway offset (pitch, yaw, roll) for one tick.

    Yaw follows the horizontal look delta and pitch the vertical one, each
    clamped to ``max_sway`` so a single huge spike cannot fling the model.
    """
    yaw_delta, pitch_delta = (float(look_delta[0]), float(look_delta[1]))
    amount = max(0.0, sway_amount) if math.isfinite(sway_amount) else 0.0
    limit = abs(max_sway)
    sway = np.array([pitch_delta * amount, yaw_delta * amount, 0.0], dtype=np.float64)
    sway = np.nan_to_num(sway, nan=0.0)
    return np.clip(sway, -limit, limit)


def advance_bob_phase(phase: float, half_cycle: bool, bob_speed: float, dt: float) -> Tuple[float, bool]:
    """Advance the bob phase and wrap it into [0, 2*pi).

    ``half_cycle`` flips on every completed cycle so the half-frequency
    lateral term stays continuous across the wrap.
    """
    speed = max(0.0, bob_speed) if math.isfinite(bob_speed) else 0.0
    raw = phase + speed * dt
    if not math.isfinite(raw):
        return phase, half_cycle
    wraps = int(raw // TWO_PI)
    wrapped = raw - wraps * TWO_PI
    if wrapped >= TWO_PI or wrapped < 0.0:
        wrapped = 0.0
    if wraps % 2:
        half_cycle = not half_cycle
    return wrapped, half_cycle


def compute_bob_offset(
    phase: float, half_cycle: bool, bob_amount: float, lateral_ratio: float,
) -> NDArray[np.float64]:
    """Return the bob translation (x lateral, y vertical, z) at ``phase``.

    The vertical term is ``sin(phase)``; the lateral term runs at half the
    frequency, tracing a figure-eight over two cycles.
    """
    amount = max(0.0, bob_amount) if math.isfinite(bob_amount) else 0.0
    vertical = math.sin(phase) * amount
    lateral_phase = phase + (TWO_PI if half_cycle else 0.0)
    lateral = math.cos(lateral_phase / 2.0) * amount * lateral_ratio
    return np.array([lateral, vertical, 0.0], dtype=np.float64)


class FrameIntegrator:
    """Advance a ``MotionState`` by one frame and push the result to the sink.

    The whole read-compute-write sequence runs under ``state.lock`` so item
    swaps performed by the transition controller are never observed half
    applied.
    """

    def __init__(
        self,
        state: MotionState,
        sink: RenderSink | None = None,
        *,
        max_sway: float | None = None,
        reference_rate: float | None = None,
        lateral_ratio: float | None = None,
        bob_speed_scaling: bool | None = None,
        reference_speed: float | None = None,
    ) -> None:
        """Initialize the integrator, taking unset tunables from the environment config."""
        self.state = state
        self.sink = sink
        self.max_sway = config.MAX_SWAY if max_sway is None else abs(max_sway)
        self.reference_rate = config.REFERENCE_RATE if reference_rate is None else reference_rate
        self.lateral_ratio = config.LATERAL_BOB_RATIO if lateral_ratio is None else max(0.0, lateral_ratio)
        self.bob_speed_scaling = config.BOB_SPEED_SCALING if bob_speed_scaling is None else bob_speed_scaling
        self.reference_speed = config.REFERENCE_SPEED if reference_speed is None else reference_speed

        self.last_target: Transform | None = None

        # Sink error logging rate limiting
        self._now = time.monotonic
        self._last_sink_err = 0.0
        self._sink_err_interval = 1.0  # seconds between error logs
        self._sink_err_suppressed = 0

    def compute_target(self, profile: Profile, sample: InputSample, bob_offset: NDArray[np.float64]) -> Transform:
        """Assemble the target transform from the profile, sway and bob."""
        sway = compute_sway(sample.look_delta, profile.sway_amount, self.max_sway)
        offset = np.nan_to_num(np.asarray(profile.offset, dtype=np.float64), nan=0.0, posinf=0.0, neginf=0.0)
        rotation = np.nan_to_num(np.asarray(profile.rotation, dtype=np.float64), nan=0.0, posinf=0.0, neginf=0.0)
        return Transform(position=offset + bob_offset, rotation=rotation + sway)

    def _bob_amplitude(self, profile: Profile, sample: InputSample) -> float:
        amplitude = profile.bob_amount
        if self.bob_speed_scaling and self.reference_speed > 0:
            speed = sample.movement_speed if math.isfinite(sample.movement_speed) else 0.0
            amplitude *= min(MAX_SPEED_SCALE, max(0.0, speed / self.reference_speed))
        return amplitude

    def tick(self, dt: float, sample: InputSample | None = None) -> Transform | None:
        """Run one frame; return the emitted transform or None when idle."""
        if sample is None:
            sample = InputSample.idle()
        if not math.isfinite(dt) or dt < 0.0:
            dt = 0.0

        state = self.state
        with state.lock:
            if not state.running or not state.has_active_item:
                return None

            profile = state.active_profile
            alpha = blend_factor(profile.smoothness, dt, self.reference_rate)

            if sample.is_moving:
                state.bob_phase, state.bob_half_cycle = advance_bob_phase(
                    state.bob_phase, state.bob_half_cycle, profile.bob_speed, dt,
                )
                state.bob_offset = compute_bob_offset(
                    state.bob_phase,
                    state.bob_half_cycle,
                    self._bob_amplitude(profile, sample),
                    self.lateral_ratio,
                )
            else:
                # Phase holds; the offset eases back to rest
                state.bob_offset = state.bob_offset * (1.0 - alpha)

            target = self.compute_target(profile, sample, state.bob_offset)
            state.current_transform = state.current_transform.lerp(target, alpha)
            self.last_target = target
            emitted = state.current_transform.copy()

            self._emit(emitted)
        return emitted

    def _emit(self, transform: Transform) -> None:
        """Send the transform to the sink with throttled error logging."""
        if self.sink is None:
            return
        try:
            self.sink.set_transform(transform)
        except Exception as e:
            now = self._now()
            if now - self._last_sink_err >= self._sink_err_interval:
                msg = f"Failed to set viewmodel transform: {e}"
                if self._sink_err_suppressed:
                    msg += f" (suppressed {self._sink_err_suppressed} repeats)"
                    self._sink_err_suppressed = 0
                logger.error(msg)
                self._last_sink_err = now
            else:
                self._sink_err_suppressed += 1
