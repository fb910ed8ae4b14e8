"""Lifecycle controller tying the profile store, transitions and frame integration together.

Threading model
- The frame clock owns per-frame invocation; each frame snapshots the input
  sample and runs one integrator tick under ``MotionState.lock``.
- Item loads and unloads take the same lock for their swap, so a tick sees
  either the old or the new item, never a mix.
- Push-style input (``submit_input``) is staged in a pending slot guarded by
  its own lock and consumed atomically at the next tick boundary.
"""

from __future__ import annotations
import logging
import threading
from typing import Any, Dict, Tuple, Mapping
from concurrent.futures import Future

from viewmodel_motion.config import config
from viewmodel_motion.profiles import Profile, ProfileStore
from viewmodel_motion.integrator import FrameIntegrator
from viewmodel_motion.interfaces import FrameClock, RenderSink, InputSource, AssetResolver
from viewmodel_motion.frame_clock import ManualFrameClock
from viewmodel_motion.transitions import ErrorCallback, TransitionController
from viewmodel_motion.motion_state import InputSample, MotionState


logger = logging.getLogger(__name__)


class ViewmodelController:
    """Start/stop gate for per-frame viewmodel updates.

    Owns the single ``MotionState`` and ``ProfileStore`` instances. Hosts
    either pass a polling ``input_source`` or push samples with
    ``submit_input``.
    """

    def __init__(
        self,
        resolver: AssetResolver,
        sink: RenderSink,
        input_source: InputSource | None = None,
        frame_clock: FrameClock | None = None,
        store: ProfileStore | None = None,
        default_item: str | None = None,
        **integrator_options: Any,
    ) -> None:
        """Initialize the controller; call ``setup`` (or ``start``) before use."""
        self.resolver = resolver
        self.sink = sink
        self.input_source = input_source
        self.frame_clock: FrameClock = frame_clock if frame_clock is not None else ManualFrameClock()
        self.store = store if store is not None else ProfileStore()
        self.default_item = default_item or config.DEFAULT_ITEM
        self._integrator_options = integrator_options

        self.state: MotionState | None = None
        self.transitions: TransitionController | None = None
        self.integrator: FrameIntegrator | None = None
        self._connected = False

        self._input_lock = threading.Lock()
        self._pending_look_delta = (0.0, 0.0)
        self._pending_is_moving = False
        self._pending_speed = 0.0

    @property
    def is_setup(self) -> bool:
        """Return True once ``setup`` has run."""
        return self.state is not None

    @property
    def running(self) -> bool:
        """Return True while per-frame updates are active."""
        return self.state is not None and self.state.running

    @property
    def active_item_id(self) -> str | None:
        """Identity of the loaded item, or None."""
        return self.state.active_item_id if self.state is not None else None

    def setup(self) -> None:
        """Create the idle motion state and wire collaborators; idempotent."""
        self._ensure_setup()

    def _ensure_setup(self) -> Tuple[MotionState, TransitionController]:
        """Return the motion state and transition controller, creating them on first use."""
        state, transitions = self.state, self.transitions
        if state is not None and transitions is not None:
            return state, transitions

        state = MotionState()
        transitions = TransitionController(state, self.store, self.resolver, self.sink, default_item=self.default_item)
        self.state = state
        self.transitions = transitions
        self.integrator = FrameIntegrator(state, self.sink, **self._integrator_options)
        logger.info(
            "Viewmodel controller set up (default item '%s', input: %s)",
            self.default_item,
            "polled" if self.input_source is not None else "pushed",
        )
        return state, transitions

    def start(self) -> None:
        """Load the default item if needed, then enable per-frame updates.

        Raises ``NotFoundError`` when the default item cannot be resolved; the
        controller then stays stopped.
        """
        state, transitions = self._ensure_setup()

        if not state.has_active_item:
            transitions.load()

        with state.lock:
            state.running = True
        if not self._connected:
            self.frame_clock.connect(self._on_frame)
            self._connected = True
        logger.info("Viewmodel updates started with '%s'", state.active_item_id)

    def stop(self) -> None:
        """Disable per-frame updates; the loaded item stays loaded."""
        if self.state is None:
            return
        with self.state.lock:
            self.state.running = False
        if self._connected:
            self.frame_clock.disconnect()
            self._connected = False
        logger.info("Viewmodel updates stopped")

    def teardown(self) -> None:
        """Stop, unload and release every resource held by the controller."""
        if self.state is None:
            return
        self.stop()
        transitions = self.transitions
        if transitions is not None:
            transitions.unload()
            transitions.shutdown()
        self.state = None
        self.transitions = None
        self.integrator = None
        logger.info("Viewmodel controller torn down")

    def load(self, item_id: str | None = None) -> str | None:
        """Synchronously activate ``item_id`` (default item when omitted)."""
        _, transitions = self._ensure_setup()
        return transitions.load(item_id)

    def request_load(self, item_id: str | None = None, on_error: ErrorCallback | None = None) -> "Future[str | None]":
        """Activate ``item_id`` asynchronously; the latest request wins."""
        _, transitions = self._ensure_setup()
        return transitions.request_load(item_id, on_error=on_error)

    def unload(self) -> bool:
        """Detach and release the active item; no-op when nothing is loaded."""
        if self.transitions is None:
            return False
        return self.transitions.unload()

    def add_settings(self, item_id: str, profile: Profile | Mapping[str, Any]) -> Profile:
        """Store the profile for ``item_id``; takes effect on that item's next load."""
        if not isinstance(profile, Profile):
            profile = Profile.from_mapping(profile)
        self.store.put(item_id, profile)
        return profile

    def submit_input(self, sample: InputSample) -> None:
        """Stage an input sample for the next tick.

        Look deltas accumulate until consumed; movement flags keep their
        latest value across ticks.
        """
        with self._input_lock:
            self._pending_look_delta = (
                self._pending_look_delta[0] + float(sample.look_delta[0]),
                self._pending_look_delta[1] + float(sample.look_delta[1]),
            )
            self._pending_is_moving = bool(sample.is_moving)
            self._pending_speed = float(sample.movement_speed)

    def _next_input_sample(self) -> InputSample:
        if self.input_source is not None:
            try:
                return self.input_source.sample()
            except Exception as e:
                logger.warning("Input source failed, using idle sample: %s", e)
                return InputSample.idle()

        with self._input_lock:
            sample = InputSample(
                look_delta=self._pending_look_delta,
                is_moving=self._pending_is_moving,
                movement_speed=self._pending_speed,
            )
            self._pending_look_delta = (0.0, 0.0)
        return sample

    def _on_frame(self, dt: float) -> None:
        """Frame clock callback: snapshot input and advance one tick."""
        integrator = self.integrator
        if integrator is None:
            return
        integrator.tick(dt, self._next_input_sample())

    def step(self, dt: float) -> bool:
        """Deliver one frame through a ``ManualFrameClock``."""
        if not isinstance(self.frame_clock, ManualFrameClock):
            raise TypeError("step() requires a ManualFrameClock; the threaded clock drives itself")
        return self.frame_clock.step(dt)

    def get_status(self) -> Dict[str, Any]:
        """Return a lightweight status snapshot for observability."""
        status: Dict[str, Any] = {
            "setup": self.is_setup,
            "running": self.running,
            "active_item": None,
            "profile_count": len(self.store),
        }
        if self.state is not None:
            with self.state.lock:
                transform = self.state.current_transform.copy()
                status["active_item"] = self.state.active_item_id
                status["bob_phase"] = self.state.bob_phase
            status["transform"] = {
                "position": transform.position.tolist(),
                "rotation": transform.rotation.tolist(),
            }
        get_stats = getattr(self.frame_clock, "get_stats", None)
        if callable(get_stats):
            status["frame_timing"] = get_stats()
        return status
