"""Frame clocks that invoke the integrator once per rendered frame.

``ManualFrameClock`` is driven by the host's own render step. ``ThreadedFrameClock``
runs a dedicated worker thread at a target rate for hosts without a frame
callback; its timing relies on ``time.monotonic()`` to avoid wall-clock jumps.
"""

from __future__ import annotations
import time
import logging
import threading
from typing import Any, Dict
from dataclasses import replace, dataclass

from viewmodel_motion.config import config
from viewmodel_motion.interfaces import FrameCallback


logger = logging.getLogger(__name__)

# A frame whose dt exceeds this multiple of the target period counts as late
LATE_FRAME_FACTOR = 1.5


class ManualFrameClock:
    """Frame clock stepped explicitly by the host render loop."""

    def __init__(self) -> None:
        """Initialize a clock with no callback connected."""
        self._callback: FrameCallback | None = None

    @property
    def connected(self) -> bool:
        """Return True while a callback is connected."""
        return self._callback is not None

    def connect(self, callback: FrameCallback) -> None:
        """Invoke ``callback`` on every subsequent ``step``."""
        self._callback = callback

    def disconnect(self) -> None:
        """Stop invoking the callback."""
        self._callback = None

    def step(self, dt: float) -> bool:
        """Deliver one frame; return False when nothing is connected."""
        callback = self._callback
        if callback is None:
            return False
        callback(dt)
        return True


@dataclass
class FrameTimeStats:
    """Frame times handed to the callback during one reporting window."""

    frames: int = 0
    total_dt: float = 0.0
    max_dt: float = 0.0
    last_dt: float = 0.0
    late_frames: int = 0

    @property
    def mean_dt(self) -> float:
        """Average delivered dt, 0 before the first frame."""
        return self.total_dt / self.frames if self.frames else 0.0

    @property
    def fps(self) -> float:
        """Delivered frame rate derived from the mean dt."""
        mean = self.mean_dt
        return 1.0 / mean if mean > 0 else 0.0

    def record(self, dt: float, late: bool) -> None:
        """Add one delivered frame."""
        self.frames += 1
        self.total_dt += dt
        self.max_dt = max(self.max_dt, dt)
        self.last_dt = dt
        if late:
            self.late_frames += 1

    def reset(self) -> None:
        """Start a new window; ``last_dt`` is kept."""
        self.frames = 0
        self.total_dt = 0.0
        self.max_dt = 0.0
        self.late_frames = 0


class ThreadedFrameClock:
    """Worker thread calling the frame callback at ``frequency_hz``.

    The callback receives the measured ``dt`` between loop starts. Callback
    errors are logged with rate limiting and never stop the loop.
    """

    def __init__(self, frequency_hz: float | None = None, report_interval: float = 2.0) -> None:
        """Initialize the clock; nothing runs until ``connect``."""
        self.target_frequency = frequency_hz if frequency_hz and frequency_hz > 0 else config.FRAME_RATE_HZ
        self.target_period = 1.0 / self.target_frequency
        self.report_interval = report_interval

        self._now = time.monotonic

        self._callback: FrameCallback | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

        # Window owned by the worker thread; readers only see the snapshot
        self._stats_lock = threading.Lock()
        self._window = FrameTimeStats()
        self._snapshot = FrameTimeStats()

        self._last_callback_err = 0.0
        self._callback_err_interval = 1.0  # seconds between error logs
        self._callback_err_suppressed = 0

    @property
    def connected(self) -> bool:
        """Return True while the worker thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def connect(self, callback: FrameCallback) -> None:
        """Start the worker thread that drives ``callback``."""
        if self.connected:
            logger.warning("Frame clock already running; connect() ignored")
            return
        self._callback = callback
        self._stop_event.clear()
        self._thread = threading.Thread(target=self.working_loop, name="viewmodel-frame-clock", daemon=True)
        self._thread.start()
        logger.debug("Frame clock started at %.1fHz", self.target_frequency)

    def disconnect(self) -> None:
        """Request the worker thread to stop and wait for it to exit."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None
        self._callback = None
        logger.debug("Frame clock stopped")

    def get_stats(self) -> Dict[str, Any]:
        """Return the frame timing of the current reporting window."""
        with self._stats_lock:
            snapshot = self._snapshot
            return {
                "fps": snapshot.fps,
                "mean_dt": snapshot.mean_dt,
                "max_dt": snapshot.max_dt,
                "last_dt": snapshot.last_dt,
                "late_frames": snapshot.late_frames,
                "frames": snapshot.frames,
                "target": self.target_frequency,
            }

    def _record_frame(self, dt: float) -> None:
        self._window.record(dt, dt > self.target_period * LATE_FRAME_FACTOR)
        with self._stats_lock:
            self._snapshot = replace(self._window)

    def _sleep_time(self, loop_start: float) -> float:
        """Time left in this period after the callback ran."""
        return max(0.0, self.target_period - (self._now() - loop_start))

    def _report_window(self) -> None:
        """Log the finished window at debug level and start a new one."""
        window = self._window
        if window.frames:
            logger.debug(
                "Frame timing - %.1f fps, mean dt: %.2fms, max dt: %.2fms, late: %d/%d, target: %.1fHz",
                window.fps,
                window.mean_dt * 1000.0,
                window.max_dt * 1000.0,
                window.late_frames,
                window.frames,
                self.target_frequency,
            )
        window.reset()

    def _invoke(self, dt: float) -> None:
        callback = self._callback
        if callback is None:
            return
        try:
            callback(dt)
        except Exception as e:
            now = self._now()
            if now - self._last_callback_err >= self._callback_err_interval:
                msg = f"Frame callback failed: {e}"
                if self._callback_err_suppressed:
                    msg += f" (suppressed {self._callback_err_suppressed} repeats)"
                    self._callback_err_suppressed = 0
                logger.error(msg)
                self._last_callback_err = now
            else:
                self._callback_err_suppressed += 1

    def working_loop(self) -> None:
        """Call the frame callback at the target rate until stopped."""
        logger.info("Starting viewmodel frame loop (%.0fHz)", self.target_frequency)

        prev_loop_start = self._now()
        window_start = prev_loop_start
        first_frame = True

        while not self._stop_event.is_set():
            loop_start = self._now()
            dt = loop_start - prev_loop_start
            prev_loop_start = loop_start

            # The first dt only measures thread start-up
            if not first_frame:
                self._record_frame(dt)
            first_frame = False

            self._invoke(dt)

            if loop_start - window_start >= self.report_interval:
                self._report_window()
                window_start = loop_start

            sleep_time = self._sleep_time(loop_start)
            if sleep_time > 0:
                self._stop_event.wait(sleep_time)

        logger.debug("Viewmodel frame loop stopped")
