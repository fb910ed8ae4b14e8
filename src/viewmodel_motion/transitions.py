"""Active item swapping with all-or-nothing loads and last-request-wins semantics.

Ordering
- A successful load detaches the previous model and attaches the new one
  while holding ``MotionState.lock``. Ticks take the same lock, so no frame
  ever observes zero attached models between the two calls.
- The previous handle is released only after the swap has been applied.

Superseded requests
- Every load request takes a new generation number. A resolution whose
  generation is no longer current is released without being attached and
  leaves the motion state untouched.
"""

from __future__ import annotations
import logging
import threading
from typing import Any, Callable
from concurrent.futures import Future, ThreadPoolExecutor

from viewmodel_motion.config import config
from viewmodel_motion.errors import NotFoundError
from viewmodel_motion.profiles import ProfileStore
from viewmodel_motion.interfaces import RenderSink, AssetResolver
from viewmodel_motion.motion_state import MotionState


logger = logging.getLogger(__name__)

ErrorCallback = Callable[[BaseException], None]


class TransitionController:
    """Own the load/unload lifecycle of the active viewmodel item."""

    def __init__(
        self,
        state: MotionState,
        store: ProfileStore,
        resolver: AssetResolver,
        sink: RenderSink | None = None,
        default_item: str | None = None,
        max_workers: int = 2,
    ) -> None:
        """Initialize the controller; the worker pool is created on first async load."""
        self.state = state
        self.store = store
        self.resolver = resolver
        self.sink = sink
        self.default_item = default_item or config.DEFAULT_ITEM

        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()

        self._generation_lock = threading.Lock()
        self._generation = 0

    @property
    def generation(self) -> int:
        """Generation number of the most recent load request."""
        with self._generation_lock:
            return self._generation

    def _next_generation(self) -> int:
        with self._generation_lock:
            self._generation += 1
            return self._generation

    def _is_current(self, generation: int) -> bool:
        with self._generation_lock:
            return generation == self._generation

    def load(self, item_id: str | None = None) -> str | None:
        """Resolve and activate ``item_id`` (or the default item) synchronously.

        Returns the activated identity, or None when a newer request
        superseded this one while it was resolving. Raises ``NotFoundError``
        when the identity cannot be resolved; the active item is then left
        unchanged.
        """
        identity = item_id or self.default_item
        generation = self._next_generation()
        return self._resolve_and_commit(identity, generation)

    def request_load(self, item_id: str | None = None, on_error: ErrorCallback | None = None) -> "Future[str | None]":
        """Resolve ``item_id`` on a worker thread and activate it when done.

        The returned future resolves to the activated identity, to None when
        the request was superseded, or raises ``NotFoundError``. A failure is
        also passed once to ``on_error`` when given.
        """
        identity = item_id or self.default_item
        generation = self._next_generation()
        future = self._get_executor().submit(self._resolve_and_commit, identity, generation)
        logger.debug("Requested load of '%s' (generation %d)", identity, generation)

        if on_error is not None:
            def _report(done: "Future[str | None]") -> None:
                if done.cancelled():
                    return
                exc = done.exception()
                if exc is not None:
                    on_error(exc)

            future.add_done_callback(_report)
        return future

    def unload(self) -> bool:
        """Detach and release the active model; no-op when nothing is loaded.

        In-flight load requests are dropped as well.
        """
        self._next_generation()
        with self.state.lock:
            if not self.state.has_active_item:
                return False
            item_id = self.state.active_item_id
            handle = self.state.model_handle
            if self.sink is not None:
                self.sink.detach()
            self.state.reset()

        self._release(handle)
        logger.info("Unloaded viewmodel '%s'", item_id)
        return True

    def cancel_pending(self) -> None:
        """Drop every in-flight load request without touching the motion state."""
        generation = self._next_generation()
        logger.debug("Cancelled pending loads (generation now %d)", generation)

    def shutdown(self) -> None:
        """Drop pending loads and stop the worker pool."""
        self.cancel_pending()
        with self._executor_lock:
            executor = self._executor
            self._executor = None
        if executor is not None:
            executor.shutdown(wait=True, cancel_futures=True)
            logger.debug("Transition worker pool stopped")

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="viewmodel-load",
                )
            return self._executor

    def _resolve_and_commit(self, identity: str, generation: int) -> str | None:
        handle = self.resolver.resolve(identity)
        if handle is None:
            raise NotFoundError(identity)
        if self._commit(identity, handle, generation):
            return identity
        return None

    def _commit(self, identity: str, handle: Any, generation: int) -> bool:
        """Swap the (item id, profile, handle) triple if ``generation`` is current."""
        profile = self.store.get(identity)

        with self.state.lock:
            if not self._is_current(generation):
                stale = True
            else:
                stale = False
                had_previous = self.state.has_active_item
                previous_handle = self.state.model_handle

                if self.sink is not None:
                    if had_previous:
                        self.sink.detach()
                    try:
                        self.sink.attach(handle)
                    except Exception:
                        try:
                            if had_previous:
                                self.sink.attach(previous_handle)
                        except Exception as e:
                            logger.error("Failed to re-attach viewmodel '%s': %s", self.state.active_item_id, e)
                        finally:
                            self._release(handle)
                        raise

                self.state.active_item_id = identity
                self.state.active_profile = profile
                self.state.model_handle = handle

        if stale:
            logger.debug("Discarding superseded load of '%s' (generation %d)", identity, generation)
            self._release(handle)
            return False

        if had_previous and previous_handle is not handle:
            self._release(previous_handle)
        logger.info("Loaded viewmodel '%s'", identity)
        return True

    def _release(self, handle: Any) -> None:
        if handle is None:
            return
        try:
            self.resolver.release(handle)
        except Exception as e:
            logger.warning("Failed to release viewmodel handle %r: %s", handle, e)
