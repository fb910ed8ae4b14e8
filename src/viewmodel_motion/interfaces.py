"""Collaborator contracts consumed by the viewmodel core."""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Protocol, Callable


if TYPE_CHECKING:
    from viewmodel_motion.motion_state import Transform, InputSample


FrameCallback = Callable[[float], None]


class AssetResolver(Protocol):
    """Turns an item identity into a loadable model handle."""

    def resolve(self, identity: str) -> Any:
        """Return a model handle or raise ``NotFoundError``."""
        ...

    def release(self, handle: Any) -> None:
        """Free a handle that is no longer displayed."""
        ...


class RenderSink(Protocol):
    """Parents the model to the camera and displays its transform."""

    def attach(self, handle: Any) -> None:
        """Parent ``handle`` to the camera."""
        ...

    def detach(self) -> None:
        """Remove the currently attached model."""
        ...

    def set_transform(self, transform: "Transform") -> None:
        """Display ``transform`` for the attached model."""
        ...


class InputSource(Protocol):
    """Polled once per tick for the latest player input."""

    def sample(self) -> "InputSample":
        """Return the current input sample."""
        ...


class FrameClock(Protocol):
    """Delivers ``dt`` once per rendered frame to a single callback."""

    def connect(self, callback: FrameCallback) -> None:
        """Start invoking ``callback(dt)`` every frame."""
        ...

    def disconnect(self) -> None:
        """Stop invoking the callback and release clock resources."""
        ...
