"""Error types raised by the viewmodel core."""


class NotFoundError(LookupError):
    """The asset resolver could not resolve an item identity."""

    def __init__(self, identity: str, message: str | None = None) -> None:
        """Store the unresolved identity alongside the message."""
        self.identity = identity
        super().__init__(message or f"Viewmodel asset '{identity}' not found")


class InvalidProfileError(ValueError):
    """A profile mapping had fields of the wrong type or shape.

    Out-of-range numbers are never rejected; the integrator clamps them.
    """
