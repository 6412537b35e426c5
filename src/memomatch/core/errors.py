"""Error taxonomy shared by the core and game layers."""

from __future__ import annotations


class MemoMatchError(Exception):
    """Base class for every error raised by memomatch."""


class ConfigurationError(MemoMatchError, ValueError):
    """A difficulty or settings object is malformed or incomplete."""


class InvalidTransitionError(MemoMatchError, RuntimeError):
    """An operation was attempted in a state that does not allow it."""


class ListenerError(MemoMatchError):
    """An event listener raised while handling a notification.

    Args:
        listener: The callable that failed.
        event: The event being delivered.
        cause: The original exception.
    """

    def __init__(self, listener: object, event: object, cause: BaseException) -> None:
        super().__init__(f"Listener {listener!r} failed on {event!r}: {cause!r}")
        self.listener = listener
        self.event = event
        self.cause = cause
