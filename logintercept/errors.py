"""Exceptions raised by log interception."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .event import LogEvent


class InterceptError(Exception):
    """Base class for errors raised while intercepting log events."""


class RegistrationError(InterceptError):
    """The log backend could not register or unregister a filter."""


class SettingsError(ValueError):
    """Interception settings could not be parsed or validated."""


class PredicateError(InterceptError):
    """A custom filter predicate raised instead of returning a boolean.

    The original exception is available as ``__cause__``. ``event`` is the
    log event the predicate was evaluating when it failed.
    """

    def __init__(self, msg: str, event: LogEvent | None = None) -> None:
        """Record the failing ``event`` alongside the message."""
        super().__init__(msg)
        self.event = event


class VerificationFailure(InterceptError, AssertionError):
    """A filter did not match the expected number of log events.

    Subclasses ``AssertionError`` so test runners report it as a failed
    assertion rather than an error.

    Parameters
    ----------
    expected
        The occurrence count the filter asked for.
    observed
        The number of matching events seen before the leeway elapsed.
    matched_events
        The events that matched, in arrival order.
    leeway
        The wait budget in seconds.
    event_filter
        The filter that was verified, used only for the message.

    """

    def __init__(
        self,
        expected: int,
        observed: int,
        matched_events: cabc.Sequence[LogEvent],
        *,
        leeway: float,
        event_filter: object,
    ) -> None:
        """Build the diagnostic message from the verification outcome."""
        self.expected = expected
        self.observed = observed
        self.matched_events = tuple(matched_events)
        self.leeway = leeway
        self.event_filter = event_filter
        super().__init__(self._describe())

    def _describe(self) -> str:
        if self.observed < self.expected:
            headline = (
                f"timeout ({self.leeway:g}s) waiting for {self.expected} matching "
                f"event(s), observed {self.observed}"
            )
        else:
            excess = self.observed - self.expected
            headline = (
                f"expected {self.expected} matching event(s) but observed "
                f"{self.observed} ({excess} excess)"
            )
        lines = [f"{headline} on {self.event_filter!r}"]
        if self.matched_events:
            lines.append("matched events:")
            lines.extend(f"  {event.describe()}" for event in self.matched_events)
        return "\n".join(lines)


__all__ = [
    "InterceptError",
    "PredicateError",
    "RegistrationError",
    "SettingsError",
    "VerificationFailure",
]
