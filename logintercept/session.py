"""One run of a filter around a block of code.

An :class:`InterceptSession` registers its filter with a
:class:`~logintercept.registry.FilterRegistry`, lets the caller run code,
waits up to a leeway for asynchronously delivered events, verifies the
match count, and always unregisters before returning or raising::

    IDLE -> REGISTERED -> RUNNING -> AWAITING_LEEWAY
         -> VERIFIED | FAILED -> UNREGISTERED

Matching happens on whichever threads emit log records. The match list is
guarded by a condition variable so the leeway wait wakes as soon as the
expected count is reached.

Error precedence, highest first:

1. an error raised by the code block (a verification failure is logged,
   not raised, so it cannot mask it);
2. a :class:`~logintercept.errors.RegistrationError` from the backend;
3. a :class:`~logintercept.errors.PredicateError` from a custom predicate;
4. a :class:`~logintercept.errors.VerificationFailure`.
"""

from __future__ import annotations

import enum
import logging
import threading
import typing as typ

from . import matcher
from .errors import InterceptError, PredicateError, VerificationFailure

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .event import LogEvent
    from .filters import LoggingEventFilter
    from .registry import FilterRegistry, Registration

T = typ.TypeVar("T")

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    """Lifecycle states of an :class:`InterceptSession`."""

    IDLE = "idle"
    REGISTERED = "registered"
    RUNNING = "running"
    AWAITING_LEEWAY = "awaiting_leeway"
    VERIFIED = "verified"
    FAILED = "failed"
    UNREGISTERED = "unregistered"


class InterceptSession:
    """Count events matching a filter while a block of code runs.

    Sessions are single use. Most callers go through
    :meth:`LoggingEventFilter.intercept` or
    :meth:`LoggingEventFilter.expect` rather than building one directly.

    Parameters
    ----------
    event_filter
        The filter whose matches are counted.
    registry
        The backend registry delivering events.
    leeway
        Seconds to wait after the code block for the expected count.

    """

    def __init__(
        self,
        event_filter: LoggingEventFilter,
        registry: FilterRegistry,
        *,
        leeway: float,
    ) -> None:
        """Create an idle session."""
        if leeway < 0:
            msg = "leeway must not be negative"
            raise ValueError(msg)
        self.event_filter = event_filter
        self.leeway = leeway
        self._registry = registry
        self._cond = threading.Condition()
        self._matched: list[LogEvent] = []
        self._predicate_errors: list[PredicateError] = []
        self._closed = False
        self._registration: Registration | None = None
        self._state = SessionState.IDLE
        self._history: list[SessionState] = [SessionState.IDLE]

    # -- observation -------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def history(self) -> tuple[SessionState, ...]:
        """Return every state the session has passed through, in order."""
        return tuple(self._history)

    @property
    def match_count(self) -> int:
        """Return the number of matching events recorded so far."""
        with self._cond:
            return len(self._matched)

    @property
    def matched_events(self) -> tuple[LogEvent, ...]:
        """Return the matching events in arrival order."""
        with self._cond:
            return tuple(self._matched)

    @property
    def predicate_errors(self) -> tuple[PredicateError, ...]:
        """Return errors raised by the filter's custom predicate."""
        with self._cond:
            return tuple(self._predicate_errors)

    @property
    def verified(self) -> bool:
        """Return ``True`` if verification passed."""
        return SessionState.VERIFIED in self._history

    def _transition(self, state: SessionState) -> None:
        self._state = state
        self._history.append(state)

    # -- event delivery ----------------------------------------------------

    def _on_event(self, event: LogEvent) -> None:
        """Record ``event`` if it matches; called on emitting threads."""
        try:
            matched = matcher.matches(self.event_filter, event)
        except Exception as exc:  # noqa: BLE001 - reported at verification
            if isinstance(exc, PredicateError):
                failure = exc
            else:
                msg = f"matching raised {type(exc).__name__}: {exc}"
                failure = PredicateError(msg, event)
                failure.__cause__ = exc
            with self._cond:
                if not self._closed:
                    self._predicate_errors.append(failure)
            return
        if not matched:
            return
        with self._cond:
            if self._closed:
                return
            self._matched.append(event)
            self._cond.notify_all()

    # -- protocol ----------------------------------------------------------

    def open(self) -> None:
        """Register the filter and enter the running state.

        Raises
        ------
        InterceptError
            If the session was already used.
        RegistrationError
            If the backend refuses the registration.

        """
        if self._state is not SessionState.IDLE:
            msg = f"session is {self._state.value}; sessions cannot be reused"
            raise InterceptError(msg)
        self._registration = self._registry.register(self.event_filter, self._on_event)
        self._transition(SessionState.REGISTERED)
        self._transition(SessionState.RUNNING)

    def close(self, error: BaseException | None = None) -> None:
        """Wait for the leeway, verify, and unregister.

        Parameters
        ----------
        error
            The exception the code block raised, if any. Verification still
            runs for ordinary exceptions, but its failure is only logged so
            ``error`` remains what the caller sees. ``BaseException``
            subclasses outside ``Exception`` skip verification.

        Raises
        ------
        VerificationFailure
            If no ``error`` was given and the match count is wrong.
        PredicateError
            If no ``error`` was given and the custom predicate raised.

        """
        if self._state is not SessionState.RUNNING:
            msg = f"cannot close a session that is {self._state.value}"
            raise InterceptError(msg)
        failure: InterceptError | None = None
        try:
            if error is None or isinstance(error, Exception):
                self._transition(SessionState.AWAITING_LEEWAY)
                self._await_leeway()
                failure = self._verify()
        finally:
            self._unregister(propagate=error is None)
        if failure is None:
            return
        if error is not None:
            logger.warning(
                "%s; not raised because the code block raised %s",
                failure,
                type(error).__name__,
            )
            return
        raise failure

    def run(self, code: cabc.Callable[[], T]) -> T:
        """Run ``code`` under this session and return its result."""
        self.open()
        try:
            result = code()
        except BaseException as exc:
            self.close(exc)
            raise
        self.close()
        return result

    # -- internals ---------------------------------------------------------

    def _await_leeway(self) -> None:
        target = self.event_filter.occurrences
        with self._cond:
            self._cond.wait_for(lambda: len(self._matched) >= target, self.leeway)

    def _verify(self) -> InterceptError | None:
        with self._cond:
            # Nothing counted after this point is attributed to the session.
            self._closed = True
            observed = len(self._matched)
            matched = tuple(self._matched)
            predicate_errors = tuple(self._predicate_errors)
        expected = self.event_filter.occurrences
        if predicate_errors:
            self._transition(SessionState.FAILED)
            first = predicate_errors[0]
            msg = (
                f"custom predicate of {self.event_filter!r} raised "
                f"{len(predicate_errors)} time(s); first: {first}"
            )
            err = PredicateError(msg, first.event)
            err.__cause__ = first.__cause__
            return err
        if observed != expected:
            self._transition(SessionState.FAILED)
            return VerificationFailure(
                expected,
                observed,
                matched,
                leeway=self.leeway,
                event_filter=self.event_filter,
            )
        self._transition(SessionState.VERIFIED)
        return None

    def _unregister(self, *, propagate: bool) -> None:
        with self._cond:
            self._closed = True
        registration, self._registration = self._registration, None
        try:
            if registration is not None:
                self._registry.unregister(registration)
        except InterceptError:
            if propagate:
                raise
            logger.warning(
                "failed to unregister %r while another error was propagating",
                self.event_filter,
                exc_info=True,
            )
        finally:
            self._transition(SessionState.UNREGISTERED)

    def __repr__(self) -> str:
        """Describe the session by filter, state and count."""
        return (
            f"InterceptSession({self.event_filter!r}, state={self._state.value}, "
            f"matched={self.match_count})"
        )


__all__ = ["InterceptSession", "SessionState"]
