"""Filters describing the log events a test expects.

A :class:`LoggingEventFilter` is an immutable set of optional conditions
combined with logical AND. Build one from :func:`empty` or a factory such
as :func:`error`, refine it with ``with_*`` methods, and run code under it
with :meth:`LoggingEventFilter.intercept`::

    from logintercept import filters

    result = (
        filters.error("connection lost")
        .with_logger_name("app.db")
        .with_occurrences(2)
        .intercept(system, lambda: pool.recycle())
    )

The same protocol is available as a context manager::

    with filters.warn(TimeoutError).expect(system):
        client.fetch()

Every ``with_*`` method returns a new filter and leaves the receiver
untouched, so filters can be shared and composed freely. There is no way
to unset a condition once set.
"""

from __future__ import annotations

import collections.abc as cabc
import contextlib
import dataclasses
import re
import types
import typing as typ

from . import matcher
from .event import LogEvent
from .levels import Level
from .session import InterceptSession
from .settings import parse_duration
from .system import resolve_system

Callable = cabc.Callable
Mapping = cabc.Mapping
T = typ.TypeVar("T")

Predicate = Callable[[LogEvent], bool]

DEAD_LETTERS_PATTERN: typ.Final = r".*was not delivered.*dead letters encountered.*"


@dataclasses.dataclass(frozen=True, slots=True, repr=False)
class LoggingEventFilter:
    """Conditions a log event must satisfy, plus an expected count.

    Unset conditions (``None``) impose no constraint, but a filter with no
    conditions at all matches nothing.

    Attributes
    ----------
    occurrences
        Exact number of matching events :meth:`intercept` expects.
    log_level
        Required level of the event.
    logger_name
        Logger name the event must come from, or a dotted ancestor of it.
    source
        Required value of the event's ``source`` MDC entry.
    message_contains
        Case-sensitive substring of the message.
    message_regex
        Pattern found anywhere in the message.
    cause
        Exception class the event's cause must be an instance of.
    mdc
        Entries that must all be present in the event's MDC.
    custom
        Predicate the event must satisfy.

    """

    occurrences: int = 1
    log_level: Level | None = None
    logger_name: str | None = None
    source: str | None = None
    message_contains: str | None = None
    message_regex: re.Pattern[str] | None = None
    cause: type[BaseException] | None = None
    mdc: Mapping[str, str] | None = dataclasses.field(default=None, hash=False)
    custom: Predicate | None = None

    @property
    def is_empty(self) -> bool:
        """Return ``True`` if no matching condition has been set."""
        return all(getattr(self, name) is None for name in _CONDITION_FIELDS)

    # -- builders ----------------------------------------------------------

    def with_occurrences(self, occurrences: int) -> LoggingEventFilter:
        """Expect exactly ``occurrences`` matching events.

        Zero expresses that no matching event may be logged.
        """
        if isinstance(occurrences, bool) or not isinstance(occurrences, int):
            msg = f"occurrences must be an int, got {type(occurrences).__name__}"
            raise TypeError(msg)
        if occurrences < 0:
            msg = "occurrences must not be negative"
            raise ValueError(msg)
        return dataclasses.replace(self, occurrences=occurrences)

    def with_log_level(self, level: Level | str | int) -> LoggingEventFilter:
        """Match events logged at exactly ``level``."""
        return dataclasses.replace(self, log_level=Level.parse(level))

    def with_logger_name(self, logger_name: str) -> LoggingEventFilter:
        """Match events from ``logger_name`` or any logger beneath it."""
        return dataclasses.replace(self, logger_name=_require_str(logger_name, "logger_name"))

    def with_source(self, source: str) -> LoggingEventFilter:
        """Match events whose ``source`` MDC entry equals ``source``."""
        return dataclasses.replace(self, source=_require_str(source, "source"))

    def with_message_contains(self, text: str) -> LoggingEventFilter:
        """Match events whose message contains ``text``."""
        return dataclasses.replace(
            self, message_contains=_require_str(text, "message_contains")
        )

    def with_message_regex(self, pattern: str | re.Pattern[str]) -> LoggingEventFilter:
        """Match events whose message contains a match for ``pattern``.

        The pattern is searched for rather than matched against the whole
        message; anchor it with ``^`` and ``$`` to require a full match.
        String patterns are compiled immediately, so a malformed pattern
        raises ``re.error`` here rather than during matching.
        """
        if isinstance(pattern, str):
            compiled = re.compile(pattern)
        elif isinstance(pattern, re.Pattern):
            if not isinstance(pattern.pattern, str):
                msg = "message_regex must be a str pattern, not a bytes pattern"
                raise TypeError(msg)
            compiled = typ.cast("re.Pattern[str]", pattern)
        else:
            msg = f"message_regex must be a str or re.Pattern, got {type(pattern).__name__}"
            raise TypeError(msg)
        return dataclasses.replace(self, message_regex=compiled)

    def with_cause(self, cause: type[BaseException]) -> LoggingEventFilter:
        """Match events carrying an exception of type ``cause`` or a subclass."""
        if not (isinstance(cause, type) and issubclass(cause, BaseException)):
            msg = f"cause must be an exception class, got {cause!r}"
            raise TypeError(msg)
        return dataclasses.replace(self, cause=cause)

    def with_mdc(self, mdc: Mapping[str, str]) -> LoggingEventFilter:
        """Match events whose MDC contains every entry of ``mdc``.

        Replaces any MDC condition set earlier instead of merging with it.
        """
        if isinstance(mdc, (bytes, bytearray, str)) or not isinstance(mdc, Mapping):
            msg = "mdc must be a mapping"
            raise TypeError(msg)
        frozen = types.MappingProxyType({str(k): str(v) for k, v in mdc.items()})
        return dataclasses.replace(self, mdc=frozen)

    def with_custom(self, predicate: Predicate) -> LoggingEventFilter:
        """Match events for which ``predicate`` returns ``True``."""
        if not callable(predicate):
            msg = f"custom predicate must be callable, got {type(predicate).__name__}"
            raise TypeError(msg)
        return dataclasses.replace(self, custom=predicate)

    # -- evaluation --------------------------------------------------------

    def matches(self, event: LogEvent) -> bool:
        """Return ``True`` if ``event`` satisfies every condition of this filter.

        Raises
        ------
        PredicateError
            If the custom predicate raises.

        """
        return matcher.matches(self, event)

    def intercept(
        self,
        system: object,
        code: Callable[[], T],
        *,
        leeway: float | str | None = None,
    ) -> T:
        """Run ``code`` and assert this filter matched ``occurrences`` times.

        The filter is registered before ``code`` runs and removed before
        this method returns or raises, whatever the outcome.

        Parameters
        ----------
        system
            The system handle the log registry is discovered from; ``None``
            selects the process-wide default system.
        code
            A zero-argument callable run on the calling thread.
        leeway
            Seconds (or a duration string) to wait for late events. Defaults
            to the system's dilated ``filter_leeway``.

        Returns
        -------
        T
            Whatever ``code`` returned.

        Raises
        ------
        VerificationFailure
            If the number of matching events differs from ``occurrences``.
        PredicateError
            If the custom predicate raised while matching.
        RegistrationError
            If the log registry cannot be discovered or refuses the filter.

        """
        return self._session(system, leeway).run(code)

    @contextlib.contextmanager
    def expect(
        self, system: object = None, *, leeway: float | str | None = None
    ) -> cabc.Iterator[InterceptSession]:
        """Apply :meth:`intercept`'s protocol to the body of a ``with`` block.

        The session is yielded so the block can inspect matches as they
        arrive.
        """
        session = self._session(system, leeway)
        session.open()
        try:
            yield session
        except BaseException as exc:
            session.close(exc)
            raise
        session.close()

    def _session(self, system: object, leeway: float | str | None) -> InterceptSession:
        resolved = resolve_system(system)
        seconds = (
            resolved.settings.effective_leeway
            if leeway is None
            else parse_duration(leeway, "leeway")
        )
        return InterceptSession(self, resolved.registry, leeway=seconds)

    # -- presentation ------------------------------------------------------

    def __repr__(self) -> str:
        """List the occurrence count and every set condition."""
        parts = [f"occurrences={self.occurrences}"]
        for name in _CONDITION_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, Level):
                rendered = value.name
            elif isinstance(value, re.Pattern):
                rendered = repr(value.pattern)
            elif isinstance(value, type):
                rendered = value.__qualname__
            elif isinstance(value, Mapping):
                rendered = repr(dict(value))
            else:
                rendered = repr(value)
            parts.append(f"{name}={rendered}")
        return f"LoggingEventFilter({', '.join(parts)})"


_CONDITION_FIELDS: typ.Final = tuple(
    field.name
    for field in dataclasses.fields(LoggingEventFilter)
    if field.name != "occurrences"
)


def _require_str(value: object, name: str) -> str:
    if not isinstance(value, str):
        msg = f"{name} must be a str, got {type(value).__name__}"
        raise TypeError(msg)
    return value


# -- factories -------------------------------------------------------------

_EMPTY: typ.Final = LoggingEventFilter()


def empty() -> LoggingEventFilter:
    """Return the filter with no conditions; it matches no events."""
    return _EMPTY


def message_contains(text: str) -> LoggingEventFilter:
    """Match events whose message contains ``text``."""
    return empty().with_message_contains(text)


def trace(message_includes: str) -> LoggingEventFilter:
    """Match TRACE events whose message contains ``message_includes``."""
    return message_contains(message_includes).with_log_level(Level.TRACE)


def debug(message_includes: str) -> LoggingEventFilter:
    """Match DEBUG events whose message contains ``message_includes``."""
    return message_contains(message_includes).with_log_level(Level.DEBUG)


def info(message_includes: str) -> LoggingEventFilter:
    """Match INFO events whose message contains ``message_includes``."""
    return message_contains(message_includes).with_log_level(Level.INFO)


def _message_or_cause(level: Level, criterion: str | type[BaseException]) -> LoggingEventFilter:
    if isinstance(criterion, str):
        return message_contains(criterion).with_log_level(level)
    return empty().with_log_level(level).with_cause(criterion)


@typ.overload
def warn(criterion: str, /) -> LoggingEventFilter: ...


@typ.overload
def warn(criterion: type[BaseException], /) -> LoggingEventFilter: ...


def warn(criterion: str | type[BaseException], /) -> LoggingEventFilter:
    """Match WARN events by message substring or by cause class."""
    return _message_or_cause(Level.WARN, criterion)


@typ.overload
def error(criterion: str, /) -> LoggingEventFilter: ...


@typ.overload
def error(criterion: type[BaseException], /) -> LoggingEventFilter: ...


def error(criterion: str | type[BaseException], /) -> LoggingEventFilter:
    """Match ERROR events by message substring or by cause class."""
    return _message_or_cause(Level.ERROR, criterion)


def custom(predicate: Predicate) -> LoggingEventFilter:
    """Match events for which ``predicate`` returns ``True``."""
    return empty().with_custom(predicate)


def dead_letters() -> LoggingEventFilter:
    """Match INFO notifications about undelivered (dead letter) messages."""
    return empty().with_log_level(Level.INFO).with_message_regex(DEAD_LETTERS_PATTERN)


__all__ = [
    "DEAD_LETTERS_PATTERN",
    "LoggingEventFilter",
    "custom",
    "dead_letters",
    "debug",
    "empty",
    "error",
    "info",
    "message_contains",
    "trace",
    "warn",
]
