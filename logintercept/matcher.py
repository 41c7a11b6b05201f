"""Evaluation of a filter's conditions against a single log event.

Every set condition must hold for an event to match. A filter with no
conditions at all never matches: it is the starting point for building
filters, not a wildcard.

All functions here are pure with respect to the filter; concurrent
evaluation against a shared filter needs no locking.
"""

from __future__ import annotations

import typing as typ

from .errors import PredicateError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .event import LogEvent
    from .filters import LoggingEventFilter

ROOT_LOGGER_NAMES: typ.Final = frozenset({"", "root"})


def logger_name_matches(name: str, scope: str) -> bool:
    """Return ``True`` if logger ``name`` lies within ``scope``.

    ``scope`` contains itself and every dotted descendant, the same way a
    logger configured under that name governs its children. The root
    logger's names contain everything.

    >>> logger_name_matches("a.b.c", "a.b")
    True
    >>> logger_name_matches("a.bc", "a.b")
    False

    """
    if scope in ROOT_LOGGER_NAMES:
        return True
    return name == scope or name.startswith(scope + ".")


def mdc_contains(actual: cabc.Mapping[str, str], expected: cabc.Mapping[str, str]) -> bool:
    """Return ``True`` if every entry of ``expected`` is present in ``actual``."""
    return all(actual.get(key) == value for key, value in expected.items())


def _check_level(event_filter: LoggingEventFilter, event: LogEvent) -> bool:
    return event_filter.log_level is None or event.level == event_filter.log_level


def _check_logger_name(event_filter: LoggingEventFilter, event: LogEvent) -> bool:
    return event_filter.logger_name is None or logger_name_matches(
        event.logger_name, event_filter.logger_name
    )


def _check_source(event_filter: LoggingEventFilter, event: LogEvent) -> bool:
    return event_filter.source is None or event.source == event_filter.source


def _check_message_contains(event_filter: LoggingEventFilter, event: LogEvent) -> bool:
    text = event_filter.message_contains
    return text is None or text in event.message


def _check_message_regex(event_filter: LoggingEventFilter, event: LogEvent) -> bool:
    pattern = event_filter.message_regex
    return pattern is None or pattern.search(event.message) is not None


def _check_cause(event_filter: LoggingEventFilter, event: LogEvent) -> bool:
    if event_filter.cause is None:
        return True
    return event.cause is not None and isinstance(event.cause, event_filter.cause)


def _check_mdc(event_filter: LoggingEventFilter, event: LogEvent) -> bool:
    return event_filter.mdc is None or mdc_contains(event.mdc, event_filter.mdc)


def _check_custom(event_filter: LoggingEventFilter, event: LogEvent) -> bool:
    predicate = event_filter.custom
    if predicate is None:
        return True
    try:
        # Truth-testing the result runs user code too.
        return bool(predicate(event))
    except Exception as exc:
        msg = f"custom predicate {predicate!r} raised {type(exc).__name__}: {exc}"
        raise PredicateError(msg, event) from exc


# The custom predicate runs last so it only sees events the declarative
# conditions already accepted.
_CHECKS: typ.Final[
    tuple[cabc.Callable[[LoggingEventFilter, LogEvent], bool], ...]
] = (
    _check_level,
    _check_logger_name,
    _check_source,
    _check_message_contains,
    _check_message_regex,
    _check_cause,
    _check_mdc,
    _check_custom,
)


def matches(event_filter: LoggingEventFilter, event: LogEvent) -> bool:
    """Return ``True`` if ``event`` satisfies every condition on the filter.

    Raises
    ------
    PredicateError
        If the filter's custom predicate raises.

    """
    if event_filter.is_empty:
        return False
    return all(check(event_filter, event) for check in _CHECKS)


__all__ = ["ROOT_LOGGER_NAMES", "logger_name_matches", "matches", "mdc_contains"]
