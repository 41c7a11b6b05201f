"""logintercept package.

Assert that code logs what it should, without pinning tests to exact
wording or timing. Build a :class:`LoggingEventFilter`, then run code
under it::

    import logintercept

    with logintercept.LoggingSystem() as system:
        logintercept.error(ConnectionError).intercept(system, reconnect)

Events are captured from the standard :mod:`logging` module on any
thread; matches that arrive shortly after the code finishes still count,
within the configured leeway.
"""

from __future__ import annotations

from . import mdc
from .errors import (
    InterceptError,
    PredicateError,
    RegistrationError,
    SettingsError,
    VerificationFailure,
)
from .event import LogEvent
from .filters import (
    DEAD_LETTERS_PATTERN,
    LoggingEventFilter,
    custom,
    dead_letters,
    debug,
    empty,
    error,
    info,
    message_contains,
    trace,
    warn,
)
from .levels import TRACE_LEVEL_NUM, Level
from .matcher import matches
from .mdc import SOURCE_MDC_KEY, MdcFilter
from .registry import CapturingHandler, FilterRegistry, Registration
from .session import InterceptSession, SessionState
from .settings import InterceptSettings
from .system import LoggingSystem, default_system, reset_default_system

__all__ = [
    "DEAD_LETTERS_PATTERN",
    "SOURCE_MDC_KEY",
    "TRACE_LEVEL_NUM",
    "CapturingHandler",
    "FilterRegistry",
    "InterceptError",
    "InterceptSession",
    "InterceptSettings",
    "Level",
    "LogEvent",
    "LoggingEventFilter",
    "LoggingSystem",
    "MdcFilter",
    "PredicateError",
    "Registration",
    "RegistrationError",
    "SessionState",
    "SettingsError",
    "VerificationFailure",
    "custom",
    "dead_letters",
    "debug",
    "default_system",
    "empty",
    "error",
    "info",
    "matches",
    "mdc",
    "message_contains",
    "reset_default_system",
    "trace",
    "warn",
]
