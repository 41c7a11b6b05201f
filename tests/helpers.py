"""Shared helpers for the test suite."""

from __future__ import annotations

import logging
import threading
import time
import typing as typ

import pytest

from logintercept import Level, LogEvent

if typ.TYPE_CHECKING:
    import collections.abc as cabc

# Leeway used by most intercept tests (seconds). Short enough to keep
# failing-path tests quick, long enough for a delayed emitter thread.
FAST_LEEWAY: float = 0.5

# Barrier timeout in seconds - generous to avoid flaky failures while
# still detecting true deadlocks in a reasonable time frame
BARRIER_TIMEOUT_SECONDS: float = 30.0

_POLL_INTERVAL_SECONDS: float = 0.01


class ParentError(Exception):
    """Base exception used to exercise cause matching."""


class ChildError(ParentError):
    """Subclass of :class:`ParentError`."""


class UnrelatedError(Exception):
    """Exception outside the :class:`ParentError` hierarchy."""


class AmbiguousResult:
    """A predicate result whose truth value cannot be decided."""

    def __bool__(self) -> bool:
        msg = "truth value is ambiguous"
        raise ValueError(msg)


def make_event(  # noqa: PLR0913 - mirrors the LogEvent fields
    message: str = "hello",
    *,
    level: Level = Level.INFO,
    logger_name: str = "app",
    mdc: cabc.Mapping[str, str] | None = None,
    cause: BaseException | None = None,
    thread_name: str = "MainThread",
) -> LogEvent:
    """Build a :class:`LogEvent` with sensible defaults."""
    return LogEvent(
        level=level,
        logger_name=logger_name,
        message=message,
        mdc=mdc or {},
        cause=cause,
        thread_name=thread_name,
    )


def emit_later(
    logger: logging.Logger, level: Level, message: str, delay: float
) -> threading.Timer:
    """Log ``message`` from a timer thread after ``delay`` seconds.

    The returned timer is already started; join it before the test ends.
    """
    timer = threading.Timer(delay, logger.log, args=(level.to_stdlib(), message))
    timer.start()
    return timer


def poll_until(condition: cabc.Callable[[], bool], timeout: float = 1.0) -> None:
    """Poll ``condition`` until it returns ``True`` or ``timeout`` expires.

    Raises
    ------
    Failed
        Via pytest.fail() if ``condition`` stays false for ``timeout``.

    """
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return
        time.sleep(_POLL_INTERVAL_SECONDS)
    pytest.fail(f"condition not met within {timeout}s")
