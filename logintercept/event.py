"""The immutable record of one observed log emission.

``LogEvent`` is what filters see. Events are normally produced by the
capture handler from stdlib ``logging.LogRecord`` objects via
:meth:`LogEvent.from_record`, but tests may construct them directly to
exercise filters without a logging backend.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import logging
import time
import types
import typing as typ

from . import mdc as _mdc
from .levels import Level


def _empty_mdc() -> cabc.Mapping[str, str]:
    return types.MappingProxyType({})


@dataclasses.dataclass(frozen=True, slots=True)
class LogEvent:
    """A single log emission as seen by interception filters.

    Attributes
    ----------
    level
        Severity of the event.
    logger_name
        Dotted, hierarchical name of the emitting logger.
    message
        The fully formatted message text.
    mdc
        Mapped diagnostic context attached at emission time.
    cause
        The exception attached to the event, if any.
    thread_name
        Name of the emitting thread; diagnostics only.
    timestamp
        Seconds since the epoch; diagnostics only.

    """

    level: Level
    logger_name: str
    message: str
    mdc: cabc.Mapping[str, str] = dataclasses.field(
        default_factory=_empty_mdc, hash=False
    )
    cause: BaseException | None = None
    thread_name: str = ""
    timestamp: float = dataclasses.field(default_factory=time.time, compare=False)

    def __post_init__(self) -> None:
        """Normalise ``level`` and freeze ``mdc``."""
        object.__setattr__(self, "level", Level.parse(self.level))
        if not isinstance(self.mdc, types.MappingProxyType):
            frozen = types.MappingProxyType({str(k): str(v) for k, v in self.mdc.items()})
            object.__setattr__(self, "mdc", frozen)

    @property
    def source(self) -> str | None:
        """Return the emitting component recorded under the source MDC key."""
        return self.mdc.get(_mdc.SOURCE_MDC_KEY)

    def describe(self) -> str:
        """Return a one-line rendering used in failure diagnostics."""
        parts = [f"[{self.level.name}]", self.logger_name or "root"]
        if self.thread_name:
            parts.append(f"({self.thread_name})")
        parts.append(repr(self.message))
        if self.mdc:
            parts.append(f"mdc={dict(self.mdc)!r}")
        if self.cause is not None:
            parts.append(f"cause={type(self.cause).__name__}: {self.cause}")
        return " ".join(parts)

    @classmethod
    def from_record(cls, record: logging.LogRecord) -> LogEvent:
        """Build an event from a stdlib ``LogRecord``.

        Parameters
        ----------
        record
            The record delivered to a handler.

        Returns
        -------
        LogEvent
            An event whose message is the record's merged message, whose
            cause is the exception from ``exc_info`` (if any), and whose MDC
            comes from the record or the ambient context.

        """
        return cls(
            level=Level.from_stdlib(record.levelno),
            logger_name=record.name,
            message=record.getMessage(),
            mdc=_mdc.from_record(record),
            cause=_cause_of(record),
            thread_name=record.threadName or "",
            timestamp=record.created,
        )


def _cause_of(record: logging.LogRecord) -> BaseException | None:
    exc_info = record.exc_info
    if isinstance(exc_info, tuple) and len(exc_info) == 3:  # noqa: PLR2004
        exc = exc_info[1]
        if isinstance(exc, BaseException):
            return exc
    return None


__all__ = ["LogEvent"]
