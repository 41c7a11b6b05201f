"""Ordered log levels observed by interception filters.

``Level`` mirrors the five levels a filter can ask for. Stdlib records
carry arbitrary numeric levels, so :meth:`Level.from_stdlib` buckets them
onto the nearest level at or above the record's number; ``CRITICAL``
records therefore surface as ``ERROR``.
"""

from __future__ import annotations

import enum
import logging
import typing as typ

TRACE_LEVEL_NUM = 5
logging.addLevelName(TRACE_LEVEL_NUM, "TRACE")


class Level(enum.IntEnum):
    """Log level of an observed event, ordered by severity."""

    TRACE = TRACE_LEVEL_NUM
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARN = logging.WARNING
    ERROR = logging.ERROR

    @classmethod
    def from_stdlib(cls, levelno: int) -> Level:
        """Map a stdlib numeric level onto a :class:`Level`.

        Parameters
        ----------
        levelno
            The ``levelno`` of a ``logging.LogRecord``.

        Returns
        -------
        Level
            The lowest level whose number is greater than or equal to
            ``levelno``; anything above ``ERROR`` maps to ``ERROR``.

        """
        for level in cls:
            if levelno <= level.value:
                return level
        return cls.ERROR

    @classmethod
    def parse(cls, value: str | int | Level) -> Level:
        """Return the level named or numbered by ``value``.

        Names are case-insensitive. "WARN" and "WARNING" are equivalent;
        "CRITICAL" and "FATAL" fold to ``ERROR``.
        """
        if isinstance(value, Level):
            return value
        if isinstance(value, bool):
            msg = f"invalid log level: {value!r}"
            raise TypeError(msg)
        if isinstance(value, int):
            return cls.from_stdlib(value)
        if not isinstance(value, str):
            msg = f"log level must be a str or int, got {type(value).__name__}"
            raise TypeError(msg)
        level = _LEVEL_NAMES.get(value.strip().upper())
        if level is None:
            msg = f"unknown log level: {value!r}"
            raise ValueError(msg)
        return level

    def to_stdlib(self) -> int:
        """Return the stdlib numeric level for this level."""
        return int(self.value)


_LEVEL_NAMES: typ.Final[dict[str, Level]] = {
    "TRACE": Level.TRACE,
    "DEBUG": Level.DEBUG,
    "INFO": Level.INFO,
    "WARN": Level.WARN,
    "WARNING": Level.WARN,
    "ERROR": Level.ERROR,
    "CRITICAL": Level.ERROR,
    "FATAL": Level.ERROR,
}

__all__ = ["TRACE_LEVEL_NUM", "Level"]
