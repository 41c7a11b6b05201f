"""Mapped diagnostic context carried alongside log records.

The MDC is a per-context mapping of string keys to string values. It is
stored in a :class:`contextvars.ContextVar`, so each thread (and each
asyncio task) sees its own values. Records pick the MDC up in one of two
ways:

- explicitly, via ``logger.info("msg", extra={"mdc": {...}})``;
- implicitly, from the context active when the capture handler runs.

When records are handed to another thread before reaching the capture
handler (for example through ``logging.handlers.QueueHandler``), attach
:class:`MdcFilter` to the emitting handler so the context is stamped onto
each record while it is still on the emitting thread.

Examples
--------
>>> from logintercept import mdc
>>> with mdc.scoped(source="worker-1"):
...     mdc.get("source")
'worker-1'
>>> mdc.get("source") is None
True

"""

from __future__ import annotations

import collections.abc as cabc
import contextlib
import contextvars
import logging
import types
import typing as typ

SOURCE_MDC_KEY: typ.Final = "source"
RECORD_ATTRIBUTE: typ.Final = "mdc"

_EMPTY: typ.Final[cabc.Mapping[str, str]] = types.MappingProxyType({})

_context: contextvars.ContextVar[cabc.Mapping[str, str]] = contextvars.ContextVar(
    "logintercept_mdc", default=_EMPTY
)


def _freeze(values: cabc.Mapping[object, object]) -> cabc.Mapping[str, str]:
    return types.MappingProxyType({str(k): str(v) for k, v in values.items()})


def put(key: str, value: object) -> None:
    """Set ``key`` to ``str(value)`` in the current context."""
    current = dict(_context.get())
    current[key] = str(value)
    _context.set(types.MappingProxyType(current))


def get(key: str) -> str | None:
    """Return the value stored under ``key`` or ``None``."""
    return _context.get().get(key)


def remove(key: str) -> None:
    """Drop ``key`` from the current context if present."""
    current = _context.get()
    if key not in current:
        return
    remaining = {k: v for k, v in current.items() if k != key}
    _context.set(types.MappingProxyType(remaining))


def clear() -> None:
    """Remove every entry from the current context."""
    _context.set(_EMPTY)


def snapshot() -> cabc.Mapping[str, str]:
    """Return a read-only view of the current context."""
    return _context.get()


@contextlib.contextmanager
def scoped(**values: object) -> cabc.Iterator[cabc.Mapping[str, str]]:
    """Temporarily add ``values`` to the MDC for the duration of a block.

    Existing entries with the same keys are shadowed and restored on exit.
    """
    merged = {**_context.get(), **{k: str(v) for k, v in values.items()}}
    token = _context.set(types.MappingProxyType(merged))
    try:
        yield _context.get()
    finally:
        _context.reset(token)


def from_record(record: logging.LogRecord) -> cabc.Mapping[str, str]:
    """Return the MDC for ``record``.

    A mapping stamped on the record (``record.mdc``) wins over the ambient
    context; non-mapping values are ignored.
    """
    stamped = getattr(record, RECORD_ATTRIBUTE, None)
    if isinstance(stamped, cabc.Mapping):
        return _freeze(typ.cast("cabc.Mapping[object, object]", stamped))
    return _context.get()


class MdcFilter(logging.Filter):
    """Stamp the current MDC onto every record passing through.

    Values passed explicitly through ``extra={"mdc": ...}`` are merged over
    the ambient context. The filter never rejects a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Attach the MDC snapshot to ``record`` and accept it."""
        explicit = getattr(record, RECORD_ATTRIBUTE, None)
        merged = dict(_context.get())
        if isinstance(explicit, cabc.Mapping):
            merged.update(
                _freeze(typ.cast("cabc.Mapping[object, object]", explicit))
            )
        setattr(record, RECORD_ATTRIBUTE, types.MappingProxyType(merged))
        return True


__all__ = [
    "SOURCE_MDC_KEY",
    "MdcFilter",
    "clear",
    "from_record",
    "get",
    "put",
    "remove",
    "scoped",
    "snapshot",
]
