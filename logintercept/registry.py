"""Delivery of stdlib log records to registered interception callbacks.

``FilterRegistry`` is the backend half of interception. It owns a
:class:`CapturingHandler` that sits on an attach-point logger (the root
logger unless told otherwise), turns each ``logging.LogRecord`` it
receives into a :class:`~logintercept.event.LogEvent`, and forwards the
event exactly once to every callback registered at that moment.

Callbacks run on whichever thread emitted the record. The registry takes a
snapshot of its registrations under a lock and invokes the callbacks
outside it, so a callback may itself log without deadlocking. Each
registration serialises its own delivery against :meth:`unregister`, and a
callback that raises does not stop delivery to the others.
"""

from __future__ import annotations

import dataclasses
import itertools
import logging
import threading
import typing as typ

from .errors import RegistrationError
from .event import LogEvent
from .levels import Level

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    EventCallback = cabc.Callable[[LogEvent], None]

logger = logging.getLogger(__name__)

# Records from this package are never dispatched, so diagnostics emitted
# while a session is registered cannot be counted by that session.
_INTERNAL_LOGGER_PREFIX: typ.Final = __name__.partition(".")[0]

_ROOT_NAMES: typ.Final = frozenset({"", "root"})


@dataclasses.dataclass(slots=True, eq=False)
class Registration:
    """Token identifying one registered filter and callback.

    Delivery and deactivation are serialised by a per-registration lock, so
    once :meth:`FilterRegistry.unregister` returns the callback is neither
    running nor invoked again.
    """

    ident: int
    event_filter: object
    callback: EventCallback = dataclasses.field(repr=False)
    active: bool = dataclasses.field(default=True, init=False)
    _lock: threading.RLock = dataclasses.field(
        default_factory=threading.RLock, init=False, repr=False
    )

    def deliver(self, event: LogEvent) -> None:
        """Invoke the callback with ``event`` unless deactivated."""
        with self._lock:
            if self.active:
                self.callback(event)

    def deactivate(self) -> None:
        """Stop delivery, waiting for an in-flight callback to finish."""
        with self._lock:
            self.active = False


class CapturingHandler(logging.Handler):
    """A ``logging.Handler`` feeding every record into a registry.

    Parameters
    ----------
    registry
        The registry that receives the converted events.

    """

    def __init__(self, registry: FilterRegistry) -> None:
        """Create a handler at ``NOTSET`` so it sees every record."""
        super().__init__(logging.NOTSET)
        self._registry = registry
        # Filters run before the handler lock is taken, so the package's own
        # diagnostics never wait on a callback blocked in another thread.
        self.addFilter(_not_internal)

    def emit(self, record: logging.LogRecord) -> None:
        """Convert ``record`` and dispatch it to the registry."""
        try:
            event = LogEvent.from_record(record)
            self._registry.dispatch(event)
        except RecursionError:
            raise
        except Exception:  # noqa: BLE001 - stdlib handler error protocol
            self.handleError(record)


def _not_internal(record: logging.LogRecord) -> bool:
    return not _is_internal(record.name)


def _is_internal(name: str) -> bool:
    return name == _INTERNAL_LOGGER_PREFIX or name.startswith(
        _INTERNAL_LOGGER_PREFIX + "."
    )


class FilterRegistry:
    """Registry of active interception callbacks attached to stdlib logging.

    Parameters
    ----------
    logger_name
        Name of the logger the capture handler attaches to. ``"root"`` (the
        default) or ``""`` attach to the root logger, which sees every
        propagating record.
    capture_level
        While installed, the attach-point logger is kept enabled for this
        level and above.

    Examples
    --------
    >>> registry = FilterRegistry()
    >>> registry.install()
    >>> seen = []
    >>> token = registry.register("demo", seen.append)
    >>> logging.getLogger("demo").warning("hello")
    >>> registry.unregister(token)
    >>> registry.uninstall()
    >>> [event.message for event in seen]
    ['hello']

    """

    def __init__(
        self, logger_name: str = "root", *, capture_level: Level = Level.TRACE
    ) -> None:
        """Prepare an uninstalled registry."""
        self._logger_name = logger_name
        self._capture_level = Level.parse(capture_level)
        self._handler = CapturingHandler(self)
        self._lock = threading.Lock()
        self._registrations: dict[int, Registration] = {}
        self._ids = itertools.count(1)
        self._installed = False
        self._saved_level: int | None = None

    @property
    def logger(self) -> logging.Logger:
        """Return the attach-point logger."""
        if self._logger_name in _ROOT_NAMES:
            return logging.getLogger()
        return logging.getLogger(self._logger_name)

    @property
    def handler(self) -> CapturingHandler:
        """Return the capture handler owned by this registry."""
        return self._handler

    @property
    def installed(self) -> bool:
        """Return ``True`` while the capture handler is attached."""
        with self._lock:
            return self._installed

    def install(self) -> None:
        """Attach the capture handler, enabling the capture level if needed."""
        with self._lock:
            if self._installed:
                return
            target = self.logger
            if target.getEffectiveLevel() > self._capture_level.to_stdlib():
                self._saved_level = target.level
                target.setLevel(self._capture_level.to_stdlib())
            target.addHandler(self._handler)
            self._installed = True
        logger.debug("capture handler installed on %r", target.name)

    def uninstall(self) -> None:
        """Detach the capture handler and restore the logger's level.

        Registrations still active are dropped; their callbacks receive no
        further events.
        """
        with self._lock:
            if not self._installed:
                return
            target = self.logger
            target.removeHandler(self._handler)
            if self._saved_level is not None:
                target.setLevel(self._saved_level)
                self._saved_level = None
            dropped = tuple(self._registrations.values())
            self._registrations.clear()
            self._installed = False
        for registration in dropped:
            registration.deactivate()
        if dropped:
            logger.warning(
                "capture handler uninstalled with %d active registration(s)",
                len(dropped),
            )
        logger.debug("capture handler removed from %r", target.name)

    def register(self, event_filter: object, callback: EventCallback) -> Registration:
        """Start forwarding events to ``callback``.

        Raises
        ------
        RegistrationError
            If the capture handler is not installed.

        """
        with self._lock:
            if not self._installed:
                msg = (
                    f"cannot register {event_filter!r}: capture handler is not "
                    f"installed on logger {self._logger_name!r}"
                )
                raise RegistrationError(msg)
            registration = Registration(next(self._ids), event_filter, callback)
            self._registrations[registration.ident] = registration
        logger.debug("registered %r", event_filter)
        return registration

    def unregister(self, registration: Registration) -> None:
        """Stop forwarding events for ``registration``.

        Raises
        ------
        RegistrationError
            If ``registration`` is not currently registered.

        """
        with self._lock:
            removed = self._registrations.pop(registration.ident, None)
        if removed is None:
            msg = f"{registration.event_filter!r} is not registered"
            raise RegistrationError(msg)
        removed.deactivate()
        logger.debug("unregistered %r", registration.event_filter)

    def active(self) -> tuple[Registration, ...]:
        """Return a snapshot of the current registrations."""
        with self._lock:
            return tuple(self._registrations.values())

    def dispatch(self, event: LogEvent) -> None:
        """Forward ``event`` to every currently registered callback.

        A callback that raises is logged and skipped; the remaining
        callbacks still receive the event.
        """
        for registration in self.active():
            try:
                registration.deliver(event)
            except RecursionError:
                raise
            except Exception:
                logger.exception(
                    "callback for %r raised while handling an event",
                    registration.event_filter,
                )


__all__ = ["CapturingHandler", "FilterRegistry", "Registration"]
