"""The handle through which interception finds its logging backend.

A :class:`LoggingSystem` bundles the :class:`InterceptSettings` for a test
run with the :class:`FilterRegistry` that captures stdlib log records.
``intercept`` accepts a system handle and discovers both from it.
"""

from __future__ import annotations

import dataclasses
import threading
import typing as typ

from .errors import RegistrationError
from .registry import FilterRegistry
from .settings import InterceptSettings

if typ.TYPE_CHECKING:
    import types


class LoggingSystem:
    """Settings plus an installed capture registry.

    Use it as a context manager, or call :meth:`start` and :meth:`shutdown`
    explicitly:

    >>> with LoggingSystem(InterceptSettings(filter_leeway=0.5)) as system:
    ...     system.log_registry.installed
    True

    Parameters
    ----------
    settings
        Settings for sessions run against this system. Defaults to
        :meth:`InterceptSettings.from_env`.
    logger_name
        Attach point for the capture handler; the root logger by default.

    """

    def __init__(
        self,
        settings: InterceptSettings | None = None,
        *,
        logger_name: str = "root",
    ) -> None:
        """Create a system; the capture handler is installed by :meth:`start`."""
        self.settings = settings if settings is not None else InterceptSettings.from_env()
        self.log_registry = FilterRegistry(
            logger_name, capture_level=self.settings.capture_level
        )

    def start(self) -> LoggingSystem:
        """Install the capture handler and return ``self``."""
        self.log_registry.install()
        return self

    def shutdown(self) -> None:
        """Remove the capture handler."""
        self.log_registry.uninstall()

    def __enter__(self) -> LoggingSystem:
        """Start the system."""
        return self.start()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Shut the system down."""
        self.shutdown()

    def __repr__(self) -> str:
        """Describe the system by its settings and attach point."""
        return (
            f"LoggingSystem(settings={self.settings!r}, "
            f"logger={self.log_registry.logger.name!r})"
        )


_default_lock = threading.Lock()
_default: LoggingSystem | None = None


def default_system() -> LoggingSystem:
    """Return the process-wide system, creating and starting it on first use."""
    global _default  # noqa: PLW0603
    with _default_lock:
        if _default is None:
            _default = LoggingSystem().start()
        return _default


def reset_default_system() -> None:
    """Shut down and forget the process-wide system, if one exists."""
    global _default  # noqa: PLW0603
    with _default_lock:
        system, _default = _default, None
    if system is not None:
        system.shutdown()


@dataclasses.dataclass(frozen=True, slots=True)
class ResolvedSystem:
    """The registry and settings discovered from a system handle."""

    registry: FilterRegistry
    settings: InterceptSettings


def resolve_system(handle: object) -> ResolvedSystem:
    """Discover the log registry and settings behind ``handle``.

    ``handle`` may be ``None`` (the default system), a
    :class:`LoggingSystem`, or any object exposing a ``log_registry``
    attribute and, optionally, ``settings``.

    Raises
    ------
    RegistrationError
        If no :class:`FilterRegistry` can be discovered.

    """
    if handle is None:
        handle = default_system()
    registry = getattr(handle, "log_registry", None)
    if not isinstance(registry, FilterRegistry):
        msg = (
            f"no log registry discoverable from {type(handle).__name__}; "
            "pass a LoggingSystem or an object with a 'log_registry' attribute"
        )
        raise RegistrationError(msg)
    settings = getattr(handle, "settings", None)
    if not isinstance(settings, InterceptSettings):
        settings = InterceptSettings()
    return ResolvedSystem(registry, settings)


__all__ = [
    "LoggingSystem",
    "ResolvedSystem",
    "default_system",
    "reset_default_system",
    "resolve_system",
]
