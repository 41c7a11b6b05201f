"""Tests for the capture registry and its stdlib logging handler."""

from __future__ import annotations

import logging
import threading
import typing as typ

import pytest

from logintercept import (
    CapturingHandler,
    FilterRegistry,
    Level,
    LogEvent,
    RegistrationError,
)

from .helpers import BARRIER_TIMEOUT_SECONDS

if typ.TYPE_CHECKING:
    import collections.abc as cabc


@pytest.fixture
def registry() -> cabc.Iterator[FilterRegistry]:
    """Yield an installed registry on the root logger."""
    reg = FilterRegistry()
    reg.install()
    try:
        yield reg
    finally:
        reg.uninstall()


def test_install_attaches_handler_and_lowers_level() -> None:
    """Installing adds the handler and enables the capture level."""
    root = logging.getLogger()
    previous = root.level
    root.setLevel(logging.WARNING)
    reg = FilterRegistry(capture_level=Level.DEBUG)
    reg.install()
    try:
        assert isinstance(reg.handler, CapturingHandler)
        assert reg.handler in root.handlers
        assert root.level == logging.DEBUG
        assert reg.installed
    finally:
        reg.uninstall()
    assert reg.handler not in root.handlers
    assert root.level == logging.WARNING
    assert not reg.installed
    root.setLevel(previous)


def test_install_is_idempotent(registry: FilterRegistry) -> None:
    """A second install does not attach the handler twice."""
    registry.install()
    assert logging.getLogger().handlers.count(registry.handler) == 1


def test_install_keeps_more_verbose_level() -> None:
    """A logger already enabled below the capture level is left alone."""
    target = logging.getLogger("verbose.scope")
    target.setLevel(logging.DEBUG)
    reg = FilterRegistry("verbose.scope", capture_level=Level.INFO)
    try:
        reg.install()
        assert target.level == logging.DEBUG
    finally:
        reg.uninstall()
        target.setLevel(logging.NOTSET)
    assert target.level == logging.NOTSET


def test_dispatch_reaches_registered_callbacks(registry: FilterRegistry) -> None:
    """Every registered callback receives every event once."""
    first: list[LogEvent] = []
    second: list[LogEvent] = []
    a = registry.register("first", first.append)
    b = registry.register("second", second.append)
    logging.getLogger("reg.test").info("value=%d", 3)
    registry.unregister(a)
    registry.unregister(b)

    assert [e.message for e in first] == ["value=3"]
    assert [e.message for e in second] == ["value=3"]
    assert first[0].logger_name == "reg.test"


def test_unregistered_callback_receives_nothing(registry: FilterRegistry) -> None:
    """Once unregistered, a callback is no longer invoked."""
    seen: list[LogEvent] = []
    token = registry.register("gone", seen.append)
    registry.unregister(token)
    logging.getLogger("reg.test").warning("after")
    assert seen == []
    assert registry.active() == ()


def test_register_requires_installation() -> None:
    """Registering on an uninstalled registry fails."""
    reg = FilterRegistry()
    with pytest.raises(RegistrationError, match="not installed"):
        reg.register("f", lambda event: None)


def test_unregister_unknown_token_fails(registry: FilterRegistry) -> None:
    """Unregistering twice is an error."""
    token = registry.register("once", lambda event: None)
    registry.unregister(token)
    with pytest.raises(RegistrationError, match="not registered"):
        registry.unregister(token)


def test_uninstall_drops_registrations(registry: FilterRegistry) -> None:
    """Uninstalling discards registrations still active."""
    seen: list[LogEvent] = []
    token = registry.register("dropped", seen.append)
    registry.uninstall()
    logging.getLogger("reg.test").error("ignored")
    assert seen == []
    with pytest.raises(RegistrationError):
        registry.unregister(token)


def test_internal_records_are_not_dispatched(registry: FilterRegistry) -> None:
    """Records from the package's own loggers are skipped."""
    seen: list[LogEvent] = []
    token = registry.register("internal", seen.append)
    logging.getLogger("logintercept.session").warning("internal")
    logging.getLogger("logintercepted").warning("external")
    registry.unregister(token)
    assert [e.logger_name for e in seen] == ["logintercepted"]


def test_raising_callback_does_not_stop_delivery(
    registry: FilterRegistry,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """A failing callback is logged and skipped; later callbacks still run."""
    reported: list[logging.LogRecord] = []
    monkeypatch.setattr(registry.handler, "handleError", reported.append)
    seen: list[LogEvent] = []

    def explode(event: LogEvent) -> None:
        raise RuntimeError(event.message)

    failing = registry.register("failing", explode)
    healthy = registry.register("healthy", seen.append)
    with caplog.at_level(logging.ERROR, logger="logintercept.registry"):
        logging.getLogger("reg.test").warning("delivered")
    registry.unregister(failing)
    registry.unregister(healthy)

    assert [e.message for e in seen] == ["delivered"]
    assert reported == []
    errors = [r for r in caplog.records if r.name == "logintercept.registry"]
    assert len(errors) == 1
    assert errors[0].exc_info is not None
    assert "'failing'" in errors[0].getMessage()


def test_attach_point_limits_capture() -> None:
    """A registry on a named logger only sees records under it."""
    reg = FilterRegistry("scoped")
    seen: list[LogEvent] = []
    reg.install()
    try:
        token = reg.register("scoped", seen.append)
        logging.getLogger("scoped.child").warning("inside")
        logging.getLogger("elsewhere").warning("outside")
        reg.unregister(token)
    finally:
        reg.uninstall()
    assert [e.message for e in seen] == ["inside"]


@pytest.mark.concurrency
def test_unregister_during_dispatch_blocks_pending_delivery(
    registry: FilterRegistry,
) -> None:
    """A registration removed mid-dispatch is not invoked afterwards."""
    entered = threading.Event()
    release = threading.Event()
    late: list[LogEvent] = []

    def blocking(event: LogEvent) -> None:
        entered.set()
        release.wait(BARRIER_TIMEOUT_SECONDS)

    first = registry.register("blocking", blocking)
    second = registry.register("late", late.append)
    worker = threading.Thread(
        target=logging.getLogger("reg.test").warning, args=("racing",)
    )
    worker.start()
    assert entered.wait(BARRIER_TIMEOUT_SECONDS)
    # The worker already holds a snapshot that includes ``second``.
    registry.unregister(second)
    release.set()
    worker.join(BARRIER_TIMEOUT_SECONDS)
    registry.unregister(first)
    assert not worker.is_alive()
    assert late == []


@pytest.mark.concurrency
def test_unregister_waits_for_in_flight_callback(registry: FilterRegistry) -> None:
    """``unregister`` returns only after a running callback has finished."""
    entered = threading.Event()
    release = threading.Event()
    finished: list[LogEvent] = []

    def slow(event: LogEvent) -> None:
        entered.set()
        release.wait(BARRIER_TIMEOUT_SECONDS)
        finished.append(event)

    token = registry.register("slow", slow)
    worker = threading.Thread(
        target=logging.getLogger("reg.test").warning, args=("slow",)
    )
    worker.start()
    assert entered.wait(BARRIER_TIMEOUT_SECONDS)
    remover = threading.Thread(target=registry.unregister, args=(token,))
    remover.start()
    remover.join(0.1)
    assert remover.is_alive()
    release.set()
    remover.join(BARRIER_TIMEOUT_SECONDS)
    worker.join(BARRIER_TIMEOUT_SECONDS)
    assert not remover.is_alive()
    assert [e.message for e in finished] == ["slow"]
