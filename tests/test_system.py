"""Tests for system handles and registry discovery."""

from __future__ import annotations

import dataclasses

import pytest

from logintercept import (
    FilterRegistry,
    InterceptSettings,
    LoggingSystem,
    RegistrationError,
    default_system,
    reset_default_system,
)
from logintercept.system import resolve_system


def test_context_manager_installs_and_removes() -> None:
    """Entering starts the system; leaving shuts it down."""
    with LoggingSystem(InterceptSettings(filter_leeway=1)) as system:
        assert system.log_registry.installed
    assert not system.log_registry.installed


def test_system_passes_capture_level_to_registry() -> None:
    """The registry inherits the capture level from the settings."""
    system = LoggingSystem(InterceptSettings(capture_level="INFO"))  # type: ignore[arg-type]
    assert "INFO" in repr(system.settings)
    assert system.log_registry._capture_level.name == "INFO"


def test_default_system_is_shared_and_started() -> None:
    """The default system is created once and installed."""
    first = default_system()
    assert first is default_system()
    assert first.log_registry.installed
    reset_default_system()
    assert not first.log_registry.installed
    assert default_system() is not first


def test_resolve_none_uses_default_system() -> None:
    """``None`` resolves to the default system."""
    resolved = resolve_system(None)
    assert resolved.registry is default_system().log_registry


def test_resolve_duck_typed_handle() -> None:
    """Any object with a ``log_registry`` attribute is accepted."""

    @dataclasses.dataclass
    class Harness:
        log_registry: FilterRegistry

    registry = FilterRegistry()
    resolved = resolve_system(Harness(registry))
    assert resolved.registry is registry
    assert resolved.settings == InterceptSettings()


def test_resolve_rejects_unknown_handle() -> None:
    """Handles without a registry cannot be used."""
    with pytest.raises(RegistrationError, match="no log registry discoverable from str"):
        resolve_system("system")
