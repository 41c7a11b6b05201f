"""pytest fixtures for log interception.

The module is registered under the ``pytest11`` entry point, so pytest
loads it automatically once the package is installed. It imports pytest
and is only usable with the ``test`` extra (``pip install
logintercept[test]``) or another pytest installation.

Request ``logging_system`` in a test and pass it to
:meth:`~logintercept.filters.LoggingEventFilter.intercept`. Override the
``intercept_settings`` fixture to change the leeway for a suite.
"""

from __future__ import annotations

import typing as typ

import pytest

from .settings import InterceptSettings
from .system import LoggingSystem

if typ.TYPE_CHECKING:
    import collections.abc as cabc


@pytest.fixture
def intercept_settings() -> InterceptSettings:
    """Return settings read from ``LOGINTERCEPT_*`` environment variables."""
    return InterceptSettings.from_env()


@pytest.fixture
def logging_system(
    intercept_settings: InterceptSettings,
) -> cabc.Iterator[LoggingSystem]:
    """Yield a started :class:`LoggingSystem`, shutting it down afterwards."""
    system = LoggingSystem(intercept_settings)
    system.start()
    try:
        yield system
    finally:
        system.shutdown()
