from __future__ import annotations

import logging
import typing as typ

import pytest

import logintercept
from logintercept import InterceptSettings, mdc

from .helpers import FAST_LEEWAY

if typ.TYPE_CHECKING:
    import collections.abc as cabc


@pytest.fixture
def intercept_settings() -> InterceptSettings:
    """Use a short leeway so failing-path tests finish quickly."""
    return InterceptSettings(filter_leeway=FAST_LEEWAY)


@pytest.fixture
def app_logger() -> logging.Logger:
    """Return the logger most tests emit through."""
    return logging.getLogger("app")


@pytest.fixture(autouse=True)
def _clean_logging_state() -> cabc.Iterator[None]:
    """Reset the default system and the MDC around each test."""
    logintercept.reset_default_system()
    mdc.clear()
    try:
        yield
    finally:
        logintercept.reset_default_system()
        mdc.clear()
