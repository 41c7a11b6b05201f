"""Shared BDD steps reused across feature modules."""

from __future__ import annotations

from pytest_bdd import given, parsers

from logintercept import Level, LoggingEventFilter, dead_letters, empty, message_contains


@given("the empty filter", target_fixture="event_filter")
def the_empty_filter() -> LoggingEventFilter:
    """Start from the filter with no conditions."""
    return empty()


@given("the dead letters filter", target_fixture="event_filter")
def the_dead_letters_filter() -> LoggingEventFilter:
    """Use the canned dead letters filter."""
    return dead_letters()


@given(
    parsers.re(r'an? (?P<level>[A-Z]+) filter for messages containing "(?P<text>[^"]*)"'),
    target_fixture="event_filter",
)
def level_message_filter(level: str, text: str) -> LoggingEventFilter:
    """Build a level plus message-substring filter."""
    return message_contains(text).with_log_level(Level.parse(level))
