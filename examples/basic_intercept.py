#!/usr/bin/env python3
# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "logintercept @ {path = \"..\"}",
# ]
# ///
"""Demonstrate intercepting log events emitted by ordinary code."""

from __future__ import annotations

import logging

import logintercept


def reconnect() -> None:
    """Log a failed connection attempt followed by a retry notice."""
    logger = logging.getLogger("example.db")
    try:
        msg = "connection refused"
        raise ConnectionError(msg)
    except ConnectionError as exc:
        logger.error("lost connection", exc_info=exc)
    logger.warning("retrying in 1s")


def main() -> None:
    """Assert on the events ``reconnect`` logs.

    The ERROR filter matches by exception type; the WARN filter matches by
    message fragment. Both verify an exact count once the code returns.
    """
    with logintercept.LoggingSystem(
        logintercept.InterceptSettings.from_mapping({"filter-leeway": "1s"})
    ) as system:
        logintercept.error(ConnectionError).intercept(system, reconnect)

        with logintercept.warn("retrying").expect(system) as session:
            reconnect()
        print(f"matched: {session.matched_events[0].describe()}")  # noqa: T201

        try:
            logintercept.info("never logged").intercept(
                system, reconnect, leeway=0.1
            )
        except logintercept.VerificationFailure as failure:
            print(f"expected failure: {failure}")  # noqa: T201


if __name__ == "__main__":
    main()
