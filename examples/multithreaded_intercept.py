#!/usr/bin/env python3
# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "logintercept @ {path = \"..\"}",
# ]
# ///
"""Demonstrate counting events logged by many worker threads."""

from __future__ import annotations

import logging
from threading import Thread

import logintercept
from logintercept import mdc

WORKERS = 16


def worker(worker_id: int) -> None:
    """Log a completion message tagged with the worker's tenant."""
    logger = logging.getLogger("example.worker")
    with mdc.scoped(tenant=f"t{worker_id % 2}"):
        logger.info("worker %d finished", worker_id)


def spawn_workers() -> None:
    """Start the workers without waiting for them."""
    for i in range(WORKERS):
        Thread(target=worker, args=(i,), name=f"worker-{i}").start()


def main() -> None:
    """Expect exactly half the workers to log under tenant ``t0``.

    ``spawn_workers`` returns before the threads log, so the leeway covers
    events that arrive after the code block has finished.
    """
    system = logintercept.LoggingSystem(
        logintercept.InterceptSettings(filter_leeway=2.0)
    )
    system.start()
    try:
        event_filter = (
            logintercept.info("finished")
            .with_mdc({"tenant": "t0"})
            .with_occurrences(WORKERS // 2)
        )
        event_filter.intercept(system, spawn_workers)
        print(f"verified {event_filter!r}")  # noqa: T201
    finally:
        system.shutdown()


if __name__ == "__main__":
    main()
