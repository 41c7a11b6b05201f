"""Test package for logintercept.

Test Organisation
-----------------
- Unit tests (test_*.py): filters, matching, events, MDC, settings, the
  capture registry, and the intercept protocol.
- BDD tests (features/): Gherkin feature files with step definitions in
  steps/.
- Shared fixtures (conftest.py): a short-leeway ``intercept_settings``
  override for the ``logging_system`` fixture from
  ``logintercept.pytest_plugin``, and ``_clean_logging_state`` which
  resets the default system and MDC around every test.
- Shared helpers (helpers.py): event factories, exception hierarchies for
  cause matching, and delayed emitters for leeway tests.

Running Tests
-------------
Run all tests::

    pytest

Run BDD tests only::

    pytest tests/steps/

Run a specific test file::

    pytest tests/test_intercept.py
"""
