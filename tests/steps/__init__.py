"""Step definitions for the Gherkin features in ``tests/features``."""
