"""Fixtures for infrastructure.logging tests."""

import pytest


@pytest.fixture
def processor_args():
    """Positional args structlog passes to a processor before event_dict."""
    return (None, "info")
