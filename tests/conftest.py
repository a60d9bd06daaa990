"""Shared pytest configuration."""

import os

import pytest


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless the compose stack is declared available."""
    if os.environ.get("LAKEHOUSE_CDC_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="set LAKEHOUSE_CDC_INTEGRATION=1 to run against the stack")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)
