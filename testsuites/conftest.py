"""
================================================================================
Test Suite Pytest Configuration
================================================================================

Registers the markers used across the test suite and tags tests by the
directory they live in.

================================================================================
"""

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    config.addinivalue_line(
        "markers", "unit: Fast, isolated tests of a single module"
    )
    config.addinivalue_line(
        "markers", "isolation: Tests of the isolation scope manager"
    )
    config.addinivalue_line(
        "markers", "plugin: Tests that run pytest in-process through pytester"
    )


def pytest_collection_modifyitems(config, items):
    """
    Auto-add markers based on test location and name.
    """
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        if "pytest_plugin" in item.module.__name__:
            item.add_marker(pytest.mark.plugin)

        if "scope_manager" in item.module.__name__ or "cleanup_outcome" in item.module.__name__:
            item.add_marker(pytest.mark.isolation)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "Autotest Essentials Test Suite",
        "=" * 60,
        "",
    ]
