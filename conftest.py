"""
Repository-level pytest configuration.

Why this exists:
  - Enable pytester for the tests of the pytest plugin
  - Keep configuration loading predictable for local and CI runs
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest

pytest_plugins = ["pytester"]


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _test_env_defaults() -> Generator[None, None, None]:
    """
    Select the "test" configuration overlay unless the user/CI chose one.
    """
    os.environ.setdefault("ENVIRONMENT", "test")

    yield
