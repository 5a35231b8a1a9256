"""
================================================================================
Autotest Essentials Common Utilities
================================================================================

This module provides shared configuration management and logging setup for
all autotest_essentials modules.

Exports:
    - get_config / set_config: Dot-notation access to the YAML configuration
    - init_logger / get_logger: Loguru logger initialization
    - SectionLogger / section_logger: Indented, section-aware log writer

Usage:
    from autotest_essentials.common import get_config, init_logger

    init_logger()
    timeout = get_config("wait.timeout", 30)

================================================================================
"""

from .global_config import (
    get_config,
    get_logger,
    init_logger,
    reload_config,
    reset_config,
    set_config,
)
from .section_logger import SectionLogger, section_logger

__all__ = [
    "get_config",
    "set_config",
    "reload_config",
    "reset_config",
    "init_logger",
    "get_logger",
    "SectionLogger",
    "section_logger",
]
