"""Runtime infrastructure for zenbill.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Path resolution via get_paths(), ProjectPaths
- Billing settings via load_billing_settings()

Usage:
    from zenbill.runtime import get_logger, load_billing_settings

    logger = get_logger(__name__)
    settings = load_billing_settings()
"""

from zenbill.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    set_log_level,
)
from zenbill.runtime.paths import ProjectPaths, get_paths, reset_paths
from zenbill.runtime.settings import BillingSettings, load_billing_settings

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Paths
    "get_paths",
    "reset_paths",
    "ProjectPaths",
    # Settings
    "BillingSettings",
    "load_billing_settings",
]
