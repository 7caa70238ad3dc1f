# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the data layer.
"""

from core.config.defaults import (
    QueryDefaults,
    DatabaseDefaults,
    LoggingDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "QueryDefaults",
    "DatabaseDefaults",
    "LoggingDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
