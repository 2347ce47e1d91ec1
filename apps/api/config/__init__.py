"""
Bowling Chat API - Configuration Package
========================================

Typed settings with safe defaults.

Usage:
    from config import settings, validate_startup, log_startup_config

    # On startup
    validate_startup()
    log_startup_config()
"""

from config.env import (
    Settings,
    DataSettings,
    AISettings,
    ChatSettings,
    InfraSettings,
    ChatMode,
    parse_chat_mode,
    settings,
    Environment,
    validate_startup,
    log_startup_config,
    get_feature_summary,
    ConfigurationError,
)

__all__ = [
    "Settings",
    "DataSettings",
    "AISettings",
    "ChatSettings",
    "InfraSettings",
    "ChatMode",
    "parse_chat_mode",
    "settings",
    "Environment",
    "validate_startup",
    "log_startup_config",
    "get_feature_summary",
    "ConfigurationError",
]
