"""
Configuration Module
====================

Centralized configuration management using Pydantic Settings.
Loads from environment variables with type validation and defaults.

Usage:
    from shared.config import settings

    print(settings.environment)
    print(settings.risk.max_concurrency)
"""

from shared.config.settings import (
    Environment,
    EventBackend,
    LogLevel,
    RiskEngineSettings,
    Settings,
    get_settings,
)


# Global settings instance (singleton)
settings = get_settings()

__all__ = [
    "Settings",
    "RiskEngineSettings",
    "get_settings",
    "settings",
    "Environment",
    "EventBackend",
    "LogLevel",
]
