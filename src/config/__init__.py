"""
Configuration loader.

App config: reads config.yaml, validates it against JSON Schema, resolves
env vars for secrets.
"""

from config.loader import (
    AlertingConfig,
    AnalyticsConfig,
    AppConfig,
    BrokerConfig,
    ConfigError,
    DataConfig,
    JournalConfig,
    load_config,
)

__all__ = [
    "AlertingConfig",
    "AnalyticsConfig",
    "AppConfig",
    "BrokerConfig",
    "ConfigError",
    "DataConfig",
    "JournalConfig",
    "load_config",
]
