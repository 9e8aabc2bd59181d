"""Configuration package for eduportal."""

from eduportal.config.app_config import (
    AIConfig,
    AppConfig,
    AuthConfig,
    ClassbuildConfig,
    ExtractionConfig,
    GamificationConfig,
    ProviderConfig,
    clear_config_cache,
    get_provider_config,
    load_app_config,
)

__all__ = [
    "AIConfig",
    "AppConfig",
    "AuthConfig",
    "ClassbuildConfig",
    "ExtractionConfig",
    "GamificationConfig",
    "ProviderConfig",
    "clear_config_cache",
    "get_provider_config",
    "load_app_config",
]
