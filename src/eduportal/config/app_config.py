"""Application configuration loader.

Loads centralized configuration from config/eduportal.yaml with
built-in defaults when the file is absent.

Usage:
    from eduportal.config.app_config import load_app_config, get_provider_config

    config = load_app_config()
    provider = get_provider_config("gemini")
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("config/eduportal.yaml")

# Overrides the configured database path (useful for tests and deployments)
DB_PATH_ENV = "EDUPORTAL_DB"


@dataclass
class ProviderConfig:
    """Configuration for a single AI provider."""

    base_url: str | None
    default_model: str
    api_key_env: str | None = None
    # Heavier model for document-wide calls (learning paths, detailed pattern)
    pro_model: str | None = None

    def get_api_key(self) -> str | None:
        """Get API key from environment variable."""
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        return None


@dataclass
class AIConfig:
    """Defaults for the AI completion service."""

    default_provider: str = "gemini"
    max_retries: int = 3
    retry_delay_seconds: float = 1.0
    timeout: int = 120


@dataclass
class ExtractionConfig:
    """Question-extraction pipeline settings."""

    chunk_size: int = 20
    min_block_chars: int = 20
    batch_size: int = 50


@dataclass
class ClassbuildConfig:
    """School-management API settings."""

    proxy_base_url: str = "http://localhost:8080/proxy"
    api_key_env: str = "CLASSBUILD_API_KEY"
    escola_id: str = ""
    banco_questao_id: str = ""
    throttle_seconds: float = 1.5
    timezone_offset: str = "-3"
    timeout: int = 30

    def get_api_key(self) -> str:
        """Get API key from environment variable."""
        return os.environ.get(self.api_key_env, "")


@dataclass
class AuthConfig:
    """Authentication settings."""

    timeout_seconds: float = 15.0
    min_password_length: int = 6
    session_ttl_hours: int = 24 * 7


@dataclass
class GamificationConfig:
    """Practice rewards."""

    xp_per_correct: int = 10
    max_hints_per_question: int = 3
    xp_per_level: int = 100


@dataclass
class AppConfig:
    """Application-wide configuration."""

    providers: dict[str, ProviderConfig] = field(default_factory=dict)
    ai: AIConfig = field(default_factory=AIConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    classbuild: ClassbuildConfig = field(default_factory=ClassbuildConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    gamification: GamificationConfig = field(default_factory=GamificationConfig)
    db_path: str = "db/eduportal.db"
    log_level: str = "INFO"


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "providers": {
            "gemini": {
                "base_url": "https://generativelanguage.googleapis.com/v1beta/openai/",
                "default_model": "gemini-2.5-flash",
                "pro_model": "gemini-2.5-pro",
                "api_key_env": "GEMINI_API_KEY",
            },
            "openai": {
                "base_url": None,
                "default_model": "gpt-4o-mini",
                "pro_model": "gpt-4o",
                "api_key_env": "OPENAI_API_KEY",
            },
            "lmstudio": {
                "base_url": "http://localhost:1234/v1",
                "default_model": "llama-3.2-3b-instruct",
                "api_key_env": None,
            },
        },
        "ai": {
            "default_provider": "gemini",
            "max_retries": 3,
            "retry_delay_seconds": 1.0,
            "timeout": 120,
        },
        "extraction": {
            "chunk_size": 20,
            "min_block_chars": 20,
            "batch_size": 50,
        },
        "classbuild": {
            "proxy_base_url": "http://localhost:8080/proxy",
            "api_key_env": "CLASSBUILD_API_KEY",
            "escola_id": "",
            "banco_questao_id": "",
            "throttle_seconds": 1.5,
            "timezone_offset": "-3",
            "timeout": 30,
        },
        "auth": {
            "timeout_seconds": 15.0,
            "min_password_length": 6,
            "session_ttl_hours": 168,
        },
        "gamification": {
            "xp_per_correct": 10,
            "max_hints_per_question": 3,
            "xp_per_level": 100,
        },
        "db_path": "db/eduportal.db",
        "log_level": "INFO",
    }


def _merge(defaults: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge overrides into defaults, one level deep for sections."""
    result = dict(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            section = dict(result[key])
            section.update(value)
            result[key] = section
        else:
            result[key] = value
    return result


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    providers = {}
    for name, pconfig in data.get("providers", {}).items():
        providers[name] = ProviderConfig(
            base_url=pconfig.get("base_url"),
            default_model=pconfig.get("default_model", "default"),
            api_key_env=pconfig.get("api_key_env"),
            pro_model=pconfig.get("pro_model"),
        )

    ai_data = data.get("ai", {})
    ai = AIConfig(
        default_provider=ai_data.get("default_provider", "gemini"),
        max_retries=ai_data.get("max_retries", 3),
        retry_delay_seconds=ai_data.get("retry_delay_seconds", 1.0),
        timeout=ai_data.get("timeout", 120),
    )

    ext_data = data.get("extraction", {})
    extraction = ExtractionConfig(
        chunk_size=ext_data.get("chunk_size", 20),
        min_block_chars=ext_data.get("min_block_chars", 20),
        batch_size=ext_data.get("batch_size", 50),
    )

    cb_data = data.get("classbuild", {})
    classbuild = ClassbuildConfig(
        proxy_base_url=cb_data.get("proxy_base_url", "http://localhost:8080/proxy"),
        api_key_env=cb_data.get("api_key_env", "CLASSBUILD_API_KEY"),
        escola_id=str(cb_data.get("escola_id", "")),
        banco_questao_id=str(cb_data.get("banco_questao_id", "")),
        throttle_seconds=cb_data.get("throttle_seconds", 1.5),
        timezone_offset=str(cb_data.get("timezone_offset", "-3")),
        timeout=cb_data.get("timeout", 30),
    )

    auth_data = data.get("auth", {})
    auth = AuthConfig(
        timeout_seconds=auth_data.get("timeout_seconds", 15.0),
        min_password_length=auth_data.get("min_password_length", 6),
        session_ttl_hours=auth_data.get("session_ttl_hours", 168),
    )

    gam_data = data.get("gamification", {})
    gamification = GamificationConfig(
        xp_per_correct=gam_data.get("xp_per_correct", 10),
        max_hints_per_question=gam_data.get("max_hints_per_question", 3),
        xp_per_level=gam_data.get("xp_per_level", 100),
    )

    db_path = os.environ.get(DB_PATH_ENV) or data.get("db_path", "db/eduportal.db")

    return AppConfig(
        providers=providers,
        ai=ai,
        extraction=extraction,
        classbuild=classbuild,
        auth=auth,
        gamification=gamification,
        db_path=db_path,
        log_level=data.get("log_level", "INFO"),
    )


def load_app_config(
    force_reload: bool = False, config_path: Path | None = None
) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.
        config_path: Alternate YAML file (defaults to config/eduportal.yaml)

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload and config_path is None:
        return _cached_config

    path = config_path or CONFIG_FILE
    data = _get_defaults()

    if path.exists():
        logger.debug("config.loading", source=str(path))
        file_data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        data = _merge(data, file_data)
    else:
        logger.info("config.using_defaults")

    _cached_config = _parse_config(data)
    return _cached_config


def get_provider_config(provider: str) -> ProviderConfig | None:
    """Get configuration for a specific provider.

    Args:
        provider: Provider name (e.g., "gemini", "openai")

    Returns:
        ProviderConfig or None if provider not found.
    """
    config = load_app_config()
    return config.providers.get(provider)


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
