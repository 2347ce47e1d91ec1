"""
Bowling Chat API - Environment Configuration
============================================

Typed settings with safe defaults, read once at process start.

Usage:
    from config.env import settings, validate_startup

    # Access settings
    if settings.chat.show_method:
        ...

    # Validate on startup (fails fast if critical envs missing)
    validate_startup()

The chat pipeline never reads os.environ mid-request: the orchestrator is
constructed with a Settings instance and only consults that.

Security:
    - Debug output defaults to DISABLED
    - Critical data/engine credentials required in non-dev environments
    - No secrets are logged or exposed
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum

logger = logging.getLogger(__name__)


# =============================================================================
# ENVIRONMENT DETECTION
# =============================================================================

class Environment(Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


def get_environment() -> Environment:
    """Detect current environment from ENVIRONMENT env var."""
    env_str = os.getenv("ENVIRONMENT", "development").lower()
    try:
        return Environment(env_str)
    except ValueError:
        logger.warning(f"Unknown ENVIRONMENT '{env_str}', defaulting to development")
        return Environment.DEVELOPMENT


# =============================================================================
# ENV HELPERS
# =============================================================================

def _bool_env(key: str, default: bool = False) -> bool:
    """Parse boolean environment variable. Defaults to False (deny-by-default)."""
    value = os.getenv(key, "").lower()
    if value in ("true", "1", "yes", "on"):
        return True
    elif value in ("false", "0", "no", "off"):
        return False
    return default


def _int_env(key: str, default: int) -> int:
    """Parse integer environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {key}: '{value}', using default {default}")
        return default


def _float_env(key: str, default: float) -> float:
    """Parse float environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid number for {key}: '{value}', using default {default}")
        return default


def _str_env(key: str, default: str = "") -> str:
    """Get string environment variable."""
    return os.getenv(key, default)


# =============================================================================
# CHAT MODE
# =============================================================================

class ChatMode(Enum):
    """Tier routing policy."""
    SQL = "sql"
    CONTEXT = "context"
    MIX = "mix"


def parse_chat_mode(raw: Optional[str]) -> ChatMode:
    """Parse CHAT_MODE. Anything unrecognised falls back to mix."""
    value = (raw or "").strip().lower()
    try:
        return ChatMode(value)
    except ValueError:
        if value:
            logger.warning(f"Unknown CHAT_MODE '{value}', defaulting to mix")
        return ChatMode.MIX


# =============================================================================
# SETTINGS DATACLASSES
# =============================================================================

@dataclass
class DataSettings:
    """Supabase data plane configuration."""
    supabase_url: str = field(default_factory=lambda: _str_env("SUPABASE_URL"))
    supabase_service_key: str = field(
        default_factory=lambda: _str_env("SUPABASE_SERVICE_KEY") or _str_env("SUPABASE_SERVICE_ROLE_KEY")
    )
    # Anon key + the caller's bearer token gives an RLS-scoped client for SQL execution
    supabase_anon_key: str = field(default_factory=lambda: _str_env("SUPABASE_ANON_KEY"))
    supabase_jwt_secret: str = field(default_factory=lambda: _str_env("SUPABASE_JWT_SECRET"))
    postgrest_timeout_seconds: int = field(default_factory=lambda: _int_env("SUPABASE_TIMEOUT_SECONDS", 5))

    @property
    def is_configured(self) -> bool:
        """Check if critical data settings are configured."""
        return bool(self.supabase_url and self.supabase_service_key)


@dataclass
class AISettings:
    """Reasoning engine configuration."""
    openai_api_key: str = field(default_factory=lambda: _str_env("OPENAI_API_KEY"))
    model: str = field(default_factory=lambda: _str_env("CHAT_MODEL", "gpt-4o-mini"))
    # Forwarded opaquely to the engine (minimal / low / medium / high)
    reasoning_effort: str = field(default_factory=lambda: _str_env("CHAT_REASONING_EFFORT"))
    temperature: float = field(default_factory=lambda: _float_env("CHAT_TEMPERATURE", 0.2))

    @property
    def openai_configured(self) -> bool:
        """Check if OpenAI is configured."""
        return bool(self.openai_api_key)


@dataclass
class ChatSettings:
    """Chat pipeline behaviour flags."""
    mode: ChatMode = field(default_factory=lambda: parse_chat_mode(os.getenv("CHAT_MODE", "mix")))
    show_method: bool = field(default_factory=lambda: _bool_env("CHAT_SHOW_METHOD", False))
    show_timing: bool = field(default_factory=lambda: _bool_env("CHAT_SHOW_TIMING", False))
    debug: bool = field(default_factory=lambda: _bool_env("CHAT_DEBUG", False))
    engine_timeout_seconds: float = field(default_factory=lambda: _float_env("CHAT_ENGINE_TIMEOUT_SECONDS", 20.0))
    context_game_limit: int = field(default_factory=lambda: _int_env("CHAT_CONTEXT_GAME_LIMIT", 15))
    game_load_limit: int = field(default_factory=lambda: _int_env("CHAT_GAME_LOAD_LIMIT", 100))
    sql_row_limit: int = field(default_factory=lambda: _int_env("CHAT_SQL_ROW_LIMIT", 200))
    # Legacy keyword routing: one online tier picked per question instead of the mode plan
    auto_route: bool = field(default_factory=lambda: _bool_env("CHAT_AUTO_ROUTE", False))
    # Ignored in production: answer as this user when no valid bearer token is sent
    dev_user_id: str = field(default_factory=lambda: _str_env("DEV_USER_ID"))


@dataclass
class InfraSettings:
    """Infrastructure and logging settings."""
    log_level: str = field(default_factory=lambda: _str_env("LOG_LEVEL", "INFO"))
    port: int = field(default_factory=lambda: _int_env("PORT", 8000))
    allowed_origins: List[str] = field(
        default_factory=lambda: list(dict.fromkeys([
            origin.strip()
            for origin in _str_env("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
            if origin.strip()
        ]))
    )
    chat_rate_limit: str = field(default_factory=lambda: _str_env("CHAT_RATE_LIMIT", "30/minute"))


@dataclass
class Settings:
    """Root settings object combining all configuration."""
    environment: Environment = field(default_factory=get_environment)
    data: DataSettings = field(default_factory=DataSettings)
    ai: AISettings = field(default_factory=AISettings)
    chat: ChatSettings = field(default_factory=ChatSettings)
    infra: InfraSettings = field(default_factory=InfraSettings)

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_staging(self) -> bool:
        return self.environment == Environment.STAGING

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_test(self) -> bool:
        return self.environment == Environment.TEST


# =============================================================================
# SINGLETON INSTANCE
# =============================================================================

# Global settings instance (loaded once at import)
settings = Settings()


# =============================================================================
# STARTUP VALIDATION
# =============================================================================

class ConfigurationError(Exception):
    """Raised when critical configuration is missing."""
    pass


def validate_startup(current: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Validate configuration on startup. Fails fast if critical envs missing.

    Returns:
        Dict with validation results (for logging/debugging)

    Raises:
        ConfigurationError: If critical configuration is missing in non-dev
    """
    current = current or settings
    errors: List[str] = []
    warnings: List[str] = []

    if not current.data.supabase_url:
        if current.is_production or current.is_staging:
            errors.append("SUPABASE_URL is required")
        else:
            warnings.append("SUPABASE_URL not set (OK for development)")

    if not current.data.supabase_service_key:
        if current.is_production or current.is_staging:
            errors.append("SUPABASE_SERVICE_KEY is required")
        else:
            warnings.append("SUPABASE_SERVICE_KEY not set (OK for development)")

    if not current.data.supabase_jwt_secret:
        if current.is_production or current.is_staging:
            errors.append("SUPABASE_JWT_SECRET is required")
        else:
            warnings.append("SUPABASE_JWT_SECRET not set - bearer tokens cannot be verified")

    if not current.data.supabase_anon_key:
        if current.is_production or current.is_staging:
            errors.append("SUPABASE_ANON_KEY is required")
        else:
            warnings.append("SUPABASE_ANON_KEY not set - SQL tier is skipped")

    if not current.ai.openai_configured:
        if current.is_production or current.is_staging:
            errors.append("OPENAI_API_KEY is required")
        else:
            warnings.append("OPENAI_API_KEY not set - /v1/chat will return CONFIGURATION_ERROR")

    if current.is_production and current.chat.debug:
        warnings.append("CHAT_DEBUG=true in production - raw tier errors are shown to users")

    if current.is_production and current.chat.dev_user_id:
        warnings.append("DEV_USER_ID set in production - ignored, bearer tokens are still required")

    result = {
        "environment": current.environment.value,
        "errors": errors,
        "warnings": warnings,
        "features": get_feature_summary(current),
    }

    for warning in warnings:
        logger.warning(f"[Config] {warning}")

    if errors:
        for error in errors:
            logger.error(f"[Config] CRITICAL: {error}")

        if not current.is_development and not current.is_test:
            raise ConfigurationError(f"Missing critical configuration: {', '.join(errors)}")

    return result


def get_feature_summary(current: Optional[Settings] = None) -> Dict[str, Any]:
    """Summary of enabled features (for logging)."""
    current = current or settings
    return {
        "chat_mode": current.chat.mode.value,
        "chat_show_method": current.chat.show_method,
        "chat_show_timing": current.chat.show_timing,
        "chat_debug": current.chat.debug,
        "supabase_configured": current.data.is_configured,
        "openai_configured": current.ai.openai_configured,
    }


def log_startup_config(current: Optional[Settings] = None):
    """
    Log startup configuration (redacted - no secrets).

    Call this after validate_startup() in pipeline_service.py.
    """
    current = current or settings
    summary = get_feature_summary(current)

    logger.info("=" * 60)
    logger.info("[Config] Bowling Chat API Configuration")
    logger.info("=" * 60)
    logger.info(f"[Config] Environment: {current.environment.value}")
    logger.info(f"[Config] Log Level: {current.infra.log_level}")
    logger.info(f"[Config] Port: {current.infra.port}")
    logger.info("")
    logger.info("[Config] Data:")
    logger.info(f"  SUPABASE_URL: {'configured' if current.data.supabase_url else 'NOT SET'}")
    logger.info(f"  SUPABASE_SERVICE_KEY: {'configured' if current.data.supabase_service_key else 'NOT SET'}")
    logger.info(f"  SUPABASE_ANON_KEY: {'configured' if current.data.supabase_anon_key else 'NOT SET'}")
    logger.info(f"  SUPABASE_JWT_SECRET: {'configured' if current.data.supabase_jwt_secret else 'NOT SET'}")
    logger.info("")
    logger.info("[Config] Reasoning Engine:")
    logger.info(f"  CHAT_MODEL: {current.ai.model}")
    logger.info(f"  CHAT_REASONING_EFFORT: {current.ai.reasoning_effort or 'default'}")
    logger.info(f"  CHAT_ENGINE_TIMEOUT_SECONDS: {current.chat.engine_timeout_seconds}")
    logger.info("")
    logger.info("[Config] Features:")
    for feature, value in summary.items():
        logger.info(f"  {feature}: {value}")
    logger.info("=" * 60)
