#!/usr/bin/env python3
"""
Centralized Configuration Manager

Provides a single source of truth for all application configuration,
including environment variables, defaults, and validation.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional, Dict

import pytz

from core.env_loader import load_env_file

logger = logging.getLogger(__name__)

VALID_FAILURE_POLICIES = ('fail_open', 'fail_closed')
VALID_STORAGE_BACKENDS = ('supabase', 'memory')


@dataclass
class DatabaseConfig:
    """Storage backend configuration."""
    backend: str = "supabase"
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    supabase_service_key: Optional[str] = None

    @property
    def supabase_key(self) -> Optional[str]:
        """Service key preferred, anon key as fallback."""
        return self.supabase_service_key or self.supabase_anon_key


@dataclass
class IntegrationConfig:
    """External integration configuration."""
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    openai_max_tokens: int = 4000
    openai_temperature: float = 0.1


@dataclass
class ApplicationConfig:
    """Core application configuration."""
    # Time handling
    timezone: str = "America/New_York"
    default_window_months: int = 3

    # Extraction limits
    max_items_per_feed: int = 100
    min_title_length: int = 5
    max_title_length: int = 500

    # Classification
    min_relevance_score: int = 6
    fallback_relevance_score: int = 7
    fallback_event_offset_days: int = 30
    gatekeeper_failure_policy: str = "fail_open"

    # Ingestion batching
    ingest_batch_size: int = 50
    ingest_batch_delay_seconds: float = 0.1

    # Brief fan-out
    brief_write_workers: int = 1
    brief_queue_size: int = 100
    brief_write_delay_seconds: float = 0.05

    # Logging
    log_level: str = "INFO"
    verbose_logging: bool = False


@dataclass
class Config:
    """Master configuration container."""
    database: DatabaseConfig
    integrations: IntegrationConfig
    app: ApplicationConfig

    def has_openai(self) -> bool:
        """Check if OpenAI integration is available."""
        return bool(self.integrations.openai_api_key)

    def has_supabase(self) -> bool:
        """Check if Supabase storage is configured."""
        return bool(self.database.supabase_url and self.database.supabase_key)

    def get_timezone(self):
        """Resolve the configured timezone."""
        return pytz.timezone(self.app.timezone)


class ConfigManager:
    """Manages application configuration with validation and environment loading."""

    def __init__(self, env_file_path: str = ".env"):
        """
        Initialize configuration manager.

        Args:
            env_file_path: Path to .env file relative to project root
        """
        self._config: Optional[Config] = None
        self._env_file_path = env_file_path
        load_env_file(self._env_file_path)

    def get_config(self, force_reload: bool = False) -> Config:
        """
        Get application configuration.

        Args:
            force_reload: Force reloading configuration from environment

        Returns:
            Complete configuration object
        """
        if self._config is None or force_reload:
            self._config = self._build_config()
        return self._config

    def _build_config(self) -> Config:
        """Build configuration from environment variables."""

        database_config = DatabaseConfig(
            backend=os.getenv('STORAGE_BACKEND', 'supabase').lower(),
            supabase_url=os.getenv('SUPABASE_URL'),
            supabase_anon_key=os.getenv('SUPABASE_ANON_KEY'),
            supabase_service_key=os.getenv('SUPABASE_SERVICE_KEY')
        )

        integration_config = IntegrationConfig(
            openai_api_key=os.getenv('OPENAI_API_KEY'),
            openai_model=os.getenv('OPENAI_MODEL', 'gpt-4o'),
            openai_max_tokens=int(os.getenv('OPENAI_MAX_TOKENS', '4000')),
            openai_temperature=float(os.getenv('OPENAI_TEMPERATURE', '0.1'))
        )

        app_config = ApplicationConfig(
            timezone=os.getenv('EVENT_TIMEZONE', 'America/New_York'),
            default_window_months=int(os.getenv('DEFAULT_WINDOW_MONTHS', '3')),
            max_items_per_feed=int(os.getenv('MAX_ITEMS_PER_FEED', '100')),
            min_title_length=int(os.getenv('MIN_TITLE_LENGTH', '5')),
            max_title_length=int(os.getenv('MAX_TITLE_LENGTH', '500')),
            min_relevance_score=int(os.getenv('MIN_RELEVANCE_SCORE', '6')),
            fallback_relevance_score=int(os.getenv('FALLBACK_RELEVANCE_SCORE', '7')),
            fallback_event_offset_days=int(os.getenv('FALLBACK_EVENT_OFFSET_DAYS', '30')),
            gatekeeper_failure_policy=os.getenv('GATEKEEPER_FAILURE_POLICY', 'fail_open').lower(),
            ingest_batch_size=int(os.getenv('INGEST_BATCH_SIZE', '50')),
            ingest_batch_delay_seconds=float(os.getenv('INGEST_BATCH_DELAY_SECONDS', '0.1')),
            brief_write_workers=int(os.getenv('BRIEF_WRITE_WORKERS', '1')),
            brief_queue_size=int(os.getenv('BRIEF_QUEUE_SIZE', '100')),
            brief_write_delay_seconds=float(os.getenv('BRIEF_WRITE_DELAY_SECONDS', '0.05')),
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
            verbose_logging=os.getenv('VERBOSE_LOGGING', 'false').lower() == 'true'
        )

        config = Config(
            database=database_config,
            integrations=integration_config,
            app=app_config
        )

        self._validate_config(config)
        return config

    def _validate_config(self, config: Config) -> None:
        """Validate configuration values."""
        errors = []

        if config.database.backend not in VALID_STORAGE_BACKENDS:
            errors.append(f"STORAGE_BACKEND must be one of: {', '.join(VALID_STORAGE_BACKENDS)}")

        if config.database.backend == 'supabase':
            if not config.database.supabase_url:
                errors.append("SUPABASE_URL is required for the supabase backend")
            elif not config.database.supabase_url.startswith('https://'):
                errors.append("SUPABASE_URL must start with https://")
            if not config.database.supabase_key:
                errors.append("SUPABASE_SERVICE_KEY or SUPABASE_ANON_KEY is required for the supabase backend")

        if config.app.timezone not in pytz.all_timezones_set:
            errors.append(f"EVENT_TIMEZONE '{config.app.timezone}' is not a known timezone")

        if config.app.default_window_months < 1:
            errors.append("DEFAULT_WINDOW_MONTHS must be at least 1")

        if config.app.max_items_per_feed < 1:
            errors.append("MAX_ITEMS_PER_FEED must be at least 1")

        if not 0 < config.app.min_title_length < config.app.max_title_length:
            errors.append("MIN_TITLE_LENGTH must be positive and below MAX_TITLE_LENGTH")

        if not 1 <= config.app.min_relevance_score <= 10:
            errors.append("MIN_RELEVANCE_SCORE must be between 1 and 10")

        if not 1 <= config.app.fallback_relevance_score <= 10:
            errors.append("FALLBACK_RELEVANCE_SCORE must be between 1 and 10")

        if config.app.gatekeeper_failure_policy not in VALID_FAILURE_POLICIES:
            errors.append(f"GATEKEEPER_FAILURE_POLICY must be one of: {', '.join(VALID_FAILURE_POLICIES)}")

        if config.app.ingest_batch_size < 1:
            errors.append("INGEST_BATCH_SIZE must be at least 1")

        if config.app.brief_write_workers < 1 or config.app.brief_write_workers > 20:
            errors.append("BRIEF_WRITE_WORKERS must be between 1 and 20")

        if config.app.brief_queue_size < 1:
            errors.append("BRIEF_QUEUE_SIZE must be at least 1")

        if config.app.ingest_batch_delay_seconds < 0 or config.app.brief_write_delay_seconds < 0:
            errors.append("Delays must not be negative")

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if config.app.log_level not in valid_log_levels:
            errors.append(f"LOG_LEVEL must be one of: {', '.join(valid_log_levels)}")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

        logger.info("Configuration validation passed")

    def update_logging(self) -> None:
        """Configure logging based on current configuration."""
        config = self.get_config()

        numeric_level = getattr(logging, config.app.log_level)
        logging.getLogger().setLevel(numeric_level)

        if config.app.verbose_logging:
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
        else:
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

        for handler in logging.getLogger().handlers:
            handler.setLevel(numeric_level)
            formatter = logging.Formatter(format_str, datefmt='%Y-%m-%d %H:%M:%S')
            handler.setFormatter(formatter)

    def get_integration_status(self) -> Dict[str, bool]:
        """Get status of all integrations."""
        config = self.get_config()
        return {
            'openai': config.has_openai(),
            'supabase': config.has_supabase(),
            'memory_storage': config.database.backend == 'memory'
        }


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_config() -> Config:
    """Get application configuration."""
    return get_config_manager().get_config()

