"""Configuration management for the Peloton cycling news pipeline.

This module provides centralized configuration for all pipeline components.
Settings are loaded from environment variables with sensible defaults; the
editorial choices (feed, excluded topics, chunk size, Notion columns) are
fixed constants and cannot be changed per run.

Environment Variables:
    Required:
        CEREBRAS_API_KEY: Cerebras API key for the narrative model
        NOTION_API_KEY: Notion integration token
        NOTION_DATABASE_ID: Target Notion database

    Models:
        CEREBRAS_MODEL: Primary model (default: llama-3.3-70b)
        CEREBRAS_MODEL_FALLBACK: Comma-separated fallback models, tried in order
        CEREBRAS_BASE_URL: OpenAI-compatible endpoint

    Pipeline Behavior:
        FEED_URL: RSS feed to summarize (default: NOS wielrennen)
        FEED_TIMEOUT_SECONDS: Feed download timeout
        NOTION_TIMEOUT_SECONDS: Notion request timeout
        DAYS_BACK: Default look-back window for the CLI

    Logging:
        LOG_DIR: Directory for log files
        LOG_LEVEL: Logging verbosity (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_BACKUP_COUNT: Number of rotated log files to keep
        LOG_MAX_BYTES: Max log file size in bytes (0 = time-based rotation)
        LOG_FORMAT: Log format ('text' or 'json' for structured logging)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path


def _env(key: str, default: str = "") -> str:
    """Get string environment variable with optional default."""
    return os.environ.get(key, default)


def _env_int(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name
        default: Value to return if not set

    Returns:
        Parsed integer or default value

    Raises:
        ValueError: If value is set but cannot be parsed as integer
    """
    val = os.environ.get(key)
    if not val:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"Invalid integer value for {key}: '{val}'")


def _env_list(key: str) -> list[str]:
    """Get comma-separated environment variable as an ordered list.

    Empty items are dropped, so 'a,,b ' yields ['a', 'b'].
    """
    return [part.strip() for part in os.environ.get(key, "").split(",") if part.strip()]


DEFAULT_FEED_URL = "https://feeds.nos.nl/nossportwielrennen"

# Track cycling is covered by a different report, so these topics are dropped
IGNORED_KEYWORDS = (
    "baanwielrennen",
    "baan",
    "velodrome",
    "teamsprint",
    "keirin",
    "omnium",
    "afvalkoers",
)

# Notion caps a single rich text element at 2000 characters
CHUNK_SIZE = 2000

# Notion database columns the pipeline writes to
NOTION_TITLE_PROPERTY = "Nieuws"
NOTION_DATE_PROPERTY = "Datum"
NOTION_BODY_PROPERTY = "Omschrijving"

NO_NEWS_CONTENT = "Geen nieuws gevonden."
ERROR_CONTENT = "Er is een fout opgetreden."


@dataclass
class Config:
    """Application configuration loaded from environment variables.

    Example:
        >>> config = Config.load()
        >>> if error := config.validate():
        ...     print(f"Config error: {error}")
    """

    # === Model API ===
    cerebras_api_key: str = ""  # CEREBRAS_API_KEY
    cerebras_base_url: str = "https://api.cerebras.ai/v1"  # CEREBRAS_BASE_URL
    primary_model: str = "llama-3.3-70b"  # CEREBRAS_MODEL
    fallback_models: list[str] = field(default_factory=list)  # CEREBRAS_MODEL_FALLBACK

    # === Notion ===
    notion_api_key: str = ""  # NOTION_API_KEY
    notion_database_id: str = ""  # NOTION_DATABASE_ID
    notion_timeout_seconds: int = 30  # NOTION_TIMEOUT_SECONDS

    # === Feed ===
    feed_url: str = DEFAULT_FEED_URL  # FEED_URL
    feed_timeout_seconds: int = 30  # FEED_TIMEOUT_SECONDS

    # === Pipeline Behavior ===
    days_back: int = 6  # DAYS_BACK - Weekly report window

    # === Logging Configuration ===
    log_dir: Path = field(default_factory=lambda: Path("log"))  # LOG_DIR
    log_level: str = "INFO"  # LOG_LEVEL
    log_backup_count: int = 30  # LOG_BACKUP_COUNT
    log_max_bytes: int = 0  # LOG_MAX_BYTES - 0 = rotate at midnight
    log_format: str = "text"  # LOG_FORMAT - 'text' or 'json'

    @property
    def models(self) -> list[str]:
        """Model chain tried in order: primary first, then fallbacks."""
        chain = [self.primary_model]
        for model in self.fallback_models:
            if model not in chain:
                chain.append(model)
        return chain

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls(
            cerebras_api_key=_env("CEREBRAS_API_KEY"),
            cerebras_base_url=_env("CEREBRAS_BASE_URL", "https://api.cerebras.ai/v1"),
            primary_model=_env("CEREBRAS_MODEL", "llama-3.3-70b"),
            fallback_models=_env_list("CEREBRAS_MODEL_FALLBACK"),
            notion_api_key=_env("NOTION_API_KEY"),
            notion_database_id=_env("NOTION_DATABASE_ID"),
            notion_timeout_seconds=_env_int("NOTION_TIMEOUT_SECONDS", 30),
            feed_url=_env("FEED_URL", DEFAULT_FEED_URL),
            feed_timeout_seconds=_env_int("FEED_TIMEOUT_SECONDS", 30),
            days_back=_env_int("DAYS_BACK", 6),
            log_dir=Path(_env("LOG_DIR", "log")),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            log_backup_count=_env_int("LOG_BACKUP_COUNT", 30),
            log_max_bytes=_env_int("LOG_MAX_BYTES", 0),
            log_format=_env("LOG_FORMAT", "text").lower(),
        )

    def validate(self, require_secrets: bool = True) -> str | None:
        """Validate configuration for required fields and valid values.

        Args:
            require_secrets: Also check API keys and the Notion database id.
                Commands that never reach the model or Notion pass False.

        Returns:
            Error message string if invalid, None if valid.
        """
        if require_secrets:
            if not self.cerebras_api_key:
                return "CEREBRAS_API_KEY environment variable is required"
            if not self.notion_api_key:
                return "NOTION_API_KEY environment variable is required"
            if not self.notion_database_id:
                return "NOTION_DATABASE_ID environment variable is required"
        if not self.primary_model:
            return "CEREBRAS_MODEL must not be empty"
        if not self.feed_url:
            return "FEED_URL must not be empty"
        if self.days_back <= 0:
            return "DAYS_BACK must be positive"
        if self.feed_timeout_seconds <= 0:
            return "FEED_TIMEOUT_SECONDS must be positive"
        if self.notion_timeout_seconds <= 0:
            return "NOTION_TIMEOUT_SECONDS must be positive"
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            return f"Invalid LOG_LEVEL '{self.log_level}' - must be DEBUG, INFO, WARNING, ERROR, or CRITICAL"
        if self.log_format not in ("text", "json"):
            return f"Invalid LOG_FORMAT '{self.log_format}' - must be 'text' or 'json'"
        if self.log_backup_count < 0:
            return "LOG_BACKUP_COUNT must be non-negative"
        if self.log_max_bytes < 0:
            return "LOG_MAX_BYTES must be non-negative"
        return None
