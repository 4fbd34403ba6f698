"""
Configuration management for topic-harvest.

Uses Pydantic for validation and pydantic-settings for environment variable support.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class HarvesterConfig(BaseSettings):
    """Worker pool configuration."""

    model_config = SettingsConfigDict(env_prefix="HARVESTER_")

    max_workers: int = Field(default=5, ge=1, le=32, description="Maximum concurrent page workers")
    sort_key_multiplier: int = Field(
        default=1000,
        ge=1,
        description="Multiplier K in sort_key = page * K + position (must exceed items per page)",
    )
    yield_seconds: float = Field(
        default=0.0, ge=0.0, le=5.0, description="Pause after each page before claiming the next"
    )
    mode: str = Field(default="corpus", description="Harvest scope: corpus or author")

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: str) -> str:
        """Validate harvest mode."""
        v = v.lower().strip()
        valid_modes = ["corpus", "author"]
        if v not in valid_modes:
            raise ValueError(f"Invalid harvest mode: {v!r}. Must be one of {valid_modes}")
        return v


class FetcherConfig(BaseSettings):
    """Remote document fetcher configuration."""

    model_config = SettingsConfigDict(env_prefix="FETCHER_")

    timeout_seconds: int = Field(default=30, ge=1, le=300, description="Request timeout")
    user_agent: str = Field(
        default="Topic-Harvest/0.1.0 (+https://github.com/topic-harvest)",
        description="User-Agent header",
    )
    follow_redirects: bool = Field(default=True)
    max_redirects: int = Field(default=5, ge=0, le=20)
    max_content_length: int = Field(
        default=5_000_000,
        ge=10_000,
        le=50_000_000,
        description="Maximum document size in bytes",
    )


class ExtractorConfig(BaseSettings):
    """Item extraction configuration."""

    model_config = SettingsConfigDict(env_prefix="EXTRACTOR_")

    item_selector: str = Field(default="article.cPost", description="CSS selector for one item")
    quote_data_selector: str = Field(default="[data-quotedata]")
    profile_link_selector: str = Field(default=".cAuthorPane_author a[href*='/profile/']")
    author_pane_selector: str = Field(default=".cAuthorPane_author")
    item_id_selector: str = Field(default="[data-commentid]")
    quote_selector: str = Field(
        default="blockquote", description="Nested content excluded from searchable text"
    )
    placeholder_name: str = Field(default="Unknown", description="Display name when author is missing")


class LocatorConfig(BaseSettings):
    """Page location configuration."""

    model_config = SettingsConfigDict(env_prefix="LOCATOR_")

    base_pattern: str = Field(
        default=r"(.*?/topic/\d+)", description="Regex capturing the collection base path"
    )
    pagination_selector: str = Field(default=".ipsPagination[data-pages]")
    active_page_selector: str = Field(default=".ipsPagination_active a[data-page]")
    variant_param: str = Field(default="tab", description="Query parameter naming the view variant")


class ViewConfig(BaseSettings):
    """Paginated view configuration."""

    model_config = SettingsConfigDict(env_prefix="VIEW_")

    per_page: int = Field(default=20, ge=1, le=500, description="Items per view page")
    window_radius: int = Field(default=2, ge=0, le=10, description="Neighbours shown around current page")


class ContinuationConfig(BaseSettings):
    """Cross-navigation filter handoff configuration."""

    model_config = SettingsConfigDict(env_prefix="CONTINUATION_")

    enabled: bool = Field(default=True, description="Redirect to page 1 before harvesting")
    ttl_seconds: int = Field(default=120, ge=1, le=86_400, description="Token time-to-live")
    backend: str = Field(default="memory", description="Token storage: memory or sqlite")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate storage backend."""
        v = v.lower().strip()
        valid_backends = ["memory", "sqlite"]
        if v not in valid_backends:
            raise ValueError(f"Invalid continuation backend: {v!r}. Must be one of {valid_backends}")
        return v


class DatabaseConfig(BaseSettings):
    """Database configuration for the continuation token table."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    path: str = Field(default="data/topic_harvest.db", description="Database file path or sqlite URL")
    echo: bool = Field(default=False, description="Echo SQL statements")


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        description="Log format"
    )

    # File logging
    file_enabled: bool = Field(default=True, description="Enable file logging")
    file_path: str = Field(default="logs/topic_harvest.log", description="Log file path")
    rotation: str = Field(default="100 MB", description="Log rotation size")
    retention: str = Field(default="30 days", description="Log retention period")

    # Console logging
    console_enabled: bool = Field(default=True, description="Enable console logging")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v


class WebConfig(BaseSettings):
    """Web API configuration."""

    model_config = SettingsConfigDict(env_prefix="WEB_")

    host: str = Field(default="127.0.0.1", description="Web server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Web server port")
    debug: bool = Field(default=False, description="Debug mode")
    secret_key: str = Field(default="dev-secret-key", description="Secret key for sessions")
    session_idle_seconds: int = Field(
        default=1800, ge=1, description="Close harvest sessions idle for longer than this"
    )


_NESTED_CONFIGS = {
    "harvester": HarvesterConfig,
    "fetcher": FetcherConfig,
    "extractor": ExtractorConfig,
    "locator": LocatorConfig,
    "view": ViewConfig,
    "continuation": ContinuationConfig,
    "database": DatabaseConfig,
    "logging": LoggingConfig,
    "web": WebConfig,
}


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="HARVEST_",
        case_sensitive=False,
    )

    # Application
    version: str = Field(default="0.1.0", description="Application version")
    app_name: str = Field(default="TopicHarvest", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    # Sub-configurations
    harvester: HarvesterConfig = Field(default_factory=HarvesterConfig)
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    extractor: ExtractorConfig = Field(default_factory=ExtractorConfig)
    locator: LocatorConfig = Field(default_factory=LocatorConfig)
    view: ViewConfig = Field(default_factory=ViewConfig)
    continuation: ContinuationConfig = Field(default_factory=ContinuationConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    web: WebConfig = Field(default_factory=WebConfig)


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def load_config_from_yaml(yaml_path: str) -> Config:
    """Load configuration from a YAML file.

    Nested sections are built through their own settings classes, so
    environment variables still fill in anything the file leaves out.

    Args:
        yaml_path: Path to the YAML configuration file.

    Returns:
        Config instance loaded from the file.
    """
    import yaml

    yaml_file = Path(yaml_path)
    if not yaml_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

    with yaml_file.open("r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f) or {}

    main_config = {}
    for key, value in config_dict.items():
        if key not in _NESTED_CONFIGS:
            main_config[key] = value

    for key, config_class in _NESTED_CONFIGS.items():
        main_config[key] = config_class(**(config_dict.get(key) or {}))

    return Config(**main_config)


def reload_config() -> Config:
    """Reload configuration from environment and YAML files."""
    global _config
    _config = None

    config_yaml = Path("config/config.yaml")
    if config_yaml.exists():
        _config = load_config_from_yaml(str(config_yaml))
    else:
        _config = Config()

    return _config
