"""Configuration management system using Pydantic v2 and YAML.

This module provides type-safe configuration loading with validation
for the StayScout acquisition layer.
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from src.utils.exceptions import ConfigFileNotFoundError, ConfigurationError
from src.utils.logger import get_logger

logger = get_logger(__name__)


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

DEFAULT_OPERATION_HASHES = {
    "StaysSearch": "d4d9503616dc72ab220ed8dcf17f166816dccb2593e7b4625c91c3fce3a3b3d6",
    "StaysPdpSections": "80c7889b4b0027d99ffea830f6c0d4911a6e863a957cbe1044823f0fc746bf1f",
    "StaysPdpReviewsQuery": "dec1c8061483e78373602047450322fd474e79ba9afa8d3dbbc27f504030f91d",
    "PdpAvailabilityCalendar": "8f08e03c7bd16fcad3c92a3592c19a8b559a0d0855a84028d1163d4733ed9ade",
    "GetUserProfile": "a56d8909f271740ccfef23dd6c34d098f194f4a6e7157f244814c5610b8ad76a",
}


class ScraperConfig(BaseModel):
    """Configuration for outbound HTTP and the document source."""

    base_url: str = Field(default="https://www.airbnb.com", description="Base URL of the listing site")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent header for every request")
    requests_per_second: float = Field(default=0.5, description="Outbound pacing; <= 0 disables pacing")
    request_timeout: float = Field(default=30.0, gt=0.0, description="Per-attempt HTTP timeout in seconds")
    max_retries: int = Field(default=2, ge=0, description="Retries after the first attempt on transient failures")
    base_retry_delay: float = Field(default=2.0, ge=0.0, description="Retry n waits n * base_retry_delay seconds")
    retry_on_rate_limit: bool = Field(default=False, description="Treat HTTP 429 as retryable")

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate URL scheme and strip the trailing slash."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip('/')

    @field_validator('user_agent')
    @classmethod
    def validate_user_agent(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("user_agent cannot be blank")
        return v


class CacheConfig(BaseModel):
    """Configuration for the in-memory response cache (ttl values in seconds)."""

    max_entries: int = Field(default=500, description="LRU capacity; <= 0 falls back to a safe minimum")
    search_ttl: int = Field(default=900, ge=0, description="TTL for search results")
    detail_ttl: int = Field(default=3600, ge=0, description="TTL for listing details")
    reviews_ttl: int = Field(default=3600, ge=0, description="TTL for review pages")
    calendar_ttl: int = Field(default=1800, ge=0, description="TTL for price calendars")
    host_profile_ttl: int = Field(default=3600, ge=0, description="TTL for host profiles")


class StructuredConfig(BaseModel):
    """Configuration for the structured (persisted GraphQL query) source."""

    enabled: bool = Field(default=True, description="Attempt the structured source before the document source")
    credential_ttl: int = Field(default=86400, ge=0, description="Seconds an access token is reused")
    requests_per_second: Optional[float] = Field(
        default=None, description="Structured pacing; None inherits scraper.requests_per_second"
    )
    locale: str = Field(default="en", description="Locale query parameter")
    currency: str = Field(default="USD", description="Currency query parameter")
    operation_hashes: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_OPERATION_HASHES),
        description="Persisted query name -> sha256 shape identifier",
    )

    @field_validator('operation_hashes')
    @classmethod
    def merge_operation_hashes(cls, v: dict[str, str]) -> dict[str, str]:
        """Overlay user-provided hashes onto the known defaults."""
        merged = dict(DEFAULT_OPERATION_HASHES)
        merged.update(v)
        return merged


class AppConfig(BaseModel):
    """Root configuration model containing all sub-configurations."""

    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    structured: StructuredConfig = Field(default_factory=StructuredConfig)
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Choose from: {valid_levels}")
        return v_upper

    @property
    def structured_requests_per_second(self) -> float:
        if self.structured.requests_per_second is None:
            return self.scraper.requests_per_second
        return self.structured.requests_per_second


# Singleton pattern for configuration
_config: Optional[AppConfig] = None


def load_config(config_path: Optional[Path | str] = None) -> AppConfig:
    """Load and validate configuration from YAML file.

    Resolution order: explicit ``config_path``, the STAYSCOUT_CONFIG
    environment variable, then config/config.yaml in the project root.
    Values present in the file override the defaults; everything else
    keeps its default.

    Args:
        config_path: Path to configuration file

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigFileNotFoundError: If an explicitly requested file doesn't exist
        ConfigurationError: If the YAML is malformed or a value is invalid
    """
    explicit = config_path is not None
    if config_path is None:
        env_config_path = os.environ.get('STAYSCOUT_CONFIG')
        if env_config_path:
            config_path = Path(env_config_path)
            explicit = True
        else:
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / "config" / "config.yaml"
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        if explicit:
            raise ConfigFileNotFoundError(
                f"Configuration file not found: {config_path}",
                path=str(config_path),
            )
        logger.info(f"No config file at {config_path}, using defaults")
        return AppConfig()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Malformed YAML in {config_path}: {e}",
            context={"path": str(config_path)},
        ) from e

    if config_dict is None:
        return AppConfig()
    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            f"Top level of {config_path} must be a mapping",
            context={"path": str(config_path)},
        )

    try:
        config = AppConfig.model_validate(config_dict)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in {config_path}: {e}",
            context={"path": str(config_path), "errors": e.error_count()},
        ) from e

    logger.debug(f"Configuration loaded from {config_path}")
    return config


def get_config(config_path: Optional[Path | str] = None, reload: bool = False) -> AppConfig:
    """Get configuration instance (singleton pattern).

    Args:
        config_path: Path to configuration file (only used on first call or if reload=True)
        reload: Force reload of configuration

    Returns:
        Cached or newly loaded AppConfig instance
    """
    global _config

    if _config is None or reload:
        _config = load_config(config_path)

    return _config


def reset_config() -> None:
    """Reset cached configuration (useful for testing)."""
    global _config
    _config = None
