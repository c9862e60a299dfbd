"""
Configuration Management Module

This module handles loading, validating, and providing access to application configuration
from environment variables (.env file).

Uses Pydantic Settings for automatic validation and type conversion.

Key Features:
- Loads configuration from .env file
- Validates all required settings
- Provides type-safe access to configuration values
- Converts comma-separated strings to lists (CORS origins)
- Handles optional settings with sensible defaults

Usage:
    from core.config import settings

    # Access configuration values
    print(settings.price_endpoint)
    print(settings.refresh_interval_seconds)  # 60.0
"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """
    Application Settings

    This class defines all configuration parameters for the application.
    Values are automatically loaded from environment variables or .env file.

    Attributes:
        price_endpoint: URL of the JSON price list (array of {currency, date, price})
        token_icon_base_url: Base URL that token icons are resolved against
        refresh_interval_ms: Polling interval of the price feed in milliseconds
        auto_refresh: Whether the feed polls on its own after the initial fetch
        request_timeout: Timeout for HTTP requests in seconds
        request_max_attempts: Attempts per fetch for rate-limited or timed-out requests
        swap_submit_delay_ms: Simulated swap execution delay in milliseconds
        default_amount_cap: Upper bound for the amount pre-filled when a token is picked
        event_queue_size: Per-subscriber queue size on the event bus
        app_host: Host address for FastAPI server
        app_port: Port number for FastAPI server
        environment: Current environment (development, production)
        debug: Enable debug mode with verbose logging
        log_level: Logging level name
        cors_origins: Comma-separated list of allowed CORS origins
    """

    # ============================================
    # Price Feed Configuration
    # ============================================

    price_endpoint: str = Field(
        default="https://interview.switcheo.com/prices.json",
        description="Remote price list endpoint (JSON array)"
    )

    token_icon_base_url: str = Field(
        default="https://raw.githubusercontent.com/Switcheo/token-icons/main/tokens",
        description="Base URL for token SVG icons"
    )

    refresh_interval_ms: int = Field(
        default=60_000,
        description="Price feed polling interval in milliseconds"
    )

    auto_refresh: bool = Field(
        default=True,
        description="Poll the price feed automatically after the initial fetch"
    )

    # ============================================
    # HTTP Client Configuration
    # ============================================

    request_timeout: int = Field(
        default=10,
        description="HTTP request timeout in seconds"
    )

    request_max_attempts: int = Field(
        default=3,
        description="Maximum attempts per fetch when rate limited or timed out"
    )

    # ============================================
    # Swap Configuration
    # ============================================

    swap_submit_delay_ms: int = Field(
        default=1300,
        description="Delay of the simulated swap execution in milliseconds"
    )

    default_amount_cap: float = Field(
        default=100.0,
        description="Maximum amount pre-filled when a source token is selected"
    )

    event_queue_size: int = Field(
        default=1000,
        description="Maximum queued events per event bus subscriber"
    )

    # ============================================
    # Application Configuration
    # ============================================

    app_host: str = Field(
        default="0.0.0.0",
        description="FastAPI server host address"
    )

    app_port: int = Field(
        default=8000,
        description="FastAPI server port"
    )

    environment: str = Field(
        default="development",
        description="Application environment (development, production)"
    )

    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # ============================================
    # CORS Configuration
    # ============================================

    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    # ============================================
    # Pydantic Settings Configuration
    # ============================================

    model_config = SettingsConfigDict(
        # Look for .env file in the project root
        env_file=".env",
        # Ignore extra fields in .env that aren't defined here
        extra="ignore",
        # Case-insensitive environment variable matching
        case_sensitive=False
    )

    # ============================================
    # Custom Properties
    # ============================================

    @property
    def refresh_interval_seconds(self) -> float:
        """
        Polling interval converted to seconds (asyncio sleeps in seconds).

        Example:
            >>> settings.refresh_interval_seconds
            60.0
        """
        return self.refresh_interval_ms / 1000.0

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Convert comma-separated CORS origins string to a list.

        Returns:
            List of allowed origin URLs (e.g., ["http://localhost:3000", "https://myapp.com"])

        Example:
            >>> settings.cors_origins_list
            ['http://localhost:3000', 'http://localhost:5173']
        """
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# ============================================
# Global Settings Instance
# ============================================

# Single instance imported throughout the application
settings = Settings()


# ============================================
# Configuration Validation
# ============================================

def validate_configuration() -> None:
    """
    Validate critical configuration settings on application startup.

    Raises:
        ValueError: If required configuration is missing or invalid

    This function is called during application initialization to ensure
    the configuration is valid before the price feed starts polling.
    """
    # Import logger here to avoid circular import
    # (logging.py imports config.py, so we can't import at module level)
    from core.logging import logger

    if not settings.price_endpoint.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid PRICE_ENDPOINT: '{settings.price_endpoint}'. "
            f"Must be an http(s) URL"
        )

    if settings.refresh_interval_ms <= 0:
        raise ValueError(
            f"Invalid REFRESH_INTERVAL_MS: {settings.refresh_interval_ms}. Must be positive"
        )

    if settings.request_timeout <= 0:
        raise ValueError(f"Invalid REQUEST_TIMEOUT: {settings.request_timeout}. Must be positive")

    if settings.request_max_attempts < 1:
        raise ValueError(
            f"Invalid REQUEST_MAX_ATTEMPTS: {settings.request_max_attempts}. Must be at least 1"
        )

    if settings.swap_submit_delay_ms < 0:
        raise ValueError(
            f"Invalid SWAP_SUBMIT_DELAY_MS: {settings.swap_submit_delay_ms}. Cannot be negative"
        )

    # Validate port number
    if not (1 <= settings.app_port <= 65535):
        raise ValueError(f"Invalid port number: {settings.app_port}. Must be between 1 and 65535")

    # Validate log level
    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if settings.log_level.upper() not in valid_log_levels:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{settings.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    # Log successful validation
    logger.info("Configuration validated successfully")
    logger.info(f"Price endpoint: {settings.price_endpoint}")
    logger.info(
        f"Refresh: every {settings.refresh_interval_seconds:g}s "
        f"({'auto' if settings.auto_refresh else 'manual only'})"
    )
    logger.info(f"Server: {settings.app_host}:{settings.app_port}")
    logger.info(f"Log level: {settings.log_level.upper()}")
