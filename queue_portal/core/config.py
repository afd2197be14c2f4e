"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports three modes:
    - DEVELOPMENT: Static lease table (no dnsmasq needed)
    - STAGING: Real dnsmasq lease file, relaxed expectations
    - PRODUCTION: Real dnsmasq lease file on the access point

The ENV_MODE variable controls which lease table is instantiated, enabling
local testing on a laptop and deployment on the portal box with the same code.

Usage:
    from queue_portal.core.config import get_settings

    settings = get_settings()
    if settings.is_development:
        # Static leases
    else:
        # dnsmasq leases

Version: 1.0.0
"""

import logging
import sys
from enum import Enum
from typing import Optional
from functools import lru_cache
from datetime import tzinfo
from zoneinfo import ZoneInfo

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing with a static lease table
        PRODUCTION: Live portal reading the dnsmasq lease file
        STAGING: Pre-production box, also reading dnsmasq leases
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # Database
        database_url: SQLAlchemy async connection string

        # Device identity
        leases_file: dnsmasq lease file path
        static_leases: address=hwid pairs for development
        real_ip_header: Header carrying the client address from the proxy

        # Ordering
        order_lock_file: Cross-process lock guarding order creation
        enforce_status_transitions: Reject backwards status changes
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Restaurant Queue Portal",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=5000,
        description="API server port"
    )
    restaurant_name: str = Field(
        default="Restaurant",
        description="Restaurant display name"
    )

    # ==========================================================================
    # DATABASE
    # ==========================================================================

    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/orders.db",
        description="SQLAlchemy async database URL"
    )
    database_echo: bool = Field(
        default=False,
        description="Log every SQL statement"
    )
    seed_menu: bool = Field(
        default=True,
        description="Insert the starter menu when the catalog is empty"
    )

    # ==========================================================================
    # DEVICE IDENTITY
    # ==========================================================================

    leases_file: str = Field(
        default="/var/lib/misc/dnsmasq.leases",
        description="dnsmasq DHCP lease file"
    )
    static_leases: str = Field(
        default="",
        description="Comma-separated address=hwid pairs (development mode)"
    )
    real_ip_header: str = Field(
        default="X-Real-IP",
        description=(
            "Header the reverse proxy overwrites with the client address; "
            "empty to use the socket peer"
        )
    )

    # ==========================================================================
    # ORDERING
    # ==========================================================================

    order_lock_file: str = Field(
        default="data/orders.lock",
        description="Lock file serializing order writes across workers"
    )
    order_lock_timeout: float = Field(
        default=10.0,
        description="Seconds to wait for the order lock"
    )
    timezone: str = Field(
        default="",
        description="IANA time zone for day boundaries (empty = server local)"
    )
    enforce_status_transitions: bool = Field(
        default=False,
        description="Only allow forward status progression"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        if v:
            try:
                ZoneInfo(v)
            except Exception:
                raise ValueError(f"Unknown time zone: {v}")
        return v

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env_mode == EnvironmentMode.PRODUCTION

    @property
    def is_staging(self) -> bool:
        """Check if running in staging mode."""
        return self.env_mode == EnvironmentMode.STAGING

    @property
    def static_leases_map(self) -> dict[str, str]:
        """Get static leases as an address -> hwid mapping."""
        leases = {}
        for pair in self.static_leases.split(","):
            if "=" not in pair:
                continue
            address, hwid = pair.split("=", 1)
            leases[address.strip()] = hwid.strip()
        return leases

    @property
    def tz(self) -> Optional[tzinfo]:
        """Time zone for day boundaries, None for server local time."""
        return ZoneInfo(self.timezone) if self.timezone else None


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once.

    Returns:
        Settings: Configured application settings
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured root logger
    """
    settings = get_settings()

    # Set level based on debug mode
    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("filelock").setLevel(logging.WARNING)

    return logging.getLogger("queue_portal")
