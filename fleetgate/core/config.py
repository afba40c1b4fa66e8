"""Application configuration with validation."""

from enum import Enum
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class PreferredDeviceAuth(str, Enum):
    """Whether a user's preferred device is implicitly authorized.

    FALSE -- preferred device gets no special treatment
    TRUE  -- preferred device is authorized in addition to group devices
    ONLY  -- preferred device is the only device a non-admin user may see
    """
    FALSE = "false"
    TRUE = "true"
    ONLY = "only"


class Settings(BaseSettings):
    """
    Application settings with validation.

    Loaded once at process start and frozen afterwards; the authorization
    service receives this object at construction rather than reading
    process-wide flags on every call.
    """

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./fleetgate.db",
        description="Database connection URL"
    )
    # Connection pool tuning (PostgreSQL only; ignored for SQLite).
    db_pool_size: int = Field(
        default=5,
        description="Number of persistent database connections"
    )
    db_max_overflow: int = Field(
        default=10,
        description="Extra connections allowed during traffic bursts"
    )
    db_pool_timeout: int = Field(
        default=30,
        description="Seconds to wait for a connection from the pool before raising"
    )
    db_pool_recycle: int = Field(
        default=1800,
        description="Seconds before a connection is recycled (prevents stale connections)"
    )

    # Device authorization policy
    # PREFERRED_DEVICE_AUTH: false | true | only (case-insensitive, blank = false)
    preferred_device_auth: PreferredDeviceAuth = Field(
        default=PreferredDeviceAuth.FALSE,
        description="Preferred-device authorization mode"
    )
    # Used for accounts that leave default_device_authorization unset.
    default_device_authorization: bool = Field(
        default=True,
        description="Authorize all devices for users without explicit device groups"
    )
    device_group_all_title: str = Field(
        default="All",
        description="Display name of the virtual 'ALL' device group"
    )

    # Audit Log Retention
    audit_retention_days: int = Field(
        default=365,
        description="Days to keep audit log entries (0 = keep forever)"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    @field_validator('preferred_device_auth', mode='before')
    @classmethod
    def parse_preferred_device_auth(cls, v: Any) -> PreferredDeviceAuth:
        """Map free-form config text onto the enum, defaulting to FALSE."""
        if isinstance(v, PreferredDeviceAuth):
            return v
        if isinstance(v, bool):
            return PreferredDeviceAuth.TRUE if v else PreferredDeviceAuth.FALSE
        text = str(v or "").strip().lower()
        try:
            return PreferredDeviceAuth(text)
        except ValueError:
            return PreferredDeviceAuth.FALSE

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v_lower = v.strip().lower()
        if v_lower not in ('json', 'text'):
            raise ValueError("Invalid log format. Must be 'json' or 'text'")
        return v_lower

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        # Allow reading from environment variables with different case
        case_sensitive = False
        frozen = True


# Global settings instance
settings = Settings()
