"""
Configuration management for the Status Page.

Centralizes all configuration with type-safe defaults and validation.
"""

import os
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DELETION_POLICIES = ('cascade', 'restrict', 'orphan')


class AppConfig(BaseSettings):
    """Application configuration with environment variable support."""

    # Flask Configuration
    flask_secret_key: str = Field(
        default_factory=lambda: os.urandom(32).hex(),
        description="Secret key for Flask sessions"
    )
    flask_debug: bool = Field(
        default=False,
        description="Enable Flask debug mode"
    )
    flask_host: str = Field(
        default="0.0.0.0",
        description="Flask server host"
    )
    flask_port: int = Field(
        default=5001,
        description="Flask server port"
    )
    testing: bool = Field(
        default=False,
        description="Enable testing mode"
    )
    site_title: str = Field(
        default="Status",
        description="Title of the public status page"
    )

    # Rate Limiting Configuration
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable rate limiting"
    )
    rate_limit_public: str = Field(
        default="120 per minute",
        description="Rate limit for public status endpoints"
    )
    rate_limit_admin: str = Field(
        default="30 per minute",
        description="Rate limit for admin endpoints"
    )

    # CORS Configuration
    cors_enabled: bool = Field(
        default=True,
        description="Enable CORS on the public API"
    )
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    # Security Configuration
    https_enabled: bool = Field(
        default=True,
        description="Enable HTTPS enforcement with Talisman"
    )
    admin_token: Optional[str] = Field(
        default=None,
        description="Bearer token required on admin endpoints (disabled when unset)"
    )

    # Database Configuration
    database_path: str = Field(
        default="status.db",
        description="Path to the status page SQLite database"
    )
    service_deletion_policy: str = Field(
        default="cascade",
        description="What happens to interventions when a service is deleted (cascade, restrict, orphan)"
    )
    deleted_service_label: str = Field(
        default="(deleted service)",
        description="Name displayed for deleted services under the orphan policy"
    )

    # Public page Configuration
    past_interventions_limit: int = Field(
        default=20,
        description="Maximum number of past interventions listed publicly"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_file: str = Field(
        default="logs/app.log",
        description="Log file path"
    )
    log_max_bytes: int = Field(
        default=10485760,  # 10MB
        description="Maximum log file size in bytes"
    )
    log_backup_count: int = Field(
        default=10,
        description="Number of backup log files to keep"
    )

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator('flask_debug', 'testing', 'rate_limit_enabled', 'cors_enabled', 'https_enabled', mode='before')
    @classmethod
    def parse_bool(cls, v):
        """Parse boolean values from environment strings."""
        if isinstance(v, str):
            return v.lower() in ('true', '1', 'yes', 'on')
        return v

    @field_validator('service_deletion_policy', mode='before')
    @classmethod
    def parse_deletion_policy(cls, v):
        """Normalize and check the service deletion policy."""
        v = str(v).strip().lower()
        if v not in DELETION_POLICIES:
            raise ValueError(f"service_deletion_policy must be one of {', '.join(DELETION_POLICIES)}")
        return v

    @field_validator('past_interventions_limit')
    @classmethod
    def check_past_limit(cls, v):
        if v < 0:
            raise ValueError("past_interventions_limit must not be negative")
        return v

    def validate_required_keys(self) -> List[str]:
        """
        Validate that recommended settings are present.

        Returns:
            List of missing keys (empty if all present)
        """
        missing = []

        if not self.admin_token:
            missing.append("ADMIN_TOKEN")

        return missing

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Ignore extra environment variables


# Global configuration instance
config = AppConfig()


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    return config
