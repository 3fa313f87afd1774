"""
Configuration Management for Personal Finance

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseSettings):
    """Supabase project configuration (auth + row storage)."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        ...,
        description="Supabase project URL"
    )
    publishable_key: str = Field(
        ...,
        description="Supabase publishable (anon) key"
    )

    # Table names
    records_table: str = Field(
        default="personal_expense",
        description="Table holding personal income/expense rows"
    )
    profiles_table: str = Field(
        default="user_profile",
        description="Table holding user profile rows"
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Project URL must be http(s); trailing slash is dropped."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Supabase URL must start with http:// or https://: {v}")
        return v.rstrip("/")


class AuthSettings(BaseSettings):
    """OAuth sign-in configuration."""

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    oauth_provider: str = Field(
        default="google",
        description="OAuth provider used for sign-in"
    )
    redirect_url: Optional[str] = Field(
        default=None,
        description="Where the provider redirects after sign-in (the app's own URL)"
    )
    callback_retry_delay_seconds: float = Field(
        default=0.8,
        ge=0.0,
        le=10.0,
        description="Delay before re-checking the session once during the OAuth callback"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )

    # Display
    currency: str = Field(
        default="AUD",
        min_length=3,
        max_length=3,
        description="ISO currency code used when formatting amounts"
    )

    # Validation thresholds
    max_record_amount: float = Field(
        default=10000000.0,
        gt=0,
        description="Largest amount accepted for a single record"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Only standard logging level names are accepted."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.strip().upper()


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()

    @property
    def auth(self) -> AuthSettings:
        return AuthSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry for every section that failed.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    sections = {
        "supabase": lambda: settings.supabase,
        "auth": lambda: settings.auth,
        "app": lambda: settings.app,
    }

    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
