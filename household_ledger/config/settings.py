"""
Configuration Management for Household Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets remote snapshot store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # One row per household lives in this worksheet
    household_sheet_name: str = Field(
        default="HouseholdState",
        description="Name of the sheet holding household snapshots"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class LedgerSettings(BaseSettings):
    """
    Main ledger settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Household sync scope. Sync is disabled when unset.
    household_id: Optional[str] = Field(
        default=None,
        description="Identifier of the shared household snapshot"
    )

    # Local persistence
    data_dir: Path = Field(
        default=Path(".ledger"),
        description="Directory holding the local key/value JSON files"
    )

    # Reconciliation
    push_debounce_ms: int = Field(
        default=500,
        ge=0,
        le=60000,
        description="Quiet period after the last mutation before pushing"
    )

    # Month navigation
    month_window: int = Field(
        default=12,
        ge=0,
        le=120,
        description="Months listed before and after the current month"
    )

    # Payers offered by input forms
    payers: str = Field(
        default="Alessandro,Anais",
        description="Comma-separated list of household payers"
    )
    default_payer: str = Field(
        default="Alessandro",
        description="Payer preselected when nothing is stored locally"
    )

    @field_validator('household_id')
    @classmethod
    def blank_household_is_unset(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty or whitespace id as 'no household configured'."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def payers_list(self) -> list[str]:
        """Get payers as a list."""
        return [name.strip() for name in self.payers.split(",") if name.strip()]

    @property
    def push_debounce_seconds(self) -> float:
        """Get the debounce delay in seconds."""
        return self.push_debounce_ms / 1000

    @property
    def sync_enabled(self) -> bool:
        return self.household_id is not None


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
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()


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

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.ledger
        results["ledger"] = True
    except Exception as e:
        results["ledger"] = False
        results["ledger_error"] = str(e)

    return results
