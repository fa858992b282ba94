"""
Configuration Management for LedgerLight

Settings are read from the environment and an optional .env file.

DESIGN DECISION: One module owns every setting.
Cloud sync is optional: when the Google Sheets settings are missing
the app falls back to an in-memory store.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets cloud-sync configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to sync into"
    )

    # Worksheet names within the spreadsheet
    ledgers_sheet_name: str = Field(
        default="Ledgers",
        description="Name of the sheet for ledgers"
    )
    tags_sheet_name: str = Field(
        default="Tags",
        description="Name of the sheet for tags"
    )
    records_sheet_name: str = Field(
        default="Records",
        description="Name of the sheet for records"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Only warn: the credentials file may be mounted after startup."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before enabling cloud sync."
            )
        return v


class AppSettings(BaseSettings):
    """Calendar, presentation and export preferences."""

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

    # Calendar
    week_start: int = Field(
        default=0,
        ge=0,
        le=6,
        description="First day of the week (0 = Monday ... 6 = Sunday)"
    )

    # Presentation
    currency_symbol: str = Field(
        default="¥",
        max_length=3,
        description="Symbol shown in front of amounts"
    )
    default_ledger_name: str = Field(
        default="Daily",
        min_length=1,
        max_length=50,
        description="Name of the ledger created on first run"
    )

    # CSV export
    export_locale: str = Field(
        default="en",
        pattern="^(en|zh_CN)$",
        description="Language of CSV header and type labels"
    )
    export_directory: Optional[str] = Field(
        default=None,
        description="Directory for exported CSV files (system temp dir if unset)"
    )

    @property
    def export_path(self) -> Optional[Path]:
        """Get the export directory as a Path."""
        return Path(self.export_directory) if self.export_directory else None


class Settings(BaseSettings):
    """
    Root settings container.

    Each sub-settings group is built on access, so a missing
    Google Sheets setup does not break the rest.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings root. get_settings.cache_clear() forces a reload.
    """
    return Settings()


def validate_all_settings() -> dict[str, Any]:
    """
    Check which settings groups load cleanly.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the failures.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except ValidationError as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except ValidationError as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
