"""
Configuration Management for Budget Tracker

Settings are read from environment variables (and a local .env file)
through pydantic-settings, one section per concern:

- BUDGET_SYNC_*     document key, debounce and status timing
- GOOGLE_SHEETS_*   hosted document storage
- (no prefix)       environment, statement upload limits

The Sheets section is optional: without it the app runs offline.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SyncSettings(BaseSettings):
    """Document synchronization configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_SYNC_",
        extra="ignore"
    )

    document_key: str = Field(
        default="1",
        min_length=1,
        description="Key of the shared budget document"
    )
    debounce_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Quiet period after the last edit before the document is pushed"
    )
    saved_display_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="How long the 'saved' status is shown before reverting to idle"
    )
    poll_interval_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="How often polling backends check for remote changes"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

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

    documents_sheet_name: str = Field(
        default="BudgetData",
        description="Name of the sheet holding budget documents"
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


class AppSettings(BaseSettings):
    """
    Environment and statement upload settings.

    Read without a prefix; a .env file in the working directory is honoured.
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

    # Statement upload limits
    max_upload_size_mb: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum statement file size in MB"
    )
    supported_statement_formats: str = Field(
        default="csv",
        description="Comma-separated list of accepted statement file extensions"
    )

    @property
    def supported_formats_list(self) -> list[str]:
        """Get supported formats as a list."""
        return [fmt.strip().lower() for fmt in self.supported_statement_formats.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Entry point to every settings section.

    Each property builds its section fresh from the environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sections are built on access so a missing Sheets config
    # does not prevent offline use.

    @property
    def sync(self) -> SyncSettings:
        return SyncSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Process-wide settings object.

    Cached; tests that change the environment should call
    get_settings.cache_clear() before and after.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Try to load every section without raising.

    Returns {section: loaded_ok}, plus "<section>_error" for failures.
    Used by the app to explain why it is running offline.
    """
    results = {}

    settings = get_settings()
    sections = {
        "sync": lambda: settings.sync,
        "google_sheets": lambda: settings.google_sheets,
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
