"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from budget_tracker.config import AppSettings, SyncSettings, get_settings, validate_all_settings


class TestSyncSettings:

    def test_defaults(self, monkeypatch):
        for name in ("DOCUMENT_KEY", "DEBOUNCE_SECONDS", "SAVED_DISPLAY_SECONDS"):
            monkeypatch.delenv(f"BUDGET_SYNC_{name}", raising=False)
        settings = SyncSettings()
        assert settings.document_key == "1"
        assert settings.debounce_seconds == 1.0
        assert settings.saved_display_seconds == 2.0

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("BUDGET_SYNC_DOCUMENT_KEY", "household")
        monkeypatch.setenv("BUDGET_SYNC_DEBOUNCE_SECONDS", "0.25")
        settings = SyncSettings()
        assert settings.document_key == "household"
        assert settings.debounce_seconds == 0.25

    def test_negative_debounce_rejected(self, monkeypatch):
        monkeypatch.setenv("BUDGET_SYNC_DEBOUNCE_SECONDS", "-1")
        with pytest.raises(ValidationError):
            SyncSettings()


class TestAppSettings:

    def test_formats_and_upload_size(self, monkeypatch):
        monkeypatch.setenv("SUPPORTED_STATEMENT_FORMATS", "CSV, txt")
        monkeypatch.setenv("MAX_UPLOAD_SIZE_MB", "2")
        settings = AppSettings()
        assert settings.supported_formats_list == ["csv", "txt"]
        assert settings.max_upload_size_bytes == 2 * 1024 * 1024


class TestValidateAllSettings:

    def test_missing_sheets_config_is_reported_not_raised(self, monkeypatch, tmp_path):
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        monkeypatch.chdir(tmp_path)
        get_settings.cache_clear()
        try:
            results = validate_all_settings()
        finally:
            get_settings.cache_clear()
        assert results["sync"] is True
        assert results["app"] is True
        assert results["google_sheets"] is False
        assert "google_sheets_error" in results
