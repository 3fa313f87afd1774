"""Tests for settings and the audit logger."""

import asyncio
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from personal_finance.audit import AuditLogger, configure_logging, create_correlation_id
from personal_finance.config import AppSettings, AuthSettings, SupabaseSettings, get_settings, validate_all_settings
from personal_finance.models.audit import AuditEventBuilder


class TestSettings:
    """Tests for pydantic-settings configuration."""

    def test_supabase_url_must_be_http(self):
        with pytest.raises(ValidationError):
            SupabaseSettings(url="project.supabase.co", publishable_key="k")

    def test_supabase_defaults(self):
        settings = SupabaseSettings(url="https://project.supabase.co", publishable_key="k")
        assert settings.records_table == "personal_expense"
        assert settings.profiles_table == "user_profile"

    def test_supabase_from_env(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co/")
        monkeypatch.setenv("SUPABASE_PUBLISHABLE_KEY", "env-key")
        settings = SupabaseSettings()
        assert settings.url == "https://env.supabase.co"
        assert settings.publishable_key == "env-key"

    def test_auth_defaults(self):
        settings = AuthSettings()
        assert settings.oauth_provider == "google"
        assert settings.callback_retry_delay_seconds == 0.8

    def test_app_settings_normalize(self):
        settings = AppSettings(currency="eur", log_level="debug")
        assert settings.currency == "EUR"
        assert settings.log_level == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError):
            AppSettings(log_level="chatty")

    def test_validate_all_settings_reports_errors(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_PUBLISHABLE_KEY", raising=False)
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        get_settings.cache_clear()
        try:
            status = validate_all_settings()
        finally:
            get_settings.cache_clear()

        assert status["auth"] is True
        assert status["app"] is False
        assert "app_error" in status


class TestAuditLogger:
    def test_routes_by_severity(self):
        mock_logger = MagicMock()
        audit = AuditLogger(logger=mock_logger)

        asyncio.run(audit.log_record_deleted("r1", "user-1", create_correlation_id()))
        asyncio.run(audit.log_records_load_failed("user-1", "timeout"))
        asyncio.run(audit.log_records_loaded("user-1", 3, {}))

        assert mock_logger.info.call_args.kwargs["event_type"] == "record_deleted"
        assert mock_logger.error.call_args.kwargs["error_message"] == "timeout"
        assert mock_logger.debug.call_args.kwargs["details"]["count"] == 3

    def test_never_raises(self):
        mock_logger = MagicMock()
        mock_logger.info.side_effect = RuntimeError("disk full")
        audit = AuditLogger(logger=mock_logger)

        written = asyncio.run(audit.log(AuditEventBuilder.signed_in("user-1", "google")))

        assert written is False

    def test_configure_logging(self):
        configure_logging("WARNING")
        assert AuditLogger()._logger is not None
