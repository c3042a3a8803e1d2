"""
Unit tests for application settings.
"""

import pytest

from folio.config import Settings, get_settings


@pytest.mark.unit
class TestSettings:
    def test_loaded_from_environment(self):
        settings = get_settings()

        assert settings.environment == "testing"
        assert settings.is_development is False

    def test_only_development_flag_is_computed(self):
        dumped = get_settings().model_dump()

        assert "is_development" in dumped
        assert "is_testing" not in dumped
        assert "is_production" not in dumped

    def test_s3_configured_needs_both_keys(self, monkeypatch):
        monkeypatch.setenv("FOLIO_S3_ACCESS_KEY", "access")
        monkeypatch.delenv("FOLIO_S3_SECRET_KEY", raising=False)
        assert Settings().s3_configured is False

        monkeypatch.setenv("FOLIO_S3_SECRET_KEY", "secret")
        assert Settings().s3_configured is True
