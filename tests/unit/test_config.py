"""Test cases for configuration management."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError


class TestSettings:
    """Test Settings class configuration loading."""

    def test_settings_loads_defaults(self):
        """Test that settings loads with default values."""
        from txparser.core.config import Settings

        settings = Settings()

        assert settings.app_name == "tx-parser"
        assert settings.debug is False
        assert settings.api_prefix == ""
        assert settings.poll_interval == 3.0
        assert settings.start_block == 0
        assert settings.rpc_timeout == 15.0
        assert settings.shutdown_grace_period == 5.0

    def test_settings_environment_override(self):
        """Test that environment variables override defaults."""
        with patch.dict(
            os.environ,
            {"DEBUG": "true", "APP_NAME": "test-app", "POLL_INTERVAL": "0.5"},
        ):
            from txparser.core.config import Settings

            settings = Settings()

            assert settings.debug is True
            assert settings.app_name == "test-app"
            assert settings.poll_interval == 0.5

    def test_backup_urls_from_environment(self):
        """Test list settings parse from JSON environment values."""
        with patch.dict(
            os.environ,
            {"RPC_BACKUP_URLS": '["https://b1.example.com", "https://b2.example.com"]'},
        ):
            from txparser.core.config import Settings

            settings = Settings(rpc_url="https://primary.example.com")

            assert settings.active_rpc_urls == [
                "https://primary.example.com",
                "https://b1.example.com",
                "https://b2.example.com",
            ]

    def test_active_rpc_urls_primary_first(self):
        """Test the primary endpoint leads the failover order."""
        from txparser.core.config import Settings

        settings = Settings(rpc_url="https://a.example.com", rpc_backup_urls=[])

        assert settings.active_rpc_urls == ["https://a.example.com"]

    @pytest.mark.parametrize(
        "field,value",
        [
            ("poll_interval", 0),
            ("rpc_timeout", -1),
            ("rpc_max_retries", 0),
            ("start_block", -5),
            ("shutdown_grace_period", -0.1),
            ("log_format", "xml"),
        ],
    )
    def test_invalid_values_rejected(self, field, value):
        """Test validation of numeric bounds and enums."""
        from txparser.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(**{field: value})

    def test_get_settings_cached(self):
        """Test settings instance is cached."""
        from txparser.core.config import get_settings

        assert get_settings() is get_settings()
