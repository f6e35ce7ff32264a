#!/usr/bin/env python3
"""
Integration tests for configuration module.

Tests environment-driven configuration loading, validation and path
resolution.
"""

from pathlib import Path

import pytest

from bookkeeping.core.config import (
    Config,
    Environment,
    get_config,
    get_data_dir,
    get_store_dir,
    is_development,
    is_production,
    is_test,
    reload_config,
)


@pytest.mark.integration
class TestConfigLoading:
    """Test configuration loading and structure."""

    def test_config_loads_in_test_environment(self, tmp_path):
        """Test the suite runs against a temporary data directory."""
        config = get_config()

        assert config.environment == Environment.TEST
        assert config.data_dir == tmp_path / "bookkeeping_data"
        assert config.store_dir == config.data_dir / "store"
        assert config.store_dir.is_dir()
        assert config.store.store_dir == config.store_dir

    def test_reporting_defaults(self):
        config = get_config()

        assert config.reporting.base_currency == "USD"
        assert config.reporting.display_decimals == 2
        assert config.reporting.use_fiscal_year is True
        assert config.log_level == "INFO"
        assert config.debug is False

    def test_environment_detection_functions(self):
        """Test environment detection helper functions."""
        assert is_test()
        assert not is_development()
        assert not is_production()

    def test_directory_helpers(self):
        assert isinstance(get_data_dir(), Path)
        assert get_store_dir() == get_data_dir() / "store"

    def test_reporting_overrides(self, monkeypatch):
        """Test reporting settings come from the environment."""
        monkeypatch.setenv("BOOKKEEPING_BASE_CURRENCY", "eur")
        monkeypatch.setenv("BOOKKEEPING_DISPLAY_DECIMALS", "3")
        monkeypatch.setenv("BOOKKEEPING_USE_FISCAL_YEAR", "no")
        monkeypatch.setenv("DEBUG", "true")

        config = reload_config()

        assert config.reporting.base_currency == "EUR"
        assert config.reporting.display_decimals == 3
        assert config.reporting.use_fiscal_year is False
        assert config.debug is True

    def test_to_dict_is_plain(self):
        data = get_config().to_dict()

        assert data["environment"] == "test"
        assert isinstance(data["data_dir"], str)
        assert data["reporting"]["base_currency"] == "USD"
        assert isinstance(data["store"]["store_dir"], str)


@pytest.mark.integration
class TestConfigValidation:
    """Test invalid configuration is rejected."""

    @pytest.mark.parametrize(
        "name,value,message",
        [
            ("BOOKKEEPING_DISPLAY_DECIMALS", "two", "BOOKKEEPING_DISPLAY_DECIMALS"),
            ("BOOKKEEPING_DISPLAY_DECIMALS", "11", "BOOKKEEPING_DISPLAY_DECIMALS"),
            ("BOOKKEEPING_BASE_CURRENCY", "DOLLARS", "BOOKKEEPING_BASE_CURRENCY"),
            ("LOG_LEVEL", "LOUD", "Unknown LOG_LEVEL"),
        ],
        ids=["decimals_not_int", "decimals_out_of_range", "bad_currency", "bad_log_level"],
    )
    def test_invalid_settings(self, monkeypatch, name, value, message):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValueError, match=message):
            reload_config()

    def test_validate_reports_missing_directories(self, tmp_path):
        config = Config.from_environment()
        config.store_dir = tmp_path / "does-not-exist"
        errors = config.validate()
        assert len(errors) == 1
        assert "store_dir does not exist" in errors[0]

    def test_invalid_environment(self, monkeypatch):
        monkeypatch.setenv("BOOKKEEPING_ENV", "staging")
        with pytest.raises(ValueError):
            reload_config()
