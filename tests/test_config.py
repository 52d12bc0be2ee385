"""
Tests for environment configuration loading and validation.
"""
import os

import pytest

from catalog_resolver.config import ResolverConfig
from catalog_resolver.config_loader import load_config_from_env, validate_config
from catalog_resolver.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("CATALOG_"):
            monkeypatch.delenv(key)


class TestLoadConfig:
    """Tests for load_config_from_env."""

    def test_defaults(self):
        config = load_config_from_env(use_dotenv=False)

        assert config == ResolverConfig()
        assert config.single_min_score == 0.7
        assert config.single_min_gap == 0.2
        assert config.multiple_min_score == 0.4

    def test_thresholds_from_env(self, monkeypatch):
        monkeypatch.setenv("CATALOG_SINGLE_MIN_SCORE", "0.8")
        monkeypatch.setenv("CATALOG_SINGLE_MIN_GAP", "0.3")
        monkeypatch.setenv("CATALOG_MAX_ALTERNATIVES", "5")
        monkeypatch.setenv("CATALOG_ENABLE_DOMAIN_GATE", "yes")
        monkeypatch.setenv("CATALOG_ENABLE_TELEMETRY", "false")

        config = load_config_from_env(use_dotenv=False)

        assert config.single_min_score == 0.8
        assert config.single_min_gap == 0.3
        assert config.max_alternatives == 5
        assert config.enable_domain_gate is True
        assert config.enable_telemetry is False

    def test_csv_path(self, monkeypatch, tmp_path):
        path = tmp_path / "catalog.csv"
        path.write_text("Title,URL\n", encoding="utf-8")
        monkeypatch.setenv("CATALOG_CSV_PATH", str(path))

        assert load_config_from_env(use_dotenv=False).catalog_csv_path == str(path)

    def test_missing_csv_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CATALOG_CSV_PATH", str(tmp_path / "missing.csv"))

        with pytest.raises(ConfigurationError, match="CATALOG_CSV_PATH"):
            load_config_from_env(use_dotenv=False)

    def test_placeholder_value_falls_back_to_default(self, monkeypatch):
        monkeypatch.setenv("CATALOG_TENANT_ID", "your_tenant_here")

        with pytest.warns(UserWarning):
            config = load_config_from_env(use_dotenv=False)

        assert config.default_tenant_id == "default"


class TestInvalidConfig:
    """Malformed or inconsistent values fail loudly."""

    def test_non_numeric_threshold(self, monkeypatch):
        monkeypatch.setenv("CATALOG_SINGLE_MIN_SCORE", "high")

        with pytest.raises(ConfigurationError, match="CATALOG_SINGLE_MIN_SCORE"):
            load_config_from_env(use_dotenv=False)

    def test_threshold_out_of_range(self, monkeypatch):
        monkeypatch.setenv("CATALOG_SINGLE_MIN_GAP", "1.5")

        with pytest.raises(ConfigurationError, match="single_min_gap"):
            load_config_from_env(use_dotenv=False)

    def test_multiple_above_single(self, monkeypatch):
        monkeypatch.setenv("CATALOG_MULTIPLE_MIN_SCORE", "0.8")

        with pytest.raises(ConfigurationError, match="multiple_min_score"):
            load_config_from_env(use_dotenv=False)

    def test_integer_below_minimum(self, monkeypatch):
        monkeypatch.setenv("CATALOG_MAX_ALTERNATIVES", "0")

        with pytest.raises(ConfigurationError):
            load_config_from_env(use_dotenv=False)

    def test_non_integer(self, monkeypatch):
        monkeypatch.setenv("CATALOG_LOOKUP_LIMIT", "many")

        with pytest.raises(ConfigurationError):
            load_config_from_env(use_dotenv=False)

    def test_validate_config_weights(self):
        with pytest.raises(ConfigurationError):
            validate_config(ResolverConfig(alias_weight=0.0))
        with pytest.raises(ConfigurationError):
            validate_config(ResolverConfig(fts_weight=1.2))
        with pytest.raises(ConfigurationError):
            validate_config(ResolverConfig(lookup_timeout_seconds=0))
