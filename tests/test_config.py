"""Tests for configuration loading and logging setup."""
import logging

import pytest
import structlog

from price_detector.config import load_config, load_settings
from price_detector.logging_config import add_app_context, configure_structlog

ENV_VARS = (
    "PRICE_DETECTOR_LOG_LEVEL",
    "PRICE_DETECTOR_MIN_CONFIDENCE",
    "PRICE_DETECTOR_DEBUG",
    "PRICE_DETECTOR_EARLY_EXIT_CONFIDENCE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "logging:\n"
        "  level: WARNING\n"
        "extraction:\n"
        "  currencySymbol: \"€\"\n"
        "  currencyCode: EUR\n"
        "  minConfidence: 0.5\n"
    )
    return path


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestLoadConfig:
    """Test load_config()."""

    def test_bundled_defaults(self):
        config = load_config()
        assert config["logging"]["level"] == "INFO"
        assert config["extraction"]["multiPassMode"] is True
        assert config["extraction"]["earlyExitConfidence"] is None

    def test_custom_file(self, config_file):
        config = load_config(config_file)
        assert config["logging"]["level"] == "WARNING"
        assert config["extraction"]["currencyCode"] == "EUR"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == {"logging": {}, "extraction": {}}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_environment_overrides(self, config_file, monkeypatch):
        monkeypatch.setenv("PRICE_DETECTOR_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("PRICE_DETECTOR_MIN_CONFIDENCE", "0.75")
        monkeypatch.setenv("PRICE_DETECTOR_DEBUG", "yes")
        monkeypatch.setenv("PRICE_DETECTOR_EARLY_EXIT_CONFIDENCE", "0.9")

        config = load_config(config_file)
        assert config["logging"]["level"] == "DEBUG"
        assert config["extraction"]["minConfidence"] == 0.75
        assert config["extraction"]["debugMode"] is True
        assert config["extraction"]["earlyExitConfidence"] == 0.9

    def test_debug_override_false(self, config_file, monkeypatch):
        monkeypatch.setenv("PRICE_DETECTOR_DEBUG", "0")
        assert load_config(config_file)["extraction"]["debugMode"] is False


class TestLoadSettings:
    def test_settings_from_file(self, config_file):
        settings = load_settings(config_file)
        assert settings.currency_symbol == "€"
        assert settings.currency_code == "EUR"
        assert settings.min_confidence == 0.5

    def test_bundled_settings(self):
        settings = load_settings()
        assert settings.max_depth == 5
        assert settings.context_scoring is True


class TestLogging:
    """Test structlog configuration."""

    def test_add_app_context(self):
        assert add_app_context(None, "info", {"event": "x"}) == {"event": "x", "app": "price-detector"}

    @pytest.mark.parametrize("environment", ["development", "production"])
    def test_configure(self, environment, restore_logging):
        configure_structlog(environment=environment, level="WARNING")
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_level_from_environment(self, monkeypatch, restore_logging):
        monkeypatch.setenv("PRICE_DETECTOR_LOG_LEVEL", "ERROR")
        configure_structlog(environment="production")
        assert logging.getLogger().level == logging.ERROR
