"""
Unit tests -- settings and logger factory.
"""
import logging

from src.core.config import Settings, get_settings
from src.core.logging import get_logger


def test_defaults():
    settings = Settings()
    assert settings.default_order_by == "id"
    assert settings.strict_entity_types is True
    assert settings.entity_defs_path.name == "entity_defs.yml"
    assert settings.entity_defs_path.exists()


def test_env_override(monkeypatch):
    monkeypatch.setenv("DEFAULT_ORDER_BY", "createdAt")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    settings = Settings()
    assert settings.default_order_by == "createdAt"
    assert settings.log_level == "DEBUG"


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_logger_has_single_stdout_handler():
    logger = get_logger("tests.config")
    get_logger("tests.config")
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], logging.StreamHandler)
    assert "%(levelname)-8s" in logger.handlers[0].formatter._fmt
