"""
tests/test_logger.py -- Tests for core.logger and the LOG_LEVEL setting.

Covers:
  - get_logger hands out children of the "seclock" logger
  - set_level accepts any case and rejects unknown names
  - LOG_LEVEL is validated by Settings and applied by create_app
"""

from __future__ import annotations

import logging

import pydantic
import pytest

from core.config import Settings
from core.logger import get_logger, logger, set_level
from main import create_app


@pytest.fixture(autouse=True)
def _restore_level():
    before = logger.level
    yield
    logger.setLevel(before)


def test_get_logger_returns_seclock_child():
    log = get_logger("auth.store")

    assert log.name == "seclock.auth.store"


def test_set_level_ignores_case():
    set_level("debug")

    assert logger.level == logging.DEBUG
    assert get_logger("locks").isEnabledFor(logging.DEBUG)


def test_set_level_rejects_unknown_name():
    with pytest.raises(ValueError):
        set_level("verbose")


def test_log_level_setting_is_validated(settings):
    assert settings.log_level == "INFO"
    assert Settings(_env_file=None, database_url="sqlite://", secret_key="s" * 40, log_level="warning").log_level == "WARNING"

    with pytest.raises(pydantic.ValidationError):
        Settings(_env_file=None, database_url="sqlite://", secret_key="s" * 40, log_level="verbose")


def test_create_app_applies_log_level(settings):
    create_app(settings.model_copy(update={"log_level": "ERROR"}))

    assert logger.level == logging.ERROR
    assert not get_logger("auth").isEnabledFor(logging.WARNING)
