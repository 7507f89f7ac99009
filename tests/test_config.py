import logging

import pytest

from config import load_config
from errors import ConfigError
from logs import JsonFormatter, PrettyFormatter, configure_logging


def test_defaults(monkeypatch):
    for name in ("DATABASE_URL", "DATABASE_NAME", "RECONNECT_TIMEZONE", "DEFAULT_REMINDER_INTERVAL_DAYS", "UNDO_WINDOW_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    config = load_config()

    assert config.database_url is None
    assert config.timezone == "UTC"
    assert config.default_reminder_interval_days == 14
    assert config.undo_window_seconds == 5.0


def test_values_from_environment(monkeypatch):
    monkeypatch.setenv("RECONNECT_TIMEZONE", "Europe/Madrid")
    monkeypatch.setenv("DEFAULT_REMINDER_INTERVAL_DAYS", "30")
    monkeypatch.setenv("UNDO_WINDOW_SECONDS", "2.5")

    config = load_config()

    assert config.tz.key == "Europe/Madrid"
    assert config.default_reminder_interval_days == 30
    assert config.undo_window_seconds == 2.5


@pytest.mark.parametrize(
    "name,value",
    [
        ("DEFAULT_REMINDER_INTERVAL_DAYS", "0"),
        ("DEFAULT_REMINDER_INTERVAL_DAYS", "weekly"),
        ("RECONNECT_TIMEZONE", "Mars/Olympus_Mons"),
        ("UNDO_WINDOW_SECONDS", "-1"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigError):
        load_config()


def test_configure_logging_picks_formatter_and_does_not_stack_handlers():
    logger = configure_logging("production")
    configure_logging("production")
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, JsonFormatter)

    logger = configure_logging("development", "DEBUG")
    assert isinstance(logger.handlers[0].formatter, PrettyFormatter)
    assert logger.level == logging.DEBUG


def test_json_formatter_output():
    record = logging.LogRecord("reconnect.test", logging.INFO, __file__, 1, "hello %s", ("sam",), None)

    line = JsonFormatter().format(record)

    assert '"message": "hello sam"' in line
    assert '"logger": "reconnect.test"' in line
