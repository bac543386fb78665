"""Tests for structlog setup."""

import json

import pytest
import structlog

from editguard.utils.logging import (
    configure_library_defaults,
    configure_logging,
    default_log_file,
    get_logger,
    resolve_log_level,
)


@pytest.fixture
def unconfigured_structlog():
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()
    configure_library_defaults()


class TestResolveLogLevel:
    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("EDITGUARD_LOG_LEVEL", "ERROR")
        assert resolve_log_level("debug") == "DEBUG"

    def test_environment_level(self, monkeypatch):
        monkeypatch.setenv("EDITGUARD_LOG_LEVEL", "warning")
        assert resolve_log_level() == "WARNING"

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("EDITGUARD_LOG_LEVEL", "LOUD")
        assert resolve_log_level() == "INFO"


class TestLibraryDefaults:
    """Importing editguard must not print DEBUG/INFO events to stdout."""

    def test_info_is_silent_and_warning_goes_to_stderr(self, unconfigured_structlog, capsys):
        assert configure_library_defaults() is True

        logger = get_logger("editguard.test")
        logger.debug("canon_extracted", draft_id="d1")
        logger.info("edit_plan_created", target="BODY")
        logger.warning("anchor_validation_failed", missing=["<<P2>>"])

        captured = capsys.readouterr()
        assert captured.out == ""
        lines = captured.err.strip().splitlines()
        assert len(lines) == 1
        event = json.loads(lines[0])
        assert event["event"] == "anchor_validation_failed"
        assert event["level"] == "warning"

    def test_existing_configuration_is_kept(self, unconfigured_structlog):
        structlog.configure(processors=[structlog.processors.JSONRenderer()])
        assert configure_library_defaults() is False

    def test_configure_logging_writes_to_log_file(self, unconfigured_structlog, capsys):
        configure_library_defaults()
        configure_logging("INFO")

        get_logger("editguard.test").info("config_loaded", source="defaults")

        assert capsys.readouterr().err == ""
        assert default_log_file().exists()
