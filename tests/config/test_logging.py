"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

from chainmig.config.logging import APP_LOGGER, configure_logging
from chainmig.config.settings import MigSettings
from chainmig.services.migrate import MigrationService


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    app = logging.getLogger(APP_LOGGER)
    app_level = app.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    app.setLevel(app_level)


def _json_lines(err: str) -> list[dict]:
    return [json.loads(line) for line in err.splitlines() if line.strip()]


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger(APP_LOGGER).level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_quiet_by_default(self) -> None:
        configure_logging()
        assert logging.getLogger(APP_LOGGER).level == logging.WARNING

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        structlog.get_logger("chainmig.test").warning("json test", nodes=4)
        (parsed,) = _json_lines(capfd.readouterr().err)
        assert parsed["event"] == "json test"
        assert parsed["nodes"] == 4
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "chainmig.test"
        assert "timestamp" in parsed

    def test_info_hidden_without_verbose(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=False, log_json=True)
        structlog.get_logger("chainmig.test").info("hidden")
        assert capfd.readouterr().err == ""

    def test_third_party_debug_is_suppressed(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("cryptography").debug("noise")
        assert capfd.readouterr().err == ""

    def test_stdout_stays_clean(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        structlog.get_logger("chainmig.test").error("boom")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "boom" in captured.err

    def test_idempotent_calls(self) -> None:
        """Multiple configure_logging calls don't stack handlers."""
        configure_logging(verbose=True, log_json=False)
        configure_logging(verbose=True, log_json=True)
        assert len(logging.getLogger().handlers) == 1


class TestServiceLogging:
    def test_migration_stages_logged_when_verbose(
        self,
        capfd: pytest.CaptureFixture[str],
        legacy_chain: Path,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path)
        configure_logging(verbose=True, log_json=True)

        result = MigrationService(MigSettings()).apply(legacy_chain, tmp_path / "new", "test-chain")

        assert result.ok
        events = _json_lines(capfd.readouterr().err)
        names = [e["event"] for e in events]
        assert names[0] == "migrate.start"
        assert "migrate.resolved" in names
        assert "migrate.issued" in names
        assert names[-1] == "migrate.done"
        assert all(e["service"] == "MigrationService" for e in events)
