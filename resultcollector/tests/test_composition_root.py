"""Integration tests for the composition root.

These tests verify that configuration loads and validates, that
create_aggregator wires the default adapters, and that the replay
command turns an event log into a report on disk.
"""

import json
import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from resultcollector.adapters.storage.json_file import JsonFileReportStorage
from resultcollector.adapters.tool.passthrough import PassthroughToolAdapter
from resultcollector.config import Settings, load_settings
from resultcollector.core.aggregator import ResultAggregator
from resultcollector.main import (
    EXIT_BAD_INPUT,
    EXIT_OK,
    EXIT_PERSIST_FAILED,
    LOGGER_NAMESPACE,
    configure_logging,
    create_aggregator,
    main,
    replay_events,
    run_replay,
)
from resultcollector.tests.fakes import FakeReportStorage, FakeToolAdapter


def write_events(path: Path, *entries: object) -> Path:
    lines = [entry if isinstance(entry, str) else json.dumps(entry) for entry in entries]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


class TestConfigurationLoading:
    """Test configuration loading and validation."""

    def test_load_settings_with_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = load_settings()

        assert settings.enabled is False
        assert settings.path == "report.json"
        assert settings.browser_id == ""
        assert settings.log_level == "INFO"
        assert settings.log_format == "text"

    def test_load_settings_from_env(self) -> None:
        with patch.dict(
            os.environ,
            {
                "RESULT_COLLECTOR_ENABLED": "true",
                "RESULT_COLLECTOR_PATH": "/reports/run.json",
                "RESULT_COLLECTOR_BROWSER_ID": "chrome",
                "RESULT_COLLECTOR_LOG_LEVEL": "DEBUG",
            },
        ):
            settings = load_settings()

        assert settings.enabled is True
        assert settings.path == "/reports/run.json"
        assert settings.browser_id == "chrome"
        assert settings.log_level == "DEBUG"

    def test_unprefixed_path_is_ignored(self) -> None:
        with patch.dict(os.environ, {"PATH": "/usr/bin"}, clear=True):
            settings = load_settings()

        assert settings.path == "report.json"

    def test_overrides_win_over_env(self) -> None:
        with patch.dict(os.environ, {"RESULT_COLLECTOR_PATH": "/from/env.json"}):
            settings = load_settings(path="/from/flag.json")

        assert settings.path == "/from/flag.json"

    def test_load_settings_from_env_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / "collector.env"
        env_file.write_text("RESULT_COLLECTOR_PATH=/from/file.json\n", encoding="utf-8")

        with patch.dict(os.environ, {}, clear=True):
            settings = load_settings(env_file=str(env_file))

        assert settings.path == "/from/file.json"

    def test_blank_path_rejected(self) -> None:
        with pytest.raises(Exception):  # ValidationError
            load_settings(path="   ")

    def test_invalid_log_level_rejected(self) -> None:
        with patch.dict(os.environ, {"RESULT_COLLECTOR_LOG_LEVEL": "VERBOSE"}):
            with pytest.raises(Exception):  # ValidationError
                load_settings()


class TestCreateAggregator:
    """Test wiring of the aggregator."""

    def test_defaults_to_json_file_storage(self) -> None:
        aggregator = create_aggregator(FakeToolAdapter(), Settings(path="out.json"))

        assert isinstance(aggregator, ResultAggregator)
        assert isinstance(aggregator.storage, JsonFileReportStorage)
        assert aggregator.config.path == "out.json"

    def test_loads_settings_when_omitted(self) -> None:
        with patch.dict(os.environ, {"RESULT_COLLECTOR_PATH": "/env/report.json"}):
            aggregator = create_aggregator(FakeToolAdapter())

        assert aggregator.config.path == "/env/report.json"

    def test_uses_given_storage_and_clock(self) -> None:
        storage = FakeReportStorage()
        aggregator = create_aggregator(
            FakeToolAdapter(), Settings(), storage=storage, clock=lambda: 42.0
        )

        assert aggregator.storage is storage
        assert aggregator.clock() == 42.0


class TestReplayEvents:
    """Test feeding event logs into the aggregator."""

    @pytest.fixture
    def aggregator(self) -> ResultAggregator:
        return create_aggregator(
            PassthroughToolAdapter(), Settings(), storage=FakeReportStorage()
        )

    def test_applies_each_event_kind(self, aggregator: ResultAggregator) -> None:
        lines = [
            json.dumps({"event": "start", "test": {"fullName": "a"}}),
            json.dumps({"event": "success", "test": {"fullName": "a"}}),
            json.dumps({"event": "fail", "test": {"fullName": "b"}}),
            json.dumps({"event": "skipped", "test": {"fullName": "c", "skipReason": "wip"}}),
            json.dumps({"event": "retry", "test": {"fullName": "d", "state": "failed"}}),
            json.dumps({"event": "retry", "test": {"fullName": "e", "message": "timeout"}}),
            json.dumps({"event": "error", "test": {"fullName": "f", "stack": "Error: x"}}),
        ]

        applied = replay_events(aggregator, lines)

        data = aggregator.get_data()
        assert applied == 7
        assert {key: record["status"] for key, record in data.items()} == {
            "a": "success",
            "b": "fail",
            "c": "skipped",
            "d": "fail",
            "e": "error",
            "f": "error",
        }
        assert data["c"]["skipReason"] == "wip"
        assert data["e"]["errorReason"] == "timeout"
        assert data["f"]["errorReason"] == "Error: x"

    def test_skips_bad_lines(
        self, aggregator: ResultAggregator, caplog: pytest.LogCaptureFixture
    ) -> None:
        lines = [
            "",
            "{not json",
            "[1, 2]",
            json.dumps({"event": "explode", "test": {"fullName": "a"}}),
            json.dumps({"event": "success", "test": "not an object"}),
            json.dumps({"event": "success", "test": {"fullName": "ok"}}),
        ]

        with caplog.at_level(logging.WARNING, logger="resultcollector.main"):
            applied = replay_events(aggregator, lines)

        assert applied == 1
        assert set(aggregator.get_data()) == {"ok"}
        assert "malformed event on line 2" in caplog.text
        assert "unknown event 'explode' on line 4" in caplog.text

    def test_retry_overwrites_earlier_record(self, aggregator: ResultAggregator) -> None:
        lines = [
            json.dumps({"event": "retry", "test": {"fullName": "a", "message": "flaky"}}),
            json.dumps({"event": "success", "test": {"fullName": "a"}}),
        ]

        replay_events(aggregator, lines)

        assert aggregator.get_data()["a"]["status"] == "success"


class TestReplayCommand:
    """Test the result-collector command end to end."""

    @pytest.mark.asyncio
    async def test_run_replay_writes_report(self, tmp_path: Path) -> None:
        events = write_events(
            tmp_path / "events.jsonl",
            {"event": "success", "test": {"fullName": "a"}},
            {"event": "fail", "test": {"fullName": "b", "browserId": "ff"}},
        )
        report_path = tmp_path / "reports" / "report.json"

        code = await run_replay(events, Settings(path=str(report_path), browser_id="chrome"))

        assert code == EXIT_OK
        report = json.loads(report_path.read_text(encoding="utf-8"))
        assert set(report) == {"a.chrome", "b.ff"}

    @pytest.mark.asyncio
    async def test_run_replay_missing_events_file(self, tmp_path: Path) -> None:
        code = await run_replay(tmp_path / "missing.jsonl", Settings(path=str(tmp_path / "r.json")))

        assert code == EXIT_BAD_INPUT
        assert not (tmp_path / "r.json").exists()

    @pytest.mark.asyncio
    async def test_run_replay_unwritable_report(self, tmp_path: Path) -> None:
        events = write_events(tmp_path / "events.jsonl", {"event": "success", "test": {"fullName": "a"}})
        blocker = tmp_path / "blocker"
        blocker.write_text("file", encoding="utf-8")

        code = await run_replay(events, Settings(path=str(blocker / "report.json")))

        assert code == EXIT_PERSIST_FAILED

    def test_main_exit_code_and_report(self, tmp_path: Path) -> None:
        events = write_events(tmp_path / "events.jsonl", {"event": "success", "test": {"fullName": "a"}})
        report_path = tmp_path / "report.json"

        with patch("resultcollector.main.configure_logging"):
            with pytest.raises(SystemExit) as exc_info:
                main([str(events), "--path", str(report_path)])

        assert exc_info.value.code == EXIT_OK
        assert json.loads(report_path.read_text(encoding="utf-8"))["a"]["status"] == "success"

    def test_main_rejects_invalid_configuration(self, tmp_path: Path) -> None:
        events = write_events(tmp_path / "events.jsonl")

        with patch.dict(os.environ, {"RESULT_COLLECTOR_LOG_LEVEL": "VERBOSE"}):
            with pytest.raises(SystemExit) as exc_info:
                main([str(events)])

        assert exc_info.value.code == EXIT_BAD_INPUT

    @pytest.mark.asyncio
    async def test_run_replay_undecodable_events_file(self, tmp_path: Path) -> None:
        events = tmp_path / "events.jsonl"
        events.write_bytes(b'{"event": "success", "test": {"fullName": "\xff"}}\n')
        report_path = tmp_path / "report.json"

        code = await run_replay(events, Settings(path=str(report_path)))

        assert code == EXIT_BAD_INPUT
        assert not report_path.exists()

    def test_main_exits_with_bad_input_for_undecodable_events(self, tmp_path: Path) -> None:
        events = tmp_path / "events.jsonl"
        events.write_bytes(b'{"event": "success", "test": {"fullName": "a"}}\n\xff\xfe\n')

        with patch("resultcollector.main.configure_logging"):
            with pytest.raises(SystemExit) as exc_info:
                main([str(events), "--path", str(tmp_path / "report.json")])

        assert exc_info.value.code == EXIT_BAD_INPUT


class TestConfigureLogging:
    """Test logging setup for the collector's logger hierarchy."""

    @pytest.fixture(autouse=True)
    def restore_package_logger(self):
        package_logger = logging.getLogger(LOGGER_NAMESPACE)
        saved = (package_logger.level, list(package_logger.handlers), package_logger.propagate)
        yield
        package_logger.setLevel(saved[0])
        package_logger.handlers[:] = saved[1]
        package_logger.propagate = saved[2]

    def test_configures_package_logger_only(self) -> None:
        root_handlers = list(logging.getLogger().handlers)

        package_logger = configure_logging("DEBUG", "text")

        assert package_logger.name == "resultcollector"
        assert package_logger.level == logging.DEBUG
        assert len(package_logger.handlers) == 1
        assert logging.getLogger().handlers == root_handlers

    def test_reconfiguring_replaces_handler(self) -> None:
        configure_logging("INFO", "text")
        package_logger = configure_logging("WARNING", "json")

        assert len(package_logger.handlers) == 1
        assert package_logger.level == logging.WARNING
        assert '"logger": "%(name)s"' in package_logger.handlers[0].formatter._fmt

    def test_child_loggers_use_package_handler(self, capsys: pytest.CaptureFixture) -> None:
        configure_logging("INFO", "text")
        # Handler binds sys.stdout at creation, which capsys has already replaced.
        logging.getLogger("resultcollector.core.aggregator").info("wrote report")

        out = capsys.readouterr().out
        assert "[resultcollector.core.aggregator] wrote report" in out
        assert "INFO" in out
