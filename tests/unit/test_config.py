"""
Provider Management - Configuration Unit Tests

Tests for settings validation and logging setup.
"""

import json
import logging
import threading
from pathlib import Path

import pytest
from pydantic import ValidationError

from config.logging import (
    ConsoleFormatter,
    ContextFilter,
    JSONFormatter,
    LogContext,
    censor_sensitive_data,
    setup_logging,
)
from config.settings import PROJECT_ROOT, Settings


def _record(message="hello", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="tests.config",
        level=level,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# =============================================================================
# Settings Tests
# =============================================================================

class TestSettings:
    """Tests for Settings validation."""

    def test_log_level_upper_cased(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="loud")

    def test_environment_lower_cased(self):
        settings = Settings(environment="Production")

        assert settings.environment == "production"
        assert settings.is_development is False
        assert settings.is_test is False

    def test_test_environment(self):
        assert Settings(environment="test").is_test is True

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            Settings(environment="qa")

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError):
            Settings(log_format="xml")

    def test_relative_paths_resolve_against_project_root(self):
        settings = Settings(provider_roles_file="config/roles.yaml", log_file="logs/x.log")

        assert settings.get_provider_roles_path() == PROJECT_ROOT / "config" / "roles.yaml"
        assert settings.get_log_file_path() == PROJECT_ROOT / "logs" / "x.log"

    def test_absolute_paths_kept(self, tmp_path):
        settings = Settings(provider_roles_file=str(tmp_path / "roles.yaml"))

        assert settings.get_provider_roles_path() == tmp_path / "roles.yaml"

    def test_no_log_file(self):
        assert Settings(log_file="").get_log_file_path() is None


# =============================================================================
# Logging Tests
# =============================================================================

class TestCensorSensitiveData:
    """Tests for censor_sensitive_data."""

    def test_database_url_password(self):
        text = "postgresql://provider_user:s3cret@db:5432/providers"

        assert censor_sensitive_data(text) == "postgresql://provider_user:[REDACTED]@db:5432/providers"

    def test_password_assignment(self):
        assert "hunter2" not in censor_sensitive_data("password=hunter2")

    def test_plain_text_untouched(self):
        assert censor_sensitive_data("Provider search matched 3 people") == "Provider search matched 3 people"

    def test_non_string_passthrough(self):
        assert censor_sensitive_data(42) == 42


class TestFormatters:
    """Tests for JSONFormatter and ConsoleFormatter."""

    def test_json_includes_extras(self):
        output = JSONFormatter().format(_record(filters=["name", "address"]))
        entry = json.loads(output)

        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["extra"] == {"filters": ["name", "address"]}
        assert "location" not in entry

    def test_json_location_for_warnings(self):
        entry = json.loads(JSONFormatter().format(_record(level=logging.WARNING)))

        assert entry["location"]["line"] == 1

    def test_json_censors(self):
        output = JSONFormatter().format(_record("connecting to sqlite+pysqlite://u:pw@host/db"))

        assert ":pw@" not in output

    def test_console_format(self):
        output = ConsoleFormatter(use_colors=False).format(_record(role="Nurse"))

        assert "| INFO" in output
        assert output.endswith("hello [role=Nurse]")


class TestLogContext:
    """Tests for LogContext and ContextFilter."""

    def test_context_fields_added_and_restored(self):
        context_filter = ContextFilter()

        with LogContext(request_id="abc"):
            inside = _record()
            context_filter.filter(inside)
        outside = _record()
        context_filter.filter(outside)

        assert inside.request_id == "abc"
        assert not hasattr(outside, "request_id")

    def test_record_values_win(self):
        record = _record(request_id="mine")

        with LogContext(request_id="context"):
            ContextFilter().filter(record)

        assert record.request_id == "mine"

    def test_nested_contexts_restore_outer_fields(self):
        with LogContext(request_id="outer", role="Nurse"):
            with LogContext(request_id="inner"):
                inner = LogContext.get_context()
            outer = LogContext.get_context()

        assert inner == {"request_id": "inner", "role": "Nurse"}
        assert outer == {"request_id": "outer", "role": "Nurse"}
        assert LogContext.get_context() == {}

    def test_threads_do_not_share_context(self):
        barrier = threading.Barrier(2)
        seen = {}

        def worker(request_id):
            with LogContext(request_id=request_id):
                barrier.wait(timeout=5)
                seen[request_id] = LogContext.get_context()

        threads = [threading.Thread(target=worker, args=(rid,)) for rid in ("a", "b")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert seen == {"a": {"request_id": "a"}, "b": {"request_id": "b"}}


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_console_only(self, mock_settings):
        setup_logging()

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert root.level == logging.WARNING

    def test_text_console_and_file(self, mock_settings, tmp_path):
        log_path = tmp_path / "logs" / "app.log"

        setup_logging(log_level="debug", log_file=str(log_path), log_format="text")

        root = logging.getLogger()
        assert len(root.handlers) == 2
        assert isinstance(root.handlers[0].formatter, ConsoleFormatter)
        assert isinstance(root.handlers[1].formatter, JSONFormatter)
        assert root.level == logging.DEBUG
        assert Path(log_path).exists()

    def test_configured_log_file_comes_from_settings(self, mock_settings, tmp_path):
        log_path = tmp_path / "configured" / "provider_management.log"
        mock_settings.get_log_file_path.return_value = log_path

        setup_logging()

        root = logging.getLogger()
        assert len(root.handlers) == 2
        assert root.handlers[1].baseFilename == str(log_path)
        assert log_path.parent.is_dir()
