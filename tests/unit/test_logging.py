"""Unit tests for FeeDesk logging configuration."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from feedesk.logging import get_logger, sanitize_for_log, setup_logging, truncate_output


@pytest.fixture(autouse=True)
def reset_feedesk_logger():
    yield
    root = logging.getLogger("feedesk")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)


def read_log(directory) -> str:
    for handler in logging.getLogger("feedesk").handlers:
        handler.flush()
    return (directory / "feedesk.log").read_text()


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging."""

    def test_creates_nested_log_directory(self, tmp_path) -> None:
        log_dir = tmp_path / "nested" / "logs"
        setup_logging(log_dir=log_dir, console=False)
        assert (log_dir / "feedesk.log").exists()

    def test_component_records_share_one_file(self, tmp_path) -> None:
        """Records from any feedesk.* logger land in feedesk.log with their name."""
        setup_logging(log_dir=tmp_path, console=False)
        get_logger("sync").info("roster reloaded")
        get_logger("payments").warning("card declined")

        content = read_log(tmp_path)
        assert " | INFO     | feedesk.sync | roster reloaded" in content
        assert " | WARNING  | feedesk.payments | card declined" in content

    def test_level_filters_records(self, tmp_path) -> None:
        setup_logging(log_dir=tmp_path, level="warning", console=False)
        get_logger("sync").info("hidden")
        get_logger("sync").error("shown")

        content = read_log(tmp_path)
        assert "hidden" not in content
        assert "shown" in content

    def test_unknown_level_falls_back_to_info(self, tmp_path) -> None:
        root = setup_logging(log_dir=tmp_path, level="chatty", console=False)
        assert root.level == logging.INFO

    def test_environment_overrides(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FEEDESK_LOG_DIR", str(tmp_path))
        monkeypatch.setenv("FEEDESK_LOG_LEVEL", "DEBUG")

        root = setup_logging(console=False)

        assert root.level == logging.DEBUG
        assert (tmp_path / "feedesk.log").exists()

    def test_repeated_setup_replaces_handlers(self, tmp_path) -> None:
        setup_logging(log_dir=tmp_path, console=True)
        setup_logging(log_dir=tmp_path, console=False)
        assert len(logging.getLogger("feedesk").handlers) == 1

    def test_file_handler_rotates(self, tmp_path) -> None:
        setup_logging(log_dir=tmp_path, max_bytes=1024, backup_count=3, console=False)

        (handler,) = logging.getLogger("feedesk").handlers
        assert isinstance(handler, RotatingFileHandler)
        assert (handler.maxBytes, handler.backupCount) == (1024, 3)



@pytest.mark.unit
class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_prefixes_feedesk(self) -> None:
        assert get_logger("payments").name == "feedesk.payments"

    def test_get_logger_no_double_prefix(self) -> None:
        assert get_logger("feedesk.sync").name == "feedesk.sync"


@pytest.mark.unit
class TestTruncateOutput:
    """Tests for truncate_output function."""

    def test_short_output_unchanged(self) -> None:
        assert truncate_output("short text", max_length=100) == "short text"

    def test_long_output_truncated(self) -> None:
        """Long output is truncated with indicator."""
        result = truncate_output("x" * 200, max_length=100)
        assert len(result) < 200
        assert "100 more chars" in result


@pytest.mark.unit
class TestSanitize:
    """Tests for sanitize_for_log function."""

    def test_masks_card_numbers(self) -> None:
        """Card numbers keep only their last four digits."""
        result = sanitize_for_log("charged 4111 1111 1111 1234 ok")
        assert "4111" not in result
        assert "[CARD ****1234]" in result

    def test_masks_unspaced_card_numbers(self) -> None:
        result = sanitize_for_log("card=4111111111111234")
        assert "[CARD ****1234]" in result

    def test_redacts_bearer_tokens(self) -> None:
        result = sanitize_for_log("Authorization: Bearer abc123.def456")
        assert "abc123" not in result
        assert "Bearer [REDACTED]" in result

    def test_redacts_cvv_and_password(self) -> None:
        result = sanitize_for_log('{"cvv": "123", "password": "hunter22"}')
        assert "123" not in result
        assert "hunter22" not in result

    def test_safe_text_unchanged(self) -> None:
        text = "Payment TXN_1718000000000_abc recorded for student 42"
        assert sanitize_for_log(text) == text
