"""Tests for log formatting."""
import logging

from vaultbot.logging import ColoredConsoleFormatter, FileFormatter, get_logger, setup_logging


def make_record(name="vaultbot.vault", **extra):
    record = logging.LogRecord(name, logging.INFO, __file__, 1, "Credential %d stored", (12,), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:

    def test_file_line_has_area_and_ids(self):
        line = FileFormatter().format(make_record(chat_id=1, user_id=2))
        assert "[VAULTBOT.vault] INFO: Credential 12 stored (chat_id=1 user_id=2)" in line

    def test_console_line_without_ids(self):
        line = ColoredConsoleFormatter().format(make_record(name="vaultbot.telegram"))
        assert "[VAULTBOT.telegram]" in line
        assert line.endswith("Credential 12 stored")

    def test_foreign_logger_is_main(self):
        line = FileFormatter().format(make_record(name="uvicorn.error"))
        assert "[VAULTBOT.main]" in line


class TestSetup:

    def test_area_loggers_share_root_handlers(self):
        setup_logging(None)
        root = logging.getLogger("vaultbot")
        assert len(root.handlers) == 1
        assert get_logger("bot").parent is root

    def test_file_logging(self, tmp_path):
        log_path = setup_logging(str(tmp_path))
        get_logger("vault").info("Credential 3 stored", extra={"chat_id": 5, "user_id": 6})
        for handler in logging.getLogger("vaultbot").handlers:
            handler.flush()

        assert log_path.parent == tmp_path
        assert "Credential 3 stored (chat_id=5 user_id=6)" in log_path.read_text(encoding="utf-8")
        setup_logging(None)
