"""Tests for logging configuration"""
import io
import logging

from worktree_tasks.logging_config import (
    LOG_FILENAME,
    ColoredFormatter,
    get_logger,
    setup_logging,
)


class TTYStream(io.StringIO):
    def isatty(self):
        return True


def make_record(level=logging.WARNING, msg="worktree removed"):
    return logging.LogRecord("gw.app", level, __file__, 1, msg, None, None)


class TestGetLogger:

    def test_module_names_shortened(self):
        assert get_logger("worktree_tasks.services.git_service").name == "gw.git_service"
        assert get_logger("worktree_tasks.app").name == "gw.app"

    def test_main_module_is_cli(self):
        assert get_logger("__main__").name == "gw.cli"

    def test_foreign_names_kept(self):
        assert get_logger("plugin").name == "gw.plugin"


class TestSetupLogging:

    def test_tui_mode_logs_only_to_file(self, root_logger, temp_dir):
        logger = setup_logging(tui_mode=True, log_dir=str(temp_dir))

        assert logger.name == "gw"
        assert [type(h) for h in root_logger.handlers] == [logging.FileHandler]

        get_logger("worktree_tasks.app").warning("unable to remove worktree")
        root_logger.handlers[0].flush()
        content = (temp_dir / LOG_FILENAME).read_text()
        assert "gw.app - WARNING - unable to remove worktree" in content

    def test_file_level_follows_verbosity(self, root_logger, temp_dir):
        setup_logging(tui_mode=True, log_dir=str(temp_dir))
        logger = get_logger("worktree_tasks.app")
        logger.info("hidden")
        logger.warning("shown")
        root_logger.handlers[0].flush()

        content = (temp_dir / LOG_FILENAME).read_text()
        assert "shown" in content
        assert "hidden" not in content

    def test_console_mode_has_no_file(self, root_logger, temp_dir):
        setup_logging(log_dir=str(temp_dir))
        assert not (temp_dir / LOG_FILENAME).exists()
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, ColoredFormatter)

    def test_repeated_setup_replaces_handlers(self, root_logger, temp_dir):
        setup_logging(tui_mode=True, log_dir=str(temp_dir))
        setup_logging(tui_mode=True, log_dir=str(temp_dir))
        assert len(root_logger.handlers) == 1

    def test_library_loggers_quiet_unless_debug(self, root_logger, temp_dir):
        setup_logging(tui_mode=True, log_dir=str(temp_dir))
        assert logging.getLogger("git").level == logging.WARNING
        setup_logging(debug=True, tui_mode=True, log_dir=str(temp_dir))
        assert logging.getLogger("git").level == logging.DEBUG


class TestColoredFormatter:

    def test_plain_on_non_terminal(self):
        formatter = ColoredFormatter(fmt="%(levelname)s %(message)s", stream=io.StringIO())
        assert formatter.format(make_record()) == "WARNING worktree removed"

    def test_colored_on_terminal(self):
        formatter = ColoredFormatter(fmt="%(levelname)s", stream=TTYStream())
        output = formatter.format(make_record(logging.ERROR))
        assert output == f"{ColoredFormatter.COLORS[logging.ERROR]}ERROR{ColoredFormatter.RESET}"

    def test_record_left_untouched_for_other_handlers(self):
        formatter = ColoredFormatter(fmt="%(levelname)s", stream=TTYStream())
        record = make_record()
        formatter.format(record)
        assert record.levelname == "WARNING"
