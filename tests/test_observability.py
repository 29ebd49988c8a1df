"""Tests for logging configuration and operation timing."""
import io
import logging

import pytest

from dnote_doctor.observability import ROOT_LOGGER_NAME, configure_logging, timed_operation


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.NOTSET)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_console_format(self):
        stream = io.StringIO()
        configure_logging(level=logging.DEBUG, stream=stream)

        logging.getLogger("dnote_doctor.backup").debug("backing up")

        assert stream.getvalue() == "DEBUG: backing up\n"

    def test_level_filters(self):
        stream = io.StringIO()
        configure_logging(level=logging.WARNING, stream=stream)

        logging.getLogger("dnote_doctor.backup").info("quiet")
        logging.getLogger("dnote_doctor.backup").error("loud")

        assert stream.getvalue() == "ERROR: loud\n"

    def test_reconfigure_replaces_handlers(self):
        configure_logging(stream=io.StringIO())
        root_logger = configure_logging(stream=io.StringIO())
        assert len(root_logger.handlers) == 1

    def test_file_logging(self, tmp_path):
        log_dir = tmp_path / "logs"
        configure_logging(level=logging.INFO, console=False, log_dir=log_dir)

        logging.getLogger("dnote_doctor.issues").info("removed 4 duplicate notes")
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()

        content = (log_dir / "dnote-doctor.log").read_text()
        assert "[INFO] dnote_doctor.issues - removed 4 duplicate notes" in content


class TestTimedOperation:
    """Tests for timed_operation."""

    def test_logs_start_and_end(self):
        stream = io.StringIO()
        configure_logging(level=logging.DEBUG, stream=stream)

        with timed_operation("fix", issue="duplicate-json-note-uuid") as op:
            op["changed"] = True

        output = stream.getvalue()
        assert "START fix (issue=duplicate-json-note-uuid)" in output
        assert "[OK] changed=True" in output

    def test_logs_and_reraises_errors(self):
        stream = io.StringIO()
        configure_logging(level=logging.DEBUG, stream=stream)

        with pytest.raises(ValueError):
            with timed_operation("fix"):
                raise ValueError("bad store")

        assert "[ERROR: bad store]" in stream.getvalue()
