import logging
import logging.handlers

import pytest

from sketchbook.config import LoggingConfig
from sketchbook.logging_setup import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield root
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.handlers.RotatingFileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_setup_logging_adds_rotating_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "sketchbook.log"
    setup_logging(LoggingConfig(level="debug", log_file=str(log_file), max_bytes=1024, backup_count=1))

    root = restore_root_logger
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 2
    rotating = [h for h in root.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(rotating) == 1

    logging.getLogger("sketchbook.test").info("hello from the test")
    rotating[0].flush()
    assert "hello from the test" in log_file.read_text()


def test_setup_logging_replaces_handlers(restore_root_logger):
    setup_logging(LoggingConfig())
    setup_logging(LoggingConfig(level="WARNING"))
    root = restore_root_logger
    assert len(root.handlers) == 1
    assert root.level == logging.WARNING
