"""Tests for perturbzoom/util/logging_setup.py: levels, session, worker hook."""

import logging
import logging.handlers

import pytest

from perturbzoom.util.logging_setup import (
    get_logger, level_from_name, logging_initialiser, logging_session,
)


class TestLevelFromName:

    def test_known_levels(self):
        assert level_from_name("debug") == logging.DEBUG
        assert level_from_name("WARNING") == logging.WARNING

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            level_from_name("chatty")


class TestLoggingSession:

    def test_writes_rotating_file(self, tmp_path):
        path = tmp_path / "run.log"
        with logging_session(level=logging.INFO, console=False, log_file=str(path)):
            get_logger().info("hello %s", "bands")
        for h in get_logger().handlers:
            h.flush()
        assert "hello bands" in path.read_text(encoding="utf-8")

    def test_queue_records_reach_handlers(self, tmp_path):
        path = tmp_path / "queue.log"
        with logging_session(level=logging.INFO, console=False, log_file=str(path)) as queue:
            record = logging.LogRecord("perturbzoom", logging.INFO, __file__, 1, "from worker", None, None)
            queue.put(record)
        for h in get_logger().handlers:
            h.flush()
        assert "from worker" in path.read_text(encoding="utf-8")


class TestLoggingInitialiser:

    def test_without_queue_keeps_handlers(self):
        logger = get_logger()
        handler = logging.NullHandler()
        logger.addHandler(handler)
        logging_initialiser(None, logging.INFO)
        assert handler in logger.handlers

    def test_with_queue_installs_queue_handler(self):
        import queue as queue_mod
        q = queue_mod.Queue()
        logging_initialiser(q, logging.DEBUG)
        logger = get_logger()
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.handlers.QueueHandler)
        logger.debug("routed")
        assert q.get_nowait().getMessage() == "routed"
