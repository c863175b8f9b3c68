"""setup_logging tests."""

import logging

from autotrader.core.logger import setup_logging


def test_child_loggers_reach_file(tmp_path):
    tree = setup_logging("debug", tmp_path / "logs", "autotrader.log")
    try:
        assert tree.name == "autotrader"
        assert tree.level == logging.DEBUG
        assert len(tree.handlers) == 2

        logging.getLogger("autotrader.engine").debug("cycle start")
        for handler in tree.handlers:
            handler.flush()
        text = (tmp_path / "logs" / "autotrader.log").read_text(encoding="utf-8")
        assert "| DEBUG    | autotrader.engine | cycle start" in text
    finally:
        setup_logging("INFO")


def test_setup_is_idempotent():
    setup_logging("warning")
    tree = setup_logging("warning")
    assert len(tree.handlers) == 1
    assert tree.level == logging.WARNING
    setup_logging("INFO")
