"""
Logging for the autotrader.* logger tree. setup_logging attaches console and
file handlers to "autotrader"; modules log through children such as
autotrader.engine, autotrader.execution.okx and autotrader.backtest.
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """Reset and configure the "autotrader" logger. Children propagate to it."""
    tree = logging.getLogger("autotrader")
    tree.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(tree.handlers):
        tree.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_dir and log_file:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(Path(log_dir) / log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        tree.addHandler(handler)

    # urllib3 logs every OKX and Telegram request at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return tree
