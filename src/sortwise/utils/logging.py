"""Logging setup for the sortwise command line and services."""
import logging
import logging.config
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

LOGGER_NAME = "sortwise"


def setup_logging(
    log_dir: Optional[str] = "./logs",
    console: bool = True,
    level: str = "INFO",
    quiet_console: bool = False,
    console_level: Optional[str] = None,
) -> Tuple[logging.Logger, logging.Logger]:
    """
    Configure the ``sortwise`` logger and its ``sortwise.summary`` child.

    Args:
        log_dir: Directory for the timestamped log file; None disables the file handler
        console: Whether to log to stderr
        level: Level of the project logger
        quiet_console: If True, only errors reach the console (summary logger only)
        console_level: Separate level for console (defaults to level)

    Returns:
        (logger, summary_logger)
    """
    name = LOGGER_NAME
    handlers = {}
    log_path = None

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = str(Path(log_dir) / f"{name}_{ts}.log")
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "plain",
            "filename": log_path,
            "encoding": "utf-8",
            "mode": "w",
            "level": "DEBUG",
        }

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "{asctime} {levelname:<7} {name} - {message}",
                "style": "{",
            },
        },
        "handlers": handlers,
        "loggers": {
            name: {
                "level": level.upper(),
                "handlers": list(handlers),
                "propagate": False,
            },
        },
        "root": {"handlers": []},
    }

    logging.config.dictConfig(config)
    logging.captureWarnings(True)

    logger = logging.getLogger(name)
    console_formatter = logging.Formatter("{levelname:<7} {message}", style="{")

    summary_logger = logging.getLogger(f"{name}.summary")
    summary_logger.setLevel(logging.INFO)
    summary_logger.propagate = False
    for h in list(summary_logger.handlers):
        summary_logger.removeHandler(h)

    if log_path:
        fh_summary = logging.FileHandler(log_path, encoding="utf-8", mode="a")
        fh_summary.setLevel(logging.INFO)
        fh_summary.setFormatter(logging.Formatter("{asctime} SUMMARY - {message}", style="{"))
        summary_logger.addHandler(fh_summary)

    if console and not quiet_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, (console_level or level).upper()))
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)
        summary_logger.addHandler(console_handler)
    elif console and quiet_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.ERROR)
        console_handler.setFormatter(console_formatter)
        summary_logger.addHandler(console_handler)

    logger.debug("Logging initialised. File: %s", log_path)
    return logger, summary_logger
