"""
Centralized logging configuration for homestream, built on Loguru.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import LoggingConfig, get_data_dir


def get_log_file_path() -> Path:
    """Get the path to the log file."""
    return get_data_dir() / "homestream.log"


class InterceptHandler(logging.Handler):
    """Route stdlib logging records (uvicorn, asyncio) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(
    config: LoggingConfig, log_file_path: Optional[Path] = None
) -> Path:
    """
    Configure loguru sinks for the server.

    Args:
        config: Logging section of the configuration
        log_file_path: Override for the log file location (tests)

    Returns:
        Path of the active log file
    """
    if log_file_path:
        log_file = log_file_path
    elif config.log_file:
        log_file = Path(config.log_file)
    else:
        log_file = get_log_file_path()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Remove default handler
    logger.remove()

    logger.add(
        log_file,
        rotation=f"{config.max_file_size_mb} MB",
        retention=config.backup_count,
        level="DEBUG",  # Capture everything in the file
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=True,  # Sink writes happen off the event loop
    )

    if config.console_output:
        logger.add(
            sys.stderr,
            level=config.level,
            format="<level>{level}</level>: {message}",
        )

    # uvicorn and asyncio log through the stdlib
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    logger.info(
        f"Logging initialized: {log_file} (level={config.level}, "
        f"max_size={config.max_file_size_mb}MB, backups={config.backup_count})"
    )
    return log_file
