"""
Logging configuration for the batch jobs and the host application

The core modules log through the standard library; setup_logging() routes
those records into loguru sinks.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from hemisphere.core.config import Settings, settings as default_settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[job]}</magenta> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[job]} | {name}:{function}:{line} - {message}"


class InterceptHandler(logging.Handler):
    """
    Forward stdlib log records to loguru, keeping the original call site
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging's own frames so {name}/{line} point at the caller
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(config: Optional[Settings] = None, job: str = "hemisphere") -> None:
    """
    Install loguru sinks and intercept the stdlib root logger

    Args:
        config: Settings to read levels and sinks from (defaults to the module settings)
        job: Name attached to every record and used for the production log file
    """
    config = config or default_settings

    logger.remove()
    logger.configure(extra={"job": job})

    logger.add(sys.stderr, colorize=True, format=CONSOLE_FORMAT, level=config.LOG_LEVEL)

    if config.ENVIRONMENT == "production":
        log_dir = Path(config.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / f"{job}_{{time:YYYY-MM-DD}}.log",
            rotation="500 MB",
            retention="30 days",
            enqueue=True,
            serialize=config.LOG_SERIALIZE,
            level=config.LOG_LEVEL,
            format=FILE_FORMAT,
        )

    logging.root.handlers = [InterceptHandler()]
    logging.root.setLevel(config.LOG_LEVEL)

    # Library loggers propagate to the intercepted root
    for name in logging.root.manager.loggerDict.keys():
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True

    logger.debug(f"Logging configured - Level: {config.LOG_LEVEL}, Environment: {config.ENVIRONMENT}")
