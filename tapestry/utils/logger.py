"""
Logging configuration using Loguru.

Console output is human readable. The file sink writes JSON records so
commits, conflicts and migrations can be filtered by their bound fields
(``module`` always, ``model_id`` and hashes where the caller binds them).
"""

import sys
from pathlib import Path

from loguru import logger

from tapestry.config import LoggingConfig

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[module]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[module]}:{function}:{line} - {message}"


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = True,
    log_dir: str = "logs",
    file_rotation: str = "10 MB",
    file_retention: str = "7 days",
    compression: str = "zip",
    serialize: bool = True,
) -> None:
    """Configure Loguru with a console sink and a rotating JSON file sink."""
    logger.remove()
    # Records logged without get_logger() still need a module field
    logger.configure(extra={"module": "tapestry"})

    logger.add(
        sys.stderr,
        level=level,
        format=CONSOLE_FORMAT,
        colorize=True,
        serialize=False,
    )

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path / "tapestry_{time:YYYY-MM-DD}.log",
            level=level,
            format=FILE_FORMAT,
            rotation=file_rotation,
            retention=file_retention,
            compression=compression,
            serialize=serialize,
            enqueue=True,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Apply the ``logging`` section of a Config."""
    setup_logging(**config.model_dump())


def get_logger(name: str, **context):
    """
    Get a logger bound to a module.

    Args:
        name: Module name (usually ``__name__``)
        **context: Extra fields bound to every record (e.g. ``model_id``)
    """
    return logger.bind(module=name, **context)
