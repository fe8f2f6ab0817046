# filevault/core/logger.py
import os
import sys
from pathlib import Path

from loguru import logger

from filevault.config.settings import settings

ENV = os.getenv("ENV", "development").lower()

# drop the default handler
logger.remove()

# console
logger.add(
    sys.stderr,
    level="DEBUG" if ENV == "development" else "INFO",
    colorize=True,
    enqueue=True,
    backtrace=True,
    diagnose=ENV == "development",
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
           "<level>{level: <8}</level> | "
           "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
           "<level>{message}</level>"
)

if settings.logging.enable_file:
    log_dir = Path(settings.logging.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    # plain text log
    logger.add(
        log_dir / "filevault.log",
        level="DEBUG",
        rotation=settings.logging.rotation,
        retention=settings.logging.retention,
        encoding="utf-8",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )

    # structured JSON, warnings and above
    logger.add(
        log_dir / "filevault.json",
        level="WARNING",
        rotation=settings.logging.rotation,
        retention=settings.logging.retention,
        serialize=True,
        encoding="utf-8",
        enqueue=True,
    )


def get_logger(name: str = None):
    """loguru counterpart of logging.getLogger()"""
    if name:
        return logger.bind(module=name)
    return logger


logger.debug(f"Log system initialized in {ENV} mode.")
