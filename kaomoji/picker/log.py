"""Logging setup for the picker front ends."""

import sys
from typing import Optional
from loguru import logger

from .config import PickerConfig

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def setup_logging(config: PickerConfig, level: Optional[str] = None) -> None:
    """Configure loguru sinks: stderr plus a rotating file under the data dir."""
    logger.remove()
    logger.add(
        sys.stderr,
        format=LOG_FORMAT,
        level=level or config.logging.level
    )

    if config.logging.file:
        log_dir = config.data_dir / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "picker.log",
            rotation="1 day",
            retention="7 days",
            level="DEBUG"
        )
