# utils/logging_config.py
import logging
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown logging level: {level}")
        return resolved
    return level


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Route engine log records to the console and, optionally, a file.

    Args:
        level: Root level, as a number or a name such as "DEBUG". Newton
            iterations are traced at DEBUG.
        log_file: Optional path to a file that receives the same records.
    """
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))

    # Drop handlers from an earlier call
    if root.hasHandlers():
        root.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Retrieve a logger for an engine module.

    Args:
        name: The name of the logger, usually ``__name__``.
        level: Optional level override; by default the level is inherited
            from the root logger configured by ``setup_logging``.
    """
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger
