"""
Logger setup for command-line runs
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"


def setup_logger(log_file: Optional[str] = None, level: str = "INFO") -> Optional[Path]:
    """Route loguru output to stdout and, when given, to a log file"""
    logger.remove()
    logger.add(sys.stdout, format=LOG_FORMAT, level=level)
    if not log_file:
        return None
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(path, format=LOG_FORMAT, level=level, encoding="utf-8")
    return path
