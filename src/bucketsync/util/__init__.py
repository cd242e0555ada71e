from .logger import get_logger, setup_logging
from .time import format_duration, normalize_dt, parse_rfc3339

__all__ = [
    "get_logger",
    "setup_logging",
    "parse_rfc3339",
    "normalize_dt",
    "format_duration",
]
