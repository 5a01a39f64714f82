"""
Logging Configuration Module
===========================

Controls logging levels and output formatting for the order book printer.
Logs always go to stderr so that stdout carries only best bid/ask lines.
"""

import sys
from enum import Enum
from loguru import logger


class LogLevel(Enum):
    """Logging levels for different run modes"""
    SILENT = "SILENT"           # Only critical errors
    QUIET = "QUIET"             # Errors and warnings only
    NORMAL = "NORMAL"           # Info, warnings, and errors
    VERBOSE = "VERBOSE"         # Debug, info, warnings, and errors
    TRACE = "TRACE"             # All logging including trace


LEVEL_MAPPING = {
    LogLevel.SILENT: "CRITICAL",
    LogLevel.QUIET: "WARNING",
    LogLevel.NORMAL: "INFO",
    LogLevel.VERBOSE: "DEBUG",
    LogLevel.TRACE: "TRACE"
}


class LogConfig:
    """Logging configuration manager"""

    def __init__(self):
        self.current_level = LogLevel.NORMAL
        self._initialized = False

    def setup_logging(self,
                      level: LogLevel = LogLevel.NORMAL,
                      show_backtrace: bool = False,
                      show_diagnose: bool = False) -> None:
        """
        Configure console logging for the application

        Args:
            level: Logging level to use
            show_backtrace: Show full backtraces on errors
            show_diagnose: Show diagnostic information
        """
        # Remove default logger
        logger.remove()

        if level == LogLevel.SILENT:
            format_str = "<red><bold>CRITICAL</bold></red> | {message}"
        elif level == LogLevel.QUIET:
            format_str = "<level>{level}</level> | {message}"
        elif level == LogLevel.NORMAL:
            format_str = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> | {message}"
        else:
            format_str = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | {message}"

        logger.add(
            sys.stderr,
            format=format_str,
            level=LEVEL_MAPPING[level],
            backtrace=show_backtrace,
            diagnose=show_diagnose,
            colorize=True
        )

        self.current_level = level

        if level != LogLevel.SILENT and not self._initialized:
            logger.info(f"Logging configured: level={level.value}")

        self._initialized = True

    def add_file_logging(self,
                         filepath: str,
                         level: LogLevel = LogLevel.VERBOSE,
                         rotation: str = "10 MB",
                         retention: str = "7 days") -> int:
        """
        Add file logging in addition to console

        Args:
            filepath: Path to log file
            level: Logging level for file
            rotation: File rotation policy
            retention: Log retention policy

        Returns:
            The loguru handler id, usable with ``logger.remove``
        """
        file_format = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"

        handler_id = logger.add(
            filepath,
            format=file_format,
            level=LEVEL_MAPPING[level],
            rotation=rotation,
            retention=retention,
            backtrace=True,
            diagnose=False
        )

        if self.current_level != LogLevel.SILENT:
            logger.info(f"File logging enabled: {filepath}")

        return handler_id


# Global log configuration instance
log_config = LogConfig()


def setup_logging_from_name(level_name: str) -> LogLevel:
    """Configure logging from a level name such as ``"verbose"``"""
    level = LogLevel[level_name.upper()]
    if level in (LogLevel.VERBOSE, LogLevel.TRACE):
        log_config.setup_logging(level, show_backtrace=True)
    else:
        log_config.setup_logging(level)
    return level


def setup_silent_logging():
    """Quick setup for silent operation"""
    log_config.setup_logging(level=LogLevel.SILENT)


def get_logger(name: str):
    """
    Get a logger instance for a component

    Args:
        name: Component name, available to formats as ``{extra[component]}``

    Returns:
        Logger instance
    """
    if not log_config._initialized:
        log_config.setup_logging()

    return logger.bind(component=name)
