"""
Utilities Module for the Order Book Printer
==========================================

Configuration management and logging setup.
"""

from .config import (
    Config,
    ConfigurationError,
    FeedConfig,
    SubscriptionCredentials,
    load_config,
)
from .logger import LogLevel, get_logger, log_config

__all__ = [
    'Config',
    'ConfigurationError',
    'FeedConfig',
    'SubscriptionCredentials',
    'load_config',
    'LogLevel',
    'get_logger',
    'log_config'
]
