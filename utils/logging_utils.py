# -*- coding: utf-8 -*-
import logging
import sys
import os
import time
from typing import Optional
from datetime import datetime

import pytz

# Constants for logging
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEBUG_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s [%(filename)s:%(lineno)d]'
DEFAULT_LOG_TIMEZONE = 'UTC'

# Temporary debug mode (enabled at runtime, expires on its own)
_temp_debug_mode_enabled = False
_temp_debug_expiry = 0.0


def is_debug_mode_enabled() -> bool:
    """
    Checks if debug mode is enabled.

    Debug mode is on when ``TGC_DEBUG`` is set to a truthy value or when a
    temporary debug window opened with :func:`enable_temporary_debug` has not
    expired yet.
    """
    global _temp_debug_mode_enabled

    if _temp_debug_mode_enabled:
        if time.time() < _temp_debug_expiry:
            return True
        _temp_debug_mode_enabled = False

    return os.getenv('TGC_DEBUG', '').strip().lower() in ('1', 'true', 'yes', 'on')


class DebugModeFilter(logging.Filter):
    """
    Filter that only allows DEBUG messages when debug mode is enabled.
    INFO and higher levels are always allowed.
    """
    def filter(self, record):
        if record.levelno < logging.INFO:
            return is_debug_mode_enabled()
        return True


class TimezoneFormatter(logging.Formatter):
    """
    A custom formatter that renders timestamps in the configured timezone.
    """
    def __init__(self, fmt=None, datefmt=None, tz=None):
        super().__init__(fmt, datefmt)
        self.tz = tz

    def _resolve_tz(self):
        tz_name = self.tz or os.getenv('TGC_LOG_TIMEZONE', DEFAULT_LOG_TIMEZONE)
        try:
            return pytz.timezone(tz_name)
        except pytz.exceptions.UnknownTimeZoneError:
            return pytz.utc

    def formatTime(self, record, datefmt=None):
        if datefmt is None:
            datefmt = self.datefmt or '%Y-%m-%d %H:%M:%S'

        dt = datetime.fromtimestamp(record.created, self._resolve_tz())
        return dt.strftime(datefmt) + f" {dt.tzname()}"


def setup_logger(name: str, level=logging.INFO, log_to_console=True, custom_formatter=None) -> logging.Logger:
    """
    Creates a logger with the specified name and logging level.

    Args:
        name: Logger name
        level: Logging level (default: INFO)
        log_to_console: Whether to output logs to console
        custom_formatter: Optional custom formatter for the logs

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers in case of re-initialization
    if logger.handlers:
        return logger

    if custom_formatter is None:
        if level <= logging.DEBUG:
            formatter = TimezoneFormatter(DEBUG_LOG_FORMAT)
        else:
            formatter = TimezoneFormatter(DEFAULT_LOG_FORMAT)
    else:
        formatter = custom_formatter

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(DebugModeFilter())
        logger.addHandler(console_handler)

    return logger


def enable_temporary_debug(duration_minutes=10):
    """
    Enables temporary debug mode for a specified duration.

    Returns:
        float: timestamp when debug mode will expire
    """
    global _temp_debug_mode_enabled, _temp_debug_expiry

    _temp_debug_expiry = time.time() + (duration_minutes * 60)
    _temp_debug_mode_enabled = True

    expiry_time = datetime.fromtimestamp(_temp_debug_expiry).strftime('%Y-%m-%d %H:%M:%S')
    logging.getLogger('tgc.config').info(
        "Temporary debug mode ENABLED for %s minutes (until %s)", duration_minutes, expiry_time
    )
    return _temp_debug_expiry


def disable_temporary_debug():
    """Disables temporary debug mode immediately."""
    global _temp_debug_mode_enabled, _temp_debug_expiry

    _temp_debug_mode_enabled = False
    _temp_debug_expiry = 0.0
    logging.getLogger('tgc.config').info("Temporary debug mode DISABLED manually")


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Central logger factory with consistent configuration.

    Args:
        name: Logger name (e.g. 'tgc.module_name')
        level: Optional log level override
    """
    if level is None:
        level = logging.DEBUG if is_debug_mode_enabled() else logging.INFO

    return setup_logger(name, level=level)


def get_module_logger(module_name: str) -> logging.Logger:
    """Creates a module logger with the tgc. prefix"""
    return get_logger(f'tgc.{module_name}')
