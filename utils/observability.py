# -*- coding: utf-8 -*-
# ============================================================================ #
# TapGame Core (TGC) - Observability Utilities                                #
# Copyright (c) 2025 MAX                                                       #
# Licensed under the MIT License                                               #
# ============================================================================ #
"""
Observability utilities for TGC.

Provides structured logging and lightweight in-memory metrics collection.

Example:
    >>> from utils.observability import get_structured_logger, metrics
    >>>
    >>> logger = get_structured_logger(__name__)
    >>> logger.info("sync_completed", extra={
    ...     "telegram_id": "42",
    ...     "acked_points": 120.0,
    ... })
    >>>
    >>> metrics.increment("sync.success.total")
    >>> metrics.histogram("sync.acked_points", 120.0)
"""

import json
import logging
import time
from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
from collections import defaultdict
from contextlib import contextmanager
import sys


# ============================================================================ #
# JSON Structured Logging                                                      #
# ============================================================================ #

class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Example output:
        {
            "timestamp": "2025-01-15T10:30:45.123Z",
            "level": "INFO",
            "logger": "tgc.sync",
            "message": "sync_completed",
            "service": "SyncService",
            "acked_points": 120.0
        }
    """

    STANDARD_ATTRS = {
        'name', 'msg', 'args', 'created', 'filename', 'funcName',
        'levelname', 'levelno', 'lineno', 'module', 'msecs',
        'pathname', 'process', 'processName', 'relativeCreated',
        'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
        'getMessage', 'message', 'taskName'
    }

    def __init__(self, service_name: str = "tgc"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        for key, value in record.__dict__.items():
            if key not in self.STANDARD_ATTRS:
                log_entry[key] = value

        if record.pathname and record.lineno:
            log_entry["source"] = f"{record.filename}:{record.lineno}"

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class StructuredLogger(logging.LoggerAdapter):
    """
    Logger adapter that adds structured context to all log messages.

    Example:
        >>> logger = StructuredLogger(logging.getLogger(__name__), {
        ...     "service": "SyncService",
        ... })
        >>> logger.info("sync_completed", extra={"acked_points": 10})
    """

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get('extra', {})
        extra.update(self.extra)
        kwargs['extra'] = extra
        return msg, kwargs


def get_structured_logger(
    name: str,
    service_name: str = "tgc",
    use_json: bool = False,
    context: Optional[Dict[str, Any]] = None
) -> StructuredLogger:
    """
    Get a structured logger with JSON formatting support.

    Args:
        name: Logger name (e.g., __name__)
        service_name: Service name for identification
        use_json: If True, use JSON formatter; otherwise use standard text format
        context: Default context to add to all log messages
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)

        if use_json:
            formatter = JSONFormatter(service_name)
        else:
            from utils.logging_utils import DEFAULT_LOG_FORMAT, TimezoneFormatter
            formatter = TimezoneFormatter(DEFAULT_LOG_FORMAT)

        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    return StructuredLogger(logger, context or {})


# ============================================================================ #
# Metrics Collection                                                           #
# ============================================================================ #

class MetricsCollector:
    """
    Lightweight metrics collector for TGC.

    Collects counters, histograms and gauges in memory.

    Example:
        >>> metrics = MetricsCollector()
        >>> metrics.increment("sync.success.total")
        >>> metrics.histogram("sync.acked_points", 5.0)
        >>> metrics.gauge("session.unsynced_points", 10)
        >>> stats = metrics.get_stats()
    """

    def __init__(self):
        self._counters: Dict[str, int] = defaultdict(int)
        self._histograms: Dict[str, List[float]] = defaultdict(list)
        self._gauges: Dict[str, float] = {}
        self._start_time = time.time()

    def increment(self, name: str, value: int = 1, tags: Optional[Dict[str, str]] = None) -> None:
        """Increment a counter metric."""
        self._counters[name] += value

    def histogram(self, name: str, value: float, tags: Optional[Dict[str, str]] = None) -> None:
        """Record a value in a histogram."""
        self._histograms[name].append(value)

    def gauge(self, name: str, value: float, tags: Optional[Dict[str, str]] = None) -> None:
        """Set a gauge metric (point-in-time value)."""
        self._gauges[name] = value

    @contextmanager
    def timer(self, name: str):
        """
        Context manager for timing operations.

        Automatically records duration as a histogram named ``<name>.duration_ms``.
        """
        start = time.time()
        try:
            yield
        finally:
            duration_ms = (time.time() - start) * 1000
            self.histogram(f"{name}.duration_ms", duration_ms)

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics for all metrics."""
        stats = {
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
            "histograms": {},
            "uptime_seconds": time.time() - self._start_time
        }

        for name, values in self._histograms.items():
            if values:
                sorted_values = sorted(values)
                count = len(values)
                stats["histograms"][name] = {
                    "count": count,
                    "sum": sum(values),
                    "min": sorted_values[0],
                    "max": sorted_values[-1],
                    "mean": sum(values) / count,
                    "p50": sorted_values[int(count * 0.5)],
                    "p95": sorted_values[int(count * 0.95)] if count > 1 else sorted_values[0],
                }

        return stats

    def reset(self) -> None:
        """Reset all metrics."""
        self._counters.clear()
        self._histograms.clear()
        self._gauges.clear()
        self._start_time = time.time()


# Global metrics instance
metrics = MetricsCollector()
