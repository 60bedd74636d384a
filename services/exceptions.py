#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
TapGame Core - Custom Exception Hierarchy
Structured error handling for the I/O boundaries of the game services.

The game engine itself never raises for rule violations (insufficient energy,
balance or refills are silent no-ops); these exceptions only cover
configuration, local storage and the sync transport.
"""

# ============================================================================
# BASE EXCEPTIONS
# ============================================================================

class TGCBaseException(Exception):
    """
    Base exception for all TapGame Core errors.

    All custom exceptions inherit from this to allow catching all TGC-specific errors.
    Includes structured error data support.
    """
    def __init__(self, message: str, error_code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self):
        """Convert exception to structured dictionary for logging/API responses."""
        return {
            'error': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'details': self.details
        }


# ============================================================================
# CONFIGURATION EXCEPTIONS
# ============================================================================

class ConfigServiceError(TGCBaseException):
    """Base exception for all configuration errors."""

class ConfigLoadError(ConfigServiceError):
    """Raised when configuration loading fails."""

class ConfigValidationError(ConfigServiceError):
    """Raised when configuration validation fails."""


# ============================================================================
# DATABASE/STORAGE EXCEPTIONS
# ============================================================================

class StorageError(TGCBaseException):
    """Base exception for all local storage errors."""

class FileStorageError(StorageError):
    """Raised when file storage operations fail."""


# ============================================================================
# SYNC EXCEPTIONS
# ============================================================================

class SyncServiceError(TGCBaseException):
    """Base exception for all progress sync errors."""

class SyncTransportError(SyncServiceError):
    """Raised when the sync endpoint cannot be reached or answers with an error status."""

class SyncProtocolError(SyncServiceError):
    """Raised when the sync endpoint answers with a body we cannot interpret."""

class InvalidInitDataError(SyncServiceError):
    """Raised when Telegram init data is unsigned, tampered with or stale."""


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def get_exception_info(exception: Exception) -> dict:
    """
    Extract structured information from any exception.

    Args:
        exception: The exception to extract info from

    Returns:
        Dictionary with exception details
    """
    if isinstance(exception, TGCBaseException):
        return exception.to_dict()
    else:
        return {
            'error': exception.__class__.__name__,
            'error_code': exception.__class__.__name__,
            'message': str(exception),
            'details': {}
        }


def is_recoverable_error(exception: Exception) -> bool:
    """
    Determine if an error is recoverable (retry possible).

    Transport failures are retried on the next sync cycle; protocol and
    init data errors need a fix on the other side first.
    """
    recoverable_types = (
        SyncTransportError,
        FileStorageError,
    )

    return isinstance(exception, recoverable_types)
