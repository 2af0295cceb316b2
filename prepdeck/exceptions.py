"""
Custom exception classes.

This module provides the error taxonomy shared by the backend client
and the view-models. The client raises these; the view-models catch
them at the call site and turn them into notifications.
"""
from typing import Any, Dict, Optional

import httpx


class PrepDeckError(Exception):
    """Base exception for all PrepDeck-specific errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(PrepDeckError):
    """Raised when a required selection is missing. Never reaches the network."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, httpx.codes.BAD_REQUEST, details)
        self.field = field


class QuotaExhaustedError(PrepDeckError):
    """Raised when the generation quota for the current window is used up."""

    def __init__(
        self,
        message: str,
        reset_in: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, status_code, details)
        self.reset_in = reset_in


class RateLimitedError(QuotaExhaustedError):
    """Raised when the backend answers 429 mid-flight."""

    def __init__(self, message: str, reset_in: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, reset_in, httpx.codes.TOO_MANY_REQUESTS, details)


class BackendError(PrepDeckError):
    """
    Raised for transport failures, unexpected status codes and
    malformed response bodies. Always retryable by the user.
    """


class OperationInProgressError(PrepDeckError):
    """Raised when an action is triggered while the same action is still in flight."""

    def __init__(self, operation: str):
        super().__init__(f"{operation} already in progress")
        self.operation = operation
