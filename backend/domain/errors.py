"""
Domain errors - Exceptions raised by services and rendered by the API layer.
Every error carries the HTTP status it should surface with.
"""
from typing import Optional, Dict, Any


class AppError(Exception):
    """Base exception for all application errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(AppError):
    """Raised when a provider credential is missing or empty. Never retried."""


class UpstreamProviderError(AppError):
    """Raised when an LLM provider or the vector store call fails."""

    @classmethod
    def from_exception(cls, exc: Exception) -> "UpstreamProviderError":
        """Wrap any exception, keeping the status the provider reported if there is one."""
        status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
        if not isinstance(status, int):
            status = None
        return cls(str(exc) or exc.__class__.__name__, status_code=status)


class ModeRestrictionError(AppError):
    """Raised when an operation is disabled by the deployment mode."""

    status_code = 403


class InvalidRequestError(AppError):
    """Raised when the request body cannot be handled."""

    status_code = 400
