from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when no valid session is present."""


class AuthorizationError(DomainError):
    """Raised when a participant lacks permission for an action."""


class InvalidTokenError(AuthenticationError):
    """Raised when a token is malformed, expired or carries a bad signature."""


class UnknownParticipantError(AuthorizationError):
    """Raised when a token verifies but no participant record matches it."""


class RateLimitedError(DomainError):
    """Raised when a caller exceeded its request window."""

    def __init__(self, message: str = "Too many requests", *, retry_after: int = 0, reset_time: Optional[float] = None):
        super().__init__(message)
        self.retry_after = int(retry_after)
        self.reset_time = reset_time


class ConfigurationMissingError(DomainError):
    """Raised when a required secret or role configuration is absent."""


class DuplicateCheckInError(DomainError):
    """Raised by repositories when the (participant, date) unique key already exists."""
