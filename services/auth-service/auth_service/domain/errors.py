"""Failure kinds surfaced by the authentication service."""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    validation = "validation"
    duplicate_account = "duplicate_account"
    invalid_credentials = "invalid_credentials"
    internal = "internal"


class AuthError(Exception):
    """Base class for every failure the service reports to its callers."""

    kind: FailureKind

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.kind.value.replace("_", " "))


class ValidationFailure(AuthError):
    """Malformed input rejected before any I/O."""

    kind = FailureKind.validation


class DuplicateAccount(AuthError):
    """The normalised email is already registered."""

    kind = FailureKind.duplicate_account


class InvalidCredentials(AuthError):
    """Unknown email or wrong password; the two are never distinguished."""

    kind = FailureKind.invalid_credentials


class InternalFailure(AuthError):
    """Store, hashing or signing failure. Details are logged, never returned."""

    kind = FailureKind.internal
