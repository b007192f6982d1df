"""Collaborator contracts consumed by the authentication workflows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from .account import Account


@dataclass(slots=True, frozen=True)
class CredentialsInput:
    """Transient login key and secret supplied for a single register/login call."""

    email: str
    password: str = field(repr=False)


class DuplicateKeyError(Exception):
    """Raised by a store when an insert violates the unique email constraint."""


class StoreUnavailableError(Exception):
    """Raised by a store when it cannot complete a read or write."""


class CredentialStore(Protocol):
    """Durable account storage keyed by the normalised email address."""

    def create_account(self, email: str, password_hash: str) -> str:
        """Atomically insert an account and return its identifier.

        Raises ``DuplicateKeyError`` when the email is already registered and
        ``StoreUnavailableError`` for any other failure.
        """
        ...

    def find_by_email(self, email: str) -> Account | None:
        """Return the account registered under ``email`` or ``None``.

        Raises ``StoreUnavailableError`` when the lookup cannot be performed.
        """
        ...
