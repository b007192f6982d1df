from __future__ import annotations

import os
import threading
import uuid
from datetime import datetime, timedelta, timezone

import pytest

# Settings are read from the environment when auth_service.config is imported.
os.environ.setdefault("JWT_SECRET", "test-environment-secret-0123456789abcdef")

from auth_service.domain.account import Account
from auth_service.domain.contracts import DuplicateKeyError, StoreUnavailableError
from auth_service.domain.service import AuthService
from auth_service.security.passwords import PasswordHasher

SIGNING_KEY = b"test-signing-key-0123456789abcdef0123"
FIXED_NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeCredentialStore:
    """In-memory store enforcing the unique email constraint atomically."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._lock = threading.Lock()
        self.available = True
        self.lookups = 0

    def create_account(self, email: str, password_hash: str) -> str:
        if not self.available:
            raise StoreUnavailableError("store down")
        with self._lock:
            if email in self._accounts:
                raise DuplicateKeyError(email)
            account_id = str(uuid.uuid4())
            self._accounts[email] = Account(
                account_id=account_id,
                email=email,
                password_hash=password_hash,
                created_at=datetime.now(timezone.utc),
            )
        return account_id

    def find_by_email(self, email: str) -> Account | None:
        if not self.available:
            raise StoreUnavailableError("store down")
        self.lookups += 1
        return self._accounts.get(email)

    def rows_for(self, email: str) -> list[Account]:
        return [account for account in self._accounts.values() if account.email == email]


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def store() -> FakeCredentialStore:
    return FakeCredentialStore()


@pytest.fixture
def service(store: FakeCredentialStore, hasher: PasswordHasher) -> AuthService:
    return AuthService(
        store,
        hasher,
        signing_key=SIGNING_KEY,
        token_duration=timedelta(hours=1),
        issuer="test.auth",
        clock=lambda: FIXED_NOW,
    )
