"""Authentication service orchestrating credential storage, hashing, and token issuance."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from schemas import AccessClaims

from .account import normalize_email
from .contracts import CredentialsInput, CredentialStore, DuplicateKeyError, StoreUnavailableError
from .errors import DuplicateAccount, InternalFailure, InvalidCredentials, ValidationFailure
from ..security.passwords import MAX_SECRET_BYTES, HashingFailure, PasswordHasher
from ..security.tokens import SigningFailure, decode_access_token, issue_access_token

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthService:
    """Register and login workflows over an injected credential store.

    The service keeps no per-call state; the store, hasher and token settings
    are read-only after construction so one instance serves concurrent callers.
    """

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        *,
        signing_key: bytes,
        token_duration: timedelta,
        issuer: str | None = None,
        password_min_length: int = 6,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Store collaborators and the token policy applied to every issued token."""
        if token_duration <= timedelta(0):
            raise ValueError("token_duration must be positive")
        self._store = store
        self._hasher = hasher
        self._signing_key = signing_key
        self._token_duration = token_duration
        self._issuer = issuer
        self._password_min_length = password_min_length
        self._clock = clock

    def register(self, credentials: CredentialsInput) -> str:
        """Create an account for the credentials and return a token bound to it."""
        email = self._validated_email(credentials.email)
        password = credentials.password
        if not password or len(password) < self._password_min_length:
            raise ValidationFailure("password too short")
        if len(password.encode("utf-8")) > MAX_SECRET_BYTES:
            raise ValidationFailure("password too long")

        try:
            password_hash = self._hasher.hash(password)
        except HashingFailure as exc:
            logger.exception("password hashing failed during registration")
            raise InternalFailure() from exc

        try:
            account_id = self._store.create_account(email, password_hash)
        except DuplicateKeyError as exc:
            raise DuplicateAccount() from exc
        except StoreUnavailableError as exc:
            logger.exception("credential store unavailable during registration")
            raise InternalFailure() from exc

        logger.info("account registered account_id=%s", account_id)
        return self._issue(account_id)

    def login(self, credentials: CredentialsInput) -> str:
        """Verify the credentials and return a token bound to the matching account."""
        email = self._validated_email(credentials.email)
        password = credentials.password
        if not password:
            raise ValidationFailure("password is required")

        try:
            account = self._store.find_by_email(email)
        except StoreUnavailableError as exc:
            logger.exception("credential store unavailable during login")
            raise InternalFailure() from exc

        try:
            if account is None:
                matched = self._hasher.verify_dummy(password)
            else:
                matched = self._hasher.verify(password, account.password_hash)
        except HashingFailure as exc:
            logger.exception("password verification failed during login")
            raise InternalFailure() from exc

        if account is None or not matched:
            raise InvalidCredentials()

        logger.info("login succeeded account_id=%s", account.account_id)
        return self._issue(account.account_id)

    def verify_token(self, token: str) -> AccessClaims:
        """Verify a token issued by this service against the current time.

        Raises the ``TokenError`` subclasses from :mod:`auth_service.security.tokens`.
        """
        return decode_access_token(token, now=self._clock(), signing_key=self._signing_key)

    def _validated_email(self, email: str) -> str:
        normalized = normalize_email(email or "")
        if not normalized:
            raise ValidationFailure("email is required")
        return normalized

    def _issue(self, account_id: str) -> str:
        try:
            return issue_access_token(
                subject=account_id,
                now=self._clock(),
                duration=self._token_duration,
                signing_key=self._signing_key,
                issuer=self._issuer,
            )
        except SigningFailure as exc:
            logger.exception("token signing failed account_id=%s", account_id)
            raise InternalFailure() from exc
