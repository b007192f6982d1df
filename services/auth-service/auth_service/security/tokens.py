"""Utilities for issuing and validating application JWTs."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from schemas import AccessClaims

ALGORITHM = "HS256"

_DECODE_OPTIONS: dict[str, Any] = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_iat": False,
    "verify_nbf": False,
    "verify_iss": False,
    "verify_aud": False,
    "require": ["sub", "iat", "exp"],
}


class SigningFailure(Exception):
    """Raised when a token cannot be built or signed."""


class TokenError(Exception):
    """Base class for token verification failures."""


class InvalidSignature(TokenError):
    """The token signature does not match the signing key."""


class TokenExpired(TokenError):
    """The token was presented at or after its expiry instant."""


class MalformedToken(TokenError):
    """The token cannot be decoded or lacks required claims."""


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def issue_access_token(
    *,
    subject: str,
    now: datetime,
    duration: timedelta,
    signing_key: bytes,
    issuer: str | None = None,
) -> str:
    """Create a signed JWT binding ``subject`` to an expiry instant.

    Parameters
    ----------
    subject:
        Account identifier embedded in the ``sub`` claim.
    now:
        Issue instant supplied by the caller.
    duration:
        Token lifetime; must be positive. Fractional seconds are kept.
    signing_key:
        Symmetric HS256 key.
    issuer:
        Optional ``iss`` claim.

    Returns
    -------
    str
        The encoded JWT.

    Raises
    ------
    SigningFailure
        When the claims are invalid or the token cannot be signed.
    """

    lifetime = duration.total_seconds()
    if lifetime <= 0:
        raise SigningFailure("token duration must be positive")
    if not subject:
        raise SigningFailure("token subject must not be empty")
    if not signing_key:
        raise SigningFailure("signing key must not be empty")

    issued_at = _as_utc(now).timestamp()
    payload: dict[str, Any] = {
        "sub": subject,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    if issuer:
        payload["iss"] = issuer

    try:
        return jwt.encode(payload, signing_key, algorithm=ALGORITHM)
    except (jwt.PyJWTError, TypeError, ValueError) as exc:
        raise SigningFailure("unable to sign token") from exc


def decode_access_token(token: str, *, now: datetime, signing_key: bytes) -> AccessClaims:
    """Verify ``token`` against ``signing_key`` and ``now`` and return its claims.

    The signature is checked before any claim is read. The token is valid
    only while ``now`` is strictly before its expiry.

    Raises
    ------
    InvalidSignature
        The signature does not match.
    TokenExpired
        ``now`` is at or past the ``exp`` claim.
    MalformedToken
        The token cannot be decoded or lacks ``sub``/``iat``/``exp``.
    """

    try:
        payload = jwt.decode(token, signing_key, algorithms=[ALGORITHM], options=_DECODE_OPTIONS)
    except jwt.InvalidSignatureError as exc:
        raise InvalidSignature("token signature mismatch") from exc
    except jwt.PyJWTError as exc:
        raise MalformedToken("token could not be decoded") from exc

    try:
        claims = AccessClaims(
            subject=payload["sub"],
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            issuer=payload.get("iss"),
        )
    except (KeyError, TypeError, ValueError, OverflowError, OSError) as exc:
        raise MalformedToken("token claims are invalid") from exc

    if not _as_utc(now) < claims.expires_at:
        raise TokenExpired("token expired")
    return claims
