from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True, frozen=True)
class Account:
    """Persisted identity an account holder authenticates as."""

    account_id: str
    email: str
    password_hash: str = field(repr=False)
    created_at: datetime


def normalize_email(email: str) -> str:
    """Return the case-folded login key for ``email``."""
    return email.strip().casefold()
