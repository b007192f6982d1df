"""Typed claims carried by access tokens issued by the auth service."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, ConfigDict


class AccessClaims(BaseModel):
    """Assertion that ``subject`` authenticated at ``issued_at``, valid until ``expires_at``."""

    model_config = ConfigDict(frozen=True)

    subject: str
    issued_at: datetime
    expires_at: datetime
    issuer: str | None = None
