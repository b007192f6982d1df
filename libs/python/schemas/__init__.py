"""Shared schema exports."""

from .account import Credentials, TokenResponse
from .claims import AccessClaims

__all__ = [
    "AccessClaims",
    "Credentials",
    "TokenResponse",
]
