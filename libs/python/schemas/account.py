"""Credential and token DTOs shared by the auth service and its clients."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field


class Credentials(BaseModel):
    """Request body accepted by the register and login endpoints."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=255, repr=False)


class TokenResponse(BaseModel):
    """Successful authentication response carrying an opaque bearer token."""

    token: str
