"""Pydantic schemas for registration and login."""

from uuid import UUID
from typing import Optional
from pydantic import EmailStr, Field

from salonbook.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str
    phone: Optional[str] = None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class UserOut(CamelModel):
    id: UUID
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: str


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
