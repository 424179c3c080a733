"""Pydantic models for API request/response.

Field names are snake_case in Python and camelCase on the wire.
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from domain.model.user import User
from services.password_hasher import MAX_PASSWORD_BYTES, exceeds_length_limit

# Rust-backed pydantic patterns have no lookahead, so strength rules use `re`
_SIGNUP_PASSWORD_PATTERN = re.compile(r"(?:(?=.*\d)|(?=.*\W+))(?![.\n])(?=.*[A-Z])(?=.*[a-z]).*$")
_RESET_PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(CamelModel):
    """Request model for user login."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=20)


class SignupRequest(CamelModel):
    """Request model for user registration."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=20)
    confirm_password: str = Field(..., min_length=8, max_length=20)

    @field_validator('password')
    @classmethod
    def password_strength(cls, v: str) -> str:
        if exceeds_length_limit(v):
            raise ValueError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes')
        if not _SIGNUP_PASSWORD_PATTERN.search(v):
            raise ValueError('Password too weak')
        return v

    @model_validator(mode='after')
    def passwords_match(self) -> 'SignupRequest':
        if self.password != self.confirm_password:
            raise ValueError('Confirm password does not match password!')
        return self


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1, description="Plaintext reset token from the email link")
    # bcrypt only hashes the first 72 bytes
    new_password: str = Field(..., min_length=8, max_length=MAX_PASSWORD_BYTES)

    @field_validator('new_password')
    @classmethod
    def password_strength(cls, v: str) -> str:
        if exceeds_length_limit(v):
            raise ValueError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes')
        if not _RESET_PASSWORD_PATTERN.match(v):
            raise ValueError(
                'Password must contain at least one uppercase letter, one lowercase letter, '
                'one number, and one special character (@$!%*?&)'
            )
        return v


class UserResponse(CamelModel):
    """Public user representation.

    `_id` repeats `id` for clients written against the legacy shape.
    """
    id: str = Field(..., description="User ID")
    legacy_id: str = Field(..., alias='_id')
    email: str
    provider: str
    provider_id: Optional[str] = None
    display_name: Optional[str] = None
    avatar: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> 'UserResponse':
        return cls(
            id=user.id,
            legacy_id=user.id,
            email=user.email,
            provider=user.provider.value,
            provider_id=user.provider_id,
            display_name=user.display_name,
            avatar=user.avatar,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserEnvelope(CamelModel):
    user: UserResponse


class LoginResponse(CamelModel):
    user: UserResponse
    access_token: str


class AccessTokenResponse(CamelModel):
    access_token: str


class MessageResponse(CamelModel):
    message: str
