"""Authentication schemas."""
from pydantic import BaseModel, EmailStr, Field, field_validator


class UserRegister(BaseModel):
    """User registration request."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        # bcrypt only accepts the first 72 bytes
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password must be at most 72 bytes")
        return v


class UserLogin(BaseModel):
    """User login request. Any mismatch is reported as invalid credentials."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    """Access token response; the refresh token travels in a cookie."""

    access_token: str = Field(..., alias="accessToken")
    email: str

    class Config:
        populate_by_name = True


class CurrentUserResponse(BaseModel):
    """Identity carried by the caller's access token."""

    id: str
    email: str


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
