"""Request/response schemas for auth endpoints."""

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field


class AuthRequest(BaseModel):
    """
    Base for auth request bodies.

    Fields are untyped and optional on the wire so that an absent, empty or malformed
    field yields the flow's own 400 message instead of a framework 422; required_fields
    enumerates the ones the flow needs.
    """

    model_config = ConfigDict(populate_by_name=True)

    required_fields: ClassVar[tuple[str, ...]] = ()

    def missing_fields(self) -> list[str]:
        """Names of required fields that are absent or empty."""
        return [name for name in self.required_fields if not getattr(self, name)]

    def non_string_fields(self) -> list[str]:
        return [
            name for name in self.required_fields if not isinstance(getattr(self, name), str)
        ]


class RegisterRequest(AuthRequest):
    """Body for POST /auth/register."""

    required_fields: ClassVar[tuple[str, ...]] = ("username", "email", "password")

    username: Any = Field(default=None, description="Username")
    email: Any = Field(default=None, description="Email address")
    password: Any = Field(default=None, description="Password")


class LoginRequest(AuthRequest):
    """Credentials for login."""

    required_fields: ClassVar[tuple[str, ...]] = ("username", "password")

    username: Any = Field(default=None, description="Username")
    password: Any = Field(default=None, description="Password")


class RefreshTokenRequest(AuthRequest):
    """Body for POST /auth/refresh-token and POST /auth/logout."""

    required_fields: ClassVar[tuple[str, ...]] = ("refresh_token",)

    refresh_token: Any = Field(default=None, alias="refreshToken", description="Refresh token")


class TokenResponse(BaseModel):
    """Access/refresh pair returned by register, login and refresh."""

    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., alias="refreshToken", description="JWT refresh token")


class MessageResponse(BaseModel):
    message: str


class CurrentUser(BaseModel):
    """Authenticated user (id, username) for dependency injection."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
