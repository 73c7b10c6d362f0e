"""Pydantic request/response schemas."""

from app.schemas.auth import (
    CurrentUser,
    LoginRequest,
    MessageResponse,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
)
from app.schemas.comment import (
    CommentCreateRequest,
    CommentResponse,
    CommentsListResponse,
    CommentUpdateRequest,
)
from app.schemas.health import HealthResponse
from app.schemas.post import (
    PostCreateRequest,
    PostResponse,
    PostsListResponse,
    PostUpdateRequest,
)
from app.schemas.user import UserResponse, UsersListResponse, UserUpdateRequest

__all__ = [
    "CommentCreateRequest",
    "CommentResponse",
    "CommentUpdateRequest",
    "CommentsListResponse",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "PostCreateRequest",
    "PostResponse",
    "PostUpdateRequest",
    "PostsListResponse",
    "RefreshTokenRequest",
    "RegisterRequest",
    "TokenResponse",
    "UserResponse",
    "UserUpdateRequest",
    "UsersListResponse",
]
