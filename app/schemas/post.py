"""Request/response schemas for post endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PostCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, description="Post title")
    content: str = Field(..., min_length=1, description="Post body")


class PostUpdateRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = Field(default=None, min_length=1)


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    sender_id: int
    created_at: datetime | None = None


class PostsListResponse(BaseModel):
    posts: list[PostResponse]
