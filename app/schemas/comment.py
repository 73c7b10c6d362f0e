"""Request/response schemas for comment endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommentCreateRequest(BaseModel):
    post_id: int = Field(..., description="Id of the post being commented on")
    content: str = Field(..., min_length=1, description="Comment text")


class CommentUpdateRequest(BaseModel):
    content: str = Field(..., min_length=1, description="New comment text")


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    sender_id: int
    content: str
    created_at: datetime | None = None


class CommentsListResponse(BaseModel):
    comments: list[CommentResponse]
