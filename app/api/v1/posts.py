"""Post endpoints: create, list (optionally by sender), read, update, delete."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.models import Post
from app.schemas.auth import CurrentUser, MessageResponse
from app.schemas.post import (
    PostCreateRequest,
    PostResponse,
    PostsListResponse,
    PostUpdateRequest,
)

router = APIRouter()


def _get_post_or_404(db: Session, post_id: int) -> Post:
    post = db.get(Post, post_id)
    if post is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Post with id: {post_id} not found",
        )
    return post


def _require_owner(post: Post, current_user: CurrentUser) -> None:
    if post.sender_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only modify your own posts",
        )


@router.post("", response_model=PostResponse)
def create_post(
    body: PostCreateRequest,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> PostResponse:
    """Publish a post as the authenticated user."""
    post = Post(title=body.title, content=body.content, sender_id=current_user.id)
    db.add(post)
    db.commit()
    db.refresh(post)
    return PostResponse.model_validate(post)


@router.get("", response_model=PostsListResponse)
def list_posts(
    db: Annotated[Session, Depends(get_db)],
    sender: Annotated[int | None, Query(description="Only posts by this user id")] = None,
) -> PostsListResponse:
    query = db.query(Post)
    if sender is not None:
        query = query.filter(Post.sender_id == sender)
    posts = query.order_by(Post.id).all()
    return PostsListResponse(posts=[PostResponse.model_validate(p) for p in posts])


@router.get("/{post_id}", response_model=PostResponse)
def get_post(post_id: int, db: Annotated[Session, Depends(get_db)]) -> PostResponse:
    return PostResponse.model_validate(_get_post_or_404(db, post_id))


@router.put("/{post_id}", response_model=PostResponse)
def update_post(
    post_id: int,
    body: PostUpdateRequest,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> PostResponse:
    post = _get_post_or_404(db, post_id)
    _require_owner(post, current_user)
    if body.title is not None:
        post.title = body.title
    if body.content is not None:
        post.content = body.content
    db.commit()
    db.refresh(post)
    return PostResponse.model_validate(post)


@router.delete("/{post_id}", response_model=MessageResponse)
def delete_post(
    post_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> MessageResponse:
    """Delete a post and its comments."""
    post = _get_post_or_404(db, post_id)
    _require_owner(post, current_user)
    db.delete(post)
    db.commit()
    return MessageResponse(message=f"Successfully deleted post {post_id}")
