"""Comment endpoints: create on an existing post, list, read, update, delete."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.models import Comment, Post
from app.schemas.auth import CurrentUser, MessageResponse
from app.schemas.comment import (
    CommentCreateRequest,
    CommentResponse,
    CommentsListResponse,
    CommentUpdateRequest,
)

router = APIRouter()


def _get_comment_or_404(db: Session, comment_id: int) -> Comment:
    comment = db.get(Comment, comment_id)
    if comment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Comment with id: {comment_id} not found",
        )
    return comment


def _require_owner(comment: Comment, current_user: CurrentUser) -> None:
    if comment.sender_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only modify your own comments",
        )


def _list_response(comments: list[Comment]) -> CommentsListResponse:
    return CommentsListResponse(
        comments=[CommentResponse.model_validate(c) for c in comments]
    )


@router.post("", response_model=CommentResponse)
def create_comment(
    body: CommentCreateRequest,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CommentResponse:
    """Comment on a post as the authenticated user. The post must exist."""
    if db.get(Post, body.post_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Non existent post with id: {body.post_id}",
        )
    comment = Comment(post_id=body.post_id, content=body.content, sender_id=current_user.id)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return CommentResponse.model_validate(comment)


@router.get("", response_model=CommentsListResponse)
def list_comments(db: Annotated[Session, Depends(get_db)]) -> CommentsListResponse:
    return _list_response(db.query(Comment).order_by(Comment.id).all())


@router.get("/post/{post_id}", response_model=CommentsListResponse)
def list_comments_for_post(
    post_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> CommentsListResponse:
    comments = (
        db.query(Comment).filter(Comment.post_id == post_id).order_by(Comment.id).all()
    )
    return _list_response(comments)


@router.get("/{comment_id}", response_model=CommentResponse)
def get_comment(comment_id: int, db: Annotated[Session, Depends(get_db)]) -> CommentResponse:
    return CommentResponse.model_validate(_get_comment_or_404(db, comment_id))


@router.put("/{comment_id}", response_model=CommentResponse)
def update_comment(
    comment_id: int,
    body: CommentUpdateRequest,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CommentResponse:
    comment = _get_comment_or_404(db, comment_id)
    _require_owner(comment, current_user)
    comment.content = body.content
    db.commit()
    db.refresh(comment)
    return CommentResponse.model_validate(comment)


@router.delete("/{comment_id}", response_model=MessageResponse)
def delete_comment(
    comment_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> MessageResponse:
    comment = _get_comment_or_404(db, comment_id)
    _require_owner(comment, current_user)
    db.delete(comment)
    db.commit()
    return MessageResponse(message=f"Successfully deleted comment {comment_id}")
