"""User endpoints: list, read, update and delete accounts."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.models import User
from app.repositories.user import UserRepository
from app.schemas.auth import CurrentUser, MessageResponse
from app.schemas.user import UserResponse, UsersListResponse, UserUpdateRequest

router = APIRouter()


def _get_user_or_404(users: UserRepository, user_id: int) -> User:
    user = users.find_by_id(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"didn't find user with id: {user_id}",
        )
    return user


def _require_self(current_user: CurrentUser, user_id: int) -> None:
    if current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only modify your own account",
        )


def _username_taken(username: str | None) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"username: {username} already exists",
    )


@router.get("", response_model=UsersListResponse)
def list_users(db: Annotated[Session, Depends(get_db)]) -> UsersListResponse:
    users = UserRepository(db).list_all()
    return UsersListResponse(users=[UserResponse.model_validate(u) for u in users])


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Annotated[Session, Depends(get_db)]) -> UserResponse:
    return UserResponse.model_validate(_get_user_or_404(UserRepository(db), user_id))


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    body: UserUpdateRequest,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> UserResponse:
    """Update username and/or email. A new username must not belong to another user."""
    _require_self(current_user, user_id)
    users = UserRepository(db)
    user = _get_user_or_404(users, user_id)
    if (
        body.username is not None
        and body.username != user.username
        and users.username_exists(body.username)
    ):
        raise _username_taken(body.username)
    try:
        users.update(user, username=body.username, email=body.email)
        users.save()
    except IntegrityError as e:
        # Another request took the username after the check above.
        users.rollback()
        raise _username_taken(body.username) from e
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> MessageResponse:
    """Delete the account together with its sessions, posts and comments."""
    _require_self(current_user, user_id)
    users = UserRepository(db)
    users.delete(_get_user_or_404(users, user_id))
    users.save()
    return MessageResponse(message=f"Successfully deleted user with id: {user_id}")
