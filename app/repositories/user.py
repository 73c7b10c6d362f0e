"""User persistence, including the per-user set of active refresh tokens."""

from datetime import datetime

from sqlalchemy import delete, exists, select
from sqlalchemy.orm import Session

from app.models import RefreshToken, User


class UserRepository:
    """
    Field-level queries over users plus conditional updates of their refresh-token set.

    Token-set mutations never load-modify-save the collection: each one is a single
    DELETE/INSERT against refresh_tokens, so the outcome does not depend on what a
    concurrent request read. Nothing here commits except save().
    """

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def find_by_username(self, username: str) -> User | None:
        return self.session.query(User).filter(User.username == username).first()

    def username_exists(self, username: str) -> bool:
        return bool(self.session.scalar(select(exists().where(User.username == username))))

    def list_all(self) -> list[User]:
        return self.session.query(User).order_by(User.id).all()

    def create(self, username: str, email: str, password_hash: str) -> User:
        """Add a new user and flush so it has an id; the caller commits."""
        user = User(username=username, email=email, password_hash=password_hash)
        self.session.add(user)
        self.session.flush()
        return user

    def update(self, user: User, username: str | None = None, email: str | None = None) -> User:
        if username is not None:
            user.username = username
        if email is not None:
            user.email = email
        self.session.flush()
        return user

    def delete(self, user: User) -> None:
        self.session.delete(user)
        self.session.flush()

    def save(self, user: User | None = None) -> None:
        """Commit pending changes (adding user to the session first, if given)."""
        if user is not None:
            self.session.add(user)
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    def add_refresh_token(self, user_id: int, token: str, expires_at: datetime) -> None:
        self.session.add(RefreshToken(user_id=user_id, token=token, expires_at=expires_at))
        self.session.flush()

    def remove_refresh_token(self, user_id: int, token: str) -> bool:
        """Delete one token from the user's set. Returns False if it was not there."""
        result = self.session.execute(
            delete(RefreshToken).where(
                RefreshToken.user_id == user_id,
                RefreshToken.token == token,
            )
        )
        return result.rowcount == 1

    def rotate_refresh_token(
        self,
        user_id: int,
        old_token: str,
        new_token: str,
        new_expires_at: datetime,
    ) -> bool:
        """
        Replace old_token with new_token in the user's set.

        Returns False (and adds nothing) if old_token was not in the set, which is
        also what the losing side of two concurrent rotations of one token sees.
        """
        if not self.remove_refresh_token(user_id, old_token):
            return False
        self.add_refresh_token(user_id, new_token, new_expires_at)
        return True

    def clear_refresh_tokens(self, user_id: int) -> int:
        """Revoke every session of the user. Returns the number of tokens removed."""
        result = self.session.execute(
            delete(RefreshToken).where(RefreshToken.user_id == user_id)
        )
        return result.rowcount
