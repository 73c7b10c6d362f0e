"""ORM model for application users (identity, credentials, active sessions)."""

from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class User(Base):
    """
    User account for JWT authentication.

    refresh_tokens holds the currently valid refresh tokens in issue order (most recent last).
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(320), nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        order_by="RefreshToken.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    posts = relationship(
        "Post",
        back_populates="sender",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    comments = relationship(
        "Comment",
        back_populates="sender",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def active_refresh_tokens(self) -> list[str]:
        """Token strings currently valid for this user, oldest first."""
        return [rt.token for rt in self.refresh_tokens]
