"""SQLAlchemy declarative Base shared by users, refresh tokens, posts and comments."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
