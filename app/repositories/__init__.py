"""Persistence access for entities with non-trivial write paths."""

from app.repositories.user import UserRepository

__all__ = ["UserRepository"]
