"""Shared builders for tests: settings, an app on in-memory SQLite, and auth helpers."""

from collections.abc import Callable
from datetime import datetime

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.security import TokenIssuer
from app.main import create_app
from app.models import Base
from app.repositories.user import UserRepository

ACCESS_SECRET = "test-access-secret"
REFRESH_SECRET = "test-refresh-secret"


def make_settings(**overrides: object) -> Settings:
    """Build Settings without reading .env; in-memory SQLite unless overridden."""
    values: dict[str, object] = {
        "DATABASE_URL": "sqlite://",
        "JWT_ACCESS_SECRET": ACCESS_SECRET,
        "JWT_REFRESH_SECRET": REFRESH_SECRET,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_app(settings: Settings | None = None) -> FastAPI:
    """Create the app and its tables on a fresh in-memory database."""
    app = create_app(settings or make_settings())
    Base.metadata.create_all(app.state.engine)
    return app


def make_client(settings: Settings | None = None) -> TestClient:
    return TestClient(make_app(settings))


def set_clock(app: FastAPI, clock: Callable[[], datetime]) -> None:
    """Replace the app's token issuer with one reading time from clock."""
    app.state.token_issuer = TokenIssuer(app.state.settings, clock=clock)


def register(
    client: TestClient,
    username: str = "bob",
    email: str = "b@x.com",
    password: str = "pw",
):
    return client.post(
        "/api/v1/auth/register",
        json={"username": username, "email": email, "password": password},
    )


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def active_tokens(app: FastAPI, username: str) -> list[str]:
    """Read the user's refresh-token set straight from the database."""
    db = app.state.session_factory()
    try:
        user = UserRepository(db).find_by_username(username)
        return list(user.active_refresh_tokens) if user else []
    finally:
        db.close()
