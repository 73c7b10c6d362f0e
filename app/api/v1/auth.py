"""Auth endpoints (register, login, refresh-token, logout) and the bearer-token dependency."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import AuthFlowError, InvalidTokenError
from app.core.security import TokenIssuer, TokenPair
from app.repositories.user import UserRepository
from app.schemas.auth import (
    CurrentUser,
    LoginRequest,
    MessageResponse,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
)
from app.services.auth import AuthService

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_token_issuer(request: Request) -> TokenIssuer:
    """Dependency: the TokenIssuer built from settings at startup."""
    return request.app.state.token_issuer


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> AuthService:
    return AuthService(UserRepository(db), issuer)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> CurrentUser:
    """
    Dependency: require a valid Bearer access token and return the current user.

    Fails closed with 401 when the header is missing, is not a Bearer header, or the token
    does not verify against the access secret; the handler is not invoked in that case.
    """
    if credentials is None:
        raise _unauthorized()
    try:
        user_id = int(issuer.verify_access(credentials.credentials))
    except (InvalidTokenError, ValueError):
        raise _unauthorized()
    user = UserRepository(db).find_by_id(user_id)
    if user is None:
        raise _unauthorized()
    return CurrentUser(id=user.id, username=user.username)


def _to_http_error(e: AuthFlowError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


def _token_response(tokens: TokenPair) -> TokenResponse:
    return TokenResponse(token=tokens.token, refresh_token=tokens.refresh_token)


@router.post("/register", response_model=TokenResponse)
def register(
    service: Annotated[AuthService, Depends(get_auth_service)],
    body: RegisterRequest | None = None,
) -> TokenResponse:
    """Create an account; returns an access token and a refresh token."""
    try:
        return _token_response(service.register(body or RegisterRequest()))
    except AuthFlowError as e:
        raise _to_http_error(e) from e


@router.post("/login", response_model=TokenResponse)
def login(
    service: Annotated[AuthService, Depends(get_auth_service)],
    body: LoginRequest | None = None,
) -> TokenResponse:
    """
    Authenticate with username and password; returns a new access/refresh pair.
    Include the access token in the Authorization header as: Bearer <token>
    """
    try:
        return _token_response(service.login(body or LoginRequest()))
    except AuthFlowError as e:
        raise _to_http_error(e) from e


@router.post("/refresh-token", response_model=TokenResponse)
def refresh_token(
    service: Annotated[AuthService, Depends(get_auth_service)],
    body: RefreshTokenRequest | None = None,
) -> TokenResponse:
    """Exchange a refresh token for a new pair. The presented refresh token stops working."""
    try:
        return _token_response(service.refresh(body or RefreshTokenRequest()))
    except AuthFlowError as e:
        raise _to_http_error(e) from e


@router.post("/logout", response_model=MessageResponse)
def logout(
    service: Annotated[AuthService, Depends(get_auth_service)],
    body: RefreshTokenRequest | None = None,
) -> MessageResponse:
    """End the session belonging to the given refresh token."""
    try:
        return MessageResponse(message=service.logout(body or RefreshTokenRequest()))
    except AuthFlowError as e:
        raise _to_http_error(e) from e


@router.get("/me", response_model=CurrentUser)
def me(current_user: Annotated[CurrentUser, Depends(get_current_user)]) -> CurrentUser:
    """Return the user the bearer token belongs to."""
    return current_user
