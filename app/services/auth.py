"""Auth flows: register, login, refresh-token rotation and logout.

Each flow catches every exception at its own boundary and re-raises it as an
AuthFlowError carrying a fixed client message, so nothing unexpected reaches the
HTTP layer. A failed flow rolls the session back and leaves the user's refresh
token set unchanged, except for reuse detection, which revokes the whole set.
"""

import logging

from sqlalchemy.exc import IntegrityError

from app.core.exceptions import (
    AuthenticationError,
    ConflictError,
    InternalError,
    InvalidTokenError,
    ValidationError,
)
from app.core.security import TokenIssuer, TokenPair, hash_password, verify_password
from app.repositories.user import UserRepository
from app.schemas.auth import LoginRequest, RefreshTokenRequest, RegisterRequest

logger = logging.getLogger(__name__)

REGISTER_MISSING_PARAM = "body param is missing (username or email or password)"
REGISTER_INVALID_PARAM = "body param is invalid (username or email or password)"
LOGIN_MISSING_PARAM = "body param is missing (username or password)"
REGISTRATION_FAILED = "Registration failed"
LOGIN_FAILED = "Login failed"
INVALID_CREDENTIALS = "Invalid username or password"
REFRESH_TOKEN_REQUIRED = "Refresh token is required"
INVALID_REFRESH_TOKEN = "Invalid Refresh token"
LOGGED_OUT = "Logged out successfully"

USERNAME_MAX_LENGTH = 255
EMAIL_MAX_LENGTH = 320


def _parse_user_id(raw: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise InvalidTokenError("Token userId is not a valid id.", cause=e) from e


class AuthService:
    """Orchestrates the credential hasher, token issuer and refresh-token store."""

    def __init__(self, users: UserRepository, issuer: TokenIssuer):
        self._users = users
        self._issuer = issuer

    def _username_taken(self, username: str) -> bool:
        # Runs after a rollback; the store may still be failing.
        try:
            return self._users.username_exists(username)
        except Exception:
            logger.exception(
                "Username lookup after integrity error failed", extra={"username": username}
            )
            return False

    def register(self, body: RegisterRequest) -> TokenPair:
        """
        Create a user and open its first session.

        The duplicate-username message names the username, so registration does reveal
        whether a username exists (login deliberately does not).
        """
        if body.missing_fields():
            raise ValidationError(REGISTER_MISSING_PARAM)
        if (
            body.non_string_fields()
            or len(body.username) > USERNAME_MAX_LENGTH
            or len(body.email) > EMAIL_MAX_LENGTH
        ):
            raise ValidationError(REGISTER_INVALID_PARAM)

        try:
            if self._users.username_exists(body.username):
                raise ConflictError(f"username: {body.username} already exists")
            user = self._users.create(body.username, body.email, hash_password(body.password))
            tokens = self._issuer.issue(user.id)
            self._users.add_refresh_token(user.id, tokens.refresh_token, tokens.refresh_expires_at)
            self._users.save()
        except ConflictError:
            raise
        except IntegrityError as e:
            self._users.rollback()
            # Lost a race with a concurrent registration of the same username.
            if self._username_taken(body.username):
                raise ConflictError(f"username: {body.username} already exists") from e
            logger.exception("Registration failed", extra={"username": body.username})
            raise InternalError(REGISTRATION_FAILED, status_code=401) from e
        except Exception as e:
            self._users.rollback()
            logger.exception("Registration failed", extra={"username": body.username})
            raise InternalError(REGISTRATION_FAILED, status_code=401) from e

        logger.info("User registered", extra={"user_id": user.id, "username": body.username})
        return tokens

    def login(self, body: LoginRequest) -> TokenPair:
        """Verify credentials and add a new session; existing sessions stay valid."""
        if body.missing_fields():
            raise ValidationError(LOGIN_MISSING_PARAM)

        try:
            if body.non_string_fields():
                raise AuthenticationError(INVALID_CREDENTIALS)
            user = self._users.find_by_username(body.username)
            if user is None or not verify_password(body.password, user.password_hash):
                raise AuthenticationError(INVALID_CREDENTIALS)
            tokens = self._issuer.issue(user.id)
            self._users.add_refresh_token(user.id, tokens.refresh_token, tokens.refresh_expires_at)
            self._users.save()
        except AuthenticationError:
            logger.warning("Login rejected", extra={"username": body.username})
            raise
        except Exception as e:
            self._users.rollback()
            logger.exception("Login failed", extra={"username": body.username})
            raise InternalError(LOGIN_FAILED, status_code=400) from e

        logger.info("User logged in", extra={"user_id": user.id})
        return tokens

    def refresh(self, body: RefreshTokenRequest) -> TokenPair:
        """
        Rotate a refresh token: the presented token is consumed and a new pair issued.

        A correctly signed token that is no longer in the user's set has already been
        consumed (or was never handed out by this server); all of the user's sessions
        are revoked in that case.
        """
        if body.missing_fields():
            raise ValidationError(REFRESH_TOKEN_REQUIRED)
        if body.non_string_fields():
            raise AuthenticationError(INVALID_REFRESH_TOKEN)
        presented = body.refresh_token

        try:
            user_id = _parse_user_id(self._issuer.verify_refresh(presented))
            user = self._users.find_by_id(user_id)
            if user is None:
                raise AuthenticationError(INVALID_REFRESH_TOKEN)

            tokens = self._issuer.issue(user.id)
            if not self._users.rotate_refresh_token(
                user.id, presented, tokens.refresh_token, tokens.refresh_expires_at
            ):
                revoked = self._users.clear_refresh_tokens(user.id)
                self._users.save()
                logger.warning(
                    "Refresh token reuse detected; all sessions revoked",
                    extra={"user_id": user.id, "revoked_count": revoked},
                )
                raise AuthenticationError(INVALID_REFRESH_TOKEN)
            self._users.save()
        except AuthenticationError:
            raise
        except InvalidTokenError as e:
            raise AuthenticationError(INVALID_REFRESH_TOKEN) from e
        except Exception as e:
            self._users.rollback()
            logger.exception("Refresh token rotation failed")
            raise InternalError(INVALID_REFRESH_TOKEN, status_code=400) from e

        logger.info("Refresh token rotated", extra={"user_id": user.id})
        return tokens

    def logout(self, body: RefreshTokenRequest) -> str:
        """End the session of the presented refresh token. Unknown users or tokens are not an error."""
        if body.missing_fields():
            raise ValidationError(REFRESH_TOKEN_REQUIRED)
        if body.non_string_fields():
            raise AuthenticationError(INVALID_REFRESH_TOKEN)
        presented = body.refresh_token

        try:
            user_id = _parse_user_id(self._issuer.verify_refresh(presented))
            user = self._users.find_by_id(user_id)
            if user is not None:
                removed = self._users.remove_refresh_token(user.id, presented)
                self._users.save()
                logger.info(
                    "User logged out",
                    extra={"user_id": user.id, "token_was_active": removed},
                )
        except InvalidTokenError as e:
            raise AuthenticationError(INVALID_REFRESH_TOKEN) from e
        except Exception as e:
            self._users.rollback()
            logger.exception("Logout failed")
            raise InternalError(INVALID_REFRESH_TOKEN, status_code=400) from e

        return LOGGED_OUT
