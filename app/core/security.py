"""Password hashing and JWT issuance/verification for authentication."""

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import Settings
from app.core.exceptions import CorruptCredentialError, InvalidTokenError

# Bcrypt cost (rounds).
BCRYPT_ROUNDS = 10

# bcrypt only looks at the first 72 bytes of the password.
BCRYPT_MAX_BYTES = 72

# Claim carrying the user id in both access and refresh tokens.
USER_ID_CLAIM = "userId"


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """
    Verify a plain password against a stored hash.

    Returns False on mismatch. Raises CorruptCredentialError if the stored hash is malformed.
    """
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError) as e:
        raise CorruptCredentialError("Stored password hash is malformed.", cause=e) from e


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class TokenPair:
    """Access and refresh token issued together for one user."""

    token: str
    refresh_token: str
    refresh_expires_at: datetime


class TokenIssuer:
    """
    Creates and verifies signed, expiring access and refresh tokens.

    Access and refresh tokens are signed with distinct secrets and expire after distinct
    windows, both taken from the Settings passed in. The clock is injectable so expiry
    can be exercised in tests without sleeping.
    """

    def __init__(self, settings: Settings, clock: Callable[[], datetime] = _utcnow) -> None:
        self._access_secret = settings.JWT_ACCESS_SECRET.get_secret_value()
        self._refresh_secret = settings.JWT_REFRESH_SECRET.get_secret_value()
        self._algorithm = settings.JWT_ALGORITHM
        self._access_ttl = timedelta(seconds=settings.ACCESS_TOKEN_EXPIRES_SEC)
        self._refresh_ttl = timedelta(seconds=settings.REFRESH_TOKEN_EXPIRES_SEC)
        self._clock = clock

    def issue(self, user_id: str | int) -> TokenPair:
        """Issue a fresh access/refresh pair bound to user_id."""
        now = self._clock()
        refresh_expires_at = now + self._refresh_ttl
        return TokenPair(
            token=self._encode(user_id, now, now + self._access_ttl, self._access_secret),
            refresh_token=self._encode(user_id, now, refresh_expires_at, self._refresh_secret),
            refresh_expires_at=refresh_expires_at,
        )

    def verify_access(self, token: str) -> str:
        """Return the userId of a valid access token; raises InvalidTokenError otherwise."""
        return self._decode(token, self._access_secret)

    def verify_refresh(self, token: str) -> str:
        """Return the userId of a valid refresh token; raises InvalidTokenError otherwise."""
        return self._decode(token, self._refresh_secret)

    def _encode(self, user_id: str | int, issued_at: datetime, expires_at: datetime, secret: str) -> str:
        payload: dict[str, Any] = {
            USER_ID_CLAIM: str(user_id),
            "iat": issued_at,
            "exp": expires_at,
            # Keeps tokens issued within the same second distinct.
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def _decode(self, token: str, secret: str) -> str:
        # Expiry is checked against the injected clock below, not PyJWT's wall clock.
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_iat": False, "require": ["exp"]},
            )
        except jwt.PyJWTError as e:
            raise InvalidTokenError("Token signature or structure is invalid.", cause=e) from e

        exp = payload.get("exp")
        if not isinstance(exp, (int, float)) or exp <= self._clock().timestamp():
            raise InvalidTokenError("Token has expired.")

        user_id = payload.get(USER_ID_CLAIM)
        if not isinstance(user_id, str) or not user_id:
            raise InvalidTokenError("Token payload is missing userId.")
        return user_id
