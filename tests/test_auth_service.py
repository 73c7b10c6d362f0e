"""Unit tests for app.services.auth.AuthService with a mocked repository and token issuer."""

import unittest
from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import IntegrityError

from app.core.exceptions import (
    AuthenticationError,
    ConflictError,
    CorruptCredentialError,
    InternalError,
    InvalidTokenError,
    ValidationError,
)
from app.core.security import TokenPair
from app.schemas.auth import LoginRequest, RefreshTokenRequest, RegisterRequest
from app.services.auth import AuthService

EXPIRES = datetime(2026, 1, 2, tzinfo=UTC)


def _pair(suffix: str = "1") -> TokenPair:
    return TokenPair(token=f"access-{suffix}", refresh_token=f"refresh-{suffix}", refresh_expires_at=EXPIRES)


def _user(user_id: int = 7, username: str = "bob", password_hash: str = "hash") -> MagicMock:
    user = MagicMock()
    user.id = user_id
    user.username = username
    user.password_hash = password_hash
    return user


class _ServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.users = MagicMock()
        self.issuer = MagicMock()
        self.issuer.issue.return_value = _pair("new")
        self.service = AuthService(self.users, self.issuer)


class TestRegister(_ServiceTestCase):
    """AuthService.register."""

    def _body(self, **overrides: object) -> RegisterRequest:
        values = {"username": "bob", "email": "b@x.com", "password": "pw"}
        values.update(overrides)
        return RegisterRequest(**values)

    @patch("app.services.auth.hash_password", return_value="hashed-pw")
    def test_success_persists_user_and_first_session(self, _hash: MagicMock) -> None:
        self.users.username_exists.return_value = False
        self.users.create.return_value = _user(7)

        tokens = self.service.register(self._body())

        self.assertEqual(tokens, _pair("new"))
        self.users.create.assert_called_once_with("bob", "b@x.com", "hashed-pw")
        self.issuer.issue.assert_called_once_with(7)
        self.users.add_refresh_token.assert_called_once_with(7, "refresh-new", EXPIRES)
        self.users.save.assert_called_once()

    def test_missing_field(self) -> None:
        for missing in ("username", "email", "password"):
            with self.subTest(missing=missing):
                with self.assertRaises(ValidationError) as ctx:
                    self.service.register(self._body(**{missing: None}))
                self.assertEqual(ctx.exception.status_code, 400)
                self.assertEqual(
                    ctx.exception.message,
                    "body param is missing (username or email or password)",
                )
        self.users.create.assert_not_called()

    def test_empty_string_counts_as_missing(self) -> None:
        with self.assertRaises(ValidationError):
            self.service.register(self._body(password=""))

    def test_duplicate_username_reveals_existence(self) -> None:
        # Unlike login, registration names the taken username.
        self.users.username_exists.return_value = True
        with self.assertRaises(ConflictError) as ctx:
            self.service.register(self._body())
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.message, "username: bob already exists")
        self.users.create.assert_not_called()
        self.users.save.assert_not_called()

    @patch("app.services.auth.hash_password", side_effect=RuntimeError("boom"))
    def test_hashing_failure_is_401_and_rolls_back(self, _hash: MagicMock) -> None:
        self.users.username_exists.return_value = False
        with self.assertRaises(InternalError) as ctx:
            self.service.register(self._body())
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.message, "Registration failed")
        self.users.rollback.assert_called_once()
        self.users.save.assert_not_called()

    @patch("app.services.auth.hash_password", return_value="hashed-pw")
    def test_issuance_failure_is_401(self, _hash: MagicMock) -> None:
        self.users.username_exists.return_value = False
        self.users.create.return_value = _user(7)
        self.issuer.issue.side_effect = RuntimeError("signing failed")
        with self.assertRaises(InternalError) as ctx:
            self.service.register(self._body())
        self.assertEqual(ctx.exception.status_code, 401)
        self.users.add_refresh_token.assert_not_called()

    def test_overlong_or_non_string_field_is_invalid(self) -> None:
        for overrides in ({"username": "a" * 256}, {"email": "e" * 321}, {"password": 12345}):
            with self.subTest(field=next(iter(overrides))):
                with self.assertRaises(ValidationError) as ctx:
                    self.service.register(self._body(**overrides))
                self.assertEqual(
                    ctx.exception.message,
                    "body param is invalid (username or email or password)",
                )
        self.users.username_exists.assert_not_called()

    @patch("app.services.auth.hash_password", return_value="hashed-pw")
    def test_unique_index_race_is_conflict(self, _hash: MagicMock) -> None:
        self.users.username_exists.side_effect = [False, True]
        self.users.create.side_effect = IntegrityError("INSERT INTO users", {}, Exception("unique"))
        with self.assertRaises(ConflictError) as ctx:
            self.service.register(self._body())
        self.assertEqual(ctx.exception.message, "username: bob already exists")
        self.users.rollback.assert_called_once()

    @patch("app.services.auth.hash_password", return_value="hashed-pw")
    def test_lookup_failing_after_integrity_error_is_401(self, _hash: MagicMock) -> None:
        self.users.username_exists.side_effect = [False, RuntimeError("db down")]
        self.users.create.side_effect = IntegrityError("INSERT INTO users", {}, Exception("unique"))
        with self.assertRaises(InternalError) as ctx:
            self.service.register(self._body())
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.message, "Registration failed")
        self.users.rollback.assert_called_once()


class TestLogin(_ServiceTestCase):
    """AuthService.login."""

    @patch("app.services.auth.verify_password", return_value=True)
    def test_success_appends_session(self, _verify: MagicMock) -> None:
        self.users.find_by_username.return_value = _user(7)
        tokens = self.service.login(LoginRequest(username="bob", password="pw"))
        self.assertEqual(tokens.refresh_token, "refresh-new")
        self.users.add_refresh_token.assert_called_once_with(7, "refresh-new", EXPIRES)
        self.users.clear_refresh_tokens.assert_not_called()
        self.users.save.assert_called_once()

    def test_missing_field(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self.service.login(LoginRequest(username="bob"))
        self.assertEqual(ctx.exception.message, "body param is missing (username or password)")
        self.users.find_by_username.assert_not_called()

    def test_non_string_password_is_invalid_credentials(self) -> None:
        with self.assertRaises(AuthenticationError) as ctx:
            self.service.login(LoginRequest(username="bob", password=123))
        self.assertEqual(ctx.exception.message, "Invalid username or password")
        self.users.find_by_username.assert_not_called()

    @patch("app.services.auth.verify_password", return_value=False)
    def test_unknown_user_and_wrong_password_share_message(self, _verify: MagicMock) -> None:
        self.users.find_by_username.return_value = None
        with self.assertRaises(AuthenticationError) as unknown:
            self.service.login(LoginRequest(username="nobody", password="pw"))

        self.users.find_by_username.return_value = _user(7)
        with self.assertRaises(AuthenticationError) as wrong:
            self.service.login(LoginRequest(username="bob", password="bad"))

        self.assertEqual(unknown.exception.message, "Invalid username or password")
        self.assertEqual(wrong.exception.message, unknown.exception.message)
        self.assertEqual(wrong.exception.status_code, 400)
        self.issuer.issue.assert_not_called()

    @patch(
        "app.services.auth.verify_password",
        side_effect=CorruptCredentialError("bad hash"),
    )
    def test_corrupt_hash_is_login_failed(self, _verify: MagicMock) -> None:
        self.users.find_by_username.return_value = _user(7)
        with self.assertRaises(InternalError) as ctx:
            self.service.login(LoginRequest(username="bob", password="pw"))
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.message, "Login failed")
        self.users.rollback.assert_called_once()


class TestRefresh(_ServiceTestCase):
    """AuthService.refresh: rotation and reuse detection."""

    def test_missing_token(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self.service.refresh(RefreshTokenRequest())
        self.assertEqual(ctx.exception.message, "Refresh token is required")
        self.issuer.verify_refresh.assert_not_called()

    def test_non_string_token_is_invalid(self) -> None:
        with self.assertRaises(AuthenticationError) as ctx:
            self.service.refresh(RefreshTokenRequest(refresh_token=123))
        self.assertEqual(ctx.exception.message, "Invalid Refresh token")
        self.issuer.verify_refresh.assert_not_called()
        self.users.rotate_refresh_token.assert_not_called()

    def test_invalid_token_no_mutation(self) -> None:
        self.issuer.verify_refresh.side_effect = InvalidTokenError("expired")
        with self.assertRaises(AuthenticationError) as ctx:
            self.service.refresh(RefreshTokenRequest(refresh_token="old"))
        self.assertEqual(ctx.exception.message, "Invalid Refresh token")
        self.users.find_by_id.assert_not_called()
        self.users.save.assert_not_called()

    def test_non_numeric_user_id_is_invalid(self) -> None:
        self.issuer.verify_refresh.return_value = "abc"
        with self.assertRaises(AuthenticationError):
            self.service.refresh(RefreshTokenRequest(refresh_token="old"))
        self.users.find_by_id.assert_not_called()

    def test_unknown_user_no_mutation(self) -> None:
        self.issuer.verify_refresh.return_value = "7"
        self.users.find_by_id.return_value = None
        with self.assertRaises(AuthenticationError):
            self.service.refresh(RefreshTokenRequest(refresh_token="old"))
        self.users.clear_refresh_tokens.assert_not_called()
        self.users.save.assert_not_called()

    def test_rotation(self) -> None:
        self.issuer.verify_refresh.return_value = "7"
        self.users.find_by_id.return_value = _user(7)
        self.users.rotate_refresh_token.return_value = True

        tokens = self.service.refresh(RefreshTokenRequest(refresh_token="old"))

        self.assertEqual(tokens, _pair("new"))
        self.users.find_by_id.assert_called_once_with(7)
        self.users.rotate_refresh_token.assert_called_once_with(7, "old", "refresh-new", EXPIRES)
        self.users.clear_refresh_tokens.assert_not_called()
        self.users.save.assert_called_once()

    def test_reuse_revokes_all_sessions(self) -> None:
        self.issuer.verify_refresh.return_value = "7"
        self.users.find_by_id.return_value = _user(7)
        self.users.rotate_refresh_token.return_value = False
        self.users.clear_refresh_tokens.return_value = 2

        with self.assertRaises(AuthenticationError) as ctx:
            self.service.refresh(RefreshTokenRequest(refresh_token="consumed"))

        self.assertEqual(ctx.exception.message, "Invalid Refresh token")
        self.users.clear_refresh_tokens.assert_called_once_with(7)
        self.users.save.assert_called_once()

    def test_store_failure_maps_to_invalid_token(self) -> None:
        self.issuer.verify_refresh.return_value = "7"
        self.users.find_by_id.side_effect = RuntimeError("db down")
        with self.assertRaises(InternalError) as ctx:
            self.service.refresh(RefreshTokenRequest(refresh_token="old"))
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.message, "Invalid Refresh token")
        self.users.rollback.assert_called_once()


class TestLogout(_ServiceTestCase):
    """AuthService.logout."""

    def test_missing_token(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self.service.logout(RefreshTokenRequest(refresh_token=""))
        self.assertEqual(ctx.exception.message, "Refresh token is required")

    def test_non_string_token_is_invalid(self) -> None:
        with self.assertRaises(AuthenticationError) as ctx:
            self.service.logout(RefreshTokenRequest(refresh_token=["A"]))
        self.assertEqual(ctx.exception.message, "Invalid Refresh token")
        self.users.remove_refresh_token.assert_not_called()

    def test_invalid_token(self) -> None:
        self.issuer.verify_refresh.side_effect = InvalidTokenError("bad signature")
        with self.assertRaises(AuthenticationError) as ctx:
            self.service.logout(RefreshTokenRequest(refresh_token="forged"))
        self.assertEqual(ctx.exception.message, "Invalid Refresh token")

    def test_removes_only_presented_token(self) -> None:
        self.issuer.verify_refresh.return_value = "7"
        self.users.find_by_id.return_value = _user(7)
        self.users.remove_refresh_token.return_value = True
        message = self.service.logout(RefreshTokenRequest(refresh_token="A"))
        self.assertEqual(message, "Logged out successfully")
        self.users.remove_refresh_token.assert_called_once_with(7, "A")
        self.users.clear_refresh_tokens.assert_not_called()
        self.users.save.assert_called_once()

    def test_token_not_in_set_still_succeeds(self) -> None:
        self.issuer.verify_refresh.return_value = "7"
        self.users.find_by_id.return_value = _user(7)
        self.users.remove_refresh_token.return_value = False
        self.assertEqual(
            self.service.logout(RefreshTokenRequest(refresh_token="gone")),
            "Logged out successfully",
        )

    def test_unknown_user_succeeds_without_persisting(self) -> None:
        self.issuer.verify_refresh.return_value = "7"
        self.users.find_by_id.return_value = None
        self.assertEqual(
            self.service.logout(RefreshTokenRequest(refresh_token="A")),
            "Logged out successfully",
        )
        self.users.remove_refresh_token.assert_not_called()
        self.users.save.assert_not_called()


if __name__ == "__main__":
    unittest.main()
