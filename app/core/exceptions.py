"""Error taxonomy for the authentication core.

Primitive errors (InvalidTokenError, CorruptCredentialError) are raised by
app.core.security. Flow errors (AuthFlowError subclasses) are raised by
app.services.auth and carry the HTTP status and the fixed client message.
"""


class InvalidTokenError(Exception):
    """Raised when a JWT has a bad signature, is expired, or is malformed."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class CorruptCredentialError(Exception):
    """Raised when a stored password hash cannot be parsed."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class AuthFlowError(Exception):
    """Base for errors surfaced by register/login/refresh/logout."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(AuthFlowError):
    """Missing or malformed input."""


class ConflictError(AuthFlowError):
    """Username already taken."""


class AuthenticationError(AuthFlowError):
    """Bad credentials, or an invalid, unknown or reused refresh token."""


class InternalError(AuthFlowError):
    """Hashing, signing or store failure; status depends on the flow."""

    status_code = 500
