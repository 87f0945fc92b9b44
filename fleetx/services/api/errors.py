"""
Error taxonomy of the FleetX backend client.

Every failure a screen can observe is one of these exceptions.
Operation boundaries (screen load, delete) convert them into
user-facing messages with `user_message()`; nothing below that
boundary swallows them.
"""

from typing import Optional

from fleetx.models.validation import ValidationIssue


class FleetApiError(Exception):
    """Base exception for backend operations."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class AuthError(FleetApiError):
    """Authentication problem: the session must be (re)established."""
    pass


class InvalidCredentialsError(AuthError):
    """Email/password rejected by the backend."""
    pass


class InactiveAccountError(AuthError):
    """The account exists but has not been activated by an admin."""

    def __init__(self, message: str = "Your account is deactivated. Please contact admin for activation."):
        super().__init__(message)


class UnauthorizedError(AuthError):
    """Missing or expired credential. Callers must force a logout."""
    pass


class ValidationError(FleetApiError):
    """
    Bad input.

    Raised locally before any network call, or mapped from a 400/422 response.
    """

    def __init__(
        self,
        message: str,
        issues: Optional[list[ValidationIssue]] = None,
        status_code: Optional[int] = None,
    ):
        self.issues = issues or []
        super().__init__(message, status_code=status_code)


class ConflictError(FleetApiError):
    """The entity already exists (e.g. duplicate email on signup)."""
    pass


class NotFoundError(FleetApiError):
    """Referenced entity vanished."""
    pass


class NetworkError(FleetApiError):
    """Backend unreachable or the request timed out. Transient."""
    pass


class ServerError(FleetApiError):
    """5xx response or a payload we cannot interpret. Transient."""
    pass


def user_message(error: Exception) -> str:
    """Convert an error into a short sentence the UI can show."""
    if isinstance(error, InactiveAccountError):
        return str(error)
    if isinstance(error, InvalidCredentialsError):
        return "Invalid email or password."
    if isinstance(error, UnauthorizedError):
        return "Your session has expired. Please log in again."
    if isinstance(error, ValidationError):
        if error.issues:
            return error.issues[0].message
        return str(error) or "Please check the highlighted fields."
    if isinstance(error, ConflictError):
        return str(error) or "This record already exists."
    if isinstance(error, NotFoundError):
        return "This item no longer exists. The list has been refreshed."
    if isinstance(error, NetworkError):
        return "Cannot reach the server. Check your connection and try again."
    if isinstance(error, ServerError):
        return "The server had a problem. Please try again later."
    return "An unknown error occurred"
