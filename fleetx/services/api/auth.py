"""
Authentication endpoints

Wraps login, signup, profile and logout calls and turns their
responses into UserIdentity models. Holds no state: the session
store decides what to keep.
"""

from typing import Any, Optional

from pydantic import ValidationError as SchemaError

from fleetx.models.session import SignupProfile, UserIdentity
from fleetx.services.api import endpoints
from fleetx.services.api.client import ApiClient
from fleetx.services.api.errors import (
    InactiveAccountError,
    InvalidCredentialsError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
    ValidationError,
)


def _unwrap(payload: Any) -> Any:
    """Some endpoints nest their body in {"data": ...}."""
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        return payload["data"]
    return payload


def parse_identity(payload: Any) -> UserIdentity:
    """Build a UserIdentity from {"user": {...}}, {"data": {...}} or a bare user object."""
    body = _unwrap(payload)
    if isinstance(body, dict) and isinstance(body.get("user"), dict):
        body = body["user"]
    if not isinstance(body, dict):
        raise ServerError("Profile response is not an object")
    try:
        return UserIdentity.model_validate(body)
    except SchemaError as e:
        raise ServerError(f"Malformed user profile: {e.error_count()} invalid fields") from e


class AuthService:
    """Client for the /auth endpoints."""

    def __init__(self, client: ApiClient):
        self._client = client

    async def login(self, email: str, password: str) -> tuple[str, UserIdentity]:
        """
        Exchange credentials for a bearer token.

        Raises:
            InvalidCredentialsError: backend rejected the credentials
            InactiveAccountError: account awaits admin activation
            NetworkError / ServerError: transient failures
        """
        try:
            payload = await self._client.request(
                "POST",
                endpoints.AUTH_LOGIN,
                json={"email": email, "password": password},
            )
        except (ValidationError, UnauthorizedError, NotFoundError) as e:
            raise InvalidCredentialsError(str(e), status_code=e.status_code) from e

        body = _unwrap(payload)
        token = body.get("token") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token.strip():
            raise ServerError("Login response did not include a token")

        identity = parse_identity(body)
        if not identity.is_active:
            raise InactiveAccountError()
        return token, identity

    async def signup(self, profile: SignupProfile) -> dict:
        """Register a new account. Never returns a token."""
        payload = await self._client.request(
            "POST",
            endpoints.AUTH_SIGNUP,
            json=profile.to_payload(),
        )
        return payload if isinstance(payload, dict) else {}

    async def get_profile(self, token: Optional[str]) -> UserIdentity:
        """Fetch the current user for a credential."""
        if not token:
            raise UnauthorizedError("Authentication required")
        payload = await self._client.request("GET", endpoints.AUTH_PROFILE, token=token)
        return parse_identity(payload)

    async def logout(self, token: str) -> None:
        """Invalidate the credential server-side."""
        await self._client.request("POST", endpoints.AUTH_LOGOUT, token=token)
