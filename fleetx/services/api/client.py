"""
HTTP client for the FleetX REST backend

This service handles:
1. Building requests (JSON headers, bearer credential, query filters)
2. Mapping HTTP failures onto the FleetApiError taxonomy
3. Retrying idempotent requests (GET/DELETE) on network failures
4. Tolerating empty bodies on success (DELETE endpoints)

Non-idempotent requests (login, signup) are never retried.
"""

from typing import Any, Mapping, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fleetx.config import ApiSettings, get_settings
from fleetx.services.api.errors import (
    ConflictError,
    FleetApiError,
    NetworkError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
    ValidationError,
)

IDEMPOTENT_METHODS = frozenset({"GET", "DELETE", "HEAD"})


def build_headers(token: Optional[str] = None) -> dict[str, str]:
    """Request headers, with the bearer credential when one is given."""
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def clean_params(filters: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Drop unset filters; everything else is sent verbatim."""
    if not filters:
        return {}
    return {key: value for key, value in filters.items() if value is not None and value != ""}


def _error_message(payload: Any, fallback: str) -> str:
    if isinstance(payload, dict):
        for key in ("message", "error", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback


def raise_for_status(response: httpx.Response, payload: Any) -> None:
    """Translate a non-2xx response into the matching FleetApiError."""
    status = response.status_code
    if status < 400:
        return

    message = _error_message(payload, f"Request failed with status {status}")

    if status in (400, 422):
        raise ValidationError(message, status_code=status)
    if status in (401, 403):
        raise UnauthorizedError(message, status_code=status)
    if status == 404:
        raise NotFoundError(message, status_code=status)
    if status == 409:
        raise ConflictError(message, status_code=status)
    if status >= 500:
        raise ServerError(message, status_code=status)
    raise FleetApiError(message, status_code=status)


class ApiClient:
    """
    Thin async wrapper around httpx.AsyncClient.

    IMPORTANT BOUNDARIES:
    1. Returns parsed JSON (or {} for an empty body) - never httpx objects
    2. Raises only FleetApiError subclasses
    3. Knows nothing about sessions: the credential is passed per call
    """

    def __init__(
        self,
        settings: Optional[ApiSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings or get_settings().api
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self._settings.base_url,
            timeout=self._settings.timeout_seconds,
        )
        self._logger = structlog.get_logger("fleetx.api")

    async def aclose(self) -> None:
        """Close the underlying connection pool if this client created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        """
        Send a request and return the decoded body.

        Raises:
            NetworkError: transport failure (after retries for idempotent methods)
            ValidationError / UnauthorizedError / NotFoundError /
            ConflictError / ServerError: mapped from the response status
        """
        method = method.upper()
        if method not in IDEMPOTENT_METHODS:
            return await self._send(method, path, token=token, params=params, json=json)

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_retries),
            wait=wait_exponential(multiplier=self._settings.retry_backoff_seconds, max=10),
            retry=retry_if_exception_type(NetworkError),
            reraise=True,
        ):
            with attempt:
                return await self._send(method, path, token=token, params=params, json=json)

    async def _send(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str],
        params: Optional[Mapping[str, Any]],
        json: Any,
    ) -> Any:
        try:
            response = await self._client.request(
                method,
                self._url(path),
                headers=build_headers(token),
                params=clean_params(params),
                json=json,
            )
        except httpx.TimeoutException as e:
            self._logger.warning("api_timeout", method=method, path=path)
            raise NetworkError(f"Request to {path} timed out") from e
        except httpx.TransportError as e:
            self._logger.warning("api_transport_error", method=method, path=path, error=str(e))
            raise NetworkError(f"Cannot reach server: {e}") from e

        payload = self._decode(response)
        raise_for_status(response, payload)
        return payload

    def _url(self, path: str) -> str:
        # Injected clients may not carry a base_url of their own.
        if str(self._client.base_url):
            return path
        return f"{self._settings.base_url}{path}"

    def _decode(self, response: httpx.Response) -> Any:
        """Parse the JSON body; an empty body decodes to {}."""
        if not response.content or not response.content.strip():
            return {}
        try:
            return response.json()
        except ValueError as e:
            if response.status_code >= 400:
                # Error pages (HTML from a proxy) still map by status.
                return {}
            raise ServerError(
                "Invalid response from server. Please check if the backend is running.",
                status_code=response.status_code,
            ) from e
