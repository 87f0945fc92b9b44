"""
Backend API Package

Async client for the FleetX REST backend: transport, auth endpoints,
collection fetchers and the error taxonomy.
"""

from fleetx.services.api.errors import (
    AuthError,
    ConflictError,
    FleetApiError,
    InactiveAccountError,
    InvalidCredentialsError,
    NetworkError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
    ValidationError,
    user_message,
)
from fleetx.services.api.client import ApiClient
from fleetx.services.api.endpoints import CollectionKind
from fleetx.services.api.auth import AuthService
from fleetx.services.api.collections import CollectionFetcher, normalize_collection

__all__ = [
    # Client
    "ApiClient",
    "AuthService",
    "CollectionFetcher",
    "CollectionKind",
    "normalize_collection",
    # Exceptions
    "AuthError",
    "ConflictError",
    "FleetApiError",
    "InactiveAccountError",
    "InvalidCredentialsError",
    "NetworkError",
    "NotFoundError",
    "ServerError",
    "UnauthorizedError",
    "ValidationError",
    "user_message",
]
