"""Services package."""

from fleetx.services.api import (
    ApiClient,
    AuthError,
    AuthService,
    CollectionFetcher,
    CollectionKind,
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
from fleetx.services.storage import (
    CorruptStateError,
    InMemoryStateStorage,
    JsonFileStateStorage,
    StateStorageInterface,
    StorageError,
)

__all__ = [
    # Backend API
    "ApiClient",
    "AuthService",
    "CollectionFetcher",
    "CollectionKind",
    "user_message",
    # API exceptions
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
    # Local state
    "CorruptStateError",
    "InMemoryStateStorage",
    "JsonFileStateStorage",
    "StateStorageInterface",
    "StorageError",
]
