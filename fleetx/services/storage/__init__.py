"""
Local State Package

Abstract interface and implementations for the little state the client
keeps on the device.
"""

from fleetx.services.storage.interface import (
    CorruptStateError,
    StateStorageInterface,
    StorageError,
)
from fleetx.services.storage.local_state import (
    InMemoryStateStorage,
    JsonFileStateStorage,
)

__all__ = [
    # Interfaces
    "StateStorageInterface",
    # Exceptions
    "CorruptStateError",
    "StorageError",
    # Implementations
    "InMemoryStateStorage",
    "JsonFileStateStorage",
]
