"""
Abstract Local State Interface

The client keeps exactly two pieces of durable state:
1. The session credential (with the identity snapshot it was issued for)
2. The "has completed first-run welcome" flag

Nothing else is persisted on the device.
"""

from abc import ABC, abstractmethod
from typing import Optional

from fleetx.models.session import UserIdentity


# Persisted key names; existing installs already use these.
TOKEN_KEY = "fleetx_auth_token"
USER_KEY = "fleetx_user"
WELCOME_KEY = "hasSeenWelcome"


class StateStorageInterface(ABC):
    """
    Abstract interface for local persisted state.

    Implementations must make `clear_credentials` idempotent.
    """

    @abstractmethod
    async def load_credential(self) -> Optional[str]:
        """Return the persisted bearer token, if any."""
        pass

    @abstractmethod
    async def load_identity(self) -> Optional[UserIdentity]:
        """Return the identity snapshot stored with the credential, if any."""
        pass

    @abstractmethod
    async def save_credentials(self, credential: str, identity: UserIdentity) -> None:
        """
        Persist a credential and its identity snapshot.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def clear_credentials(self) -> None:
        """Remove the credential and identity snapshot."""
        pass

    @abstractmethod
    async def has_seen_welcome(self) -> bool:
        """True once the first-run welcome screen has been completed."""
        pass

    @abstractmethod
    async def set_welcome_seen(self) -> None:
        """Mark the welcome screen as completed."""
        pass

    @abstractmethod
    async def reset_welcome(self) -> None:
        """Show the welcome screen again on next launch."""
        pass


class StorageError(Exception):
    """Base exception for local state operations."""
    pass


class CorruptStateError(StorageError):
    """The state file exists but cannot be decoded."""
    pass
