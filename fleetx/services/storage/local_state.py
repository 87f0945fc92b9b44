"""
Local State Implementations

JsonFileStateStorage keeps the state in a single small JSON document:

    {
        "fleetx_auth_token": "...",
        "fleetx_user": {"id": "...", "role": "Driver", ...},
        "hasSeenWelcome": true
    }

Writes go to a temporary file that replaces the previous one, so a crash
never leaves a half-written document behind. A corrupt file is treated
as empty (the user simply logs in again) and reported in the log.

InMemoryStateStorage implements the same interface for tests and for
embedding without a filesystem.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import ValidationError as SchemaError

from fleetx.config import StorageSettings, get_settings
from fleetx.models.session import UserIdentity
from fleetx.services.storage.interface import (
    TOKEN_KEY,
    USER_KEY,
    WELCOME_KEY,
    CorruptStateError,
    StateStorageInterface,
    StorageError,
)

logger = structlog.get_logger("fleetx.storage")


def _identity_from(value: Any) -> Optional[UserIdentity]:
    if not isinstance(value, dict):
        return None
    try:
        return UserIdentity.model_validate(value)
    except SchemaError:
        logger.warning("stored_identity_invalid")
        return None


class JsonFileStateStorage(StateStorageInterface):
    """File-backed local state."""

    def __init__(
        self,
        path: Optional[Path] = None,
        settings: Optional[StorageSettings] = None,
    ):
        if path is None:
            settings = settings or get_settings().storage
            path = settings.resolved_state_path
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageError(f"Failed to read state file {self._path}: {e}") from e

        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptStateError(f"State file {self._path} is not valid JSON") from e
        if not isinstance(data, dict):
            raise CorruptStateError(f"State file {self._path} does not hold an object")
        return data

    def _read_or_empty(self) -> dict[str, Any]:
        try:
            return self._read()
        except CorruptStateError as e:
            logger.warning("state_file_corrupt", path=str(self._path), error=str(e))
            return {}

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".state-",
                suffix=".json",
                dir=str(self._path.parent),
            )
        except OSError as e:
            raise StorageError(f"Failed to write state file {self._path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except (OSError, TypeError, ValueError) as e:
            self._discard_temp(tmp_name)
            raise StorageError(f"Failed to write state file {self._path}: {e}") from e

    @staticmethod
    def _discard_temp(tmp_name: str) -> None:
        try:
            os.unlink(tmp_name)
        except OSError as e:
            logger.warning("state_temp_file_not_removed", path=tmp_name, error=str(e))

    def _update(self, **changes: Any) -> None:
        data = self._read_or_empty()
        for key, value in changes.items():
            if value is None:
                data.pop(key, None)
            else:
                data[key] = value
        self._write(data)

    async def load_credential(self) -> Optional[str]:
        token = self._read_or_empty().get(TOKEN_KEY)
        return token if isinstance(token, str) and token else None

    async def load_identity(self) -> Optional[UserIdentity]:
        return _identity_from(self._read_or_empty().get(USER_KEY))

    async def save_credentials(self, credential: str, identity: UserIdentity) -> None:
        self._update(**{
            TOKEN_KEY: credential,
            USER_KEY: identity.to_storage_dict(),
        })

    async def clear_credentials(self) -> None:
        self._update(**{TOKEN_KEY: None, USER_KEY: None})

    async def has_seen_welcome(self) -> bool:
        return self._read_or_empty().get(WELCOME_KEY) is True

    async def set_welcome_seen(self) -> None:
        self._update(**{WELCOME_KEY: True})

    async def reset_welcome(self) -> None:
        self._update(**{WELCOME_KEY: None})


class InMemoryStateStorage(StateStorageInterface):
    """Volatile local state."""

    def __init__(
        self,
        credential: Optional[str] = None,
        identity: Optional[UserIdentity] = None,
        has_seen_welcome: bool = False,
    ):
        self._data: dict[str, Any] = {}
        if credential:
            self._data[TOKEN_KEY] = credential
        if identity is not None:
            self._data[USER_KEY] = identity.to_storage_dict()
        if has_seen_welcome:
            self._data[WELCOME_KEY] = True

    @property
    def snapshot(self) -> dict[str, Any]:
        """Copy of the stored keys, for assertions."""
        return dict(self._data)

    async def load_credential(self) -> Optional[str]:
        return self._data.get(TOKEN_KEY)

    async def load_identity(self) -> Optional[UserIdentity]:
        return _identity_from(self._data.get(USER_KEY))

    async def save_credentials(self, credential: str, identity: UserIdentity) -> None:
        self._data[TOKEN_KEY] = credential
        self._data[USER_KEY] = identity.to_storage_dict()

    async def clear_credentials(self) -> None:
        self._data.pop(TOKEN_KEY, None)
        self._data.pop(USER_KEY, None)

    async def has_seen_welcome(self) -> bool:
        return self._data.get(WELCOME_KEY) is True

    async def set_welcome_seen(self) -> None:
        self._data[WELCOME_KEY] = True

    async def reset_welcome(self) -> None:
        self._data.pop(WELCOME_KEY, None)
