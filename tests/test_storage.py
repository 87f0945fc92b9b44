"""Tests for the local state backends."""

import json

import pytest

from fleetx.services.storage import InMemoryStateStorage, JsonFileStateStorage, StorageError
from fleetx.services.storage import local_state

from conftest import make_identity


@pytest.fixture
def state_file(tmp_path):
    return tmp_path / "nested" / "state.json"


class TestJsonFileStateStorage:
    """Tests for the file-backed local state."""

    async def test_empty_when_file_missing(self, state_file):
        """Test that a fresh install has no state."""
        storage = JsonFileStateStorage(path=state_file)
        assert await storage.load_credential() is None
        assert await storage.load_identity() is None
        assert await storage.has_seen_welcome() is False

    async def test_credentials_persist(self, state_file):
        """Test that a second instance sees the saved credential."""
        identity = make_identity(role="Admin", user_id="a-1")
        await JsonFileStateStorage(path=state_file).save_credentials("tok-9", identity)

        reopened = JsonFileStateStorage(path=state_file)
        assert await reopened.load_credential() == "tok-9"
        assert await reopened.load_identity() == identity

        stored = json.loads(state_file.read_text())
        assert stored["fleetx_auth_token"] == "tok-9"
        assert stored["fleetx_user"]["role"] == "Admin"

    async def test_clear_keeps_welcome_flag(self, state_file):
        """Test that logging out does not bring the welcome screen back."""
        storage = JsonFileStateStorage(path=state_file)
        await storage.set_welcome_seen()
        await storage.save_credentials("tok", make_identity())
        await storage.clear_credentials()
        await storage.clear_credentials()

        assert await storage.load_credential() is None
        assert await storage.has_seen_welcome() is True

    async def test_reset_welcome(self, state_file):
        storage = JsonFileStateStorage(path=state_file)
        await storage.set_welcome_seen()
        await storage.reset_welcome()
        assert await storage.has_seen_welcome() is False

    async def test_corrupt_file_reads_as_empty(self, state_file):
        """Test that garbage on disk means logged out, not a crash."""
        state_file.parent.mkdir(parents=True)
        state_file.write_text("{not json")
        storage = JsonFileStateStorage(path=state_file)
        assert await storage.load_credential() is None

        await storage.save_credentials("tok", make_identity())
        assert await storage.load_credential() == "tok"

    async def test_invalid_identity_is_ignored(self, state_file):
        state_file.parent.mkdir(parents=True)
        state_file.write_text(json.dumps({"fleetx_auth_token": "tok", "fleetx_user": {"name": "x"}}))
        storage = JsonFileStateStorage(path=state_file)
        assert await storage.load_credential() == "tok"
        assert await storage.load_identity() is None

    async def test_no_temp_files_left_behind(self, state_file):
        storage = JsonFileStateStorage(path=state_file)
        await storage.save_credentials("tok", make_identity())
        assert [path.name for path in state_file.parent.iterdir()] == ["state.json"]

    async def test_failed_write_removes_temp_file(self, state_file, monkeypatch):
        """Test that a failed replace raises StorageError and cleans up."""
        storage = JsonFileStateStorage(path=state_file)

        def refuse(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(local_state.os, "replace", refuse)
        with pytest.raises(StorageError):
            await storage.save_credentials("tok", make_identity())
        assert list(state_file.parent.iterdir()) == []


class TestInMemoryStateStorage:
    """Tests for the volatile local state."""

    async def test_round_trip(self):
        storage = InMemoryStateStorage()
        identity = make_identity()
        await storage.save_credentials("tok", identity)
        assert await storage.load_identity() == identity
        await storage.clear_credentials()
        assert storage.snapshot == {}

    async def test_initial_state(self):
        storage = InMemoryStateStorage(credential="tok", identity=make_identity(), has_seen_welcome=True)
        assert await storage.load_credential() == "tok"
        assert await storage.has_seen_welcome() is True
