"""
Shared fixtures.

No test talks to a real backend: HTTP goes through httpx.MockTransport
and time comes from a FakeClock.
"""

from typing import Any, Callable, Union

import httpx
import pytest

from fleetx.audit import AuditLogger
from fleetx.config import ApiSettings
from fleetx.models.audit import AuditEvent, AuditEventType
from fleetx.models.session import Session, UserIdentity
from fleetx.services.api import ApiClient, AuthService, CollectionFetcher
from fleetx.services.storage import InMemoryStateStorage
from fleetx.session import SessionStore


BASE_URL = "http://fleet.test/api"

Route = Union[tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


class RecordingAuditLogger(AuditLogger):
    """Keeps every event in memory instead of only writing it out."""

    def __init__(self):
        super().__init__("fleetx.audit.test")
        self.events: list[AuditEvent] = []

    def log(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    def types(self) -> list[AuditEventType]:
        return [event.event_type for event in self.events]


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 10_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeBackend:
    """
    Route table behind an httpx.MockTransport.

    Routes map (METHOD, path-without-/api) to either (status, json_body)
    or a callable taking the request. Unknown routes answer 404.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], Route] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        self.routes[(method.upper(), path)] = (status, body)

    def add_handler(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method.upper(), path)] = handler

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            request for request in self.requests
            if request.method == method.upper() and self._path(request) == path
        ]

    @staticmethod
    def _path(request: httpx.Request) -> str:
        path = request.url.path
        return path[len("/api"):] if path.startswith("/api") else path

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, self._path(request)))
        if route is None:
            return httpx.Response(404, json={"message": "Route not found"})
        if callable(route):
            return route(request)
        status, body = route
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)


def make_identity(role: str = "Driver", user_id: str = "u-1", **overrides) -> UserIdentity:
    data = {
        "id": user_id,
        "name": "Sam Driver",
        "email": "sam@fleetx.test",
        "role": role,
        "isActive": True,
    }
    data.update(overrides)
    return UserIdentity.model_validate(data)


def make_session(role: str = "Driver", user_id: str = "u-1", token: str = "tok-1") -> Session:
    return Session.authenticated(token, make_identity(role=role, user_id=user_id))


@pytest.fixture
def audit() -> RecordingAuditLogger:
    return RecordingAuditLogger()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def api_settings() -> ApiSettings:
    return ApiSettings(
        base_url=BASE_URL,
        timeout_seconds=5,
        max_retries=3,
        retry_backoff_seconds=0,
    )


@pytest.fixture
def api_client(backend: FakeBackend, api_settings: ApiSettings) -> ApiClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(backend.handle))
    return ApiClient(settings=api_settings, http_client=http_client)


@pytest.fixture
def fetcher(api_client: ApiClient) -> CollectionFetcher:
    return CollectionFetcher(api_client)


@pytest.fixture
def storage() -> InMemoryStateStorage:
    return InMemoryStateStorage(has_seen_welcome=True)


@pytest.fixture
def session_store(
    api_client: ApiClient,
    storage: InMemoryStateStorage,
    audit: RecordingAuditLogger,
) -> SessionStore:
    return SessionStore(
        auth_service=AuthService(api_client),
        storage=storage,
        audit_logger=audit,
    )


def login_body(role: str = "Driver", user_id: str = "u-1", token: str = "tok-1", active: bool = True) -> dict:
    return {
        "token": token,
        "user": {
            "id": user_id,
            "name": "Sam Driver",
            "email": "sam@fleetx.test",
            "role": role,
            "isActive": active,
        },
    }


@pytest.fixture
def signed_in(backend: FakeBackend):
    """Log the store in with a given role through the fake backend."""

    async def _sign_in(store: SessionStore, role: str = "Driver", user_id: str = "u-1") -> Session:
        backend.add("POST", "/auth/login", body=login_body(role=role, user_id=user_id))
        return await store.login("sam@fleetx.test", "secret1")

    return _sign_in
