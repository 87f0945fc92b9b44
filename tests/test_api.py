"""Tests for the HTTP client, auth endpoints and collection fetchers."""

import httpx
import pytest

from fleetx.models.session import SignupProfile
from fleetx.models.transaction import TransactionKind
from fleetx.services.api import (
    AuthService,
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
    normalize_collection,
    user_message,
)
from fleetx.services.api.client import build_headers, clean_params

from conftest import login_body


class TestRequestBuilding:
    """Tests for headers and query parameters."""

    def test_bearer_header(self):
        """Test that the credential becomes a bearer header."""
        assert build_headers("abc")["Authorization"] == "Bearer abc"
        assert "Authorization" not in build_headers(None)

    def test_clean_params_drops_unset_values(self):
        """Test that None and empty filters are not sent."""
        assert clean_params({"driverId": "d1", "category": None, "type": ""}) == {"driverId": "d1"}
        assert clean_params(None) == {}


class TestApiClient:
    """Tests for status mapping, decoding and retries."""

    @pytest.mark.parametrize("status,error", [
        (400, ValidationError),
        (422, ValidationError),
        (401, UnauthorizedError),
        (403, UnauthorizedError),
        (404, NotFoundError),
        (409, ConflictError),
        (500, ServerError),
        (503, ServerError),
        (418, FleetApiError),
    ])
    async def test_status_mapping(self, api_client, backend, status, error):
        """Test that HTTP failures map onto the error taxonomy."""
        backend.add("POST", "/things", status=status, body={"message": "nope"})
        with pytest.raises(error) as exc_info:
            await api_client.request("POST", "/things")
        assert exc_info.value.status_code == status
        assert str(exc_info.value) == "nope"

    async def test_empty_body_decodes_to_empty_dict(self, api_client, backend):
        """Test that a bodiless success (DELETE) is fine."""
        backend.add("DELETE", "/expenses/1", status=204)
        assert await api_client.request("DELETE", "/expenses/1") == {}

    async def test_invalid_json_is_a_server_error(self, api_client, backend):
        """Test that an HTML page on 200 is rejected."""
        backend.add_handler("GET", "/drivers", lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(ServerError):
            await api_client.request("GET", "/drivers")

    async def test_error_page_still_maps_by_status(self, api_client, backend):
        """Test that a non-JSON error page maps by status code."""
        backend.add_handler("GET", "/drivers", lambda request: httpx.Response(502, text="Bad gateway"))
        with pytest.raises(ServerError):
            await api_client.request("GET", "/drivers")

    async def test_get_is_retried_on_network_failure(self, api_client, backend):
        """Test that idempotent requests survive a transient transport error."""
        attempts = []

        def flaky(request):
            attempts.append(request)
            if len(attempts) < 3:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json=[])

        backend.add_handler("GET", "/vehicles", flaky)
        assert await api_client.request("GET", "/vehicles") == []
        assert len(attempts) == 3

    async def test_get_gives_up_after_max_retries(self, api_client, backend):
        """Test that persistent transport errors surface as NetworkError."""
        def down(request):
            raise httpx.ConnectError("connection refused", request=request)

        backend.add_handler("GET", "/vehicles", down)
        with pytest.raises(NetworkError):
            await api_client.request("GET", "/vehicles")
        assert len(backend.calls("GET", "/vehicles")) == 3

    async def test_post_is_not_retried(self, api_client, backend):
        """Test that login and signup are sent exactly once."""
        def down(request):
            raise httpx.ConnectError("connection refused", request=request)

        backend.add_handler("POST", "/auth/login", down)
        with pytest.raises(NetworkError):
            await api_client.request("POST", "/auth/login", json={})
        assert len(backend.calls("POST", "/auth/login")) == 1

    async def test_timeout_is_a_network_error(self, api_client, backend):
        """Test that timeouts are transient network failures."""
        def slow(request):
            raise httpx.ReadTimeout("timed out", request=request)

        backend.add_handler("POST", "/auth/signup", slow)
        with pytest.raises(NetworkError):
            await api_client.request("POST", "/auth/signup", json={})


class TestNormalizeCollection:
    """Tests for the three accepted response shapes."""

    def test_bare_list(self):
        assert normalize_collection([{"id": 1}], CollectionKind.EARNINGS) == [{"id": 1}]

    def test_data_envelope(self):
        payload = {"success": True, "count": 1, "data": [{"id": 1}]}
        assert normalize_collection(payload, CollectionKind.EXPENSES) == [{"id": 1}]

    def test_kind_envelope(self):
        payload = {"autoExpenses": [{"id": 1}]}
        assert normalize_collection(payload, CollectionKind.AUTO_EXPENSES) == [{"id": 1}]

    def test_nested_envelope(self):
        payload = {"data": {"earnings": [{"id": 1}]}}
        assert normalize_collection(payload, CollectionKind.EARNINGS) == [{"id": 1}]

    def test_non_object_items_are_skipped(self):
        assert normalize_collection([{"id": 1}, None, "x"], CollectionKind.DRIVERS) == [{"id": 1}]

    def test_unknown_shape_is_a_server_error(self):
        with pytest.raises(ServerError):
            normalize_collection({"message": "ok"}, CollectionKind.DRIVERS)
        with pytest.raises(ServerError):
            normalize_collection("oops", CollectionKind.DRIVERS)


class TestCollectionFetcher:
    """Tests for listing, summaries and deletes."""

    async def test_fetch_forwards_filters_and_credential(self, fetcher, backend):
        """Test that filters are sent verbatim as query parameters."""
        backend.add("GET", "/expenses", body={"data": [{"id": "e1"}]})
        records = await fetcher.fetch_collection(
            TransactionKind.EXPENSE,
            {"driverId": "d1", "category": "Fuel", "type": None},
            "tok-1",
        )
        assert records == [{"id": "e1"}]

        request = backend.calls("GET", "/expenses")[0]
        assert request.headers["Authorization"] == "Bearer tok-1"
        assert dict(request.url.params) == {"driverId": "d1", "category": "Fuel"}

    async def test_auto_expenses_path(self, fetcher, backend):
        """Test the hyphenated auto-expense endpoint."""
        backend.add("GET", "/auto-expenses", body={"autoExpenses": []})
        assert await fetcher.fetch_collection("autoExpenses", None, "tok-1") == []

    async def test_missing_credential_fails_without_network(self, fetcher, backend):
        """Test that no request is made without a credential."""
        with pytest.raises(UnauthorizedError):
            await fetcher.fetch_collection(CollectionKind.DRIVERS, None, None)
        assert backend.requests == []

    async def test_expired_credential(self, fetcher, backend):
        """Test that a 401 surfaces as UnauthorizedError."""
        backend.add("GET", "/earnings", status=401, body={"message": "jwt expired"})
        with pytest.raises(UnauthorizedError):
            await fetcher.fetch_collection(TransactionKind.EARNING, None, "tok-1")

    async def test_delete_record(self, fetcher, backend):
        """Test the per-kind delete endpoint."""
        backend.add("DELETE", "/auto-expenses/a1", body={"success": True})
        await fetcher.delete_record(TransactionKind.AUTO_EXPENSE, "a1", "tok-1")
        assert len(backend.calls("DELETE", "/auto-expenses/a1")) == 1

    async def test_fetch_summary(self, fetcher, backend):
        """Test the driver summary endpoint and its period parameter."""
        backend.add("GET", "/earnings/driver/d1/summary", body={"data": {"total": 150}})
        summary = await fetcher.fetch_summary(TransactionKind.EARNING, "d1", "monthly", "tok-1")
        assert summary == {"total": 150}
        request = backend.calls("GET", "/earnings/driver/d1/summary")[0]
        assert request.url.params["period"] == "monthly"

    def test_summary_only_for_transaction_kinds(self):
        """Test that vehicles have no driver summary."""
        with pytest.raises(ValueError):
            CollectionKind.VEHICLES.summary_path("d1")

    async def test_fetch_users_excludes_admins(self, fetcher, backend):
        """Test that the users list hides admin accounts."""
        backend.add("GET", "/drivers", body=[
            {"id": "1", "role": "Admin"},
            {"id": "2", "role": "Driver"},
            {"id": "3", "role": "Viewer"},
        ])
        users = await fetcher.fetch_users("tok-1")
        assert [user["id"] for user in users] == ["2", "3"]

    async def test_fetch_available_drivers(self, fetcher, backend):
        """Test the unassigned drivers list for vehicle assignment."""
        backend.add("GET", "/vehicles/drivers/available", body={"data": [{"id": "d-4", "name": "Kim"}]})
        drivers = await fetcher.fetch_available_drivers("tok-1")
        assert drivers == [{"id": "d-4", "name": "Kim"}]
        request = backend.calls("GET", "/vehicles/drivers/available")[0]
        assert request.headers["Authorization"] == "Bearer tok-1"

    async def test_fetch_available_drivers_requires_credential(self, fetcher, backend):
        with pytest.raises(UnauthorizedError):
            await fetcher.fetch_available_drivers(None)
        assert backend.requests == []


class TestAuthService:
    """Tests for the auth endpoints."""

    async def test_login_returns_token_and_identity(self, api_client, backend):
        backend.add("POST", "/auth/login", body=login_body(role="Admin", user_id="a-1"))
        token, identity = await AuthService(api_client).login("a@fleetx.test", "pw")
        assert token == "tok-1"
        assert identity.id == "a-1"
        assert identity.role == "Admin"

    async def test_login_accepts_data_envelope(self, api_client, backend):
        backend.add("POST", "/auth/login", body={"data": login_body()})
        token, identity = await AuthService(api_client).login("a@fleetx.test", "pw")
        assert token == "tok-1"
        assert identity.role == "Driver"

    @pytest.mark.parametrize("status", [400, 401, 404])
    async def test_rejected_credentials(self, api_client, backend, status):
        backend.add("POST", "/auth/login", status=status, body={"message": "Invalid credentials"})
        with pytest.raises(InvalidCredentialsError):
            await AuthService(api_client).login("a@fleetx.test", "pw")

    async def test_inactive_account(self, api_client, backend):
        backend.add("POST", "/auth/login", body=login_body(active=False))
        with pytest.raises(InactiveAccountError):
            await AuthService(api_client).login("a@fleetx.test", "pw")

    async def test_login_without_token(self, api_client, backend):
        backend.add("POST", "/auth/login", body={"user": login_body()["user"]})
        with pytest.raises(ServerError):
            await AuthService(api_client).login("a@fleetx.test", "pw")

    @pytest.mark.parametrize("token", [12345, "   ", ["tok"]])
    async def test_login_with_malformed_token(self, api_client, backend, token):
        """Test that a non-string token is a server error, not a crash."""
        backend.add("POST", "/auth/login", body=login_body(token=token))
        with pytest.raises(ServerError):
            await AuthService(api_client).login("a@fleetx.test", "pw")

    async def test_signup_conflict(self, api_client, backend):
        backend.add("POST", "/auth/signup", status=409, body={"message": "Email already registered"})
        profile = SignupProfile(name="Sam", email="sam@fleetx.test", phoneNumber="0501234567", password="secret1")
        with pytest.raises(ConflictError):
            await AuthService(api_client).signup(profile)
        sent = backend.calls("POST", "/auth/signup")[0]
        assert b'"phoneNumber"' in sent.content

    async def test_profile_requires_token(self, api_client, backend):
        with pytest.raises(UnauthorizedError):
            await AuthService(api_client).get_profile(None)
        assert backend.requests == []


class TestUserMessage:
    """Tests for user-facing error texts."""

    def test_messages(self):
        assert "connection" in user_message(NetworkError("x"))
        assert "server" in user_message(ServerError("x"))
        assert "expired" in user_message(UnauthorizedError("x"))
        assert "no longer exists" in user_message(NotFoundError("x"))
        assert user_message(InactiveAccountError()).startswith("Your account is deactivated")
        assert user_message(RuntimeError("x")) == "An unknown error occurred"
