"""
Remote Collection Fetchers

One logical endpoint per collection kind. Filtering is server-side:
the filter set is forwarded verbatim as query parameters.

Responses come in three shapes and are all normalized to a bare list:
    [...]
    {"data": [...]}
    {"<kindName>": [...]}          e.g. {"autoExpenses": [...]}
"""

from typing import Any, Mapping, Optional, Union

from fleetx.models.session import Role
from fleetx.models.transaction import TransactionKind
from fleetx.services.api import endpoints
from fleetx.services.api.client import ApiClient
from fleetx.services.api.endpoints import CollectionKind
from fleetx.services.api.errors import ServerError, UnauthorizedError

RawRecord = dict[str, Any]
KindLike = Union[CollectionKind, TransactionKind, str]


def _as_collection_kind(kind: KindLike) -> CollectionKind:
    if isinstance(kind, CollectionKind):
        return kind
    if isinstance(kind, TransactionKind):
        return CollectionKind.for_transactions(kind)
    return CollectionKind(kind)


def normalize_collection(payload: Any, kind: CollectionKind) -> list[RawRecord]:
    """
    Reduce any accepted response shape to a flat list of records.

    Raises:
        ServerError: the payload matches none of the accepted shapes
    """
    body = payload
    # {"data": {"earnings": [...]}} nests one level deeper.
    for _ in range(2):
        if isinstance(body, list):
            return [item for item in body if isinstance(item, dict)]
        if not isinstance(body, dict):
            break
        if kind.value in body:
            body = body[kind.value]
        elif "data" in body:
            body = body["data"]
        else:
            break

    if isinstance(body, list):
        return [item for item in body if isinstance(item, dict)]
    raise ServerError(f"Unexpected response shape for {kind.value}")


class CollectionFetcher:
    """
    Lists, summarizes and deletes remote collections.

    Every call requires the bearer credential; a missing credential
    fails fast with UnauthorizedError without touching the network.
    """

    def __init__(self, client: ApiClient):
        self._client = client

    async def fetch_collection(
        self,
        kind: KindLike,
        filters: Optional[Mapping[str, Any]],
        credential: Optional[str],
    ) -> list[RawRecord]:
        """
        Fetch one collection as a bare list of raw records.

        Raises:
            UnauthorizedError: missing or expired credential
            NotFoundError: endpoint not found
            ServerError: 5xx or malformed payload
            NetworkError: backend unreachable
        """
        collection = _as_collection_kind(kind)
        self._require(credential)
        payload = await self._client.request(
            "GET",
            collection.path,
            token=credential,
            params=filters,
        )
        return normalize_collection(payload, collection)

    async def delete_record(
        self,
        kind: KindLike,
        record_id: str,
        credential: Optional[str],
    ) -> None:
        """Delete one record. Idempotent by id on the backend side."""
        collection = _as_collection_kind(kind)
        self._require(credential)
        await self._client.request(
            "DELETE",
            collection.item_path(record_id),
            token=credential,
        )

    async def fetch_summary(
        self,
        kind: KindLike,
        driver_id: str,
        period: str,
        credential: Optional[str],
    ) -> dict[str, Any]:
        """Fetch the backend's per-driver totals for one period."""
        collection = _as_collection_kind(kind)
        self._require(credential)
        payload = await self._client.request(
            "GET",
            collection.summary_path(driver_id),
            token=credential,
            params={"period": period},
        )
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"]
        if not isinstance(payload, dict):
            raise ServerError(f"Unexpected summary shape for {collection.value}")
        return payload

    async def fetch_users(self, credential: Optional[str]) -> list[RawRecord]:
        """Accounts an admin manages: the drivers endpoint without admin accounts."""
        drivers = await self.fetch_collection(CollectionKind.DRIVERS, None, credential)
        return [user for user in drivers if user.get("role") != Role.ADMIN.value]

    async def fetch_available_drivers(self, credential: Optional[str]) -> list[RawRecord]:
        """Drivers not yet assigned to a vehicle."""
        self._require(credential)
        payload = await self._client.request(
            "GET",
            endpoints.AVAILABLE_DRIVERS,
            token=credential,
        )
        return normalize_collection(payload, CollectionKind.DRIVERS)

    @staticmethod
    def _require(credential: Optional[str]) -> None:
        if not credential:
            raise UnauthorizedError("Authentication required")
