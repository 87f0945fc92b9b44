"""Endpoint table of the FleetX backend."""

from enum import Enum

from fleetx.models.transaction import TransactionKind


class CollectionKind(str, Enum):
    """
    Remote collections the client can list.

    The value is the logical name, also used as the envelope key
    some endpoints wrap their list in ({"earnings": [...]}).
    """
    DRIVERS = "drivers"
    EARNINGS = "earnings"
    EXPENSES = "expenses"
    AUTO_EXPENSES = "autoExpenses"
    VEHICLES = "vehicles"

    @property
    def path(self) -> str:
        return COLLECTION_PATHS[self]

    def item_path(self, record_id: str) -> str:
        return f"{self.path}/{record_id}"

    @property
    def has_driver_summary(self) -> bool:
        return self in SUMMARY_KINDS

    def summary_path(self, driver_id: str) -> str:
        if not self.has_driver_summary:
            raise ValueError(f"{self.value} has no driver summary endpoint")
        return f"{self.path}/driver/{driver_id}/summary"

    @classmethod
    def for_transactions(cls, kind: TransactionKind) -> "CollectionKind":
        return cls(kind.value)


COLLECTION_PATHS = {
    CollectionKind.DRIVERS: "/drivers",
    CollectionKind.EARNINGS: "/earnings",
    CollectionKind.EXPENSES: "/expenses",
    CollectionKind.AUTO_EXPENSES: "/auto-expenses",
    CollectionKind.VEHICLES: "/vehicles",
}

SUMMARY_KINDS = frozenset({
    CollectionKind.EARNINGS,
    CollectionKind.EXPENSES,
    CollectionKind.AUTO_EXPENSES,
})

AUTH_LOGIN = "/auth/login"
AUTH_SIGNUP = "/auth/signup"
AUTH_PROFILE = "/auth/profile"
AUTH_LOGOUT = "/auth/logout"
AVAILABLE_DRIVERS = "/vehicles/drivers/available"
