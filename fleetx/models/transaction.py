"""
Transaction Models for the FleetX client

A TransactionRecord is the normalized, display-ready projection of one
raw earning, expense or auto-expense record fetched from the backend.
Records are never persisted; every screen rebuilds them on each fetch.

DESIGN DECISION: Record ids are only unique per kind.
Anything that identifies a displayed item (list keys, the delete gesture)
uses RecordKey = (kind, id).
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field


# Stands in for a missing or unparsable date; earlier than any real date, so it sorts last.
UNDATED = datetime.min.replace(tzinfo=timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionKind(str, Enum):
    """
    Kinds of financial records shown on the transaction screens.

    Declaration order is the tie-break order used when two records
    share the same date: earnings, then expenses, then auto-expenses.
    """
    EARNING = "earnings"
    EXPENSE = "expenses"
    AUTO_EXPENSE = "autoExpenses"

    @property
    def sign(self) -> int:
        """Earnings add to the balance, everything else subtracts."""
        return 1 if self is TransactionKind.EARNING else -1

    @property
    def default_label(self) -> str:
        return _DEFAULT_LABELS[self]

    @property
    def tag_field(self) -> str:
        """Raw field (and server-side filter parameter) that holds the category/type tag."""
        return "type" if self is TransactionKind.EARNING else "category"


_DEFAULT_LABELS = {
    TransactionKind.EARNING: "Earning",
    TransactionKind.EXPENSE: "Expense",
    TransactionKind.AUTO_EXPENSE: "Auto expense",
}


class EarningType(str, Enum):
    """How an earning was received."""
    ONLINE = "Online"
    CASH = "Cash"
    POCKET_SLIPT = "Pocket Slipt"


class EarningAccount(str, Enum):
    """Account an earning is booked against."""
    PERSONAL = "Personal Account"
    LIMOUSINE = "Limousine Account"


class ExpenseCategory(str, Enum):
    """Driver expense categories."""
    FUEL = "Fuel"
    MAINTENANCE = "Maintenance"
    INSURANCE = "Insurance"
    PARKING = "Parking"
    OTHER = "Other"


class AutoExpenseCategory(str, Enum):
    """Vehicle (auto) expense categories."""
    PETROL = "Petrol"
    CAR_ACCIDENT = "Car Accident"
    MAINTENANCE = "Maintenance"
    INSURANCE = "Insurance"
    OTHER = "Other"


# =============================================================================
# RECORDS
# =============================================================================

class RecordKey(NamedTuple):
    """Display key of a record: ids are unique only within a kind."""
    kind: TransactionKind
    id: str


class TransactionRecord(BaseModel):
    """
    One normalized transaction.

    `amount` is always non-signed as sent by the backend;
    use `signed_amount` for balance arithmetic.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    kind: TransactionKind
    amount: Decimal = Field(default=Decimal("0"))
    label: str
    date: datetime = Field(
        default=UNDATED,
        description="Timezone-aware timestamp; UNDATED when missing or unparsable"
    )
    tag: Optional[str] = Field(
        default=None,
        description="Earning type or expense category"
    )
    sign: int = Field(..., description="+1 for earnings, -1 otherwise")
    icon: str = Field(default="wallet-outline")

    # Optional context carried through from the raw record
    note: Optional[str] = None
    account_name: Optional[str] = None
    driver_id: Optional[str] = None
    driver_name: Optional[str] = None

    @property
    def key(self) -> RecordKey:
        return RecordKey(self.kind, self.id)

    @property
    def signed_amount(self) -> Decimal:
        return self.amount * self.sign

    @property
    def has_date(self) -> bool:
        return self.date != UNDATED


class TransactionSummary(BaseModel):
    """
    Totals derived from a full record sequence.

    Always recomputed from scratch, never patched in place.
    """

    total_earnings: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    total_auto_expenses: Decimal = Decimal("0")
    record_count: int = Field(default=0, ge=0)
    by_tag: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Unsigned totals keyed by '<kind>:<tag>'"
    )
    by_account: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Earning totals keyed by account name"
    )

    @property
    def net(self) -> Decimal:
        return self.total_earnings - self.total_expenses - self.total_auto_expenses
