"""
Transaction Aggregator

Merges the earnings, expenses and auto-expenses collections into one
chronologically ordered sequence of TransactionRecords.

ORDERING:
1. Project every raw record with its kind's projector
2. Concatenate in kind order: earnings, expenses, auto-expenses
3. Stable sort by date, newest first

Because the sort is stable, records with equal dates keep the
concatenation order, so the output is fully deterministic.

ROBUSTNESS:
- Missing or unparsable date -> UNDATED (sorts last)
- Amount sent as a string -> Decimal
- Missing, null or unparsable amount -> 0
- Records without an id cannot be keyed and are dropped (logged)
"""

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Sequence

import structlog

from fleetx.models.transaction import (
    UNDATED,
    AutoExpenseCategory,
    EarningAccount,
    EarningType,
    ExpenseCategory,
    RecordKey,
    TransactionKind,
    TransactionRecord,
    TransactionSummary,
)

logger = structlog.get_logger("fleetx.transactions")

RawRecord = Mapping[str, Any]


# =============================================================================
# FIELD COERCION
# =============================================================================

def coerce_amount(value: Any) -> Decimal:
    """Decimal from a number or numeric string; 0 for anything else."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    return amount


def parse_date(value: Any) -> datetime:
    """
    Timezone-aware datetime from an ISO string, date or datetime.

    Naive values are taken as UTC. Anything unusable gives UNDATED.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return UNDATED
    else:
        return UNDATED

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _record_id(raw: RawRecord) -> Optional[str]:
    return _text(raw.get("id", raw.get("_id")))


def _driver(raw: RawRecord) -> tuple[Optional[str], Optional[str]]:
    driver = raw.get("driver")
    driver_id = _text(raw.get("driverId"))
    driver_name = None
    if isinstance(driver, Mapping):
        driver_id = driver_id or _text(driver.get("id"))
        driver_name = _text(driver.get("name"))
    return driver_id, driver_name


# =============================================================================
# ICONS
# =============================================================================

EARNING_ICONS = {
    EarningType.ONLINE.value: "card-outline",
    EarningType.CASH.value: "cash-outline",
}

EXPENSE_ICONS = {
    ExpenseCategory.FUEL.value: "flame-outline",
    ExpenseCategory.MAINTENANCE.value: "construct-outline",
    ExpenseCategory.INSURANCE.value: "shield-outline",
    ExpenseCategory.PARKING.value: "car-outline",
}

AUTO_EXPENSE_ICONS = {
    AutoExpenseCategory.PETROL.value: "car-outline",
    AutoExpenseCategory.CAR_ACCIDENT.value: "alert-circle-outline",
    AutoExpenseCategory.MAINTENANCE.value: "construct-outline",
    AutoExpenseCategory.INSURANCE.value: "shield-checkmark-outline",
}

_ICONS = {
    TransactionKind.EARNING: (EARNING_ICONS, "wallet-outline"),
    TransactionKind.EXPENSE: (EXPENSE_ICONS, "cart-outline"),
    TransactionKind.AUTO_EXPENSE: (AUTO_EXPENSE_ICONS, "wallet-outline"),
}


def icon_for(kind: TransactionKind, tag: Optional[str]) -> str:
    icons, fallback = _ICONS[kind]
    return icons.get(tag, fallback) if tag else fallback


# =============================================================================
# PROJECTION
# =============================================================================

def project(raw: RawRecord, kind: TransactionKind) -> Optional[TransactionRecord]:
    """
    Normalize one raw record of `kind`.

    Label falls back description -> note -> the kind's default label.
    Returns None when the record has no id.
    """
    record_id = _record_id(raw)
    if record_id is None:
        return None

    note = _text(raw.get("note"))
    label = _text(raw.get("description")) or note or kind.default_label
    tag = _text(raw.get(kind.tag_field))
    driver_id, driver_name = _driver(raw)

    return TransactionRecord(
        id=record_id,
        kind=kind,
        amount=coerce_amount(raw.get("amount")),
        label=label,
        date=parse_date(raw.get("date")),
        tag=tag,
        sign=kind.sign,
        icon=icon_for(kind, tag),
        note=note,
        account_name=_text(raw.get("accountName")),
        driver_id=driver_id,
        driver_name=driver_name,
    )


def aggregate(
    collections: Mapping[TransactionKind, Sequence[RawRecord]],
) -> list[TransactionRecord]:
    """
    Merge raw collections into one sequence, newest first.

    Kinds absent from `collections` contribute nothing.
    """
    merged: list[TransactionRecord] = []
    for kind in TransactionKind:
        dropped = 0
        for raw in collections.get(kind) or ():
            record = project(raw, kind) if isinstance(raw, Mapping) else None
            if record is None:
                dropped += 1
                continue
            merged.append(record)
        if dropped:
            logger.warning("records_dropped", kind=kind.value, count=dropped)

    return sorted(merged, key=lambda record: record.date, reverse=True)


# =============================================================================
# FILTERS
# =============================================================================

def filter_by_kind(
    records: Iterable[TransactionRecord],
    kind: Optional[TransactionKind],
) -> list[TransactionRecord]:
    """Order-preserving kind filter; None keeps everything."""
    if kind is None:
        return list(records)
    return [record for record in records if record.kind == kind]


def filter_by_tag(
    records: Iterable[TransactionRecord],
    tag: Optional[str],
) -> list[TransactionRecord]:
    """Order-preserving tag (earning type / expense category) filter; None keeps everything."""
    if tag is None:
        return list(records)
    return [record for record in records if record.tag == tag]


# =============================================================================
# SUMMARY
# =============================================================================

def summarize(records: Iterable[TransactionRecord]) -> TransactionSummary:
    """Totals over the full sequence."""
    totals = {kind: Decimal("0") for kind in TransactionKind}
    by_tag: dict[str, Decimal] = {}
    # Both booking accounts always appear, even with no earnings yet.
    by_account: dict[str, Decimal] = {account.value: Decimal("0") for account in EarningAccount}
    count = 0

    for record in records:
        count += 1
        totals[record.kind] += record.amount
        if record.tag:
            tag_key = f"{record.kind.value}:{record.tag}"
            by_tag[tag_key] = by_tag.get(tag_key, Decimal("0")) + record.amount
        if record.kind == TransactionKind.EARNING and record.account_name:
            by_account[record.account_name] = (
                by_account.get(record.account_name, Decimal("0")) + record.amount
            )

    return TransactionSummary(
        total_earnings=totals[TransactionKind.EARNING],
        total_expenses=totals[TransactionKind.EXPENSE],
        total_auto_expenses=totals[TransactionKind.AUTO_EXPENSE],
        record_count=count,
        by_tag=by_tag,
        by_account=by_account,
    )


# =============================================================================
# VIEW
# =============================================================================

class TransactionView:
    """
    The in-memory record sequence owned by one screen.

    Rebuilt on every fetch; individual records are only removed
    after the backend confirmed their deletion.
    """

    def __init__(self, records: Optional[Iterable[TransactionRecord]] = None):
        self._records: list[TransactionRecord] = list(records or ())

    @property
    def records(self) -> list[TransactionRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return any(record.key == key for record in self._records)

    def replace(self, records: Iterable[TransactionRecord]) -> None:
        self._records = list(records)

    def get(self, key: RecordKey) -> Optional[TransactionRecord]:
        for record in self._records:
            if record.key == key:
                return record
        return None

    def remove(self, key: RecordKey) -> bool:
        """Drop the record with `key`. Returns False if it was not present."""
        remaining = [record for record in self._records if record.key != key]
        removed = len(remaining) != len(self._records)
        self._records = remaining
        return removed

    def visible(
        self,
        kind: Optional[TransactionKind] = None,
        tag: Optional[str] = None,
    ) -> list[TransactionRecord]:
        return filter_by_tag(filter_by_kind(self._records, kind), tag)

    def summary(self) -> TransactionSummary:
        return summarize(self._records)
