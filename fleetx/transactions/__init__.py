"""
Transactions Package

Aggregation of the financial collections and the double-tap delete
coordinator used by every transaction screen.
"""

from fleetx.transactions.aggregator import (
    TransactionView,
    aggregate,
    coerce_amount,
    filter_by_kind,
    filter_by_tag,
    icon_for,
    parse_date,
    project,
    summarize,
)
from fleetx.transactions.coordinator import (
    DeleteState,
    InvalidTransitionError,
    MutationCoordinator,
    PendingDeletion,
)

__all__ = [
    # Aggregation
    "TransactionView",
    "aggregate",
    "coerce_amount",
    "filter_by_kind",
    "filter_by_tag",
    "icon_for",
    "parse_date",
    "project",
    "summarize",
    # Delete gesture
    "DeleteState",
    "InvalidTransitionError",
    "MutationCoordinator",
    "PendingDeletion",
]
