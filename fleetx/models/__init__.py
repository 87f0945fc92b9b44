"""
Data Models Package

This package contains all Pydantic models used by the FleetX client core.
"""

from fleetx.models.session import (
    Role,
    Session,
    SessionStatus,
    SignupProfile,
    UserIdentity,
)
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
from fleetx.models.notification import Notification, NotificationLevel
from fleetx.models.validation import ValidationIssue, ValidationResult
from fleetx.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Session models
    "Role",
    "Session",
    "SessionStatus",
    "SignupProfile",
    "UserIdentity",
    # Transaction models
    "AutoExpenseCategory",
    "EarningAccount",
    "EarningType",
    "ExpenseCategory",
    "RecordKey",
    "TransactionKind",
    "TransactionRecord",
    "TransactionSummary",
    "UNDATED",
    # Notifications
    "Notification",
    "NotificationLevel",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
