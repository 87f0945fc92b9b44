"""
Audit Models for the FleetX client

Every session transition, access redirect and destructive action is
recorded as an AuditEvent so that a support engineer can reconstruct
what a user saw and did.

DESIGN DECISION: Audit events never carry credentials or passwords.
Only ids, roles, kinds and error messages are recorded.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Session lifecycle
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    SIGNUP_SUBMITTED = "signup_submitted"
    SIGNUP_FAILED = "signup_failed"
    LOGOUT = "logout"
    LOGOUT_REMOTE_FAILED = "logout_remote_failed"
    SESSION_RESTORED = "session_restored"
    SESSION_RESTORE_FAILED = "session_restore_failed"

    # Authorization
    ACCESS_REDIRECTED = "access_redirected"

    # Collections
    COLLECTION_FETCHED = "collection_fetched"
    COLLECTION_FETCH_FAILED = "collection_fetch_failed"
    STALE_RESPONSE_DISCARDED = "stale_response_discarded"

    # Mutation pipeline
    DELETE_REQUESTED = "delete_requested"
    DELETE_CANCELLED = "delete_cancelled"
    RECORD_DELETED = "record_deleted"
    DELETE_FAILED = "delete_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'session', 'earnings', 'screen')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Backend id of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.login_succeeded(user_id, role)
        event = AuditEventBuilder.record_deleted("earnings", record_id)
    """

    @staticmethod
    def login_succeeded(user_id: str, role: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            entity_type="user",
            entity_id=user_id,
            description=f"User signed in as {role}",
            details={"role": role},
            is_user_action=True,
        )

    @staticmethod
    def login_failed(reason: str, error_message: Optional[str] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            description=f"Login failed: {reason}",
            details={"reason": reason},
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def signup_submitted(role: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNUP_SUBMITTED,
            entity_type="user",
            description="Account registered, awaiting activation",
            details={"role": role},
            is_user_action=True,
        )

    @staticmethod
    def signup_failed(reason: str, error_message: Optional[str] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNUP_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description=f"Signup failed: {reason}",
            details={"reason": reason},
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def logout(user_id: Optional[str], forced: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGOUT,
            entity_type="user",
            entity_id=user_id,
            description="Session cleared" + (" (forced)" if forced else ""),
            details={"forced": forced},
            is_user_action=not forced,
        )

    @staticmethod
    def logout_remote_failed(user_id: Optional[str], error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGOUT_REMOTE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=user_id,
            description="Remote session invalidation failed; local session cleared anyway",
            error_message=error_message,
        )

    @staticmethod
    def session_restored(user_id: str, role: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_RESTORED,
            entity_type="user",
            entity_id=user_id,
            description="Persisted session restored",
            details={"role": role},
        )

    @staticmethod
    def session_restore_failed(reason: str, error_message: Optional[str] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_RESTORE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            description=f"Persisted session discarded: {reason}",
            details={"reason": reason},
            error_message=error_message,
        )

    @staticmethod
    def access_redirected(screen: str, destination: str, role: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCESS_REDIRECTED,
            entity_type="screen",
            entity_id=screen,
            description=f"Access to {screen} redirected to {destination}",
            details={"destination": destination, "role": role},
        )

    @staticmethod
    def collection_fetched(kind: str, count: int, correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COLLECTION_FETCHED,
            severity=AuditSeverity.DEBUG,
            entity_type=kind,
            correlation_id=correlation_id,
            description=f"Fetched {count} {kind}",
            details={"count": count},
        )

    @staticmethod
    def collection_fetch_failed(
        kind: str,
        error_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COLLECTION_FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=kind,
            correlation_id=correlation_id,
            description=f"Fetching {kind} failed ({error_type})",
            details={"error_type": error_type},
            error_message=error_message,
        )

    @staticmethod
    def stale_response_discarded(screen: str, request_seq: int, current_seq: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STALE_RESPONSE_DISCARDED,
            severity=AuditSeverity.DEBUG,
            entity_type="screen",
            entity_id=screen,
            description="Discarded response of a superseded request",
            details={"request_seq": request_seq, "current_seq": current_seq},
        )

    @staticmethod
    def delete_requested(kind: str, record_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELETE_REQUESTED,
            entity_type=kind,
            entity_id=record_id,
            description=f"Delete confirmation shown for {kind} record",
            is_user_action=True,
        )

    @staticmethod
    def delete_cancelled(kind: str, record_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELETE_CANCELLED,
            entity_type=kind,
            entity_id=record_id,
            description="User cancelled the delete",
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(kind: str, record_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_type=kind,
            entity_id=record_id,
            description=f"Deleted {kind} record",
            is_user_action=True,
        )

    @staticmethod
    def delete_failed(kind: str, record_id: str, error_type: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELETE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=kind,
            entity_id=record_id,
            description=f"Delete of {kind} record failed ({error_type})",
            details={"error_type": error_type},
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
