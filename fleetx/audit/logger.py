"""
Audit Logger

Every session transition, redirect and destructive action is logged
as a structured event.

The audit logger:
- Writes JSON lines through structlog (no durable client-side store)
- Never raises: a logging failure must not break the user flow
- Supports correlation IDs to trace the fetches of one screen load
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from fleetx.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.
    """

    def __init__(self, logger_name: str = "fleetx.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        return True

    # Session lifecycle

    def log_login_succeeded(self, user_id: str, role: str) -> None:
        self.log(AuditEventBuilder.login_succeeded(user_id=user_id, role=role))

    def log_login_failed(self, reason: str, error_message: Optional[str] = None) -> None:
        self.log(AuditEventBuilder.login_failed(reason=reason, error_message=error_message))

    def log_signup_submitted(self, role: str) -> None:
        self.log(AuditEventBuilder.signup_submitted(role=role))

    def log_signup_failed(self, reason: str, error_message: Optional[str] = None) -> None:
        self.log(AuditEventBuilder.signup_failed(reason=reason, error_message=error_message))

    def log_logout(self, user_id: Optional[str], forced: bool = False) -> None:
        self.log(AuditEventBuilder.logout(user_id=user_id, forced=forced))

    def log_logout_remote_failed(self, user_id: Optional[str], error_message: str) -> None:
        self.log(AuditEventBuilder.logout_remote_failed(user_id=user_id, error_message=error_message))

    def log_session_restored(self, user_id: str, role: str) -> None:
        self.log(AuditEventBuilder.session_restored(user_id=user_id, role=role))

    def log_session_restore_failed(self, reason: str, error_message: Optional[str] = None) -> None:
        self.log(AuditEventBuilder.session_restore_failed(reason=reason, error_message=error_message))

    # Authorization

    def log_access_redirected(self, screen: str, destination: str, role: Optional[str]) -> None:
        self.log(AuditEventBuilder.access_redirected(screen=screen, destination=destination, role=role))

    # Collections

    def log_collection_fetched(self, kind: str, count: int, correlation_id: Optional[UUID] = None) -> None:
        self.log(AuditEventBuilder.collection_fetched(kind=kind, count=count, correlation_id=correlation_id))

    def log_collection_fetch_failed(
        self,
        kind: str,
        error_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.collection_fetch_failed(
            kind=kind,
            error_type=error_type,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_stale_response_discarded(self, screen: str, request_seq: int, current_seq: int) -> None:
        self.log(AuditEventBuilder.stale_response_discarded(
            screen=screen,
            request_seq=request_seq,
            current_seq=current_seq,
        ))

    # Mutation pipeline

    def log_delete_requested(self, kind: str, record_id: str) -> None:
        self.log(AuditEventBuilder.delete_requested(kind=kind, record_id=record_id))

    def log_delete_cancelled(self, kind: str, record_id: str) -> None:
        self.log(AuditEventBuilder.delete_cancelled(kind=kind, record_id=record_id))

    def log_record_deleted(self, kind: str, record_id: str) -> None:
        self.log(AuditEventBuilder.record_deleted(kind=kind, record_id=record_id))

    def log_delete_failed(self, kind: str, record_id: str, error_type: str, error_message: str) -> None:
        self.log(AuditEventBuilder.delete_failed(
            kind=kind,
            record_id=record_id,
            error_type=error_type,
            error_message=error_message,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use one per screen load and pass it to every fetch of that load.
    """
    return uuid4()
