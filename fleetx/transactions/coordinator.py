"""
Mutation Coordinator (double-tap delete)

Interaction state machine shared by every transaction screen:

    IDLE --tap(key)--> ARMED(t)
    ARMED --tap(same key) within W--> CONFIRM_PENDING
    ARMED --W elapses--> IDLE
    ARMED --tap(other key)--> ARMED(other key, fresh window)
    CONFIRM_PENDING --cancel--> IDLE
    CONFIRM_PENDING --confirm--> DELETING --success/failure--> IDLE

Only one item can be pending at a time. While an item is
CONFIRM_PENDING or DELETING every tap is ignored.

DESIGN DECISION: No optimistic removal.
The record leaves the view only after the backend acknowledged the
delete. A failed delete leaves the list and totals untouched and
returns to IDLE with the error surfaced as a Notification.

Time comes from an injectable millisecond clock so the gesture
window can be tested without sleeping.
"""

import time
from enum import Enum
from typing import Awaitable, Callable, Optional

import structlog
from pydantic import BaseModel, ConfigDict

from fleetx.audit import AuditLogger
from fleetx.config import get_settings
from fleetx.models.notification import Notification
from fleetx.models.transaction import RecordKey
from fleetx.services.api.collections import CollectionFetcher
from fleetx.services.api.errors import (
    FleetApiError,
    NotFoundError,
    UnauthorizedError,
    user_message,
)
from fleetx.transactions.aggregator import TransactionView

logger = structlog.get_logger("fleetx.transactions")

Clock = Callable[[], float]
Hook = Callable[[], Awaitable[None]]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class DeleteState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    CONFIRM_PENDING = "confirm_pending"
    DELETING = "deleting"


class PendingDeletion(BaseModel):
    """The item currently armed or awaiting confirmation."""
    model_config = ConfigDict(frozen=True)

    key: RecordKey
    last_tap_ms: float


class InvalidTransitionError(Exception):
    """A coordinator operation was called from a state that does not allow it."""
    pass


class MutationCoordinator:
    """
    Turns two rapid taps on the same record into a delete confirmation.

    Hooks:
        on_deleted: awaited after a successful delete (summary refresh)
        on_not_found: awaited when the record had already vanished (full refresh)
        on_unauthorized: awaited when the credential expired (forced logout)
    """

    def __init__(
        self,
        fetcher: CollectionFetcher,
        view: TransactionView,
        credential_provider: Callable[[], Optional[str]],
        clock: Optional[Clock] = None,
        window_ms: Optional[int] = None,
        read_only: bool = False,
        on_deleted: Optional[Hook] = None,
        on_not_found: Optional[Hook] = None,
        on_unauthorized: Optional[Hook] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._fetcher = fetcher
        self._view = view
        self._credential = credential_provider
        self._clock = clock or monotonic_ms
        if window_ms is None:
            window_ms = get_settings().interaction.double_tap_window_ms
        self._window_ms = window_ms
        self.read_only = read_only
        self._on_deleted = on_deleted
        self._on_not_found = on_not_found
        self._on_unauthorized = on_unauthorized
        self._audit = audit_logger or AuditLogger()

        self._state = DeleteState.IDLE
        self._pending: Optional[PendingDeletion] = None
        self.last_error: Optional[FleetApiError] = None

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def window_ms(self) -> int:
        return self._window_ms

    @property
    def state(self) -> DeleteState:
        self._expire()
        return self._state

    @property
    def pending(self) -> Optional[PendingDeletion]:
        self._expire()
        return self._pending

    def state_for(self, key: RecordKey) -> DeleteState:
        """State of one displayed item; every item but the pending one is IDLE."""
        self._expire()
        if self._pending is not None and self._pending.key == key:
            return self._state
        return DeleteState.IDLE

    def _expire(self) -> None:
        if self._state != DeleteState.ARMED or self._pending is None:
            return
        if self._clock() - self._pending.last_tap_ms >= self._window_ms:
            self._reset()

    def _reset(self) -> None:
        self._state = DeleteState.IDLE
        self._pending = None

    # =========================================================================
    # GESTURE
    # =========================================================================

    def on_item_tap(self, key: RecordKey) -> DeleteState:
        """Feed one tap on `key` into the state machine and return the new state."""
        if self.read_only:
            return DeleteState.IDLE

        self._expire()
        if self._state in (DeleteState.CONFIRM_PENDING, DeleteState.DELETING):
            logger.debug("tap_ignored", state=self._state.value)
            return self._state

        now = self._clock()
        if (
            self._state == DeleteState.ARMED
            and self._pending is not None
            and self._pending.key == key
        ):
            self._state = DeleteState.CONFIRM_PENDING
            self._pending = PendingDeletion(key=key, last_tap_ms=now)
            self._audit.log_delete_requested(key.kind.value, key.id)
            return self._state

        self._pending = PendingDeletion(key=key, last_tap_ms=now)
        self._state = DeleteState.ARMED
        return self._state

    def cancel_delete(self) -> None:
        """Leave CONFIRM_PENDING without calling the backend."""
        if self._state != DeleteState.CONFIRM_PENDING or self._pending is None:
            raise InvalidTransitionError(f"Nothing to cancel in state {self._state.value}")
        key = self._pending.key
        self._reset()
        self._audit.log_delete_cancelled(key.kind.value, key.id)

    # =========================================================================
    # DELETE
    # =========================================================================

    async def confirm_delete(self) -> Notification:
        """
        Delete the pending record.

        Returns the notification to show. Backend errors never
        propagate; calling outside CONFIRM_PENDING does.

        Raises:
            InvalidTransitionError: not in CONFIRM_PENDING
        """
        if self._state != DeleteState.CONFIRM_PENDING or self._pending is None:
            raise InvalidTransitionError(f"Cannot confirm delete in state {self._state.value}")

        key = self._pending.key
        item = key.kind.default_label
        self._state = DeleteState.DELETING
        self.last_error = None

        try:
            await self._fetcher.delete_record(key.kind, key.id, self._credential())
        except UnauthorizedError as e:
            self._fail(key, e)
            if self._on_unauthorized is not None:
                await self._on_unauthorized()
            return Notification.error(user_message(e), title="Session expired")
        except NotFoundError as e:
            self._fail(key, e)
            self._view.remove(key)
            if self._on_not_found is not None:
                await self._on_not_found()
            return Notification.warning(user_message(e))
        except FleetApiError as e:
            self._fail(key, e)
            return Notification.error(f"Failed to delete {item.lower()}: {user_message(e)}")

        self._view.remove(key)
        self._reset()
        self._audit.log_record_deleted(key.kind.value, key.id)
        if self._on_deleted is not None:
            await self._on_deleted()
        return Notification.success(f"{item} deleted successfully")

    def _fail(self, key: RecordKey, error: FleetApiError) -> None:
        self.last_error = error
        self._reset()
        self._audit.log_delete_failed(key.kind.value, key.id, type(error).__name__, str(error))
