"""
Main Orchestrator for the FleetX client

This module ties the core components together and defines the
lifecycle of one transaction screen:

    mount (gate) -> load (fetch -> aggregate) -> tap/confirm (delete)
                 -> summary refresh -> unmount

DESIGN DECISION: The screen controller enforces the boundaries:
- Nothing is fetched before the gate allowed the screen
- Backend errors stop here and become Notifications
- An expired credential always forces a logout and a redirect to LOGIN
- A response that is no longer wanted never touches the view

STALE RESPONSES:
Every load is numbered. When the response arrives, it is applied only
if its number is still the latest and the screen is still mounted;
otherwise it is discarded and logged.
"""

import asyncio
import logging
from typing import Iterable, NamedTuple, Optional, Union

import httpx
import structlog

from fleetx.audit import AuditLogger, create_correlation_id
from fleetx.config import Settings, get_settings
from fleetx.models.notification import Notification
from fleetx.models.session import Role
from fleetx.models.transaction import (
    RecordKey,
    TransactionKind,
    TransactionRecord,
    TransactionSummary,
)
from fleetx.services.api import (
    ApiClient,
    AuthService,
    CollectionFetcher,
    CollectionKind,
    FleetApiError,
    UnauthorizedError,
    user_message,
)
from fleetx.services.storage import JsonFileStateStorage, StateStorageInterface
from fleetx.session import (
    Destination,
    GuardDecision,
    Redirect,
    Screen,
    SessionStore,
    can_mutate,
    guard,
    resolve_start_destination,
    visibility_filters,
)
from fleetx.transactions import (
    DeleteState,
    MutationCoordinator,
    TransactionView,
    aggregate,
)
from fleetx.transactions.coordinator import Clock

logger = structlog.get_logger("fleetx.orchestrator")

ALL_KINDS = tuple(TransactionKind)

# Collections each transaction screen loads; unlisted screens load all kinds.
SCREEN_KINDS: dict[Screen, tuple[TransactionKind, ...]] = {
    Screen.EARNINGS: (TransactionKind.EARNING,),
    Screen.ALL_EARNINGS: (TransactionKind.EARNING,),
    Screen.ACCOUNT_EARNINGS: (TransactionKind.EARNING,),
    Screen.ACCOUNT_DETAIL: (TransactionKind.EARNING,),
    Screen.ALL_EXPENSES: (TransactionKind.EXPENSE,),
    Screen.AUTO_EXPENSE: (TransactionKind.AUTO_EXPENSE,),
}


class ScreenStateError(Exception):
    """A screen operation was called while the screen is not mounted."""
    pass


class TransactionScreen:
    """
    Controller for one mounted transaction screen.

    Owns its record view and its delete coordinator. Operations return
    the Notification to show (or None); notifications raised by
    background hooks (summary refresh after a delete, refresh after a
    vanished record) are appended to `notifications`.
    """

    def __init__(
        self,
        screen: Union[Screen, str],
        session_store: SessionStore,
        fetcher: CollectionFetcher,
        kinds: Optional[Iterable[TransactionKind]] = None,
        driver_id: Optional[str] = None,
        period: Optional[str] = None,
        clock: Optional[Clock] = None,
        window_ms: Optional[int] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.screen = screen
        self._store = session_store
        self._fetcher = fetcher
        self._audit = audit_logger or AuditLogger()
        if kinds is None:
            kinds = SCREEN_KINDS.get(screen, ALL_KINDS) if isinstance(screen, Screen) else ALL_KINDS
        self.kinds: tuple[TransactionKind, ...] = tuple(kinds)
        self.driver_id = driver_id
        if period is None:
            period = get_settings().app.default_summary_period
        self.period = period

        self.view = TransactionView()
        self.kind: Optional[TransactionKind] = None
        self.tag: Optional[str] = None
        self.summary = TransactionSummary()
        self.remote_summaries: dict[TransactionKind, dict] = {}
        self.redirect: Optional[Destination] = None
        self.notifications: list[Notification] = []

        self._mounted = False
        self._seq = 0

        self.coordinator = MutationCoordinator(
            fetcher=fetcher,
            view=self.view,
            credential_provider=lambda: self._store.session.credential,
            clock=clock,
            window_ms=window_ms,
            read_only=True,
            on_deleted=self._after_delete,
            on_not_found=self._after_not_found,
            on_unauthorized=self._force_logout,
            audit_logger=self._audit,
        )

    @property
    def _screen_name(self) -> str:
        return self.screen.value if isinstance(self.screen, Screen) else str(self.screen)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    def mount(self) -> GuardDecision:
        """Ask the gate; only an Allowed decision mounts the screen."""
        session = self._store.session
        decision = guard(self.screen, session, audit_logger=self._audit)
        if isinstance(decision, Redirect):
            self.redirect = decision.destination
            return decision

        self._mounted = True
        self.redirect = None
        self.coordinator.read_only = not can_mutate(session)
        return decision

    def unmount(self) -> None:
        """Stop caring about anything still in flight."""
        self._mounted = False
        self._seq += 1

    def _require_mounted(self) -> None:
        if not self._mounted:
            raise ScreenStateError(f"Screen {self._screen_name} is not mounted")

    def _is_current(self, seq: int) -> bool:
        return self._mounted and seq == self._seq

    # =========================================================================
    # LOADING
    # =========================================================================

    def _filters_for(self, kind: TransactionKind) -> dict[str, str]:
        filters: dict[str, str] = {}
        if self.driver_id:
            filters["driverId"] = self.driver_id
        # A driver's own id always wins over a requested driver.
        filters.update(visibility_filters(self._store.session))
        if self.tag:
            filters[kind.tag_field] = self.tag
        return filters

    async def load(self, tag: Optional[str] = None) -> Optional[Notification]:
        """
        Fetch every collection of this screen and rebuild the view.

        On failure the current view is left untouched. An expired
        credential forces a logout and sets `redirect` to LOGIN.
        """
        self._require_mounted()
        self._seq += 1
        seq = self._seq
        self.tag = tag
        credential = self._store.session.credential
        correlation_id = create_correlation_id()

        try:
            results = await asyncio.gather(*(
                self._fetcher.fetch_collection(kind, self._filters_for(kind), credential)
                for kind in self.kinds
            ))
        except FleetApiError as e:
            # An expired credential is acted on even when this load was superseded.
            if not isinstance(e, UnauthorizedError) and not self._is_current(seq):
                self._audit.log_stale_response_discarded(self._screen_name, seq, self._seq)
                return None
            self._audit.log_collection_fetch_failed(
                ",".join(kind.value for kind in self.kinds),
                type(e).__name__,
                str(e),
                correlation_id=correlation_id,
            )
            if isinstance(e, UnauthorizedError):
                if self._store.session.credential == credential:
                    await self._force_logout()
                return Notification.error(user_message(e), title="Session expired")
            return Notification.error(user_message(e))

        if not self._is_current(seq):
            self._audit.log_stale_response_discarded(self._screen_name, seq, self._seq)
            return None

        for kind, raw in zip(self.kinds, results):
            self._audit.log_collection_fetched(kind.value, len(raw), correlation_id=correlation_id)

        self.view.replace(aggregate(dict(zip(self.kinds, results))))
        self.summary = self.view.summary()
        return None

    # =========================================================================
    # DISPLAY
    # =========================================================================

    def show_kind(self, kind: Optional[TransactionKind]) -> None:
        """Restrict the displayed records to one kind; None shows all."""
        self.kind = kind

    @property
    def records(self) -> list[TransactionRecord]:
        return self.view.visible(self.kind, self.tag)

    # =========================================================================
    # DELETE GESTURE
    # =========================================================================

    def tap(self, key: RecordKey) -> DeleteState:
        self._require_mounted()
        return self.coordinator.on_item_tap(key)

    async def confirm_delete(self) -> Notification:
        self._require_mounted()
        return await self.coordinator.confirm_delete()

    def cancel_delete(self) -> None:
        self.coordinator.cancel_delete()

    # =========================================================================
    # SUMMARY
    # =========================================================================

    def _summary_driver_id(self) -> Optional[str]:
        session = self._store.session
        if session.role == Role.DRIVER and session.identity is not None:
            return session.identity.id
        return self.driver_id

    async def refresh_summary(self) -> Optional[Notification]:
        """
        Recompute the local totals from the full view and, when a
        period is set, re-fetch the backend's per-driver summaries.
        """
        self.summary = self.view.summary()

        driver_id = self._summary_driver_id()
        if not self.period or not driver_id or not self._mounted:
            return None

        seq = self._seq
        credential = self._store.session.credential
        summaries: dict[TransactionKind, dict] = {}
        try:
            for kind in self.kinds:
                if not CollectionKind.for_transactions(kind).has_driver_summary:
                    continue
                summaries[kind] = await self._fetcher.fetch_summary(
                    kind, driver_id, self.period, credential,
                )
        except UnauthorizedError as e:
            await self._force_logout()
            return Notification.error(user_message(e), title="Session expired")
        except FleetApiError as e:
            logger.warning("summary_refresh_failed", screen=self._screen_name, error=str(e))
            return Notification.error(user_message(e))

        if self._is_current(seq):
            self.remote_summaries = summaries
        return None

    # =========================================================================
    # HOOKS
    # =========================================================================

    async def _after_delete(self) -> None:
        notification = await self.refresh_summary()
        if notification is not None:
            self.notifications.append(notification)

    async def _after_not_found(self) -> None:
        if not self._mounted:
            return
        notification = await self.load(self.tag)
        if notification is not None:
            self.notifications.append(notification)

    async def _force_logout(self) -> None:
        await self._store.logout(forced=True)
        self.redirect = Destination.LOGIN
        self.unmount()


# =============================================================================
# FACTORY
# =============================================================================

class AppComponents(NamedTuple):
    """Everything a UI layer needs, built once per process."""
    client: ApiClient
    session_store: SessionStore
    fetcher: CollectionFetcher
    storage: StateStorageInterface
    audit_logger: AuditLogger
    settings: Settings

    async def start(self) -> Destination:
        """Restore the session and pick the first destination (splash routing)."""
        session = await self.session_store.restore()
        seen = await self.storage.has_seen_welcome()
        return resolve_start_destination(session, seen)

    def open_screen(self, screen: Union[Screen, str], **kwargs) -> TransactionScreen:
        """Build and mount a transaction screen; check `redirect` before using it."""
        kwargs.setdefault("period", self.settings.app.default_summary_period)
        controller = TransactionScreen(
            screen,
            session_store=self.session_store,
            fetcher=self.fetcher,
            audit_logger=self.audit_logger,
            **kwargs,
        )
        controller.mount()
        return controller

    async def aclose(self) -> None:
        await self.client.aclose()


def create_app_components(
    settings: Optional[Settings] = None,
    storage: Optional[StateStorageInterface] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use; defaults to the cached environment settings.
        storage: Local state backend; defaults to the JSON state file.
        http_client: Pre-built httpx client (tests pass one with a MockTransport).
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.app.log_level, format="%(message)s")
    audit_logger = AuditLogger()

    client = ApiClient(settings=settings.api, http_client=http_client)
    storage = storage or JsonFileStateStorage(settings=settings.storage)
    session_store = SessionStore(
        auth_service=AuthService(client),
        storage=storage,
        audit_logger=audit_logger,
    )
    fetcher = CollectionFetcher(client)

    return AppComponents(
        client=client,
        session_store=session_store,
        fetcher=fetcher,
        storage=storage,
        audit_logger=audit_logger,
        settings=settings,
    )
