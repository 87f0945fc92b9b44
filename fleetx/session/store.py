"""
Session Store

Owns the single process-wide Session and drives it through its
lifecycle:

    UNAUTHENTICATED --login/signup--> AUTHENTICATING --success--> AUTHENTICATED
    AUTHENTICATING --failure--> FAILED --retry--> AUTHENTICATING
    AUTHENTICATED --logout--> UNAUTHENTICATED

DESIGN DECISION: One writer at a time.
Starting login, signup or restore while another of them is in flight
raises SessionStateError instead of queuing. The UI disables the
button while AUTHENTICATING, so hitting this is a programming error.

DESIGN DECISION: Local state is only a hint.
The persisted identity snapshot is never trusted on restore; the
profile endpoint is always asked again, and any failure there clears
the persisted credential.
"""

from typing import Callable, Optional

import structlog

from fleetx.audit import AuditLogger
from fleetx.models.session import Session, SessionStatus, SignupProfile
from fleetx.services.api.auth import AuthService
from fleetx.services.api.errors import (
    FleetApiError,
    InactiveAccountError,
    ValidationError,
)
from fleetx.services.storage import StateStorageInterface, StorageError
from fleetx.validation import CredentialsValidator, SignupValidator

logger = structlog.get_logger("fleetx.session")

SessionListener = Callable[[Session], None]


class SessionStateError(Exception):
    """A session operation was started in a state that does not allow it."""
    pass


class SessionStore:
    """
    Single owner of the authenticated session.

    Controllers receive the store by injection and read `session`;
    view layers may subscribe with `add_listener` to re-render on
    every transition.
    """

    def __init__(
        self,
        auth_service: AuthService,
        storage: StateStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        credentials_validator: Optional[CredentialsValidator] = None,
        signup_validator: Optional[SignupValidator] = None,
    ):
        self._auth = auth_service
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._credentials_validator = credentials_validator or CredentialsValidator()
        self._signup_validator = signup_validator or SignupValidator()
        self._session = Session.empty()
        self._listeners: list[SessionListener] = []

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def session(self) -> Session:
        return self._session

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def storage(self) -> StateStorageInterface:
        return self._storage

    def add_listener(self, listener: SessionListener) -> Callable[[], None]:
        """Subscribe to session snapshots. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, session: Session) -> None:
        self._session = session
        logger.debug("session_transition", status=session.status.value)
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception as e:
                logger.error("session_listener_failed", error=str(e))

    def _begin(self, operation: str) -> None:
        if self._session.status == SessionStatus.AUTHENTICATING:
            raise SessionStateError(f"Cannot {operation} while another session operation is in flight")
        self._set(Session.empty(SessionStatus.AUTHENTICATING))

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def login(self, email: str, password: str) -> Session:
        """
        Authenticate with email and password.

        Raises:
            ValidationError: blank or malformed input (no network call made)
            InvalidCredentialsError: rejected by the backend
            InactiveAccountError: account awaits activation
            NetworkError / ServerError: transient failures
            SessionStateError: a session operation is already in flight
        """
        if self._session.status == SessionStatus.AUTHENTICATING:
            raise SessionStateError("Cannot log in while another session operation is in flight")

        result = self._credentials_validator.validate(email, password)
        if result.has_errors:
            self._audit.log_login_failed("validation", f"{result.error_count} invalid fields")
            raise ValidationError("Please check the highlighted fields", issues=result.issues)

        self._begin("log in")
        try:
            token, identity = await self._auth.login(email.strip(), password)
            session = Session.authenticated(token, identity)
            await self._storage.save_credentials(token, identity)
        except Exception as e:
            # Whatever went wrong, the store must not stay AUTHENTICATING.
            self._set(Session.empty(SessionStatus.FAILED))
            self._audit.log_login_failed(type(e).__name__, str(e))
            raise

        self._set(session)
        self._audit.log_login_succeeded(identity.id, identity.role)
        return session

    async def signup(self, profile: SignupProfile) -> None:
        """
        Register a new account.

        Never authenticates: on success the session returns to
        UNAUTHENTICATED and the user logs in explicitly.

        Raises:
            ValidationError: missing or malformed fields (no network call made)
            ConflictError: email already registered
            SessionStateError: signed in, or an operation is in flight
        """
        if self._session.is_authenticated:
            raise SessionStateError("Log out before creating a new account")
        if self._session.status == SessionStatus.AUTHENTICATING:
            raise SessionStateError("Cannot sign up while another session operation is in flight")

        result = self._signup_validator.validate(profile)
        if result.has_errors:
            self._audit.log_signup_failed("validation", f"{result.error_count} invalid fields")
            raise ValidationError("Please check the highlighted fields", issues=result.issues)

        self._begin("sign up")
        try:
            await self._auth.signup(profile)
        except Exception as e:
            self._set(Session.empty(SessionStatus.FAILED))
            self._audit.log_signup_failed(type(e).__name__, str(e))
            raise

        self._set(Session.empty(SessionStatus.UNAUTHENTICATED))
        self._audit.log_signup_submitted(profile.role)

    async def logout(self, forced: bool = False) -> None:
        """
        End the session.

        Always succeeds locally: a failed remote invalidation is logged
        and the local session is cleared anyway. `forced` marks a logout
        triggered by an expired credential rather than by the user.
        """
        current = self._session
        user_id = current.identity.id if current.identity else None

        if current.credential and not forced:
            try:
                await self._auth.logout(current.credential)
            except FleetApiError as e:
                logger.warning("remote_logout_failed", error=str(e))
                self._audit.log_logout_remote_failed(user_id, str(e))

        try:
            await self._storage.clear_credentials()
        except StorageError as e:
            logger.error("credential_clear_failed", error=str(e))

        self._set(Session.empty())
        self._audit.log_logout(user_id, forced=forced)

    async def restore(self) -> Session:
        """
        Re-establish the session at process start.

        No persisted credential gives UNAUTHENTICATED. Otherwise the
        profile is fetched; any failure, or an inactive account, clears
        the persisted state and gives UNAUTHENTICATED.
        """
        if self._session.status == SessionStatus.AUTHENTICATING:
            raise SessionStateError("Cannot restore while another session operation is in flight")

        try:
            token = await self._storage.load_credential()
        except StorageError as e:
            self._audit.log_session_restore_failed("storage", str(e))
            self._set(Session.empty())
            return self._session

        if not token:
            self._set(Session.empty())
            return self._session

        self._begin("restore")
        try:
            identity = await self._auth.get_profile(token)
            if not identity.is_active:
                raise InactiveAccountError()
            await self._storage.save_credentials(token, identity)
        except (FleetApiError, StorageError) as e:
            self._audit.log_session_restore_failed(type(e).__name__, str(e))
            await self._discard_credentials()
            self._set(Session.empty())
            return self._session
        except Exception as e:
            self._audit.log_session_restore_failed(type(e).__name__, str(e))
            self._set(Session.empty())
            raise

        session = Session.authenticated(token, identity)
        self._set(session)
        self._audit.log_session_restored(identity.id, identity.role)
        return session

    async def _discard_credentials(self) -> None:
        try:
            await self._storage.clear_credentials()
        except StorageError as e:
            logger.error("credential_clear_failed", error=str(e))
