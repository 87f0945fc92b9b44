"""
Authorization Gate

Pure functions deciding where a session may go. No I/O, no state:
the same session always yields the same answer.

DESIGN DECISION: Fail closed.
An unauthenticated session, or one whose role the client does not
recognize, is always sent to LOGIN. A role mismatch on a screen
redirects to the user's own dashboard.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from fleetx.audit import AuditLogger
from fleetx.models.session import Role, Session


# =============================================================================
# DESTINATIONS AND SCREENS
# =============================================================================

class Destination(str, Enum):
    """Top-level routes the gate can send a user to."""
    WELCOME = "/welcome"
    LOGIN = "/auth/login"
    ADMIN_DASHBOARD = "/dashboard/admin"
    DRIVER_DASHBOARD = "/dashboard/driver"
    VIEWER_DASHBOARD = "/dashboard/viewer"


DASHBOARDS: dict[Role, Destination] = {
    Role.ADMIN: Destination.ADMIN_DASHBOARD,
    Role.DRIVER: Destination.DRIVER_DASHBOARD,
    Role.VIEWER: Destination.VIEWER_DASHBOARD,
}


class Screen(str, Enum):
    """Gated screens of the application."""
    # Admin
    ADMIN_DASHBOARD = "admin"
    DRIVERS = "drivers"
    ADD_DRIVER = "add-driver"
    EDIT_DRIVER = "edit-driver"
    ADD_EARNING = "add-earning"
    ADD_EXPENSE = "add-expense"
    ADD_AUTO_EXPENSE = "add-auto-expense"
    DRIVER_ACCOUNTS = "driver-accounts"
    USERS = "users"
    VEHICLES = "vehicles"

    # Driver
    DRIVER_DASHBOARD = "driver"
    EARNINGS = "earnings"
    ALL_EARNINGS = "all-earnings"
    ALL_EXPENSES = "all-expenses"
    ACCOUNT_EARNINGS = "account-earnings"
    ACCOUNT_DETAIL = "account-detail"

    # Viewer
    VIEWER_DASHBOARD = "viewer"

    # Any signed-in role
    AUTO_EXPENSE = "auto-expense"
    DRIVER_DETAIL = "driver-detail"
    DRIVER_STATISTICS = "driver-statistics"
    USER_DETAIL = "user-detail"


# None means "any authenticated role".
SCREEN_ROLES: dict[Screen, Optional[Role]] = {
    Screen.ADMIN_DASHBOARD: Role.ADMIN,
    Screen.DRIVERS: Role.ADMIN,
    Screen.ADD_DRIVER: Role.ADMIN,
    Screen.EDIT_DRIVER: Role.ADMIN,
    Screen.ADD_EARNING: Role.ADMIN,
    Screen.ADD_EXPENSE: Role.ADMIN,
    Screen.ADD_AUTO_EXPENSE: Role.ADMIN,
    Screen.DRIVER_ACCOUNTS: Role.ADMIN,
    Screen.USERS: Role.ADMIN,
    Screen.VEHICLES: Role.ADMIN,
    Screen.DRIVER_DASHBOARD: Role.DRIVER,
    Screen.EARNINGS: Role.DRIVER,
    Screen.ALL_EARNINGS: Role.DRIVER,
    Screen.ALL_EXPENSES: Role.DRIVER,
    Screen.ACCOUNT_EARNINGS: Role.DRIVER,
    Screen.ACCOUNT_DETAIL: Role.DRIVER,
    Screen.VIEWER_DASHBOARD: Role.VIEWER,
    Screen.AUTO_EXPENSE: None,
    Screen.DRIVER_DETAIL: None,
    Screen.DRIVER_STATISTICS: None,
    Screen.USER_DETAIL: None,
}


# =============================================================================
# GUARD DECISIONS
# =============================================================================

class Allowed(BaseModel):
    """The session may mount the screen."""
    model_config = ConfigDict(frozen=True)

    screen: Screen


class Redirect(BaseModel):
    """The session must be sent elsewhere."""
    model_config = ConfigDict(frozen=True)

    destination: Destination


GuardDecision = Union[Allowed, Redirect]


# =============================================================================
# DECISIONS
# =============================================================================

def resolve_destination(session: Session) -> Destination:
    """Dashboard for the session's role, or LOGIN."""
    if not session.is_authenticated:
        return Destination.LOGIN
    role = session.role
    if role is None:
        return Destination.LOGIN
    return DASHBOARDS[role]


def resolve_start_destination(session: Session, has_seen_welcome: bool) -> Destination:
    """Where the splash screen goes: WELCOME on first run, then as resolve_destination."""
    if not has_seen_welcome:
        return Destination.WELCOME
    return resolve_destination(session)


def guard(
    screen: Union[Screen, str],
    session: Session,
    audit_logger: Optional[AuditLogger] = None,
) -> GuardDecision:
    """
    Decide whether `session` may mount `screen`.

    Unknown screen names are refused like a role mismatch.
    """
    decision = _decide(screen, session)
    if isinstance(decision, Redirect) and audit_logger is not None:
        identity = session.identity
        audit_logger.log_access_redirected(
            screen=screen.value if isinstance(screen, Screen) else str(screen),
            destination=decision.destination.value,
            role=identity.role if identity else None,
        )
    return decision


def _decide(screen: Union[Screen, str], session: Session) -> GuardDecision:
    home = resolve_destination(session)
    if home == Destination.LOGIN:
        return Redirect(destination=Destination.LOGIN)

    try:
        screen = Screen(screen)
    except ValueError:
        return Redirect(destination=home)

    required = SCREEN_ROLES[screen]
    if required is None or required == session.role:
        return Allowed(screen=screen)
    return Redirect(destination=home)


# =============================================================================
# PERMISSIONS
# =============================================================================

def visibility_filters(session: Session) -> dict[str, str]:
    """
    Query filters every collection fetch must carry for this session.

    Drivers only ever see their own records.
    """
    if session.role == Role.DRIVER and session.identity is not None:
        return {"driverId": session.identity.id}
    return {}


def can_mutate(session: Session) -> bool:
    """Viewers are read-only; so is everyone not signed in."""
    return session.role in (Role.ADMIN, Role.DRIVER)
