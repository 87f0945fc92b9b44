"""
Session Package

Session lifecycle and the role-based authorization gate.
"""

from fleetx.session.gate import (
    Allowed,
    Destination,
    GuardDecision,
    Redirect,
    Screen,
    SCREEN_ROLES,
    can_mutate,
    guard,
    resolve_destination,
    resolve_start_destination,
    visibility_filters,
)
from fleetx.session.store import SessionStateError, SessionStore

__all__ = [
    # Store
    "SessionStore",
    "SessionStateError",
    # Gate
    "Allowed",
    "Destination",
    "GuardDecision",
    "Redirect",
    "Screen",
    "SCREEN_ROLES",
    "can_mutate",
    "guard",
    "resolve_destination",
    "resolve_start_destination",
    "visibility_filters",
]
