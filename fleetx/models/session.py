"""
Session Models for the FleetX client

These models describe who is signed in and in which lifecycle state
the session currently is.

DESIGN DECISION: A Session is an immutable snapshot.
The session store replaces the whole snapshot on every transition,
so a reader can never observe a half-updated session.

INVARIANT: status == AUTHENTICATED  <=>  credential and identity are both set.
"""

from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Role(str, Enum):
    """
    Roles the backend assigns to accounts.

    The value is the exact string the backend sends.
    """
    ADMIN = "Admin"
    DRIVER = "Driver"
    VIEWER = "Viewer"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Role"]:
        """Return the matching role, or None for anything unrecognized."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class SessionStatus(str, Enum):
    """Lifecycle state of the session."""
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


# =============================================================================
# IDENTITY
# =============================================================================

class UserIdentity(BaseModel):
    """
    The signed-in user as returned by the backend.

    `role` keeps the raw string: an unrecognized role must stay
    visible so that the authorization gate can fail closed on it.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Backend user identifier"
    )
    name: str = Field(
        default="",
        description="Display name"
    )
    email: str = Field(
        default="",
        description="Login email"
    )
    phone_number: Optional[str] = Field(
        default=None,
        alias="phoneNumber",
    )
    role: str = Field(
        ...,
        description="Raw role string (Admin, Driver, Viewer)"
    )
    is_active: bool = Field(
        default=True,
        alias="isActive",
        description="Inactive accounts await admin activation"
    )

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        """Backends send numeric or string ids."""
        if v is None:
            return v
        return str(v)

    @field_validator('role', mode='before')
    @classmethod
    def coerce_role(cls, v):
        if isinstance(v, Role):
            return v.value
        return "" if v is None else str(v)

    @property
    def known_role(self) -> Optional[Role]:
        """The parsed role, or None when the backend sent something unexpected."""
        return Role.parse(self.role)

    def to_storage_dict(self) -> dict:
        """Serialize with the backend's field names."""
        return self.model_dump(by_alias=True)


class Session(BaseModel):
    """
    Snapshot of the current session.

    Created empty at process start, populated by a successful login or
    restore, cleared by logout or by a failed restore.
    """
    model_config = ConfigDict(frozen=True)

    credential: Optional[str] = Field(
        default=None,
        description="Bearer token"
    )
    identity: Optional[UserIdentity] = None
    status: SessionStatus = SessionStatus.UNAUTHENTICATED

    @model_validator(mode='after')
    def validate_status(self) -> 'Session':
        """Authenticated iff both credential and identity are present."""
        has_both = bool(self.credential) and self.identity is not None
        if self.status == SessionStatus.AUTHENTICATED and not has_both:
            raise ValueError("Authenticated session requires credential and identity")
        if self.status != SessionStatus.AUTHENTICATED and has_both:
            raise ValueError(
                f"Session with credential and identity must be authenticated, got {self.status.value}"
            )
        return self

    @property
    def is_authenticated(self) -> bool:
        return self.status == SessionStatus.AUTHENTICATED

    @property
    def role(self) -> Optional[Role]:
        """Known role of the signed-in user, if any."""
        if self.identity is None:
            return None
        return self.identity.known_role

    @classmethod
    def empty(cls, status: SessionStatus = SessionStatus.UNAUTHENTICATED) -> "Session":
        return cls(status=status)

    @classmethod
    def authenticated(cls, credential: str, identity: UserIdentity) -> "Session":
        return cls(
            credential=credential,
            identity=identity,
            status=SessionStatus.AUTHENTICATED,
        )


# =============================================================================
# SIGNUP
# =============================================================================

class SignupProfile(BaseModel):
    """
    Data submitted on the signup form.

    Lenient: every field may be blank here so that
    the signup validator can report all problems at once.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    email: str = ""
    phone_number: str = Field(default="", alias="phoneNumber")
    password: str = ""
    role: str = Role.DRIVER.value

    @field_validator('name', 'email', 'phone_number', mode='before')
    @classmethod
    def strip_text(cls, v):
        """Passwords are sent untouched; everything else is trimmed."""
        if v is None:
            return ""
        return str(v).strip()

    def to_payload(self) -> dict:
        """Body for the signup endpoint."""
        return self.model_dump(by_alias=True)
