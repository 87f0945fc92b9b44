"""Transient user-facing notifications (toasts)."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    """A message the UI shows briefly and then discards."""
    model_config = ConfigDict(frozen=True)

    level: NotificationLevel
    title: str = Field(..., max_length=80)
    message: str = Field(..., max_length=500)

    @classmethod
    def success(cls, message: str, title: str = "Success") -> "Notification":
        return cls(level=NotificationLevel.SUCCESS, title=title, message=message)

    @classmethod
    def warning(cls, message: str, title: str = "Warning") -> "Notification":
        return cls(level=NotificationLevel.WARNING, title=title, message=message)

    @classmethod
    def error(cls, message: str, title: str = "Error") -> "Notification":
        return cls(level=NotificationLevel.ERROR, title=title, message=message)
