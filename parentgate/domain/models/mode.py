"""Operational mode models.

The gate tracks exactly one active mode at a time:

    - RESTRICTED: child mode, the default and the fail-safe state
    - UNRESTRICTED: parent console, reachable only through PIN authentication

ModeStatus is a read-only snapshot handed to the presentation layer for
badges and banners. It is rebuilt on every query and never mutated.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from parentgate.domain.models.auth import LockoutState


class Mode(str, Enum):
    """Two-valued privilege state gating parent-console features."""

    RESTRICTED = "restricted"
    UNRESTRICTED = "unrestricted"

    @property
    def display_name(self) -> str:
        if self is Mode.RESTRICTED:
            return "Child Mode"
        return "Parent Console"

    @property
    def is_privileged(self) -> bool:
        return self is Mode.UNRESTRICTED


class ModeStatus(BaseModel):
    """Point-in-time view of the gate for the presentation layer."""

    mode: Mode
    time_locked: bool = Field(
        description="Switching into UNRESTRICTED is blocked by the schedule"
    )
    time_locked_until: Optional[datetime] = None
    lockout: LockoutState
    emergency_override_active: bool = False
    emergency_override_expires_at: Optional[datetime] = None
    time_until_next_unlock: Optional[timedelta] = None
    session_started_at: datetime
    last_activity_at: datetime
