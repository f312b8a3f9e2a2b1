"""Pydantic domain models for RoomSplit."""

import re
from datetime import UTC, datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

from .exceptions import ValidationError

SplitStatus = Literal["paid", "pending"]
SPLIT_STATUSES: tuple[str, ...] = ("paid", "pending")

_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def new_id() -> str:
    """Generate a new entity ID (32 lowercase hex characters)."""
    return uuid4().hex


def ensure_id(value: str, field: str) -> str:
    """
    Validate the shape of an entity ID supplied by a caller.

    Raises:
        ValidationError: If the value is not a well-formed ID
    """
    if not isinstance(value, str) or not _ID_PATTERN.match(value):
        raise ValidationError(field, f"Invalid {field} format")
    return value


# ============================================================================
# Directory Models
# ============================================================================


class User(BaseModel):
    """A registered user that can be added to rooms by email."""

    id: str
    email: str
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def default_name(self) -> str:
        """Local part of the email, used when no display name is given."""
        return self.email.split("@")[0]


class Member(BaseModel):
    """A user's membership entry inside a room."""

    user_id: str
    email: str
    name: str
    joined_at: datetime = Field(default_factory=utcnow)


class Room(BaseModel):
    """A shared household whose members split expenses."""

    id: str
    name: str
    created_by: str
    members: list[Member] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)

    def has_member(self, user_id: str) -> bool:
        """True if the user is the creator or a listed member."""
        return user_id == self.created_by or any(
            m.user_id == user_id for m in self.members
        )

    def get_member(self, user_id: str) -> Member | None:
        for member in self.members:
            if member.user_id == user_id:
                return member
        return None


class RoomMembership(BaseModel):
    """Membership snapshot handed from the directory to the ledger."""

    room_id: str
    members: list[Member]
    created_by: str
    is_active: bool


# ============================================================================
# Ledger Models
# ============================================================================


class SplitDetail(BaseModel):
    """One member's share of a room expense plus their payment progress."""

    user_id: str
    share_amount: float = Field(ge=0)
    paid_amount: float = Field(default=0.0, ge=0)
    status: SplitStatus = "pending"

    @property
    def outstanding(self) -> float:
        """Amount still owed on this split."""
        return self.share_amount - self.paid_amount


class RoomExpense(BaseModel):
    """A room expense with its embedded, creation-time split snapshot.

    Concurrency:
    - version: incremented on every persisted mutation. Writes are conditional
               on the version that was loaded, so two stale writers cannot
               silently overwrite each other's split changes.
    """

    id: str
    room_id: str
    description: str
    total_amount: float = Field(gt=0)
    paid_by: str
    date: datetime
    category: str = ""
    split_details: list[SplitDetail] = Field(default_factory=list)
    is_archived: bool = False
    version: int = 1
    created_at: datetime = Field(default_factory=utcnow)

    def get_split(self, user_id: str) -> SplitDetail | None:
        for split in self.split_details:
            if split.user_id == user_id:
                return split
        return None


# ============================================================================
# Analytics Models
# ============================================================================


class TimeWindow(BaseModel):
    """Inclusive UTC bounds of a local calendar period."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class RoomAnalytics(BaseModel):
    """Point-in-time room totals plus the requester's paid/owed figures."""

    today: float = 0.0
    week: float = 0.0
    month: float = 0.0
    user_paid: float = 0.0
    user_owed: float = 0.0
    others_owe_user: float = 0.0  # informational, never netted against user_owed


class DebtEntry(BaseModel):
    """What the requester still owes one counterparty."""

    user_id: str
    name: str
    email: str
    amount: float = 0.0


class DebtBreakdown(BaseModel):
    """Pairwise debts of the requester towards every other member."""

    entries: list[DebtEntry] = Field(default_factory=list)
    total_pending: float = 0.0
