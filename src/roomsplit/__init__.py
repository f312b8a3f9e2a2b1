"""RoomSplit - Shared-room expense ledger and debt settlement."""

__version__ = "0.1.0"

from .config import Settings, load_settings
from .db import Database
from .ledger.analytics import RoomAnalyticsService
from .ledger.service import RoomExpenseService
from .models import (
    DebtBreakdown,
    DebtEntry,
    Member,
    Room,
    RoomAnalytics,
    RoomExpense,
    SplitDetail,
    User,
)
from .rooms.directory import RoomDirectory

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "DebtBreakdown",
    "DebtEntry",
    "Member",
    "Room",
    "RoomAnalytics",
    "RoomExpense",
    "SplitDetail",
    "User",
    "RoomDirectory",
    "RoomExpenseService",
    "RoomAnalyticsService",
]
