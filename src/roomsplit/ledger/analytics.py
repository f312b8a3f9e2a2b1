"""Settlement and analytics engine for room expenses.

Nothing here is persisted: every figure is derived on demand from the full
expense set of a room. Each expense is treated in isolation, so what the
requester owes is never netted against what others owe the requester.
"""

import logging
from datetime import datetime

from ..db import Database
from ..models import DebtBreakdown, DebtEntry, Member, RoomAnalytics, RoomExpense
from ..rooms.directory import RoomDirectory
from . import timewindow

logger = logging.getLogger(__name__)


def compute_period_totals(
    expenses: list[RoomExpense], now: datetime | None = None
) -> tuple[float, float, float]:
    """
    Sum room-wide spend for today, this week and this month (IST windows).

    Returns:
        Tuple of (today, week, month)
    """
    day = timewindow.day_window(now)
    week = timewindow.week_window(now)
    month = timewindow.month_window(now)

    today_total = sum(e.total_amount for e in expenses if day.contains(e.date))
    week_total = sum(e.total_amount for e in expenses if week.contains(e.date))
    month_total = sum(e.total_amount for e in expenses if month.contains(e.date))
    return today_total, week_total, month_total


def compute_user_paid(expenses: list[RoomExpense], user_id: str) -> float:
    """Total of every expense the user paid for."""
    return sum(e.total_amount for e in expenses if e.paid_by == user_id)


def compute_user_owed(expenses: list[RoomExpense], user_id: str) -> float:
    """What the user still owes across expenses paid by someone else."""
    owed = 0.0
    for expense in expenses:
        if expense.paid_by == user_id:
            continue
        split = expense.get_split(user_id)
        if split is not None:
            owed += split.outstanding
    return owed


def compute_owed_to_user(expenses: list[RoomExpense], user_id: str) -> float:
    """What other members still owe on expenses the user paid for."""
    return sum(
        split.outstanding
        for expense in expenses
        if expense.paid_by == user_id
        for split in expense.split_details
        if split.user_id != user_id
    )


def compute_debts_by_payer(
    expenses: list[RoomExpense], user_id: str
) -> dict[str, float]:
    """
    Group what the user owes by the member who paid.

    Returns:
        Mapping of payer user ID -> outstanding amount
    """
    debts: dict[str, float] = {}
    for expense in expenses:
        if expense.paid_by == user_id:
            continue
        split = expense.get_split(user_id)
        if split is None:
            continue
        debts[expense.paid_by] = debts.get(expense.paid_by, 0.0) + split.outstanding
    return debts


def build_debt_breakdown(
    members: list[Member],
    debts_by_payer: dict[str, float],
    user_id: str,
    former_members: dict[str, tuple[str, str]] | None = None,
) -> DebtBreakdown:
    """
    Turn per-payer debts into one entry per counterparty.

    Every other current member gets an entry, zero included. Payers who have
    left the room but are still owed money are appended after them.

    Args:
        members: Current room members
        debts_by_payer: Output of compute_debts_by_payer
        user_id: The requester (excluded from the entries)
        former_members: user ID -> (name, email) for payers no longer in the room

    Returns:
        The breakdown with its total
    """
    entries = [
        DebtEntry(
            user_id=m.user_id,
            name=m.name,
            email=m.email,
            amount=debts_by_payer.get(m.user_id, 0.0),
        )
        for m in members
        if m.user_id != user_id
    ]

    current_ids = {m.user_id for m in members}
    former_members = former_members or {}
    for payer_id, amount in debts_by_payer.items():
        if payer_id in current_ids or payer_id == user_id or amount <= 0:
            continue
        name, email = former_members.get(payer_id, ("Former member", ""))
        entries.append(
            DebtEntry(user_id=payer_id, name=name, email=email, amount=amount)
        )

    return DebtBreakdown(
        entries=entries, total_pending=sum(entry.amount for entry in entries)
    )


class RoomAnalyticsService:
    """Derives room totals and pairwise debts for a requesting member."""

    def __init__(self, database: Database, directory: RoomDirectory):
        """Initialize the analytics service."""
        self.db = database
        self.directory = directory

    def get_room_analytics(
        self, room_id: str, requester: str, now: datetime | None = None
    ) -> RoomAnalytics:
        """
        Room spend for today/week/month plus the requester's paid and owed totals.

        Period totals are room-wide and time-windowed; paid/owed figures cover
        every expense ever created in the room.
        """
        self.directory.get_room(room_id, requester)
        expenses = self.db.list_room_expenses(room_id)

        today, week, month = compute_period_totals(expenses, now)
        analytics = RoomAnalytics(
            today=today,
            week=week,
            month=month,
            user_paid=compute_user_paid(expenses, requester),
            user_owed=compute_user_owed(expenses, requester),
            others_owe_user=compute_owed_to_user(expenses, requester),
        )

        logger.info(
            f"Analytics for room {room_id}: month={month:.2f}, "
            f"owed={analytics.user_owed:.2f}"
        )
        return analytics

    def get_debt_breakdown(self, room_id: str, requester: str) -> DebtBreakdown:
        """How much the requester owes each other member, summed over all expenses."""
        room = self.directory.get_room(room_id, requester)
        expenses = self.db.list_room_expenses(room_id)
        debts = compute_debts_by_payer(expenses, requester)

        current_ids = {m.user_id for m in room.members}
        former_members = {}
        for payer_id in debts:
            if payer_id in current_ids or payer_id == requester:
                continue
            user = self.db.get_user(payer_id)
            if user:
                former_members[payer_id] = (user.default_name, user.email)

        breakdown = build_debt_breakdown(
            room.members, debts, requester, former_members
        )
        logger.debug(
            f"Debt breakdown for room {room_id}: {len(breakdown.entries)} "
            f"counterparties, {breakdown.total_pending:.2f} pending"
        )
        return breakdown
