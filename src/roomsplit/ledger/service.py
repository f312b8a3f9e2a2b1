"""Room expense ledger service.

Composes the room directory, the pure split functions and the database. Each
mutation loads one expense, derives its new split list in memory, and writes
it back conditionally on the version it loaded.
"""

import logging
from datetime import UTC, datetime

from ..db import Database
from ..exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from ..models import (
    SPLIT_STATUSES,
    RoomExpense,
    SplitDetail,
    ensure_id,
    new_id,
)
from ..rooms.directory import ROOM_NOT_FOUND, RoomDirectory
from .splits import (
    apply_partial_payment,
    apply_status,
    coerce_amount,
    compute_equal_splits,
    is_fully_settled,
    replace_split,
)
from .timewindow import end_of_local_date, parse_local_date, start_of_day

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 500
MAX_CATEGORY_LENGTH = 100


def resolve_expense_date(value: str | datetime | None) -> datetime:
    """
    Resolve the date an expense is booked on.

    None means start of today (IST). ``YYYY-MM-DD`` strings mean that IST
    calendar day. Other strings are parsed as ISO-8601; naive datetimes are
    taken as UTC.
    """
    if value is None or value == "":
        return start_of_day()
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    return parse_local_date(value, "date")


class RoomExpenseService:
    """Creates room expenses and drives their per-member split state."""

    def __init__(self, database: Database, directory: RoomDirectory):
        """Initialize the ledger service."""
        self.db = database
        self.directory = directory

    # ========================================================================
    # Creation and reads
    # ========================================================================

    def create_expense(
        self,
        room_id: str,
        description: str,
        total_amount: object,
        requester: str,
        date: str | datetime | None = None,
        category: str | None = None,
    ) -> RoomExpense:
        """
        Create a room expense paid by the requester, split equally.

        Args:
            room_id: Room the expense belongs to
            description: What was bought (non-empty)
            total_amount: Amount paid (> 0)
            requester: Authenticated user ID; becomes paid_by
            date: Booking date (defaults to today, IST)
            category: Optional free-text category

        Returns:
            The persisted expense
        """
        ensure_id(room_id, "room_id")
        description = (description or "").strip()
        if not description:
            raise ValidationError("description", "Description is required")
        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                "description",
                f"Description must be less than {MAX_DESCRIPTION_LENGTH} characters",
            )
        category = (category or "").strip()
        if len(category) > MAX_CATEGORY_LENGTH:
            raise ValidationError(
                "category",
                f"Category must be less than {MAX_CATEGORY_LENGTH} characters",
            )
        amount = coerce_amount(total_amount, "total_amount")
        if amount <= 0:
            raise ValidationError("total_amount", "Amount must be a positive number")

        membership = self.directory.get_membership(room_id)
        is_visible = membership.is_active and (
            requester == membership.created_by
            or any(m.user_id == requester for m in membership.members)
        )
        if not is_visible:
            raise NotFoundError(ROOM_NOT_FOUND)

        splits = compute_equal_splits(membership.members, requester, amount)
        expense = RoomExpense(
            id=new_id(),
            room_id=room_id,
            description=description,
            total_amount=amount,
            paid_by=requester,
            date=resolve_expense_date(date),
            category=category,
            split_details=splits,
            is_archived=is_fully_settled(splits),
        )
        self.db.save_expense(expense)

        logger.info(
            f"Created expense {expense.id} in room {room_id}: "
            f"{amount} split {len(splits)} ways"
        )
        return expense

    def get_expense(self, expense_id: str, requester: str) -> RoomExpense:
        """
        Get one expense of a room the requester belongs to.

        The payer can always read their own expense, even after leaving the
        room, since settling it stays theirs.
        """
        expense = self._load_expense(expense_id)
        if expense.paid_by == requester:
            return expense
        if not self.directory.is_member(expense.room_id, requester):
            raise NotFoundError("Expense not found")
        return expense

    def list_expenses(
        self,
        room_id: str,
        requester: str,
        start_date: str | None = None,
        end_date: str | None = None,
        category: str | None = None,
        payment_status: str | None = None,
        include_archived: bool = True,
    ) -> list[RoomExpense]:
        """
        List a room's expenses, newest first.

        Args:
            room_id: Room ID
            requester: Authenticated user ID (must be a member)
            start_date: Inclusive lower bound (``YYYY-MM-DD`` is an IST day)
            end_date: Inclusive upper bound (``YYYY-MM-DD`` is an IST day)
            category: Exact category match
            payment_status: Keep only expenses where the requester's own
                            split has this status
            include_archived: Whether fully settled expenses are listed

        Returns:
            Matching expenses
        """
        if payment_status is not None and payment_status not in SPLIT_STATUSES:
            raise ValidationError(
                "payment_status", 'Payment status must be "paid" or "pending"'
            )
        self.directory.get_room(room_id, requester)

        expenses = self._filter_by_date_and_category(
            self.db.list_room_expenses(room_id), start_date, end_date, category
        )
        if not include_archived:
            expenses = [e for e in expenses if not e.is_archived]
        if payment_status:
            expenses = [
                e for e in expenses if _split_status(e, requester) == payment_status
            ]

        logger.debug(f"Listed {len(expenses)} expenses for room {room_id}")
        return expenses

    def get_history(
        self,
        room_id: str,
        requester: str,
        start_date: str | None = None,
        end_date: str | None = None,
        category: str | None = None,
        member_name: str | None = None,
    ) -> list[RoomExpense]:
        """
        Full expense history of a room, archived expenses included.

        member_name keeps expenses whose payer's room member name contains
        the text, case-insensitively.
        """
        room = self.directory.get_room(room_id, requester)
        expenses = self._filter_by_date_and_category(
            self.db.list_room_expenses(room_id), start_date, end_date, category
        )

        needle = (member_name or "").strip().lower()
        if needle:
            names = {m.user_id: m.name.lower() for m in room.members}
            expenses = [e for e in expenses if needle in names.get(e.paid_by, "")]

        return expenses

    # ========================================================================
    # Split mutations
    # ========================================================================

    def update_payment_status(
        self, expense_id: str, member_user_id: str, status: str, requester: str
    ) -> RoomExpense:
        """
        Mark a member's split paid or pending (payer only).

        Marking paid settles the full share; marking pending keeps the paid
        amount recorded so far.
        """
        if status not in SPLIT_STATUSES:
            raise ValidationError("status", 'Status must be "paid" or "pending"')

        expense, split = self._load_for_payer_update(
            expense_id, member_user_id, requester
        )
        updated = self._write_split(expense, apply_status(split, status))

        logger.info(
            f"Expense {expense_id}: {member_user_id} marked {status} "
            f"(archived={updated.is_archived})"
        )
        return updated

    def update_partial_payment(
        self,
        expense_id: str,
        member_user_id: str,
        requester: str,
        paid_amount: object | None = None,
        share_amount: object | None = None,
    ) -> RoomExpense:
        """
        Record a partial payment and/or correct a member's share (payer only).

        Overpayment is clamped to the share rather than rejected.
        """
        if paid_amount is None and share_amount is None:
            raise ValidationError(
                "paid_amount", "Provide paid_amount, share_amount, or both"
            )

        expense, split = self._load_for_payer_update(
            expense_id, member_user_id, requester
        )
        new_split = apply_partial_payment(
            split, paid_amount=paid_amount, share_amount=share_amount
        )
        updated = self._write_split(expense, new_split)

        logger.info(
            f"Expense {expense_id}: {member_user_id} paid "
            f"{new_split.paid_amount} of {new_split.share_amount} "
            f"({new_split.status}, archived={updated.is_archived})"
        )
        return updated

    # ========================================================================
    # Destructive operations
    # ========================================================================

    def delete_expense(self, expense_id: str, requester: str):
        """Hard delete an expense (payer only)."""
        expense = self._load_expense(expense_id)
        if expense.paid_by != requester:
            raise ForbiddenError("Only expense creator can delete this expense")

        self.db.delete_expense(expense.id)
        logger.info(f"Deleted expense {expense.id} from room {expense.room_id}")

    def reset_room_ledger(self, room_id: str, requester: str) -> int:
        """
        Delete every expense of a room, archived or not (creator only).

        Returns:
            Number of expenses deleted
        """
        room = self.directory.get_room(room_id, requester)
        if room.created_by != requester:
            raise ForbiddenError("Only the room creator can reset room expenses")

        deleted = self.db.delete_room_expenses(room.id)
        logger.warning(f"Reset room {room.id}: deleted {deleted} expenses")
        return deleted

    # ========================================================================
    # Helpers
    # ========================================================================

    def _load_expense(self, expense_id: str) -> RoomExpense:
        ensure_id(expense_id, "expense_id")
        expense = self.db.get_expense(expense_id)
        if not expense:
            raise NotFoundError("Expense not found")
        return expense

    def _load_for_payer_update(
        self, expense_id: str, member_user_id: str, requester: str
    ) -> tuple[RoomExpense, SplitDetail]:
        ensure_id(member_user_id, "member_user_id")
        expense = self._load_expense(expense_id)
        if expense.paid_by != requester:
            raise ForbiddenError("Only expense creator can update payments")
        if member_user_id == requester:
            raise ForbiddenError("Cannot update the payment of the expense creator")

        split = expense.get_split(member_user_id)
        if split is None:
            raise NotFoundError("Member not found in split details")
        return expense, split

    def _write_split(self, expense: RoomExpense, new_split: SplitDetail) -> RoomExpense:
        """Persist one changed split with a version-checked write."""
        splits = replace_split(expense.split_details, new_split)
        archived = is_fully_settled(splits)

        if not self.db.update_expense_splits(
            expense.id, splits, archived, expected_version=expense.version
        ):
            raise ConflictError(expense.id, expense.version)

        return expense.model_copy(
            update={
                "split_details": splits,
                "is_archived": archived,
                "version": expense.version + 1,
            }
        )

    def _filter_by_date_and_category(
        self,
        expenses: list[RoomExpense],
        start_date: str | None,
        end_date: str | None,
        category: str | None,
    ) -> list[RoomExpense]:
        if start_date:
            lower = parse_local_date(start_date, "start_date")
            expenses = [e for e in expenses if e.date >= lower]
        if end_date:
            upper = end_of_local_date(end_date, "end_date")
            expenses = [e for e in expenses if e.date <= upper]
        if category:
            expenses = [e for e in expenses if e.category == category]
        return expenses


def _split_status(expense: RoomExpense, user_id: str) -> str | None:
    split = expense.get_split(user_id)
    return split.status if split else None
