"""MCP server for RoomSplit. Exposes the room ledger as tools for an assistant."""

import logging
from dataclasses import dataclass

from mcp.server.fastmcp import FastMCP

from .app_context import AppContext, open_context
from .exceptions import RoomSplitError
from .models import User

logger = logging.getLogger(__name__)

mcp_app = FastMCP("roomsplit")

WORKFLOW_INSTRUCTIONS = """\
You are helping the user settle shared room expenses. All tools act as the \
configured user (ROOMSPLIT_USER_EMAIL).

1. Call list_rooms and pick the room the user means.
2. Call room_analytics for spend totals and debt_breakdown for who the user \
owes. Amounts owed are never netted against amounts owed to the user.
3. To see individual expenses call list_expenses.
4. Only the member who paid an expense can change its split state. Use \
mark_payment to mark a member fully paid or back to pending, and \
record_payment to record how much a member has paid so far. Confirm with the \
user before changing anything.\
"""


# ---------------------------------------------------------------------------
# Session state: one MCP server process per conversation
# ---------------------------------------------------------------------------


@dataclass
class SessionState:
    """Holds the open context between MCP tool calls."""

    ctx: AppContext | None = None
    user: User | None = None


_state = SessionState()


def _ensure_context() -> tuple[AppContext, User]:
    """Lazily open the database and resolve the acting user."""
    if _state.ctx is None:
        _state.ctx = open_context()
    if _state.user is None:
        _state.user = _state.ctx.acting_user()
    return _state.ctx, _state.user


def _format_amount(amount: float, symbol: str) -> str:
    return f"{symbol}{amount:,.2f}"


# ---------------------------------------------------------------------------
# MCP Tools
# ---------------------------------------------------------------------------


@mcp_app.tool()
def list_rooms() -> str:
    """List the rooms the user belongs to."""
    try:
        ctx, user = _ensure_context()
        rooms = ctx.directory.list_rooms(user.id)
        if not rooms:
            return "You are not in any rooms."

        lines = ["Rooms:"]
        for room in rooms:
            members = ", ".join(m.name for m in room.members)
            lines.append(f"- {room.name} (id: {room.id}) | members: {members}")
        return "\n".join(lines)
    except RoomSplitError as e:
        return f"Error: {e}"


@mcp_app.tool()
def list_expenses(room_id: str, active_only: bool = True) -> str:
    """List expenses in a room with each member's split state."""
    try:
        ctx, user = _ensure_context()
        room = ctx.directory.get_room(room_id, user.id)
        names = {m.user_id: m.name for m in room.members}
        symbol = ctx.settings.currency_symbol

        expenses = ctx.expenses.list_expenses(
            room_id, user.id, include_archived=not active_only
        )
        if not expenses:
            return "No expenses found."

        lines = [f"Expenses in {room.name}:"]
        for expense in expenses:
            payer = names.get(expense.paid_by, "Former member")
            lines.append(
                f"- {expense.date.date()} | {expense.description} | "
                f"{_format_amount(expense.total_amount, symbol)} paid by {payer} "
                f"(id: {expense.id}){' | ARCHIVED' if expense.is_archived else ''}"
            )
            for split in expense.split_details:
                if split.user_id == expense.paid_by:
                    continue
                lines.append(
                    f"    {names.get(split.user_id, split.user_id)} "
                    f"(user_id: {split.user_id}): "
                    f"{_format_amount(split.paid_amount, symbol)} of "
                    f"{_format_amount(split.share_amount, symbol)} [{split.status}]"
                )
        return "\n".join(lines)
    except RoomSplitError as e:
        return f"Error: {e}"


@mcp_app.tool()
def room_analytics(room_id: str) -> str:
    """Room spend for today, this week and this month, plus the user's totals."""
    try:
        ctx, user = _ensure_context()
        stats = ctx.analytics.get_room_analytics(room_id, user.id)
        symbol = ctx.settings.currency_symbol
        return "\n".join(
            [
                f"Today: {_format_amount(stats.today, symbol)}",
                f"This week: {_format_amount(stats.week, symbol)}",
                f"This month: {_format_amount(stats.month, symbol)}",
                f"You paid: {_format_amount(stats.user_paid, symbol)}",
                f"You owe: {_format_amount(stats.user_owed, symbol)}",
                f"Others owe you: {_format_amount(stats.others_owe_user, symbol)}",
            ]
        )
    except RoomSplitError as e:
        return f"Error: {e}"


@mcp_app.tool()
def debt_breakdown(room_id: str) -> str:
    """How much the user owes each other member of the room."""
    try:
        ctx, user = _ensure_context()
        breakdown = ctx.analytics.get_debt_breakdown(room_id, user.id)
        symbol = ctx.settings.currency_symbol

        lines = ["You owe:"]
        for entry in breakdown.entries:
            lines.append(
                f"- {entry.name} ({entry.email}): {_format_amount(entry.amount, symbol)}"
            )
        lines.append(f"Total pending: {_format_amount(breakdown.total_pending, symbol)}")
        return "\n".join(lines)
    except RoomSplitError as e:
        return f"Error: {e}"


@mcp_app.tool()
def mark_payment(expense_id: str, member_user_id: str, status: str) -> str:
    """Mark a member's share of an expense the user paid as 'paid' or 'pending'."""
    try:
        ctx, user = _ensure_context()
        expense = ctx.expenses.update_payment_status(
            expense_id, member_user_id, status, user.id
        )
        return (
            f"Marked {member_user_id} {status} on '{expense.description}'."
            f"{' Expense is now fully settled.' if expense.is_archived else ''}"
        )
    except RoomSplitError as e:
        return f"Error: {e}"


@mcp_app.tool()
def record_payment(expense_id: str, member_user_id: str, paid_amount: float) -> str:
    """Record how much a member has paid so far towards their share."""
    try:
        ctx, user = _ensure_context()
        expense = ctx.expenses.update_partial_payment(
            expense_id, member_user_id, user.id, paid_amount=paid_amount
        )
        split = next(s for s in expense.split_details if s.user_id == member_user_id)
        symbol = ctx.settings.currency_symbol
        return (
            f"{member_user_id} has paid {_format_amount(split.paid_amount, symbol)} of "
            f"{_format_amount(split.share_amount, symbol)} ({split.status})."
        )
    except RoomSplitError as e:
        return f"Error: {e}"


@mcp_app.prompt()
def settle_workflow() -> str:
    """Instructions for settling room expenses."""
    return WORKFLOW_INSTRUCTIONS


def run_server():
    """Run the MCP server over stdio."""
    mcp_app.run(transport="stdio")
