"""CLI commands for the room expense ledger."""

import typer
from rich.table import Table

from ..app_context import AppContext, cli_session, console
from ..models import DebtBreakdown, RoomExpense, User
from .ui import confirm_destructive, select_member_interactive

app = typer.Typer(name="expense", help="Split room expenses and settle debts")

AS_OPTION = typer.Option(None, "--as", help="Email of the acting user")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Verbose output")
MEMBER_OPTION = typer.Option(
    None, "--member", "-m", help="Member user ID (prompted when omitted)"
)


def format_money(amount: float, symbol: str = "₹", use_color: bool = True) -> str:
    """
    Format money with two decimals.

    Outstanding amounts are red, settled (zero) amounts green.
    """
    formatted = f"{symbol}{amount:,.2f}"
    if not use_color:
        return formatted
    color = "red" if amount > 0.005 else "green"
    return f"[{color}]{formatted}[/{color}]"


def display_expenses(
    expenses: list[RoomExpense], names: dict[str, str], symbol: str, title: str
):
    """Display expenses in a table format."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", width=10)
    table.add_column("Date", width=10)
    table.add_column("Description", style="cyan", width=30)
    table.add_column("Category", style="yellow")
    table.add_column("Paid by")
    table.add_column("Total", justify="right")
    table.add_column("Outstanding", justify="right")
    table.add_column("", justify="center")

    for expense in expenses:
        outstanding = sum(s.outstanding for s in expense.split_details)
        desc = expense.description
        table.add_row(
            expense.id[:8],
            expense.date.date().isoformat(),
            desc[:30] + "..." if len(desc) > 30 else desc,
            expense.category or "[dim]—[/dim]",
            names.get(expense.paid_by, "Former member"),
            f"{symbol}{expense.total_amount:,.2f}",
            format_money(outstanding, symbol),
            "✓ All Paid" if expense.is_archived else "",
        )

    console.print(table)


def display_splits(expense: RoomExpense, names: dict[str, str], symbol: str):
    """Display the per-member split state of one expense."""
    table = Table(
        title=f"{expense.description} ({symbol}{expense.total_amount:,.2f})",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Member", style="cyan")
    table.add_column("Share", justify="right")
    table.add_column("Paid", justify="right")
    table.add_column("Status")

    for split in expense.split_details:
        status = split.status
        if split.status == "pending" and split.paid_amount > 0:
            status = f"pending (partially paid {symbol}{split.paid_amount:,.2f})"
        table.add_row(
            names.get(split.user_id, split.user_id),
            f"{symbol}{split.share_amount:,.2f}",
            f"{symbol}{split.paid_amount:,.2f}",
            status,
        )

    console.print(table)
    if expense.is_archived:
        console.print("[green]✓ All members have paid (archived)[/green]")


def display_debts(breakdown: DebtBreakdown, symbol: str):
    """Display what the acting user owes each member."""
    table = Table(title="You owe", show_header=True, header_style="bold magenta")
    table.add_column("Member", style="cyan")
    table.add_column("Email")
    table.add_column("Amount", justify="right")

    for entry in breakdown.entries:
        table.add_row(entry.name, entry.email, format_money(entry.amount, symbol))

    console.print(table)
    console.print(f"  Total pending: {format_money(breakdown.total_pending, symbol)}")


def _member_names(ctx: AppContext, room_id: str) -> dict[str, str]:
    """Member names of a room the caller was already authorized for."""
    membership = ctx.directory.get_membership(room_id)
    return {m.user_id: m.name for m in membership.members}


def _pick_member(
    ctx: AppContext, expense: RoomExpense, user: User, member_id: str | None
) -> str | None:
    """Use the given member ID, or prompt for one of the expense's debtors."""
    if member_id:
        return member_id
    # The payer may have left the room, so read the snapshot unchecked.
    membership = ctx.directory.get_membership(expense.room_id)
    debtors = {s.user_id for s in expense.split_details if s.user_id != user.id}
    candidates = [m for m in membership.members if m.user_id in debtors]
    return select_member_interactive(
        candidates, f"Select member for '{expense.description}'"
    )


@app.command()
def add(
    room_id: str = typer.Argument(..., help="Room ID"),
    description: str = typer.Argument(..., help="What was bought"),
    amount: float = typer.Argument(..., help="Total amount you paid"),
    date: str | None = typer.Option(
        None, "--date", "-d", help="YYYY-MM-DD (IST); defaults to today"
    ),
    category: str = typer.Option("", "--category", "-c", help="Category"),
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Record an expense you paid, split equally across the room."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        expense = ctx.expenses.create_expense(
            room_id=room_id,
            description=description,
            total_amount=amount,
            requester=user.id,
            date=date,
            category=category,
        )
        console.print(f"[green]✓ Created expense {expense.id}[/green]")
        display_splits(
            expense, _member_names(ctx, room_id), ctx.settings.currency_symbol
        )


@app.command("list")
def list_expenses(
    room_id: str = typer.Argument(..., help="Room ID"),
    start_date: str | None = typer.Option(None, "--from", help="YYYY-MM-DD"),
    end_date: str | None = typer.Option(None, "--to", help="YYYY-MM-DD"),
    category: str | None = typer.Option(None, "--category", "-c"),
    status: str | None = typer.Option(
        None, "--status", "-s", help="Your own split status: paid or pending"
    ),
    active_only: bool = typer.Option(
        False, "--active-only", help="Hide fully settled expenses"
    ),
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """List a room's expenses."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        expenses = ctx.expenses.list_expenses(
            room_id,
            user.id,
            start_date=start_date,
            end_date=end_date,
            category=category,
            payment_status=status,
            include_archived=not active_only,
        )
        if not expenses:
            console.print("[yellow]No expenses found.[/yellow]")
            return
        display_expenses(
            expenses,
            _member_names(ctx, room_id),
            ctx.settings.currency_symbol,
            title="Room Expenses",
        )


@app.command()
def history(
    room_id: str = typer.Argument(..., help="Room ID"),
    start_date: str | None = typer.Option(None, "--from", help="YYYY-MM-DD"),
    end_date: str | None = typer.Option(None, "--to", help="YYYY-MM-DD"),
    category: str | None = typer.Option(None, "--category", "-c"),
    member_name: str | None = typer.Option(
        None, "--member-name", help="Filter by payer name"
    ),
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Show the full expense history, archived expenses included."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        expenses = ctx.expenses.get_history(
            room_id,
            user.id,
            start_date=start_date,
            end_date=end_date,
            category=category,
            member_name=member_name,
        )
        if not expenses:
            console.print("[yellow]No expenses found in history.[/yellow]")
            return
        display_expenses(
            expenses,
            _member_names(ctx, room_id),
            ctx.settings.currency_symbol,
            title="Expense History",
        )


@app.command()
def show(
    expense_id: str = typer.Argument(..., help="Expense ID"),
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Show the split state of one expense."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        expense = ctx.expenses.get_expense(expense_id, user.id)
        display_splits(
            expense,
            _member_names(ctx, expense.room_id),
            ctx.settings.currency_symbol,
        )


@app.command()
def status(
    expense_id: str = typer.Argument(..., help="Expense ID"),
    new_status: str = typer.Argument(..., help="paid or pending"),
    member_id: str | None = MEMBER_OPTION,
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Mark a member's share paid or pending (payer only)."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        expense = ctx.expenses.get_expense(expense_id, user.id)
        member = _pick_member(ctx, expense, user, member_id)
        if member is None:
            console.print("[yellow]No member selected.[/yellow]")
            return

        updated = ctx.expenses.update_payment_status(
            expense.id, member, new_status, user.id
        )
        display_splits(
            updated,
            _member_names(ctx, updated.room_id),
            ctx.settings.currency_symbol,
        )


@app.command()
def pay(
    expense_id: str = typer.Argument(..., help="Expense ID"),
    amount: float | None = typer.Option(
        None, "--amount", "-a", help="Total amount the member has paid so far"
    ),
    share: float | None = typer.Option(
        None, "--share", help="Correct the amount the member owes"
    ),
    member_id: str | None = MEMBER_OPTION,
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Record a partial payment or correct a member's share (payer only)."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        expense = ctx.expenses.get_expense(expense_id, user.id)
        member = _pick_member(ctx, expense, user, member_id)
        if member is None:
            console.print("[yellow]No member selected.[/yellow]")
            return

        updated = ctx.expenses.update_partial_payment(
            expense.id, member, user.id, paid_amount=amount, share_amount=share
        )
        display_splits(
            updated,
            _member_names(ctx, updated.room_id),
            ctx.settings.currency_symbol,
        )


@app.command()
def delete(
    expense_id: str = typer.Argument(..., help="Expense ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Delete an expense you paid."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        expense = ctx.expenses.get_expense(expense_id, user.id)
        if not yes and not confirm_destructive(
            f"Delete expense '{expense.description}'?"
        ):
            console.print("[yellow]Cancelled.[/yellow]")
            return

        ctx.expenses.delete_expense(expense.id, user.id)
        console.print("[green]✓ Expense deleted[/green]")


@app.command()
def reset(
    room_id: str = typer.Argument(..., help="Room ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Delete ALL expenses of a room, settled or not (creator only)."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        room = ctx.directory.get_room(room_id, user.id)
        if not yes and not confirm_destructive(
            f"Delete every expense in '{room.name}'?"
        ):
            console.print("[yellow]Cancelled.[/yellow]")
            return

        deleted = ctx.expenses.reset_room_ledger(room.id, user.id)
        console.print(f"[green]✓ Deleted {deleted} expenses[/green]")


@app.command()
def analytics(
    room_id: str = typer.Argument(..., help="Room ID"),
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Show room spend and your paid/owed totals."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        stats = ctx.analytics.get_room_analytics(room_id, user.id)
        symbol = ctx.settings.currency_symbol

        console.print("\n[bold]Room spend (IST):[/bold]")
        console.print(f"  Today:      {symbol}{stats.today:,.2f}")
        console.print(f"  This week:  {symbol}{stats.week:,.2f}")
        console.print(f"  This month: {symbol}{stats.month:,.2f}")
        console.print("\n[bold]You:[/bold]")
        console.print(f"  Paid:            {symbol}{stats.user_paid:,.2f}")
        console.print(f"  You owe:         {format_money(stats.user_owed, symbol)}")
        console.print(f"  Others owe you:  {symbol}{stats.others_owe_user:,.2f}")


@app.command()
def debts(
    room_id: str = typer.Argument(..., help="Room ID"),
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Show how much you owe each member."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        breakdown = ctx.analytics.get_debt_breakdown(room_id, user.id)
        display_debts(breakdown, ctx.settings.currency_symbol)
