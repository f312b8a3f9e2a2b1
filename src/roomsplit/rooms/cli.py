"""CLI commands for managing rooms and membership."""

import typer
from rich.table import Table

from ..app_context import cli_session, console
from ..ledger.ui import confirm_destructive
from ..models import Room

app = typer.Typer(name="room", help="Create rooms and manage their members")

AS_OPTION = typer.Option(None, "--as", help="Email of the acting user")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Verbose output")


def display_room(room: Room):
    """Display a room and its members."""
    console.print(f"\n[bold]{room.name}[/bold] [dim]({room.id})[/dim]")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Email")
    table.add_column("User ID", style="dim")
    table.add_column("Joined", style="dim")

    for member in room.members:
        name = member.name
        if member.user_id == room.created_by:
            name += " [yellow](creator)[/yellow]"
        table.add_row(
            name, member.email, member.user_id, member.joined_at.date().isoformat()
        )

    console.print(table)


@app.command()
def create(
    name: str = typer.Argument(..., help="Room name"),
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Create a room with yourself as creator and first member."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        room = ctx.directory.create_room(name, user.id)
        console.print(f"[green]✓ Created room {room.name}[/green] ({room.id})")


@app.command("list")
def list_rooms(
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """List the rooms you belong to."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        rooms = ctx.directory.list_rooms(user.id)
        if not rooms:
            console.print("[yellow]You are not in any rooms.[/yellow]")
            return

        table = Table(title="Rooms", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Members", justify="right")
        for room in rooms:
            table.add_row(room.id, room.name, str(len(room.members)))
        console.print(table)


@app.command()
def show(
    room_id: str = typer.Argument(..., help="Room ID"),
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Show a room's members."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        display_room(ctx.directory.get_room(room_id, user.id))


@app.command("add-member")
def add_member(
    room_id: str = typer.Argument(..., help="Room ID"),
    email: str = typer.Argument(..., help="Email of a registered user"),
    name: str = typer.Option("", "--name", "-n", help="Display name in this room"),
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Add a registered user to a room (creator only)."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        room = ctx.directory.add_member(room_id, email, name, user.id)
        console.print(f"[green]✓ Added {email} to {room.name}[/green]")


@app.command("remove-member")
def remove_member(
    room_id: str = typer.Argument(..., help="Room ID"),
    member_id: str = typer.Argument(..., help="User ID of the member to remove"),
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Remove a member from a room (creator only)."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        room = ctx.directory.remove_member(room_id, member_id, user.id)
        console.print(f"[green]✓ Removed member from {room.name}[/green]")


@app.command()
def delete(
    room_id: str = typer.Argument(..., help="Room ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    as_email: str | None = AS_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Delete a room (creator only)."""
    with cli_session(verbose) as ctx:
        user = ctx.acting_user(as_email)
        room = ctx.directory.get_room(room_id, user.id)
        if not yes and not confirm_destructive(f"Delete room '{room.name}'?"):
            console.print("[yellow]Cancelled.[/yellow]")
            return

        ctx.directory.delete_room(room.id, user.id)
        console.print("[green]✓ Room deleted[/green]")
