"""CLI for RoomSplit."""

import typer

from .app_context import cli_session, console
from .ledger.cli import app as expense_app
from .rooms.cli import app as room_app

app = typer.Typer(
    name="roomsplit",
    help="Split shared household expenses and track who owes whom",
)

app.add_typer(room_app, name="room", help="Rooms and membership")
app.add_typer(expense_app, name="expense", help="Room expenses and settlement")


@app.command()
def register(
    email: str = typer.Argument(..., help="Email of the new user"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Register a user so they can create and join rooms."""
    with cli_session(verbose) as ctx:
        user = ctx.directory.register_user(email)
        console.print(f"[green]✓ Registered {user.email}[/green] ({user.id})")


@app.command()
def mcp():
    """Start the MCP server exposing the room ledger as tools."""
    from .mcp_server import run_server

    run_server()


if __name__ == "__main__":
    app()
