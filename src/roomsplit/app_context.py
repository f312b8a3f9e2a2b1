"""Wiring shared by the CLI and MCP surfaces."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from rich.console import Console

from .config import Settings, load_settings
from .db import Database
from .exceptions import ConfigurationError, RoomSplitError
from .ledger.analytics import RoomAnalyticsService
from .ledger.service import RoomExpenseService
from .models import User
from .rooms.directory import RoomDirectory

console = Console()


@dataclass
class AppContext:
    """Services bound to one open database."""

    settings: Settings
    db: Database
    directory: RoomDirectory
    expenses: RoomExpenseService
    analytics: RoomAnalyticsService

    def acting_user(self, email: str | None = None) -> User:
        """
        Resolve the user operations run as.

        Args:
            email: Explicit email; falls back to the configured user_email
        """
        email = email or self.settings.user_email
        if not email:
            raise ConfigurationError(
                "No acting user. Pass --as EMAIL or set ROOMSPLIT_USER_EMAIL."
            )
        return self.directory.get_user_by_email(email)

    def close(self):
        self.db.close()


def open_context(settings: Settings | None = None) -> AppContext:
    """Load settings (unless given), open the database and build the services."""
    settings = settings or load_settings()
    db = Database(settings.database_path)
    directory = RoomDirectory(db)
    return AppContext(
        settings=settings,
        db=db,
        directory=directory,
        expenses=RoomExpenseService(db, directory),
        analytics=RoomAnalyticsService(db, directory),
    )


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@contextmanager
def cli_session(verbose: bool = False) -> Iterator[AppContext]:
    """
    Open a context for one CLI command and report its errors.

    Ledger errors print their kind and message and exit with status 1.
    Anything else is printed too, and re-raised with --verbose.
    """
    setup_logging(verbose)
    ctx = None
    try:
        ctx = open_context()
        yield ctx
    except RoomSplitError as e:
        console.print(f"\n[bold red]{e.kind}:[/bold red] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if ctx is not None:
            ctx.close()
