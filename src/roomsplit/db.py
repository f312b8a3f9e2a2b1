"""SQLite database operations for RoomSplit."""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

import pydantic

from .exceptions import DataIntegrityError
from .models import Member, Room, RoomExpense, SplitDetail, User

logger = logging.getLogger(__name__)

# Tolerance when checking stored float amounts against each other
AMOUNT_EPSILON = 1e-9


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        # Users table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                email TEXT NOT NULL UNIQUE,
                created_at TIMESTAMP NOT NULL
            )
        """
        )

        # Rooms table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS rooms (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                created_by TEXT NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TIMESTAMP NOT NULL
            )
        """
        )

        # Room members table (insertion order is membership order)
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS room_members (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                room_id TEXT NOT NULL REFERENCES rooms(id),
                user_id TEXT NOT NULL,
                email TEXT NOT NULL,
                name TEXT NOT NULL,
                joined_at TIMESTAMP NOT NULL,
                UNIQUE (room_id, user_id)
            )
        """
        )

        # Room expenses table; split_details is the embedded JSON snapshot
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS room_expenses (
                id TEXT PRIMARY KEY,
                room_id TEXT NOT NULL REFERENCES rooms(id),
                description TEXT NOT NULL,
                total_amount REAL NOT NULL,
                paid_by TEXT NOT NULL,
                date TIMESTAMP NOT NULL,
                category TEXT NOT NULL DEFAULT '',
                split_details TEXT NOT NULL,
                is_archived INTEGER NOT NULL DEFAULT 0,
                version INTEGER NOT NULL DEFAULT 1,
                created_at TIMESTAMP NOT NULL
            )
        """
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_room_expenses_room "
            "ON room_expenses (room_id, is_archived)"
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # User operations
    # ========================================================================

    def save_user(self, user: User):
        """Insert a new user."""
        cursor = self.conn.cursor()
        cursor.execute(
            "INSERT INTO users (id, email, created_at) VALUES (?, ?, ?)",
            (user.id, user.email, user.created_at.isoformat()),
        )
        self.conn.commit()

    def get_user(self, user_id: str) -> User | None:
        """Get a user by ID."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT id, email, created_at FROM users WHERE id = ?", (user_id,)
        )
        row = cursor.fetchone()
        return _row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> User | None:
        """Get a user by (normalized) email."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT id, email, created_at FROM users WHERE email = ?", (email,)
        )
        row = cursor.fetchone()
        return _row_to_user(row) if row else None

    # ========================================================================
    # Room operations
    # ========================================================================

    def save_room(self, room: Room):
        """Insert a room together with its initial members."""
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO rooms (id, name, created_by, is_active, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    room.id,
                    room.name,
                    room.created_by,
                    int(room.is_active),
                    room.created_at.isoformat(),
                ),
            )
            for member in room.members:
                self._insert_member(room.id, member)

    def get_room(self, room_id: str) -> Room | None:
        """Get a room (active or not) with its members."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, name, created_by, is_active, created_at
            FROM rooms
            WHERE id = ?
            """,
            (room_id,),
        )
        row = cursor.fetchone()
        if not row:
            return None
        return self._row_to_room(row)

    def list_active_rooms_for_user(self, user_id: str) -> list[Room]:
        """Get active rooms the user created or belongs to."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT DISTINCT r.id, r.name, r.created_by, r.is_active, r.created_at
            FROM rooms r
            LEFT JOIN room_members m ON m.room_id = r.id
            WHERE r.is_active = 1 AND (r.created_by = ? OR m.user_id = ?)
            """,
            (user_id, user_id),
        )
        rooms = [self._row_to_room(row) for row in cursor.fetchall()]
        return sorted(rooms, key=lambda r: r.created_at, reverse=True)

    def add_room_member(self, room_id: str, member: Member):
        """Append a member to a room."""
        with self.conn:
            self._insert_member(room_id, member)

    def remove_room_member(self, room_id: str, user_id: str) -> bool:
        """Remove a member from a room. Returns True if a row was deleted."""
        cursor = self.conn.cursor()
        cursor.execute(
            "DELETE FROM room_members WHERE room_id = ? AND user_id = ?",
            (room_id, user_id),
        )
        self.conn.commit()
        return cursor.rowcount > 0

    def set_room_active(self, room_id: str, is_active: bool):
        """Set the soft-delete flag of a room."""
        cursor = self.conn.cursor()
        cursor.execute(
            "UPDATE rooms SET is_active = ? WHERE id = ?", (int(is_active), room_id)
        )
        self.conn.commit()

    def _insert_member(self, room_id: str, member: Member):
        self.conn.execute(
            """
            INSERT INTO room_members (room_id, user_id, email, name, joined_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                room_id,
                member.user_id,
                member.email,
                member.name,
                member.joined_at.isoformat(),
            ),
        )

    def _get_members(self, room_id: str) -> list[Member]:
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT user_id, email, name, joined_at
            FROM room_members
            WHERE room_id = ?
            ORDER BY seq
            """,
            (room_id,),
        )
        return [
            Member(
                user_id=row["user_id"],
                email=row["email"],
                name=row["name"],
                joined_at=datetime.fromisoformat(row["joined_at"]),
            )
            for row in cursor.fetchall()
        ]

    def _row_to_room(self, row: sqlite3.Row) -> Room:
        return Room(
            id=row["id"],
            name=row["name"],
            created_by=row["created_by"],
            members=self._get_members(row["id"]),
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # ========================================================================
    # Room expense operations
    # ========================================================================

    def save_expense(self, expense: RoomExpense):
        """Insert a new room expense."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO room_expenses (
                id, room_id, description, total_amount, paid_by, date,
                category, split_details, is_archived, version, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                expense.id,
                expense.room_id,
                expense.description,
                expense.total_amount,
                expense.paid_by,
                expense.date.isoformat(),
                expense.category,
                _dump_splits(expense.split_details),
                int(expense.is_archived),
                expense.version,
                expense.created_at.isoformat(),
            ),
        )
        self.conn.commit()

    def get_expense(self, expense_id: str) -> RoomExpense | None:
        """Get a room expense by ID."""
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT {_EXPENSE_COLUMNS} FROM room_expenses WHERE id = ?",
            (expense_id,),
        )
        row = cursor.fetchone()
        return _row_to_expense(row) if row else None

    def list_room_expenses(self, room_id: str) -> list[RoomExpense]:
        """Get every expense of a room, newest first."""
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT {_EXPENSE_COLUMNS} FROM room_expenses WHERE room_id = ?",
            (room_id,),
        )
        expenses = [_row_to_expense(row) for row in cursor.fetchall()]
        return sorted(expenses, key=lambda e: e.date, reverse=True)

    def update_expense_splits(
        self,
        expense_id: str,
        split_details: list[SplitDetail],
        is_archived: bool,
        expected_version: int,
    ) -> bool:
        """
        Conditionally write new split state for one expense.

        The UPDATE only matches while the stored version still equals
        expected_version, and bumps it in the same statement.

        Returns:
            True if the row was updated, False if the version had moved on
            (or the expense no longer exists)
        """
        cursor = self.conn.cursor()
        cursor.execute(
            """
            UPDATE room_expenses
            SET split_details = ?, is_archived = ?, version = version + 1
            WHERE id = ? AND version = ?
            """,
            (
                _dump_splits(split_details),
                int(is_archived),
                expense_id,
                expected_version,
            ),
        )
        self.conn.commit()
        return cursor.rowcount == 1

    def delete_expense(self, expense_id: str) -> bool:
        """Hard delete a room expense. Returns True if a row was deleted."""
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM room_expenses WHERE id = ?", (expense_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    def delete_room_expenses(self, room_id: str) -> int:
        """Delete every expense of a room. Returns the number deleted."""
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM room_expenses WHERE room_id = ?", (room_id,))
        self.conn.commit()
        return cursor.rowcount


_EXPENSE_COLUMNS = (
    "id, room_id, description, total_amount, paid_by, date, category, "
    "split_details, is_archived, version, created_at"
)


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _dump_splits(split_details: list[SplitDetail]) -> str:
    return json.dumps([split.model_dump() for split in split_details])


def _row_to_expense(row: sqlite3.Row) -> RoomExpense:
    """
    Build a RoomExpense from a row, refusing corrupted split state.

    Raises:
        DataIntegrityError: If the stored splits are malformed, duplicated,
                            or record more paid than owed
    """
    try:
        splits = [SplitDetail(**item) for item in json.loads(row["split_details"])]
    except (json.JSONDecodeError, TypeError, pydantic.ValidationError) as e:
        raise DataIntegrityError(
            f"Expense {row['id']} has malformed split details: {e}"
        ) from e

    seen: set[str] = set()
    for split in splits:
        if split.user_id in seen:
            raise DataIntegrityError(
                f"Expense {row['id']} has duplicate split for user {split.user_id}"
            )
        seen.add(split.user_id)
        if split.paid_amount > split.share_amount + AMOUNT_EPSILON:
            raise DataIntegrityError(
                f"Expense {row['id']}: user {split.user_id} paid "
                f"{split.paid_amount} of a {split.share_amount} share"
            )

    return RoomExpense(
        id=row["id"],
        room_id=row["room_id"],
        description=row["description"],
        total_amount=row["total_amount"],
        paid_by=row["paid_by"],
        date=datetime.fromisoformat(row["date"]),
        category=row["category"],
        split_details=splits,
        is_archived=bool(row["is_archived"]),
        version=row["version"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )
