"""Shared fixtures: a temporary database and a three-member room."""

from dataclasses import dataclass

import pytest

from roomsplit.db import Database
from roomsplit.ledger.analytics import RoomAnalyticsService
from roomsplit.ledger.service import RoomExpenseService
from roomsplit.models import Room, User
from roomsplit.rooms.directory import RoomDirectory


@dataclass
class Household:
    """Room created by asha with ravi and chen as members."""

    room: Room
    asha: User
    ravi: User
    chen: User


@pytest.fixture
def db(tmp_path):
    """Create a temporary database."""
    db_path = tmp_path / "test.db"
    db = Database(db_path)
    yield db
    db.close()


@pytest.fixture
def directory(db):
    return RoomDirectory(db)


@pytest.fixture
def service(db, directory):
    """Create a RoomExpenseService instance."""
    return RoomExpenseService(db, directory)


@pytest.fixture
def analytics(db, directory):
    """Create a RoomAnalyticsService instance."""
    return RoomAnalyticsService(db, directory)


@pytest.fixture
def household(directory):
    """Register three users and put them in one room."""
    asha = directory.register_user("asha@example.com")
    ravi = directory.register_user("ravi@example.com")
    chen = directory.register_user("chen@example.com")

    room = directory.create_room("Flat 4B", asha.id)
    directory.add_member(room.id, ravi.email, "Ravi", asha.id)
    room = directory.add_member(room.id, chen.email, "Chen", asha.id)

    return Household(room=room, asha=asha, ravi=ravi, chen=chen)
