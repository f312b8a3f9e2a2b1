"""Room directory: users, rooms, membership and creator privileges."""

import logging
import re

from ..db import Database
from ..exceptions import ForbiddenError, NotFoundError, ValidationError
from ..models import Member, Room, RoomMembership, User, ensure_id, new_id, utcnow

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

ROOM_NOT_FOUND = "Room not found or access denied"


def normalize_email(email: str) -> str:
    """
    Normalize an email for storage and lookup.

    Args:
        email: The raw email address

    Returns:
        Normalized email (lowercase, stripped)

    Raises:
        ValidationError: If the address is not shaped like an email
    """
    normalized = (email or "").strip().lower()
    if not _EMAIL_PATTERN.match(normalized):
        raise ValidationError("email", "Valid email is required")
    return normalized


class RoomDirectory:
    """Manages users, rooms and room membership."""

    def __init__(self, database: Database):
        """Initialize the directory."""
        self.db = database

    # ========================================================================
    # Users
    # ========================================================================

    def register_user(self, email: str) -> User:
        """Register a new user by email."""
        normalized = normalize_email(email)
        if self.db.get_user_by_email(normalized):
            raise ValidationError("email", "A user with this email already exists")

        user = User(id=new_id(), email=normalized)
        self.db.save_user(user)
        logger.info(f"Registered user {user.id}")
        return user

    def get_user(self, user_id: str) -> User:
        ensure_id(user_id, "user_id")
        user = self.db.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_user_by_email(self, email: str) -> User:
        user = self.db.get_user_by_email(normalize_email(email))
        if not user:
            raise NotFoundError("User with this email does not exist")
        return user

    # ========================================================================
    # Rooms
    # ========================================================================

    def create_room(self, name: str, requester: str) -> Room:
        """
        Create a room with the requester as creator and first member.

        Args:
            name: Room name (non-empty)
            requester: Authenticated user ID

        Returns:
            The new room
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("name", "Room name is required")
        creator = self.get_user(requester)

        room = Room(
            id=new_id(),
            name=name,
            created_by=creator.id,
            members=[
                Member(
                    user_id=creator.id,
                    email=creator.email,
                    name=creator.default_name,
                    joined_at=utcnow(),
                )
            ],
        )
        self.db.save_room(room)
        logger.info(f"Created room {room.id} ('{room.name}') for {creator.id}")
        return room

    def list_rooms(self, requester: str) -> list[Room]:
        """Active rooms the requester created or belongs to, newest first."""
        return self.db.list_active_rooms_for_user(requester)

    def get_room(self, room_id: str, requester: str) -> Room:
        """
        Get a room the requester can see.

        Absent, deleted and foreign rooms all raise the same NotFoundError so
        callers cannot probe for room IDs.
        """
        ensure_id(room_id, "room_id")
        room = self.db.get_room(room_id)
        if not room or not room.is_active or not room.has_member(requester):
            raise NotFoundError(ROOM_NOT_FOUND)
        return room

    def _get_room_as_creator(self, room_id: str, requester: str) -> Room:
        room = self.get_room(room_id, requester)
        if room.created_by != requester:
            raise ForbiddenError("Only the room creator can do this")
        return room

    def add_member(
        self, room_id: str, email: str, name: str, requester: str
    ) -> Room:
        """
        Add a registered user to a room (creator only).

        Args:
            room_id: Room ID
            email: Email of the registered user to add
            name: Display name; blank falls back to the email's local part
            requester: Authenticated user ID

        Returns:
            The updated room
        """
        room = self._get_room_as_creator(room_id, requester)
        user_to_add = self.get_user_by_email(email)

        if room.get_member(user_to_add.id):
            raise ValidationError("email", "User is already a member of this room")

        member = Member(
            user_id=user_to_add.id,
            email=user_to_add.email,
            name=(name or "").strip() or user_to_add.default_name,
            joined_at=utcnow(),
        )
        self.db.add_room_member(room.id, member)
        room.members.append(member)

        logger.info(f"Added {member.user_id} to room {room.id}")
        return room

    def remove_member(self, room_id: str, member_user_id: str, requester: str) -> Room:
        """Remove a member from a room (creator only, never the creator)."""
        room = self._get_room_as_creator(room_id, requester)
        ensure_id(member_user_id, "member_user_id")

        if member_user_id == room.created_by:
            raise ForbiddenError("Cannot remove room creator")
        if not self.db.remove_room_member(room.id, member_user_id):
            raise NotFoundError("Member not found in this room")

        room.members = [m for m in room.members if m.user_id != member_user_id]
        logger.info(f"Removed {member_user_id} from room {room.id}")
        return room

    def delete_room(self, room_id: str, requester: str):
        """Soft delete a room (creator only)."""
        room = self._get_room_as_creator(room_id, requester)
        self.db.set_room_active(room.id, False)
        logger.info(f"Deactivated room {room.id}")

    # ========================================================================
    # Ledger-facing interface
    # ========================================================================

    def get_membership(self, room_id: str) -> RoomMembership:
        """Membership snapshot of a room, whatever its active state."""
        ensure_id(room_id, "room_id")
        room = self.db.get_room(room_id)
        if not room:
            raise NotFoundError(ROOM_NOT_FOUND)
        return RoomMembership(
            room_id=room.id,
            members=room.members,
            created_by=room.created_by,
            is_active=room.is_active,
        )

    def is_member(self, room_id: str, user_id: str) -> bool:
        """True if the user is the creator or a member of an active room."""
        room = self.db.get_room(room_id)
        return bool(room and room.is_active and room.has_member(user_id))
