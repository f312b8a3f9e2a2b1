"""Interactive UI components for picking room members."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from ..models import Member

logger = logging.getLogger(__name__)


def member_label(member: Member) -> str:
    return f"{member.name} <{member.email}>"


class MemberCompleter(Completer):
    """Fuzzy search completer for room members."""

    def __init__(self, members: list[Member]):
        """Initialize the completer with selectable members."""
        self.members = members
        self.label_to_id = {member_label(m): m.user_id for m in members}

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for label in self.label_to_id:
            if not query:
                yield Completion(text=label, start_position=0, display=label)
            elif self._fuzzy_match(query, label.lower()):
                yield Completion(
                    text=label,
                    start_position=-len(document.text),
                    display=label,
                )

    def _fuzzy_match(self, query: str, text: str) -> bool:
        """
        Fuzzy match: all characters in query must appear in order in text.

        Example:
            query="rvi" matches "Ravi <ravi@example.com>"
        """
        query_idx = 0
        for char in text:
            if query_idx < len(query) and char == query[query_idx]:
                query_idx += 1
        return query_idx == len(query)


def select_member_interactive(members: list[Member], action: str) -> str | None:
    """
    Interactive member selection with fuzzy search.

    Args:
        members: Members that may be picked (payer already excluded)
        action: What the selection is for, shown as the prompt header

    Returns:
        Selected member's user ID, or None to skip
    """
    if not members:
        print("\nNo members to choose from")
        return None

    print(f"\n{action}")
    print("   Type to search, press Enter to confirm, Ctrl+C to skip\n")

    completer = MemberCompleter(members)
    session: PromptSession[str] = PromptSession(completer=completer)

    try:
        while True:
            result = session.prompt("Member: ", complete_while_typing=True)

            if not result:
                return None

            user_id = completer.label_to_id.get(result)
            if user_id:
                logger.info(f"User selected member: {user_id}")
                return user_id

            print("Invalid member. Please select from the list or press Tab to complete.")

    except KeyboardInterrupt:
        print("\nSkipped")
        return None
    except EOFError:
        return None


def confirm_destructive(message: str) -> bool:
    """
    Ask for an explicit yes before an irreversible operation.

    Only a typed "y" or "yes" confirms; Enter alone cancels.
    """
    print(f"\n{message}")
    try:
        response = input("This cannot be undone. Continue? [y/N] ").strip().lower()
    except (KeyboardInterrupt, EOFError):
        return False
    return response in ("y", "yes")
