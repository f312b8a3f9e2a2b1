"""Tests for the MCP tool functions."""

import pytest

from roomsplit import mcp_server
from roomsplit.app_context import AppContext
from roomsplit.config import Settings
from roomsplit.mcp_server import SessionState


@pytest.fixture
def session(db, directory, service, analytics, household, tmp_path, monkeypatch):
    """Bind the MCP session to the test database, acting as asha."""
    settings = Settings(
        user_email=household.asha.email, database_path=tmp_path / "test.db"
    )
    ctx = AppContext(
        settings=settings,
        db=db,
        directory=directory,
        expenses=service,
        analytics=analytics,
    )
    monkeypatch.setattr(mcp_server, "_state", SessionState(ctx=ctx, user=household.asha))
    return ctx


@pytest.fixture
def groceries(service, household):
    return service.create_expense(
        household.room.id, "Groceries", 300, household.asha.id, date="2024-01-18"
    )


class TestMcpTools:
    """Tests for the tool functions the MCP server exposes."""

    def test_list_rooms(self, session, household):
        result = mcp_server.list_rooms()

        assert household.room.id in result
        assert "Ravi" in result

    def test_list_expenses_shows_debtors(self, session, household, groceries):
        result = mcp_server.list_expenses(household.room.id)

        assert "Groceries" in result
        assert household.ravi.id in result
        assert "[pending]" in result

    def test_record_payment(self, session, household, groceries):
        result = mcp_server.record_payment(groceries.id, household.ravi.id, 40)

        assert "₹40.00 of ₹100.00 (pending)" in result

    def test_mark_payment_settles(self, session, household, groceries):
        mcp_server.mark_payment(groceries.id, household.ravi.id, "paid")
        result = mcp_server.mark_payment(groceries.id, household.chen.id, "paid")

        assert "fully settled" in result

    def test_errors_are_returned_as_text(self, session, household):
        result = mcp_server.room_analytics("0" * 32)

        assert result.startswith("Error:")

    def test_debt_breakdown(self, session, household, groceries):
        result = mcp_server.debt_breakdown(household.room.id)

        assert "Total pending: ₹0.00" in result
