"""End-to-end tests for the roomsplit CLI."""

import importlib
import sys
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from roomsplit.cli import app
from roomsplit.db import Database

runner = CliRunner()


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Point the CLI at a temporary database, acting as asha by default."""
    path = tmp_path / "cli.db"
    monkeypatch.setenv("ROOMSPLIT_DATABASE_PATH", str(path))
    monkeypatch.setenv("ROOMSPLIT_USER_EMAIL", "asha@example.com")
    return path


def invoke(*args: str):
    result = runner.invoke(app, list(args))
    return result


@pytest.fixture
def room_setup(db_path):
    """Register asha and ravi and create a shared room via the CLI."""
    assert invoke("register", "asha@example.com").exit_code == 0
    assert invoke("register", "ravi@example.com").exit_code == 0
    assert invoke("room", "create", "Flat 4B").exit_code == 0

    db = Database(db_path)
    try:
        asha = db.get_user_by_email("asha@example.com")
        ravi = db.get_user_by_email("ravi@example.com")
        room = db.list_active_rooms_for_user(asha.id)[0]
    finally:
        db.close()

    result = invoke("room", "add-member", room.id, "ravi@example.com", "--name", "Ravi")
    assert result.exit_code == 0
    return db_path, room.id, asha.id, ravi.id


class TestCli:
    """Tests for the typer commands."""

    def test_missing_identity_fails(self, db_path, monkeypatch):
        monkeypatch.delenv("ROOMSPLIT_USER_EMAIL")
        result = invoke("room", "list")

        assert result.exit_code == 1
        assert "ConfigurationError" in result.output

    def test_expense_flow(self, room_setup):
        db_path, room_id, asha_id, ravi_id = room_setup

        result = invoke("expense", "add", room_id, "Groceries", "300", "-c", "food")
        assert result.exit_code == 0

        db = Database(db_path)
        try:
            expense = db.list_room_expenses(room_id)[0]
        finally:
            db.close()
        assert expense.get_split(ravi_id).share_amount == 150

        result = invoke("expense", "pay", expense.id, "--member", ravi_id, "--amount", "50")
        assert result.exit_code == 0

        result = invoke("expense", "debts", room_id, "--as", "ravi@example.com")
        assert result.exit_code == 0
        assert "Total pending" in result.output
        assert "100.00" in result.output

    def test_non_payer_update_is_forbidden(self, room_setup):
        db_path, room_id, asha_id, ravi_id = room_setup
        invoke("expense", "add", room_id, "Groceries", "300")

        db = Database(db_path)
        try:
            expense = db.list_room_expenses(room_id)[0]
        finally:
            db.close()

        result = invoke(
            "expense", "status", expense.id, "paid",
            "--member", asha_id, "--as", "ravi@example.com",
        )
        assert result.exit_code == 1
        assert "Forbidden" in result.output

    def test_reset_requires_confirmation(self, room_setup):
        db_path, room_id, _, _ = room_setup
        invoke("expense", "add", room_id, "Groceries", "300")

        result = runner.invoke(app, ["expense", "reset", room_id], input="n\n")
        assert "Cancelled" in result.output

        result = invoke("expense", "reset", room_id, "--yes")
        assert result.exit_code == 0

        db = Database(db_path)
        try:
            assert db.list_room_expenses(room_id) == []
        finally:
            db.close()

    def test_removed_payer_settles_and_deletes(self, room_setup):
        db_path, room_id, asha_id, ravi_id = room_setup
        result = invoke("expense", "add", room_id, "Gas", "90", "--as", "ravi@example.com")
        assert result.exit_code == 0

        db = Database(db_path)
        try:
            expense = db.list_room_expenses(room_id)[0]
        finally:
            db.close()
        assert invoke("room", "remove-member", room_id, ravi_id).exit_code == 0

        result = invoke(
            "expense", "status", expense.id, "paid",
            "--member", asha_id, "--as", "ravi@example.com",
        )
        assert result.exit_code == 0
        assert "archived" in result.output

        result = invoke("expense", "delete", expense.id, "--yes", "--as", "ravi@example.com")
        assert result.exit_code == 0


class TestMcpCommand:
    """The MCP SDK is only needed by the mcp command."""

    def test_ledger_commands_work_without_mcp_sdk(self, room_setup, monkeypatch):
        monkeypatch.setitem(sys.modules, "mcp.server.fastmcp", None)
        monkeypatch.delitem(sys.modules, "roomsplit.mcp_server", raising=False)
        monkeypatch.delitem(sys.modules, "roomsplit.cli", raising=False)

        cli = importlib.import_module("roomsplit.cli")
        result = runner.invoke(cli.app, ["room", "list"])

        assert result.exit_code == 0
        assert "Flat 4B" in result.output

    def test_mcp_command_starts_server(self):
        with patch("roomsplit.mcp_server.run_server") as run_server:
            result = invoke("mcp")

        assert result.exit_code == 0
        run_server.assert_called_once_with()
