"""
Tests for error handling at the HTTP boundary.

These tests verify:
  - Store failures become a retryable 503 without leaking driver text
  - A failed commit is answered with 503, not with the unsaved result
  - A failure in the middle of a multi-row operation rolls everything back
  - Error bodies have a stable {"detail", "error_type"} shape
"""

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from otpbank.models import Account, User
from otpbank.services import credential_service, ledger_service


def store_down(*args, **kwargs):
    raise OperationalError(
        "SELECT accounts.balance_cents FROM accounts",
        {},
        Exception("database is locked at /var/lib/secret/bank.db"),
    )


class TestStoreUnavailable:
    """Tests for transient persistence failures."""

    async def test_store_failure_returns_503(self, client, logged_in_user, monkeypatch):
        monkeypatch.setattr(ledger_service, "get_balance", store_down)

        response = await client.post(
            "/me/account",
            json={"username": logged_in_user["username"], "otp": logged_in_user["otp"]},
        )

        assert response.status_code == 503
        assert response.json()["error_type"] == "store_unavailable"
        assert response.headers["Retry-After"] == "1"

    async def test_store_failure_hides_internal_text(self, client, logged_in_user, monkeypatch):
        monkeypatch.setattr(ledger_service, "apply_delta", store_down)

        response = await client.post(
            "/me/account/transaction/deposit",
            json={
                "username": logged_in_user["username"],
                "otp": logged_in_user["otp"],
                "amount": 10,
            },
        )

        assert response.status_code == 503
        assert "secret" not in response.text
        assert "SELECT" not in response.text

    async def test_store_failure_is_logged(self, client, logged_in_user, monkeypatch, caplog):
        monkeypatch.setattr(ledger_service, "get_balance", store_down)

        await client.post(
            "/me/account",
            json={"username": logged_in_user["username"], "otp": logged_in_user["otp"]},
        )

        assert "Store call failed during POST /me/account" in caplog.text


class TestAtomicity:
    """Multi-row operations are all-or-nothing."""

    async def test_failed_account_creation_rolls_back_user(self, client, db_session, monkeypatch):
        """If the account insert fails, the user row must not survive."""
        async def open_account_fails(db, user_id):
            store_down()

        monkeypatch.setattr(ledger_service, "open_account", open_account_fails)

        response = await client.post("/users", json={"username": "erin", "password": "pw"})
        assert response.status_code == 503

        users = await db_session.scalar(select(func.count()).select_from(User))
        accounts = await db_session.scalar(select(func.count()).select_from(Account))
        assert users == 0
        assert accounts == 0

    async def test_failed_delete_keeps_account(self, client, db_session, logged_in_user, monkeypatch):
        """If deleting the user row fails, the session and account deletes are undone."""
        async def delete_fails(db, user_id):
            store_down()

        monkeypatch.setattr(credential_service, "delete_credentials", delete_fails)

        response = await client.request("DELETE", "/delete-user", json=logged_in_user)
        assert response.status_code == 503

        accounts = await db_session.scalar(select(func.count()).select_from(Account))
        assert accounts == 1

        balance = await client.post(
            "/me/account",
            json={"username": logged_in_user["username"], "otp": logged_in_user["otp"]},
        )
        assert balance.status_code == 200


class TestErrorShape:
    """Every domain error has the same body shape."""

    async def test_not_found_shape(self, client):
        response = await client.put(
            "/update-password",
            json={"username": "nobody", "password": "pw", "newPassword": "pw2"},
        )
        assert response.json() == {"detail": "User not found", "error_type": "not_found"}

    async def test_unauthorized_shape(self, client, registered_user):
        response = await client.post(
            "/login",
            json={"username": registered_user["username"], "password": "wrong"},
        )
        assert response.json() == {
            "detail": "Invalid username or password",
            "error_type": "invalid_credentials",
        }

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestCommitFailure:
    """A failed commit must reach the client; the response never claims unsaved work."""

    async def test_failed_commit_returns_503(self, client, logged_in_user, monkeypatch):
        async def commit_fails(self):
            store_down()

        monkeypatch.setattr(AsyncSession, "commit", commit_fails)

        response = await client.post(
            "/me/account/transaction/deposit",
            json={
                "username": logged_in_user["username"],
                "otp": logged_in_user["otp"],
                "amount": 5,
            },
        )

        assert response.status_code == 503
        assert response.json()["error_type"] == "store_unavailable"
        assert response.headers["Retry-After"] == "1"

    async def test_failed_commit_leaves_balance_unchanged(self, client, logged_in_user, monkeypatch):
        async def commit_fails(self):
            store_down()

        monkeypatch.setattr(AsyncSession, "commit", commit_fails)

        await client.post(
            "/me/account/transaction/deposit",
            json={
                "username": logged_in_user["username"],
                "otp": logged_in_user["otp"],
                "amount": 5,
            },
        )
        monkeypatch.undo()

        balance = await client.post(
            "/me/account",
            json={"username": logged_in_user["username"], "otp": logged_in_user["otp"]},
        )
        assert balance.status_code == 200
        assert balance.json()["balance"] == "0.00"

    async def test_failed_login_commit_keeps_previous_code(self, client, logged_in_user, monkeypatch):
        """A login whose commit fails must not replace the live code."""
        async def commit_fails(self):
            store_down()

        monkeypatch.setattr(AsyncSession, "commit", commit_fails)

        response = await client.post(
            "/login",
            json={"username": logged_in_user["username"], "password": logged_in_user["password"]},
        )
        assert response.status_code == 503
        monkeypatch.undo()

        balance = await client.post(
            "/me/account",
            json={"username": logged_in_user["username"], "otp": logged_in_user["otp"]},
        )
        assert balance.status_code == 200
