"""
Tests for the security helpers and the ledger's money conversions.

These tests verify:
  - One-time codes are fixed-width, numeric, and keep leading zeros
  - Password hashes are salted and verify only the right password
  - Decimal <-> cents conversion is exact and refuses sub-cent amounts
  - apply_delta raises for a missing account
"""

import uuid
from decimal import Decimal

import pytest

from otpbank import security
from otpbank.exceptions import AccountNotFoundError
from otpbank.services import ledger_service


class TestOtp:
    """Tests for generate_otp()."""

    def test_default_width(self):
        otp = security.generate_otp()
        assert len(otp) == 6
        assert otp.isdigit()

    def test_custom_width(self):
        assert len(security.generate_otp(8)) == 8

    def test_leading_zeros_kept(self, monkeypatch):
        monkeypatch.setattr(security.secrets, "randbelow", lambda n: 42)
        assert security.generate_otp() == "000042"

    def test_draws_from_full_range(self, monkeypatch):
        seen = []
        monkeypatch.setattr(security.secrets, "randbelow", lambda n: seen.append(n) or 0)
        security.generate_otp(6)
        assert seen == [1_000_000]


class TestPasswordHashing:
    """Tests for hash_password() / verify_password()."""

    def test_verify_correct_password(self):
        hashed = security.hash_password("pw1")
        assert security.verify_password("pw1", hashed)

    def test_reject_wrong_password(self):
        hashed = security.hash_password("pw1")
        assert not security.verify_password("pw2", hashed)

    def test_hashes_are_salted(self):
        assert security.hash_password("pw1") != security.hash_password("pw1")

    def test_dummy_verify_never_succeeds(self):
        assert security.dummy_verify() is False


class TestCents:
    """Tests for the ledger's Decimal <-> cents helpers."""

    @pytest.mark.parametrize(
        "amount, cents",
        [
            (Decimal("0"), 0),
            (Decimal("0.01"), 1),
            (Decimal("10.5"), 1050),
            (Decimal("-25.50"), -2550),
            (Decimal("12345.67"), 1234567),
        ],
    )
    def test_to_cents(self, amount, cents):
        assert ledger_service.to_cents(amount) == cents

    def test_to_cents_rejects_sub_cent(self):
        with pytest.raises(ValueError):
            ledger_service.to_cents(Decimal("1.005"))

    def test_from_cents_has_two_places(self):
        assert str(ledger_service.from_cents(6000)) == "60.00"
        assert str(ledger_service.from_cents(-1)) == "-0.01"


class TestLedgerService:
    """Service-level ledger tests."""

    async def test_apply_delta_without_account(self, db_session):
        with pytest.raises(AccountNotFoundError):
            await ledger_service.apply_delta(db_session, uuid.uuid4(), Decimal("1"))

    async def test_get_balance_without_account(self, db_session):
        with pytest.raises(AccountNotFoundError):
            await ledger_service.get_balance(db_session, uuid.uuid4())

    async def test_open_then_apply(self, db_session):
        user_id = uuid.uuid4()
        await ledger_service.open_account(db_session, user_id)

        assert await ledger_service.apply_delta(db_session, user_id, Decimal("5.25")) == Decimal("5.25")
        assert await ledger_service.apply_delta(db_session, user_id, Decimal("-7")) == Decimal("-1.75")
        assert await ledger_service.get_balance(db_session, user_id) == Decimal("-1.75")
