"""
Ledger service — the per-user balance and its mutation protocol.

THIS IS THE FILE THAT PROTECTS THE MONEY. It handles:
  - Opening the zero-balance account at registration
  - Reading the current balance
  - Applying signed deltas (deposits positive, withdrawals negative)
  - Closing the account when its user is deleted

Atomicity:
  apply_delta() never reads the balance into Python, adds to it, and writes
  it back; two concurrent requests doing that would both read the same old
  value and one update would be lost. Instead it issues one statement:

      UPDATE accounts
         SET balance_cents = balance_cents + :delta
       WHERE user_id = :user_id
   RETURNING balance_cents

  The database applies the arithmetic under its own row lock, so N
  concurrent deposits of 1 always end N higher, on SQLite and PostgreSQL
  alike. RETURNING hands back the value this statement produced, not a
  later re-read that another writer may already have changed.

Amounts:
  The public API speaks Decimal with at most two fractional digits. The
  table stores integer cents. to_cents()/from_cents() convert at the edge.

Overdraft:
  Not enforced. A withdrawal larger than the balance succeeds and leaves a
  negative balance.
"""

import uuid
from decimal import Decimal

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from otpbank.exceptions import AccountNotFoundError
from otpbank.models.account import Account

CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> int:
    """Convert a money amount to integer cents. Sub-cent digits are not allowed."""
    cents = amount * 100
    if cents != cents.to_integral_value():
        raise ValueError(f"Amount {amount} has more than two decimal places")
    return int(cents)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents to a two-decimal money amount."""
    return (Decimal(cents) / 100).quantize(CENT)


async def open_account(db: AsyncSession, user_id: uuid.UUID) -> Account:
    """Create the user's account with a zero balance."""
    account = Account(user_id=user_id, balance_cents=0)
    db.add(account)
    await db.flush()
    return account


async def get_balance(db: AsyncSession, user_id: uuid.UUID) -> Decimal:
    """
    Return the user's current balance.

    Raises:
        AccountNotFoundError: If the user has no account.
    """
    result = await db.execute(
        select(Account.balance_cents).where(Account.user_id == user_id)
    )
    balance_cents = result.scalar_one_or_none()

    if balance_cents is None:
        raise AccountNotFoundError()

    return from_cents(balance_cents)


async def apply_delta(
    db: AsyncSession,
    user_id: uuid.UUID,
    signed_amount: Decimal,
) -> Decimal:
    """
    Atomically add `signed_amount` to the user's balance.

    Args:
        db: Database session.
        user_id: Owner of the account.
        signed_amount: Positive to deposit, negative to withdraw.

    Returns:
        The balance produced by this update.

    Raises:
        AccountNotFoundError: If the user has no account.
    """
    delta_cents = to_cents(signed_amount)

    result = await db.execute(
        update(Account)
        .where(Account.user_id == user_id)
        .values(balance_cents=Account.balance_cents + delta_cents)
        .returning(Account.balance_cents)
        .execution_options(synchronize_session=False)
    )
    new_balance_cents = result.scalar_one_or_none()

    if new_balance_cents is None:
        raise AccountNotFoundError()

    return from_cents(new_balance_cents)


async def close_account(db: AsyncSession, user_id: uuid.UUID) -> None:
    """Delete the user's account row."""
    await db.execute(
        delete(Account)
        .where(Account.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
