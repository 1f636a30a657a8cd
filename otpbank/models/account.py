"""
Account model — the single money balance owned by a User.

Each user has exactly one account, created with a zero balance in the same
transaction as the user itself. user_id is the primary key, so the
relationship is one-to-one at the database level.

Balance management:
  `balance_cents` stores the balance as a signed integer number of cents
  (e.g., 10.50 = 1050). Deposits and withdrawals change it through a single
  `UPDATE ... SET balance_cents = balance_cents + :delta` statement, so the
  read-modify-write happens inside the database and concurrent updates to
  the same row serialize instead of overwriting each other.

  There is no CHECK constraint on the sign: withdrawals may drive the
  balance below zero.

Why integer cents?
  Floating-point numbers introduce rounding errors in financial arithmetic
  (0.1 + 0.2 != 0.3 in IEEE 754), and SQLite has no exact decimal type.
  Integer cents keep every addition exact; the service layer converts to
  Decimal at its boundary.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from otpbank.database import Base


class Account(Base):
    __tablename__ = "accounts"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        primary_key=True,
    )

    # Signed balance in cents
    balance_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
