"""
LoginSession model — the single live authorization record for a user.

A row binds a user to the one-time code issued at their latest login.
Every authenticated call must present a (username, otp) pair that matches
a row here exactly.

One session per user:
  user_id is the primary key, so the table can never hold two rows for the
  same user. Logging in again deletes the old row before inserting the new
  one, which invalidates the previous code.

Expiry:
  Rows are not checked against a TTL on read. The session reaper deletes
  rows whose created_at is older than SESSION_TTL_MINUTES, so a session
  stays valid until it is superseded, logged out, or swept.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from otpbank.database import Base


class LoginSession(Base):
    __tablename__ = "sessions"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        primary_key=True,
    )

    # Fixed-width numeric code, stored as text to keep leading zeros
    otp: Mapped[str] = mapped_column(
        String(12),
        nullable=False,
    )

    # Indexed: the reaper deletes by created_at range
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
