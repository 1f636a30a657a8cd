"""
User model — the authentication identity.

Each User is a login credential: a unique username plus a password hash.
A User owns exactly one Account (created alongside it at registration) and
at most one live LoginSession.

The password is stored as an Argon2id hash, never in plaintext.

Deletion:
  No ORM cascades are configured. Deleting a user is a three-row operation
  (session, account, user) that the gateway performs explicitly inside one
  database transaction.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from otpbank.database import Base


class User(Base):
    __tablename__ = "users"

    # Primary key: UUID provides globally unique IDs without sequential guessing
    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Username is the login identifier — must be unique and indexed for fast lookups
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )

    # Argon2id hash of the password (never store plaintext!)
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
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
