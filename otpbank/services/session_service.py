"""
Session service — issuing, checking and expiring one-time-code sessions.

Per-user state machine:

    NoSession --login--> Active --terminate / purge--> NoSession
                  ^         |
                  +-login---+   (a new login supersedes the old code)

Single session per user:
  sessions.user_id is the primary key and login() writes the row with one
  INSERT ... ON CONFLICT (user_id) DO UPDATE, so at most one code is ever
  valid for a user. Two logins racing for the same user both succeed and
  the later write wins; neither sees a key violation.

Expiry is eventual:
  validate() only checks that a (user_id, otp) row exists. It does not look
  at created_at. Rows older than the TTL are removed by purge_expired(),
  which the session reaper calls on a timer, so a session can outlive its
  TTL by up to one sweep interval.
"""

import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from otpbank.config import settings
from otpbank.models.session import LoginSession
from otpbank.security import generate_otp

# Dialect INSERT constructs that support ON CONFLICT ... DO UPDATE
_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


async def login(db: AsyncSession, user_id: uuid.UUID) -> LoginSession:
    """
    Start a fresh session for a user, replacing any existing one.

    The returned session's `otp` is meant to be handed to the user; it is
    the only copy outside the database.
    """
    insert = _UPSERT_INSERTS[db.bind.dialect.name]
    stmt = insert(LoginSession).values(
        user_id=user_id,
        otp=generate_otp(settings.OTP_LENGTH),
        created_at=datetime.now(timezone.utc),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[LoginSession.user_id],
        set_={"otp": stmt.excluded.otp, "created_at": stmt.excluded.created_at},
    ).returning(LoginSession)

    # populate_existing: a row already in the identity map takes the new code
    result = await db.scalars(stmt, execution_options={"populate_existing": True})
    return result.one()


async def validate(db: AsyncSession, user_id: uuid.UUID, otp: str) -> bool:
    """True iff a session row exists for exactly this (user_id, otp)."""
    result = await db.execute(
        select(LoginSession.user_id)
        .where(LoginSession.user_id == user_id)
        .where(LoginSession.otp == otp)
    )
    return result.scalar_one_or_none() is not None


async def terminate(db: AsyncSession, user_id: uuid.UUID, otp: str) -> bool:
    """
    End a session if (user_id, otp) matches.

    Returns:
        True if a row was removed, False if nothing matched.
    """
    result = await db.execute(
        delete(LoginSession)
        .where(LoginSession.user_id == user_id)
        .where(LoginSession.otp == otp)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


async def terminate_all(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Remove every session row for a user. Returns the number removed."""
    result = await db.execute(
        delete(LoginSession)
        .where(LoginSession.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def purge_expired(
    db: AsyncSession,
    ttl: timedelta,
    now: datetime | None = None,
) -> int:
    """
    Delete every session created more than `ttl` before `now`.

    Args:
        db: Database session.
        ttl: Maximum session age.
        now: Reference time; defaults to the current UTC time.

    Returns:
        The number of sessions removed.
    """
    cutoff = (now or datetime.now(timezone.utc)) - ttl
    result = await db.execute(
        delete(LoginSession)
        .where(LoginSession.created_at < cutoff)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
