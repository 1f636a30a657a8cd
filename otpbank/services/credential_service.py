"""
Credential service — the username → password-hash store.

This module owns the users table: creating users, looking them up,
checking passwords, replacing hashes and deleting rows. It knows nothing
about sessions or balances; the gateway composes it with those services.

Security notes:
  - Passwords are hashed before storage and are never logged
  - verify() raises the same error for "unknown username" and "wrong
    password", and burns a dummy hash check in the first case so both
    failures take the same time (no user enumeration)
"""

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from otpbank.exceptions import DuplicateUsernameError, InvalidCredentialsError
from otpbank.models.user import User
from otpbank.security import dummy_verify, hash_password, verify_password

logger = logging.getLogger(__name__)


async def get_by_username(db: AsyncSession, username: str) -> User | None:
    """Return the user with this username, or None."""
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def create(db: AsyncSession, username: str, password: str) -> User:
    """
    Create a new user with a hashed password.

    Args:
        db: Database session.
        username: Must be unique.
        password: Plaintext password (hashed before it touches the session).

    Returns:
        The new User, flushed so its id is assigned.

    Raises:
        DuplicateUsernameError: If the username is taken, including when a
            concurrent registration inserts it between our check and flush.
    """
    if await get_by_username(db, username) is not None:
        raise DuplicateUsernameError()

    user = User(username=username, password_hash=hash_password(password))
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        raise DuplicateUsernameError() from None

    logger.info("User created: %s", username)
    return user


async def verify(db: AsyncSession, username: str, password: str) -> User:
    """
    Authenticate a username/password pair.

    Raises:
        InvalidCredentialsError: If the username doesn't exist or the
            password is wrong. The two cases are indistinguishable.
    """
    user = await get_by_username(db, username)

    if user is None:
        dummy_verify()
        raise InvalidCredentialsError()

    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()

    return user


async def set_password(db: AsyncSession, user: User, new_password: str) -> None:
    """Re-hash and overwrite the user's password."""
    user.password_hash = hash_password(new_password)
    await db.flush()


async def delete_credentials(db: AsyncSession, user_id: uuid.UUID) -> None:
    """Delete the credential row. Sessions and the account are the caller's job."""
    await db.execute(
        delete(User)
        .where(User.id == user_id)
        .execution_options(synchronize_session=False)
    )
