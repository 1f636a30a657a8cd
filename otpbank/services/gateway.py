"""
Auth gateway — the single entry point for every user-facing operation.

Routers call these functions and translate the results into HTTP
responses. The gateway composes the credential, session and ledger
services and decides which checks each operation needs:

  register         — none (creates User + Account together)
  login            — password
  update_password  — user exists, old password
  logout           — user exists, session matches
  get_balance      — user exists, session matches
  deposit/withdraw — user exists, session matches
  delete_user      — user exists, password AND session match

Session-gated operations always run in this order:
  1. resolve username -> User            (UserNotFoundError)
  2. validate (user.id, otp)             (InvalidSessionError)
  3. only then touch the ledger or credentials

Every function runs inside the request's database transaction (see
get_db), so multi-row changes such as register and delete_user are
all-or-nothing.
"""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from otpbank.exceptions import (
    InvalidCredentialsError,
    InvalidSessionError,
    UserNotFoundError,
)
from otpbank.models.user import User
from otpbank.security import verify_password
from otpbank.services import credential_service, ledger_service, session_service

logger = logging.getLogger(__name__)


async def resolve_user(db: AsyncSession, username: str) -> User:
    """
    Look up a user by username.

    Raises:
        UserNotFoundError: If no such user exists.
    """
    user = await credential_service.get_by_username(db, username)
    if user is None:
        raise UserNotFoundError()
    return user


async def authenticate_session(db: AsyncSession, username: str, otp: str) -> User:
    """
    Resolve the user and check that (user, otp) names their live session.

    Raises:
        UserNotFoundError: If the username doesn't exist.
        InvalidSessionError: If the code is wrong, superseded, logged out or reaped.
    """
    user = await resolve_user(db, username)
    if not await session_service.validate(db, user.id, otp):
        raise InvalidSessionError()
    return user


async def register(db: AsyncSession, username: str, password: str) -> User:
    """
    Create a user and their zero-balance account in one transaction.

    Raises:
        DuplicateUsernameError: If the username is taken.
    """
    user = await credential_service.create(db, username, password)
    await ledger_service.open_account(db, user.id)
    return user


async def login(db: AsyncSession, username: str, password: str) -> str:
    """
    Check the password and start a new session.

    Any session the user already had is replaced, so its code stops working.

    Returns:
        The new one-time code.

    Raises:
        InvalidCredentialsError: If the username or password is wrong.
    """
    try:
        user = await credential_service.verify(db, username, password)
    except InvalidCredentialsError:
        logger.info("Login failed for %s", username)
        raise

    session = await session_service.login(db, user.id)
    logger.info("Login successful: %s", username)
    return session.otp


async def update_password(
    db: AsyncSession,
    username: str,
    password: str,
    new_password: str,
) -> None:
    """
    Replace a user's password after checking the current one.

    No session is required; knowing the current password is the proof.

    Raises:
        UserNotFoundError: If the username doesn't exist.
        InvalidCredentialsError: If `password` is wrong.
    """
    user = await resolve_user(db, username)
    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()

    await credential_service.set_password(db, user, new_password)
    logger.info("Password updated: %s", username)


async def delete_user(db: AsyncSession, username: str, password: str, otp: str) -> None:
    """
    Permanently delete a user, their session and their account.

    Deletion is irreversible, so both the password and a live session are
    required. The three deletes share the request transaction: if any of
    them fails, none is kept.

    Raises:
        UserNotFoundError: If the username doesn't exist.
        InvalidCredentialsError: If the password is wrong.
        InvalidSessionError: If (user, otp) is not the live session.
    """
    user = await resolve_user(db, username)
    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()
    if not await session_service.validate(db, user.id, otp):
        raise InvalidSessionError()

    # Children first so the foreign keys are never left dangling
    await session_service.terminate_all(db, user.id)
    await ledger_service.close_account(db, user.id)
    await credential_service.delete_credentials(db, user.id)
    logger.info("User deleted: %s", username)


async def logout(db: AsyncSession, username: str, otp: str) -> None:
    """
    End the user's session.

    Raises:
        UserNotFoundError: If the username doesn't exist.
        InvalidSessionError: If (user, otp) matched no session.
    """
    user = await resolve_user(db, username)
    if not await session_service.terminate(db, user.id, otp):
        raise InvalidSessionError()
    logger.info("Logout successful: %s", username)


async def get_balance(db: AsyncSession, username: str, otp: str) -> Decimal:
    """Return the balance of an authenticated user."""
    user = await authenticate_session(db, username, otp)
    return await ledger_service.get_balance(db, user.id)


async def deposit(db: AsyncSession, username: str, otp: str, amount: Decimal) -> Decimal:
    """Add a non-negative amount to the balance and return the new balance."""
    user = await authenticate_session(db, username, otp)
    return await ledger_service.apply_delta(db, user.id, amount)


async def withdraw(db: AsyncSession, username: str, otp: str, amount: Decimal) -> Decimal:
    """Subtract a non-negative amount from the balance and return the new balance."""
    user = await authenticate_session(db, username, otp)
    return await ledger_service.apply_delta(db, user.id, -amount)
