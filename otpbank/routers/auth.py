"""
Authentication router — registration, login/logout and credential changes.

Endpoints:
  POST   /users            — Register a new user (and their account)
  POST   /login            — Check the password and get a one-time code
  DELETE /logout           — End the session named by (username, otp)
  PUT    /update-password  — Replace the password, given the current one
  DELETE /delete-user      — Delete user, session and account

Security audit notes:
  - Plaintext passwords exist only in memory during request processing;
    they are hashed before any database operation and never logged.
  - One-time codes appear only in the login response body and in the
    sessions table. Nothing logs them.
  - No request body logging middleware is installed.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from otpbank.database import get_db
from otpbank.schemas.auth import (
    DeleteUserRequest,
    LoginRequest,
    MessageResponse,
    OtpResponse,
    RegisterRequest,
    SessionRequest,
    UpdatePasswordRequest,
)
from otpbank.services import gateway

router = APIRouter()


@router.post(
    "/users",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new user.

    Creates the user and a zero-balance account in a single transaction.
    The user must log in afterwards to get a one-time code.
    """
    await gateway.register(db=db, username=request.username, password=request.password)
    await db.commit()
    return MessageResponse(message="User created")


@router.post(
    "/login",
    response_model=OtpResponse,
    summary="Authenticate and get a one-time code",
)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with username and password.

    Returns a one-time code that must accompany the username on every
    account call until logout. Logging in again replaces the code.
    """
    otp = await gateway.login(db=db, username=request.username, password=request.password)
    await db.commit()
    return OtpResponse(otp=otp)


@router.delete(
    "/logout",
    response_model=MessageResponse,
    summary="End the current session",
)
async def logout(
    request: SessionRequest,
    db: AsyncSession = Depends(get_db),
):
    """Invalidate the one-time code. Fails with 404 if it isn't the live one."""
    await gateway.logout(db=db, username=request.username, otp=request.otp)
    await db.commit()
    return MessageResponse(message="Logout successful")


@router.put(
    "/update-password",
    response_model=MessageResponse,
    summary="Change the password",
)
async def update_password(
    request: UpdatePasswordRequest,
    db: AsyncSession = Depends(get_db),
):
    """Replace the password. The current password is required; a session is not."""
    await gateway.update_password(
        db=db,
        username=request.username,
        password=request.password,
        new_password=request.new_password,
    )
    await db.commit()
    return MessageResponse(message="Password updated")


@router.delete(
    "/delete-user",
    response_model=MessageResponse,
    summary="Delete the user and their account",
)
async def delete_user(
    request: DeleteUserRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Permanently delete the user, their session and their account.

    Requires both the password and the live one-time code.
    """
    await gateway.delete_user(
        db=db,
        username=request.username,
        password=request.password,
        otp=request.otp,
    )
    await db.commit()
    return MessageResponse(message="User deleted")
