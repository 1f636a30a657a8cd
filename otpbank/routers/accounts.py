"""
Accounts router — balance reads and deposits/withdrawals.

Every endpoint takes the username and the live one-time code in the body;
the gateway rejects the call before touching the balance if they don't
match a session.

Endpoints:
  POST /me/account                        — Current balance
  POST /me/account/transaction/deposit    — Add money, returns new balance
  POST /me/account/transaction/withdraw   — Remove money, returns new balance
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from otpbank.database import get_db
from otpbank.schemas.account import BalanceResponse, TransactionRequest
from otpbank.schemas.auth import SessionRequest
from otpbank.services import gateway

router = APIRouter()


@router.post(
    "",
    response_model=BalanceResponse,
    summary="Get the account balance",
)
async def get_balance(
    request: SessionRequest,
    db: AsyncSession = Depends(get_db),
):
    """Return the current balance."""
    balance = await gateway.get_balance(db=db, username=request.username, otp=request.otp)
    return BalanceResponse(balance=balance)


@router.post(
    "/transaction/deposit",
    response_model=BalanceResponse,
    summary="Deposit money",
)
async def deposit(
    request: TransactionRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Add `amount` to the balance.

    The addition is applied atomically in the database, so concurrent
    deposits are never lost. Deposits are not idempotent: retrying a
    request that timed out may apply it twice.
    """
    balance = await gateway.deposit(
        db=db,
        username=request.username,
        otp=request.otp,
        amount=request.amount,
    )
    await db.commit()
    return BalanceResponse(balance=balance)


@router.post(
    "/transaction/withdraw",
    response_model=BalanceResponse,
    summary="Withdraw money",
)
async def withdraw(
    request: TransactionRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Subtract `amount` from the balance.

    There is no overdraft check; the balance may become negative.
    """
    balance = await gateway.withdraw(
        db=db,
        username=request.username,
        otp=request.otp,
        amount=request.amount,
    )
    await db.commit()
    return BalanceResponse(balance=balance)
