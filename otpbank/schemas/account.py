"""
Pydantic schemas for balance, deposit and withdrawal endpoints.

Amounts are decimals with at most two fractional digits. Balances are
serialized as decimal strings (e.g. "60.00") so no precision is lost in
JSON.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from otpbank.schemas.auth import SessionRequest


class TransactionRequest(SessionRequest):
    """Request body for deposit and withdraw."""
    amount: Decimal = Field(
        ge=0,
        max_digits=15,
        decimal_places=2,
        description="Non-negative amount with at most two decimal places",
    )


class BalanceResponse(BaseModel):
    """Current balance after a read, deposit or withdrawal."""
    balance: Decimal
