"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Database.create_all() sees every table on Base.metadata
  2. Other modules can import from otpbank.models directly
"""

from otpbank.models.user import User  # noqa: F401
from otpbank.models.session import LoginSession  # noqa: F401
from otpbank.models.account import Account  # noqa: F401
