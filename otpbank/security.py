"""
Security utilities: password hashing and one-time codes.

This module centralizes all cryptographic operations so they're easy to
audit and update. Two concerns are handled here:

1. PASSWORD HASHING (Argon2)
   - Passwords are never stored in plaintext
   - Argon2id is memory-hard and time-hard, with a per-hash random salt
     and a fixed cost configured once in the CryptContext below
   - We use passlib's CryptContext for safe, high-level Argon2 operations

2. ONE-TIME CODES
   - Issued at login and required alongside the username afterwards
   - Drawn from the `secrets` module (the OS CSPRNG), never from `random`,
     so codes can't be predicted from earlier ones
"""

import secrets

from passlib.context import CryptContext


# ---------------------------------------------------------------------------
# 1. Password Hashing (Argon2)
# ---------------------------------------------------------------------------

# "argon2" is the active scheme. If it's ever replaced, passlib keeps
# verifying old hashes with their original scheme ("deprecated='auto'").
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """
    Hash a plaintext password using Argon2id.

    Args:
        plain_password: The user's raw password input.

    Returns:
        An Argon2 hash string (e.g., "$argon2id$v=19$m=65536,t=3,p=4$...").
    """
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plaintext password against a stored Argon2 hash.

    Args:
        plain_password: The password the user just typed.
        hashed_password: The hash stored in the database.

    Returns:
        True if the password matches, False otherwise.
    """
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> bool:
    """
    Burn the same time as a real verification, against no hash.

    Called when the username doesn't exist, so "unknown user" and "wrong
    password" take equally long. Always returns False.
    """
    return pwd_context.dummy_verify()


# ---------------------------------------------------------------------------
# 2. One-Time Codes
# ---------------------------------------------------------------------------


def generate_otp(length: int = 6) -> str:
    """
    Generate a fixed-width numeric one-time code.

    Every code in ["000000", "999999"] (for length 6) is equally likely.
    Leading zeros are kept so the width never varies.
    """
    return f"{secrets.randbelow(10 ** length):0{length}d}"
