"""
Custom exception classes and FastAPI exception handlers.

Why custom exceptions?
  The service layer raises domain-specific errors (like InvalidSessionError)
  without importing HTTP concepts. The handler layer then translates them
  into HTTP responses with a stable shape: {"detail": ..., "error_type": ...}.

  Messages are deliberately generic. A client must not be able to tell
  "unknown user" from "wrong password", and store failures never expose
  driver error text.

Exception hierarchy:
    BankAPIError (base)
    ├── NotFoundError                 — 404
    │   ├── UserNotFoundError         — username doesn't resolve to a user
    │   └── AccountNotFoundError      — user has no account row
    ├── UnauthorizedError             — 401
    │   ├── InvalidCredentialsError   — bad username/password pair
    │   └── InvalidSessionError       — no session matches (user, otp); 404 on the wire
    ├── ConflictError                 — 409
    │   └── DuplicateUsernameError    — registering a taken username
    └── StoreUnavailableError         — 503, transient, safe to retry
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class BankAPIError(Exception):
    """Base exception for all OTP Bank API domain errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Taxonomy
# ---------------------------------------------------------------------------

class NotFoundError(BankAPIError):
    """A referenced user or account does not exist."""


class UnauthorizedError(BankAPIError):
    """The caller failed a password or session check."""


class ConflictError(BankAPIError):
    """The request collides with existing state."""


class StoreUnavailableError(BankAPIError):
    """
    The persistence layer failed transiently.

    Always retryable from the client's point of view. The original driver
    exception is chained as __cause__ for the logs, never sent to the client.
    """

    def __init__(self):
        super().__init__("Service temporarily unavailable, please retry")


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class UserNotFoundError(NotFoundError):
    """Raised when a username does not resolve to a user."""

    def __init__(self):
        super().__init__("User not found")


class AccountNotFoundError(NotFoundError):
    """Raised when a user has no account row."""

    def __init__(self):
        super().__init__("Account not found")


class InvalidCredentialsError(UnauthorizedError):
    """Raised when a username/password pair is wrong, whichever half failed."""

    def __init__(self):
        super().__init__("Invalid username or password")


class InvalidSessionError(UnauthorizedError):
    """Raised when no live session matches the supplied (user, otp) pair."""

    def __init__(self):
        super().__init__("Invalid session or OTP")


class DuplicateUsernameError(ConflictError):
    """Raised when attempting to register a username that's already in use."""

    def __init__(self):
        super().__init__("Username is already registered")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Starlette resolves handlers along the exception's MRO, so the most
    specific handler wins (InvalidSessionError before UnauthorizedError).

    This is called once from create_app() in main.py.
    """

    @app.exception_handler(NotFoundError)
    async def not_found_handler(
        request: Request, exc: NotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"detail": exc.detail, "error_type": "not_found"},
        )

    @app.exception_handler(UnauthorizedError)
    async def unauthorized_handler(
        request: Request, exc: UnauthorizedError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"detail": exc.detail, "error_type": "invalid_credentials"},
        )

    @app.exception_handler(InvalidSessionError)
    async def invalid_session_handler(
        request: Request, exc: InvalidSessionError
    ) -> JSONResponse:
        # Session-gated endpoints answer 404 so a probe can't tell a missing
        # session apart from a missing user.
        return JSONResponse(
            status_code=404,
            content={"detail": exc.detail, "error_type": "invalid_session"},
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(
        request: Request, exc: ConflictError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,  # Conflict — the resource already exists
            content={"detail": exc.detail, "error_type": "conflict"},
        )

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(
        request: Request, exc: StoreUnavailableError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content={"detail": exc.detail, "error_type": "store_unavailable"},
            headers={"Retry-After": "1"},
        )
