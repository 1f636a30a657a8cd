"""
Pydantic schemas for user and session endpoints.

These schemas define the request/response contracts for registration,
login, logout, password change and user deletion. Pydantic validates
incoming data automatically — if a required field is missing or the wrong
type, FastAPI returns a 422 error before our code even runs.
"""

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Request body for POST /users."""
    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1)


class LoginRequest(BaseModel):
    """Request body for POST /login."""
    username: str
    password: str


class OtpResponse(BaseModel):
    """Response body for a successful login — the one-time code."""
    otp: str


class UpdatePasswordRequest(BaseModel):
    """Request body for PUT /update-password."""
    model_config = ConfigDict(populate_by_name=True)

    username: str
    password: str
    new_password: str = Field(alias="newPassword", min_length=1)


class SessionRequest(BaseModel):
    """A username and the one-time code of their live session."""
    # The code is numeric, so clients may send it as a JSON number
    model_config = ConfigDict(coerce_numbers_to_str=True)

    username: str
    otp: str


class DeleteUserRequest(SessionRequest):
    """Request body for DELETE /delete-user — password and session both required."""
    password: str


class MessageResponse(BaseModel):
    """Acknowledgement for operations with nothing else to return."""
    message: str
