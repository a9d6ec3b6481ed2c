"""Authentication schemas."""

from pydantic import BaseModel, ConfigDict, Field


class UserRegister(BaseModel):
    """User registration request.

    Fields default to empty so that missing values reach the ordered
    validation rules and produce a form message instead of a 422.
    """

    name: str = Field("", max_length=255)
    username: str = Field("", max_length=255)
    email: str = Field("", max_length=255)
    password: str = Field("", max_length=128)
    repeat_password: str = Field("", max_length=128)


class UserLogin(BaseModel):
    """User login request. ``identifier`` is an email or a username."""

    identifier: str = Field("", max_length=255)
    password: str = Field("", max_length=128)


class UserResponse(BaseModel):
    """Public projection of a user. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    username: str
    email: str


class AuthResponse(BaseModel):
    """Authentication response with token and user info."""

    message: str = ""
    alert: str = ""
    token: str
    token_type: str = "bearer"  # noqa: S105
    user: UserResponse


class SignupAlert(BaseModel):
    """Inline form error returned by registration."""

    message: str
    alert: str = "error"
    email: str = ""


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
