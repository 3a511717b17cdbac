"""
Pydantic models for user data.

Authentication is deliberately minimal: users register with an e‑mail
and a password and receive a bearer token on login.  The
``is_admin`` flag lets a user update the status of any operation.
"""

from typing import Optional

from pydantic import BaseModel, Field


class UserBase(BaseModel):
    email: str = Field(..., example="conseiller@example.com")
    full_name: Optional[str] = Field(None, example="Marie Durand")


class UserCreate(UserBase):
    """Schema for registering a user."""

    password: str = Field(..., min_length=8, example="strongpassword")


class UserLogin(BaseModel):
    """Credentials exchanged for an access token."""

    email: str
    password: str


class UserRead(UserBase):
    """Schema for reading a user from the API."""

    id: int
    is_admin: bool = False
    disabled: bool = False

    model_config = {
        "from_attributes": True,
    }


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
