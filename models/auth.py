"""
Auth models.
"""

from typing import Optional
from pydantic import Field

from models.base import BaseSchema


class Credentials(BaseSchema):
    """Email/password pair."""

    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=6, max_length=256)


class AuthSession(BaseSchema):
    """Signed-in user and the tokens to send with later requests."""

    user_id: str
    email: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
