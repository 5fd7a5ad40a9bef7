"""Pydantic schemas for user records.

UserRead never includes the password hash. Two update bodies exist:
ProfileUpdate for the self-service path (no role field at all) and
UserUpdate for admins.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from taskhub.schemas.common import Pagination
from taskhub.services.user_service import UserChanges

Role = Literal["user", "admin"]

USERNAME_PATTERN = r"^[A-Za-z0-9_]+$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserRead(BaseModel):
    id: int
    username: str
    email: str
    role: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    """Self-service update: username and email only."""
    username: Optional[str] = Field(
        None, min_length=3, max_length=50, pattern=USERNAME_PATTERN
    )
    email: Optional[str] = Field(None, max_length=100, pattern=EMAIL_PATTERN)

    model_config = {"extra": "forbid", "str_strip_whitespace": True}

    def to_changes(self) -> UserChanges:
        return UserChanges(username=self.username, email=self.email)


class UserUpdate(ProfileUpdate):
    """Admin update: may also change the role."""
    role: Optional[Role] = None

    def to_changes(self) -> UserChanges:
        return UserChanges(username=self.username, email=self.email, role=self.role)


class UserList(BaseModel):
    users: list[UserRead]
    pagination: Pagination
