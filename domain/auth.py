"""Domain Entities - Auth"""
from enum import Enum
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from typing import Optional


class UserRole(str, Enum):
    GUEST = "GUEST"
    HOST = "HOST"
    ADMIN = "ADMIN"


class User(BaseModel):
    """User Entity"""
    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: UserRole = UserRole.GUEST
    disabled: bool = False

    class Config:
        from_attributes = True

    def can_manage(self, host_username: str) -> bool:
        """Hosts manage their own properties; admins manage all"""
        return self.role == UserRole.ADMIN or (
            self.role == UserRole.HOST and self.username == host_username
        )


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str
