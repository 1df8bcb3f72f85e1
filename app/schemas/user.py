from pydantic import BaseModel, EmailStr, ConfigDict
from typing import Optional
from datetime import datetime

from app.core.constants import RoleEnum

class UserBase(BaseModel):
    name: str
    email: EmailStr

class UserCreate(UserBase):
    role: RoleEnum = RoleEnum.USER
    phone: Optional[str] = None

class User(UserBase):
    """Main user schema for reading user data."""
    id: int
    role: RoleEnum
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)

class UserContext(BaseModel):
    """The authenticated caller: identity plus role."""
    user: User
    role: RoleEnum
    model_config = ConfigDict(from_attributes=True)

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.ADMIN
