from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional

USERNAME_PATTERN = r"^[A-Za-z0-9_.]{3,30}$"


class UserCreate(BaseModel):
    username: str = Field(..., pattern=USERNAME_PATTERN)
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6, max_length=128)


class UserBrief(BaseModel):
    username: str
    full_name: str
    avatar: Optional[str] = None

    class Config:
        from_attributes = True


class UserOut(BaseModel):
    username: str
    full_name: str
    bio: Optional[str] = None
    avatar: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6, max_length=128)
