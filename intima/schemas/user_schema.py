from pydantic import EmailStr, Field
from typing import Optional
from datetime import datetime
from intima.models.enums import UserRole
from intima.schemas.base_schema import CamelModel


class UserBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    role: UserRole
    affiliates: list[str] = []
    permissions: list[str] = []


class UserCreate(UserBase):
    id: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)


class UserUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    affiliates: Optional[list[str]] = None
    permissions: Optional[list[str]] = None
    password: Optional[str] = None
    new_id: Optional[str] = Field(None, min_length=1, max_length=50)


class UserRead(UserBase):
    id: str
    created_at: datetime
    updated_at: datetime


class UserSummary(CamelModel):
    id: str
    name: str
    email: str
    role: UserRole
