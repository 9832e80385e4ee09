from typing import Optional
from pydantic import BaseModel, EmailStr, UUID4
from decimal import Decimal
from datetime import datetime

from moviebooking.models.user import MembershipLevel


# Shared properties
class UserBase(BaseModel):
    email: EmailStr
    full_name: str
    phone: Optional[str] = None


# Properties to receive via API on creation (POST /admin/users)
class UserCreate(UserBase):
    role: str = "user"
    membership_points: int = 0


class User(UserBase):
    id: UUID4
    role: str
    is_active: bool
    membership_points: int
    membership_level: MembershipLevel
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Compact user for nested responses (admin booking view)
class UserSummary(BaseModel):
    id: UUID4
    full_name: str
    email: str

    class Config:
        from_attributes = True


# GET /me/membership
class MembershipInfo(BaseModel):
    points: int
    level: MembershipLevel
    is_unlimited: bool
    next_level_points: Optional[int] = None
    points_to_next_level: Optional[int] = None
    discount_rate: Decimal
