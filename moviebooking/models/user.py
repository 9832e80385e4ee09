import uuid
import enum
from sqlalchemy import Column, String, Boolean, DateTime, func, Integer, Uuid, Enum as SAEnum
from moviebooking.db.session import Base

class MembershipLevel(str, enum.Enum):
    BASIC = "BASIC"
    SILVER = "SILVER"
    GOLD = "GOLD"
    DIAMOND = "DIAMOND"
    PREMIUM = "PREMIUM"  # administrative grant only, never derived from points

class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), nullable=False, default="user")  # user, admin
    is_active = Column(Boolean, default=True)
    membership_points = Column(Integer, nullable=False, default=0)
    membership_level = Column(
        SAEnum(MembershipLevel, native_enum=False, length=20),
        nullable=False,
        default=MembershipLevel.BASIC,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
