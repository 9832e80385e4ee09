import uuid
import enum
from sqlalchemy import Column, String, Boolean, Integer, ForeignKey, Uuid, UniqueConstraint, Enum as SAEnum
from sqlalchemy.orm import relationship
from moviebooking.db.session import Base

class SeatType(str, enum.Enum):
    STANDARD = "STANDARD"
    PREMIUM = "PREMIUM"
    VIP = "VIP"
    COUPLE = "COUPLE"

class Seat(Base):
    """One seat of one showtime. Availability is only ever changed by a conditional update."""

    __tablename__ = "seats"
    __table_args__ = (
        UniqueConstraint("showtime_id", "row_label", "seat_number", name="uq_seats_showtime_position"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    showtime_id = Column(Uuid(as_uuid=True), ForeignKey("showtimes.id"), nullable=False, index=True)
    row_label = Column(String(5), nullable=False)
    seat_number = Column(Integer, nullable=False)
    seat_type = Column(SAEnum(SeatType, native_enum=False, length=20), nullable=False, default=SeatType.STANDARD)
    is_available = Column(Boolean, nullable=False, default=True, index=True)
    held_by_booking_id = Column(Uuid(as_uuid=True), ForeignKey("bookings.id"), nullable=True, index=True)

    showtime = relationship("Showtime", back_populates="seats")

    @property
    def label(self) -> str:
        return f"{self.row_label}{self.seat_number}"
