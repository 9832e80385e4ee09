import uuid
import enum
from sqlalchemy import Column, String, DateTime, func, DECIMAL, Integer, ForeignKey, Text, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship
from moviebooking.db.session import Base

class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"

class PaymentMethod(str, enum.Enum):
    CREDIT_CARD = "CREDIT_CARD"
    MOBILE_PAYMENT = "MOBILE_PAYMENT"
    BANK_TRANSFER = "BANK_TRANSFER"

class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    booking_number = Column(String(20), unique=True, nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    showtime_id = Column(Uuid(as_uuid=True), ForeignKey("showtimes.id"), nullable=False, index=True)
    movie_id = Column(Uuid(as_uuid=True), ForeignKey("movies.id"), nullable=False)
    cinema_id = Column(Uuid(as_uuid=True), ForeignKey("cinemas.id"), nullable=False)
    subtotal_amount = Column(DECIMAL(12, 2), nullable=False)
    discount_amount = Column(DECIMAL(12, 2), nullable=False, default=0)
    total_amount = Column(DECIMAL(12, 2), nullable=False)
    status = Column(
        SAEnum(BookingStatus, native_enum=False, length=20),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )
    payment_method = Column(SAEnum(PaymentMethod, native_enum=False, length=20), nullable=False)
    payment_reference = Column(String(100), nullable=True)
    points_earned = Column(Integer, nullable=False, default=0)
    booking_date = Column(DateTime(timezone=True), server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)  # PENDING reclaim deadline
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancel_reason = Column(Text, nullable=True)

    # Relationships
    user = relationship("User")
    showtime = relationship("Showtime", back_populates="bookings")
    movie = relationship("Movie")
    cinema = relationship("Cinema")
    seats = relationship(
        "BookingSeat",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingSeat.position",
    )

    @property
    def seat_ids(self):
        return [bs.seat_id for bs in self.seats]

class BookingSeat(Base):
    __tablename__ = "booking_seats"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    booking_id = Column(Uuid(as_uuid=True), ForeignKey("bookings.id"), nullable=False, index=True)
    seat_id = Column(Uuid(as_uuid=True), ForeignKey("seats.id"), nullable=False)
    position = Column(Integer, nullable=False)  # order the seats were selected in

    booking = relationship("Booking", back_populates="seats")
    seat = relationship("Seat")
