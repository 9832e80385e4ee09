import uuid
from sqlalchemy import Column, String, DateTime, DECIMAL, Integer, ForeignKey, Uuid, CheckConstraint
from sqlalchemy.orm import relationship
from moviebooking.db.session import Base

class Showtime(Base):
    __tablename__ = "showtimes"
    __table_args__ = (
        CheckConstraint("available_seats >= 0", name="ck_showtimes_available_seats"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    movie_id = Column(Uuid(as_uuid=True), ForeignKey("movies.id"), nullable=False, index=True)
    cinema_id = Column(Uuid(as_uuid=True), ForeignKey("cinemas.id"), nullable=False, index=True)
    screen_id = Column(String(50), nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=False)
    price = Column(DECIMAL(12, 2), nullable=False)
    format = Column(String(20), nullable=True)  # 2D, 3D, IMAX
    total_seats = Column(Integer, nullable=False, default=0)
    available_seats = Column(Integer, nullable=False, default=0)

    # Relationships
    movie = relationship("Movie", back_populates="showtimes")
    cinema = relationship("Cinema", back_populates="showtimes")
    seats = relationship(
        "Seat",
        back_populates="showtime",
        cascade="all, delete-orphan",
    )
    bookings = relationship("Booking", back_populates="showtime")
