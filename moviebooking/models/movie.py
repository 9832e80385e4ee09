import uuid
from sqlalchemy import Column, String, Boolean, DateTime, func, Text, DECIMAL, Integer, Uuid
from sqlalchemy.orm import relationship
from moviebooking.db.session import Base

class Movie(Base):
    __tablename__ = "movies"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    overview = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    genres = Column(Text, nullable=True)  # comma separated
    rating = Column(DECIMAL(3, 1), default=0.0)
    is_now_showing = Column(Boolean, default=False, index=True)
    is_coming_soon = Column(Boolean, default=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    showtimes = relationship("Showtime", back_populates="movie")
