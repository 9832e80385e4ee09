import uuid
from sqlalchemy import Column, String, DateTime, func, Text, Integer, Uuid
from sqlalchemy.orm import relationship
from moviebooking.db.session import Base

class Cinema(Base):
    __tablename__ = "cinemas"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=False, index=True)
    number_of_screens = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    showtimes = relationship("Showtime", back_populates="cinema")
