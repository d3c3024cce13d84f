from sqlalchemy import Column, String, Integer, Numeric, DateTime, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class RoomClass(Base):
    __tablename__ = "room_classes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=False, unique=True)
    rate_per_night = Column(Numeric(12, 2), nullable=False)
    rate_day_use = Column(Numeric(12, 2))
    hourly_rate = Column(Numeric(12, 2))
    max_occupancy = Column(Integer, default=2)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    rooms = relationship("Room", back_populates="room_class")
    reservations = relationship("Reservation", back_populates="room_class")
