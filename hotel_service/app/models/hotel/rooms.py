from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship

from shared.core.database import Base
from ...enum.reservation_enum import RoomStatus


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_number = Column(String(16), nullable=False, unique=True)
    status = Column(String(24), nullable=False, default=RoomStatus.AVAILABLE.value)
    room_class_id = Column(Integer, ForeignKey("room_classes.id"), nullable=False)
    floor_id = Column(Integer, ForeignKey("floors.id", ondelete="SET NULL"))
    has_balcony = Column(Boolean, default=False)
    has_sea_view = Column(Boolean, default=False)
    has_kitchenette = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    room_class = relationship("RoomClass", back_populates="rooms")
    floor = relationship("Floor", back_populates="rooms")
    reservations = relationship("Reservation", back_populates="room")
