from sqlalchemy import Column, String, Integer
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Floor(Base):
    __tablename__ = "floors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(64), nullable=False)
    floor_number = Column(Integer, nullable=False)

    rooms = relationship("Room", back_populates="floor")
