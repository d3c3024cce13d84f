from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, Text, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_code = Column(String(32), unique=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100))
    email = Column(String(200))
    phone = Column(String(32))
    nationality = Column(String(64))
    identity_type = Column(String(32))
    identity_number = Column(String(64))
    gender = Column(String(16))
    date_of_birth = Column(Date)
    address = Column(Text)
    occupation = Column(String(100))
    is_vip = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    reservations = relationship("Reservation", back_populates="customer")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
