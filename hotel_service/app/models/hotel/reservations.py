from sqlalchemy import (
    DDL, CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, event, func
)
from sqlalchemy.orm import relationship

from shared.core.database import Base
from ...enum.reservation_enum import BillingType, PaymentStatus, ReservationStatus

OVERLAP_CONSTRAINT_NAME = "reservations_room_no_overlap"


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("check_in_date < check_out_date", name="reservations_date_order"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_number = Column(String(32), nullable=False, unique=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    room_class_id = Column(Integer, ForeignKey("room_classes.id"), nullable=False)

    check_in_date = Column(DateTime, nullable=False)
    check_out_date = Column(DateTime, nullable=False)
    check_in_time = Column(String(8))
    check_out_time = Column(String(8))
    actual_check_in = Column(DateTime)
    actual_check_out = Column(DateTime)
    number_of_nights = Column(Integer, nullable=False, default=1)

    adults = Column(Integer, default=1)
    children = Column(Integer, default=0)
    infants = Column(Integer, default=0)
    booking_type = Column(String(32))
    purpose_of_visit = Column(String(128))
    arrival_from = Column(String(128))
    special_requests = Column(Text)
    remarks = Column(Text)
    billing_type = Column(String(16), default=BillingType.NIGHT_STAY.value)

    base_room_rate = Column(Numeric(12, 2), nullable=False, default=0)
    total_room_charge = Column(Numeric(12, 2), nullable=False, default=0)
    extra_charges = Column(Numeric(12, 2), nullable=False, default=0)
    discount_type = Column(String(16))
    discount_value = Column(Numeric(12, 2), nullable=False, default=0)
    discount_reason = Column(String(255))
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    service_charge = Column(Numeric(12, 2), nullable=False, default=0)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    advance_amount = Column(Numeric(12, 2), nullable=False, default=0)
    balance_amount = Column(Numeric(12, 2), nullable=False, default=0)
    payment_method = Column(String(24))
    payment_status = Column(String(16), nullable=False, default=PaymentStatus.PENDING.value)
    advance_remarks = Column(Text)

    reservation_status = Column(
        String(16), nullable=False, default=ReservationStatus.CONFIRMED.value, index=True)
    cancellation_reason = Column(Text)
    cancellation_date = Column(DateTime)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    customer = relationship("Customer", back_populates="reservations")
    room = relationship("Room", back_populates="reservations")
    room_class = relationship("RoomClass", back_populates="reservations")

    @property
    def guest_count(self) -> int:
        return (self.adults or 0) + (self.children or 0) + (self.infants or 0)


# Postgres only: no two active stays may share a room over overlapping [check_in, check_out)
event.listen(
    Reservation.__table__,
    "after_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Reservation.__table__,
    "after_create",
    DDL(
        f"ALTER TABLE reservations ADD CONSTRAINT {OVERLAP_CONSTRAINT_NAME} "
        "EXCLUDE USING gist (room_id WITH =, tsrange(check_in_date, check_out_date, '[)') WITH &&) "
        f"WHERE (reservation_status IN ('{ReservationStatus.CONFIRMED.value}', "
        f"'{ReservationStatus.CHECKED_IN.value}'))"
    ).execute_if(dialect="postgresql"),
)
