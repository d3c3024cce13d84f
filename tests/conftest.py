import os

# Must be set before the application settings are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shared.core.database import Base, get_db
from hotel_service.app.enum.reservation_enum import (
    PaymentMethod, PaymentStatus, ReservationStatus, RoomStatus
)
from hotel_service.app.main import app
from hotel_service.app.models.hotel import Customer, Floor, Reservation, Room, RoomClass

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    """Fresh schema and session for every test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def seed(db):
    """One floor, two room classes, four rooms and two customers."""
    floor = Floor(name="Ground Floor", floor_number=1)
    deluxe = RoomClass(name="Deluxe", rate_per_night=Decimal("5000.00"), max_occupancy=2)
    suite = RoomClass(name="Suite", rate_per_night=Decimal("9000.00"), max_occupancy=4)
    db.add_all([floor, deluxe, suite])
    db.flush()

    rooms = {
        "101": Room(room_number="101", room_class_id=deluxe.id, floor_id=floor.id, has_balcony=True),
        "102": Room(room_number="102", room_class_id=deluxe.id, floor_id=floor.id),
        "103": Room(
            room_number="103", room_class_id=deluxe.id, floor_id=floor.id,
            status=RoomStatus.MAINTENANCE.value,
        ),
        "201": Room(room_number="201", room_class_id=suite.id, floor_id=floor.id, has_sea_view=True),
    }
    jane = Customer(
        customer_code="C-0001", first_name="Jane", last_name="Perera",
        email="jane@example.com", phone="0771234567", nationality="LK",
    )
    ravi = Customer(
        customer_code="C-0002", first_name="Ravi", last_name="Silva",
        email="ravi@example.com", phone="0719876543",
    )
    db.add_all(list(rooms.values()) + [jane, ravi])
    db.commit()

    return {
        "floor": floor,
        "deluxe": deluxe,
        "suite": suite,
        "rooms": rooms,
        "jane": jane,
        "ravi": ravi,
    }


@pytest.fixture
def make_reservation(db, seed):
    """Insert a reservation row directly, bypassing the create flow."""
    counter = {"n": 0}

    def _make(room="101", check_in=datetime(2030, 6, 1), check_out=datetime(2030, 6, 4),
              status=ReservationStatus.CONFIRMED, customer="jane", **fields):
        counter["n"] += 1
        room_obj = seed["rooms"][room]
        values = dict(
            booking_number=f"BK300101{counter['n']:03d}",
            customer_id=seed[customer].id,
            room_id=room_obj.id,
            room_class_id=room_obj.room_class_id,
            check_in_date=check_in,
            check_out_date=check_out,
            number_of_nights=max(1, (check_out - check_in).days),
            base_room_rate=Decimal("5000.00"),
            total_room_charge=Decimal("15000.00"),
            total_amount=Decimal("15000.00"),
            balance_amount=Decimal("15000.00"),
            payment_method=PaymentMethod.CASH.value,
            payment_status=PaymentStatus.PENDING.value,
            reservation_status=status.value,
        )
        values.update(fields)
        reservation = Reservation(**values)
        db.add(reservation)
        db.commit()
        db.refresh(reservation)
        return reservation

    return _make


@pytest.fixture
def client(db):
    """TestClient whose requests share the test session."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def reservation_payload(seed, room="101", **overrides):
    room_obj = seed["rooms"][room]
    payload = {
        "customerId": seed["jane"].id,
        "roomId": room_obj.id,
        "roomClassId": room_obj.room_class_id,
        "checkInDate": "2030-06-01T00:00:00",
        "checkOutDate": "2030-06-04T00:00:00",
        "adults": 2,
        "baseRoomRate": 5000,
        "paymentMethod": "CASH",
        "totalAmount": 15000,
    }
    payload.update(overrides)
    return payload
