from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ...enum.reservation_enum import ReservationStatus, RoomStatus
from ...models.hotel.reservations import Reservation
from ...models.hotel.rooms import Room

ACTIVE_STATUSES = (ReservationStatus.CONFIRMED.value, ReservationStatus.CHECKED_IN.value)
TERMINAL_STATUSES = (ReservationStatus.CHECKED_OUT.value, ReservationStatus.CANCELLED.value)
UNBOOKABLE_ROOM_STATUSES = (RoomStatus.MAINTENANCE.value, RoomStatus.OUT_OF_ORDER.value)

ALLOWED_TRANSITIONS = {
    ReservationStatus.CONFIRMED.value: {
        ReservationStatus.CHECKED_IN.value,
        ReservationStatus.CANCELLED.value,
    },
    ReservationStatus.CHECKED_IN.value: {
        ReservationStatus.CHECKED_OUT.value,
        ReservationStatus.CANCELLED.value,
    },
    ReservationStatus.CHECKED_OUT.value: set(),
    ReservationStatus.CANCELLED.value: set(),
}


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def overlap_filters(check_in: datetime, check_out: datetime):
    # half-open ranges: a stay ending on day X does not clash with one starting on X
    return [
        Reservation.reservation_status.in_(ACTIVE_STATUSES),
        Reservation.check_in_date < check_out,
        Reservation.check_out_date > check_in,
    ]


def find_overlapping_reservation(
    db: Session,
    room_id: int,
    check_in: datetime,
    check_out: datetime,
    exclude_reservation_id: Optional[int] = None,
) -> Optional[Reservation]:
    query = db.query(Reservation).filter(
        Reservation.room_id == room_id,
        *overlap_filters(check_in, check_out),
    )
    if exclude_reservation_id is not None:
        query = query.filter(Reservation.id != exclude_reservation_id)
    return query.first()


def check_overlap(
    db: Session,
    room_id: int,
    check_in: datetime,
    check_out: datetime,
    exclude_reservation_id: Optional[int] = None,
) -> bool:
    return find_overlapping_reservation(
        db, room_id, check_in, check_out, exclude_reservation_id) is not None


def find_available_rooms(
    db: Session,
    room_class_id: int,
    check_in: datetime,
    check_out: datetime,
) -> List[Room]:
    reserved_room_ids = select(Reservation.room_id).where(*overlap_filters(check_in, check_out))
    return (
        db.query(Room)
        .filter(
            Room.room_class_id == room_class_id,
            Room.is_active == True,
            Room.status.notin_(UNBOOKABLE_ROOM_STATUSES),
            Room.id.notin_(reserved_room_ids),
        )
        .order_by(Room.room_number.asc())
        .all()
    )
