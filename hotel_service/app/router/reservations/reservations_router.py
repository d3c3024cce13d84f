from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.database import get_db
from shared.helpers.json_response_helper import error_response, success_response
from shared.utils.app_status_code import AppStatusCode
from ...crud.reservations import reservations_crud as crud
from ...schemas.reservations.reservations_schemas import (
    CheckInRequest,
    CheckOutRequest,
    ReservationCreate,
    ReservationRequest,
    ReservationUpdate,
)

router = APIRouter(prefix="/api/reservations", tags=["Reservations"])


# ---------------- List Reservations ----------------
@router.get("")
def get_reservations_endpoint(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    room_class_id: Optional[str] = Query(None, alias="roomClassId"),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    page: int = Query(1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    params = ReservationRequest(
        search=search,
        status=status,
        room_class_id=room_class_id,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    return success_response(crud.get_reservations(db, params))


# ----------------- Create Reservation -----------------
@router.post("")
def create_reservation_endpoint(
    payload: ReservationCreate,
    db: Session = Depends(get_db),
):
    reservation = crud.create_reservation(db, payload)
    return success_response(
        {"reservation": crud.serialize_reservation(reservation)},
        message="Reservation created successfully",
        http_status=201,
    )


# ----------------- Update Reservation -----------------
@router.put("")
def update_reservation_endpoint(
    payload: ReservationUpdate,
    db: Session = Depends(get_db),
):
    if payload.id is None:
        error_response(
            "Reservation id is required",
            details="Include the reservation id in the request body",
            status_code=AppStatusCode.MISSING_FIELD,
        )
    reservation = crud.update_reservation(db, payload.id, payload)
    return success_response(
        {"reservation": crud.serialize_reservation(reservation)},
        message="Reservation updated successfully",
    )


# ---------------- Cancel Reservation ----------------
@router.delete("")
def cancel_reservation_endpoint(
    id: Optional[str] = Query(None),
    reason: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    if not id:
        error_response(
            "Reservation id is required",
            details="Pass the reservation id as the 'id' query parameter",
            status_code=AppStatusCode.MISSING_FIELD,
        )
    reservation = crud.cancel_reservation(db, crud.parse_id(id), reason)
    return success_response(
        {"reservation": crud.serialize_reservation(reservation)},
        message="Reservation cancelled successfully",
    )


# ----------------status Lookup by enum ----------------
@router.get("/status-lookup")
def reservation_status_lookup():
    return success_response({"statuses": crud.reservation_status_lookup()})


# ----------------payment method Lookup by enum ----------------
@router.get("/payment-method-lookup")
def payment_method_lookup():
    return success_response({"paymentMethods": crud.payment_method_lookup()})


# ---------------- Calendar ----------------
@router.get("/calendar")
def get_reservation_calendar_endpoint(
    month: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    room_class_id: Optional[str] = Query(None, alias="roomClassId"),
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return success_response(
        crud.get_reservation_calendar(db, month, year, room_class_id, status))


# ---------------- Single Reservation ----------------
@router.get("/{reservation_id}")
def get_reservation_endpoint(
    reservation_id: str,
    db: Session = Depends(get_db),
):
    reservation = crud.get_reservation(db, crud.parse_id(reservation_id))
    return success_response({"reservation": crud.serialize_reservation(reservation)})


# ---------------- Edit ----------------
@router.get("/{reservation_id}/edit")
def get_reservation_for_edit_endpoint(
    reservation_id: str,
    db: Session = Depends(get_db),
):
    return success_response(crud.get_reservation_for_edit(db, crud.parse_id(reservation_id)))


@router.put("/{reservation_id}/edit")
def edit_reservation_endpoint(
    reservation_id: str,
    payload: ReservationUpdate,
    db: Session = Depends(get_db),
):
    reservation = crud.update_reservation(db, crud.parse_id(reservation_id), payload)
    return success_response(
        {"reservation": crud.serialize_reservation(reservation)},
        message="Reservation updated successfully",
    )


# ---------------- Check-in / Check-out ----------------
@router.post("/{reservation_id}/checkin")
def check_in_endpoint(
    reservation_id: str,
    payload: CheckInRequest,
    db: Session = Depends(get_db),
):
    reservation = crud.check_in_reservation(db, crud.parse_id(reservation_id), payload)
    return success_response(
        {"reservation": crud.serialize_reservation(reservation)},
        message="Guest checked in successfully",
    )


@router.post("/{reservation_id}/checkout")
def check_out_endpoint(
    reservation_id: str,
    payload: CheckOutRequest,
    db: Session = Depends(get_db),
):
    reservation = crud.check_out_reservation(db, crud.parse_id(reservation_id), payload)
    return success_response(
        {"reservation": crud.serialize_reservation(reservation)},
        message="Guest checked out successfully",
    )


@router.get("/{reservation_id}/checkin")
def check_in_preview_endpoint(
    reservation_id: str,
    db: Session = Depends(get_db),
):
    return success_response(crud.get_check_in_preview(db, crud.parse_id(reservation_id)))


@router.get("/{reservation_id}/checkout")
def check_out_preview_endpoint(
    reservation_id: str,
    db: Session = Depends(get_db),
):
    return success_response(crud.get_check_out_preview(db, crud.parse_id(reservation_id)))
