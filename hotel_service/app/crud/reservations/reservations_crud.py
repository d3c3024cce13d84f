import logging
import math
from calendar import monthrange
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from shared.core.config import settings
from shared.core.schemas import Lookup
from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode
from shared.utils.date_helper import parse_datetime, start_of_day, start_of_month, utc_now
from ...enum.reservation_enum import PaymentMethod, ReservationStatus, RoomStatus
from ...models.hotel.customers import Customer
from ...models.hotel.reservations import OVERLAP_CONSTRAINT_NAME, Reservation
from ...models.hotel.room_classes import RoomClass
from ...models.hotel.rooms import Room
from ...schemas.reservations.reservations_schemas import (
    CalendarStats,
    CheckInPreview,
    CheckInRequest,
    CheckOutPreview,
    CheckOutRequest,
    Pagination,
    ReservationCreate,
    ReservationOut,
    ReservationRequest,
    ReservationStats,
    ReservationUpdate,
    RoomClassOut,
    RoomWithClassOut,
)
from .availability import can_transition, find_overlapping_reservation, is_terminal
from .booking_number import generate_booking_number
from .pricing import (
    MAX_AMOUNT,
    ZERO,
    InvalidArgument,
    PricingInput,
    PricingResult,
    balance_due,
    calculate_nights,
    calculate_pricing,
    derive_payment_status,
    ensure_storable,
    normalize_discount_type,
    quantize,
    to_money,
)
from .stay_fees import check_in_timing, check_out_settlement

logger = logging.getLogger(__name__)

# model field -> wire name, in the order they are reported when missing
REQUIRED_CREATE_FIELDS = {
    "customer_id": "customerId",
    "room_id": "roomId",
    "room_class_id": "roomClassId",
    "check_in_date": "checkInDate",
    "check_out_date": "checkOutDate",
    "payment_method": "paymentMethod",
    "total_amount": "totalAmount",
}

PRICING_FIELDS = {
    "base_room_rate",
    "check_in_date",
    "check_out_date",
    "extra_charges",
    "discount_type",
    "discount_value",
    "discount_reason",
    "service_charge",
    "tax",
}

DESCRIPTIVE_FIELDS = (
    "check_in_time",
    "check_out_time",
    "adults",
    "children",
    "infants",
    "special_requests",
    "remarks",
    "billing_type",
    "room_class_id",
)

NON_NULLABLE_RESERVATION_FIELDS = {"adults", "children", "infants", "room_class_id"}
NON_NULLABLE_CUSTOMER_FIELDS = {"first_name"}

REVENUE_STATUSES = (
    ReservationStatus.CONFIRMED.value,
    ReservationStatus.CHECKED_IN.value,
    ReservationStatus.CHECKED_OUT.value,
)

ROOM_UNAVAILABLE_MESSAGE = "Room is not available for the selected dates"

MIN_CALENDAR_YEAR = 2000
MAX_CALENDAR_YEAR = 2100


# ----------------- Helpers -----------------
def parse_id(raw: Any, label: str = "reservation") -> int:
    try:
        return int(str(raw))
    except (TypeError, ValueError):
        error_response(
            f"Invalid {label} id",
            details=f"Expected an integer id, got {raw!r}",
            status_code=AppStatusCode.INVALID_ID,
        )


def serialize_reservation(reservation: Reservation) -> dict:
    return ReservationOut.model_validate(reservation).model_dump(by_alias=True, mode="json")


def _format_status(status: str) -> str:
    return status.lower().replace("_", " ")


def _load_options():
    return (
        joinedload(Reservation.customer),
        joinedload(Reservation.room).joinedload(Room.floor),
        joinedload(Reservation.room_class),
    )


def _reservation_query(db: Session):
    return db.query(Reservation).options(*_load_options())


def _get_reservation_or_404(db: Session, reservation_id: int) -> Reservation:
    reservation = _reservation_query(db).filter(Reservation.id == reservation_id).first()
    if not reservation:
        error_response(
            "Reservation not found",
            details=f"Reservation {reservation_id} does not exist",
            status_code=AppStatusCode.NOT_FOUND,
            http_status=404,
        )
    return reservation


def _ensure_mutable(reservation: Reservation, action: str = "modify"):
    if is_terminal(reservation.reservation_status):
        error_response(
            f"Cannot {action} a {_format_status(reservation.reservation_status)} reservation",
            details=f"Reservation {reservation.booking_number} is {reservation.reservation_status}",
            status_code=AppStatusCode.IMMUTABLE_STATE,
        )


def _validate_date_range(check_in: datetime, check_out: datetime):
    if check_in >= check_out:
        error_response(
            "Check-out date must be after check-in date",
            details=f"checkInDate={check_in.isoformat()}, checkOutDate={check_out.isoformat()}",
            status_code=AppStatusCode.INVALID_DATE_RANGE,
        )


def _parse_query_date(value: Optional[str], field: str) -> Optional[datetime]:
    try:
        return parse_datetime(value)
    except ValueError:
        error_response(
            f"Invalid {field}",
            details=f"{field} must be an ISO-8601 date, got {value!r}",
            status_code=AppStatusCode.INVALID_DATE,
        )


def _ensure_room_free(
    db: Session,
    room: Room,
    check_in: datetime,
    check_out: datetime,
    exclude_reservation_id: Optional[int] = None,
):
    conflict = find_overlapping_reservation(
        db, room.id, check_in, check_out, exclude_reservation_id)
    if conflict:
        error_response(
            ROOM_UNAVAILABLE_MESSAGE,
            details=(
                f"Room {room.room_number} is reserved from "
                f"{conflict.check_in_date.isoformat()} to {conflict.check_out_date.isoformat()}"
            ),
            status_code=AppStatusCode.ROOM_UNAVAILABLE,
        )


def _calculate(pricing_input: PricingInput) -> PricingResult:
    try:
        return calculate_pricing(pricing_input)
    except InvalidArgument as e:
        error_response(
            "Invalid pricing input",
            details=str(e),
            status_code=AppStatusCode.INVALID_ARGUMENT,
        )


def _handle_commit_error(db: Session, exc: SQLAlchemyError, operation: str):
    db.rollback()
    message = str(getattr(exc, "orig", None) or exc)
    if isinstance(exc, IntegrityError) and OVERLAP_CONSTRAINT_NAME in message:
        error_response(
            ROOM_UNAVAILABLE_MESSAGE,
            details=message,
            status_code=AppStatusCode.ROOM_UNAVAILABLE,
        )
    logger.exception("Failed to %s reservation", operation)
    error_response(
        f"Failed to {operation} reservation",
        details=message,
        status_code=AppStatusCode.OPERATION_FAILED,
        http_status=500,
    )


def _commit(db: Session, operation: str):
    try:
        db.commit()
    except SQLAlchemyError as e:
        _handle_commit_error(db, e, operation)


def _is_booking_number_conflict(exc: IntegrityError) -> bool:
    return "booking_number" in str(exc.orig)


def _room_held_by_other_guest(db: Session, reservation: Reservation) -> bool:
    return db.query(Reservation.id).filter(
        Reservation.room_id == reservation.room_id,
        Reservation.id != reservation.id,
        Reservation.reservation_status == ReservationStatus.CHECKED_IN.value,
    ).first() is not None


# --------------------Lookups by Enum -----------
def reservation_status_lookup() -> List[Lookup]:
    return [
        Lookup(id=status.value, name=_format_status(status.value).title())
        for status in ReservationStatus
    ]


def payment_method_lookup() -> List[Lookup]:
    return [
        Lookup(id=method.value, name=_format_status(method.value).title())
        for method in PaymentMethod
    ]


# ----------------- Build Filters -----------------
def build_reservation_filters(params: ReservationRequest):
    filters = []

    if params.status and params.status.lower() != "all":
        filters.append(Reservation.reservation_status == params.status.upper())

    if params.room_class_id and params.room_class_id.lower() != "all":
        filters.append(Reservation.room_class_id == parse_id(params.room_class_id, "room class"))

    date_from = _parse_query_date(params.date_from, "dateFrom")
    date_to = _parse_query_date(params.date_to, "dateTo")

    if date_from and date_to:
        filters.append(
            or_(
                and_(Reservation.check_in_date >= date_from, Reservation.check_in_date <= date_to),
                and_(Reservation.check_out_date >= date_from, Reservation.check_out_date <= date_to),
                and_(Reservation.check_in_date <= date_from, Reservation.check_out_date >= date_to),
            )
        )
    elif date_from:
        filters.append(Reservation.check_in_date >= date_from)
    elif date_to:
        filters.append(Reservation.check_out_date <= date_to)

    if params.search:
        search_term = f"%{params.search.strip()}%"
        filters.append(
            or_(
                Reservation.booking_number.ilike(search_term),
                Customer.first_name.ilike(search_term),
                Customer.last_name.ilike(search_term),
                Customer.phone.ilike(search_term),
                Customer.email.ilike(search_term),
                Room.room_number.ilike(search_term),
            )
        )
    return filters


def get_reservation_query(db: Session, params: ReservationRequest):
    filters = build_reservation_filters(params)
    return (
        db.query(Reservation)
        .join(Customer, Reservation.customer_id == Customer.id)
        .join(Room, Reservation.room_id == Room.id)
        .filter(*filters)
    )


# ----------------- Stats -----------------
def _percentage(numerator: Decimal, denominator: Decimal) -> int:
    if denominator <= 0:
        return 0
    ratio = Decimal(numerator) * 100 / Decimal(denominator)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def get_reservation_stats(db: Session, now: Optional[datetime] = None) -> ReservationStats:
    now = now or utc_now()
    today = start_of_day(now)
    tomorrow = today + timedelta(days=1)
    this_month = start_of_month(now)
    next_month = start_of_month(now, 1)
    last_month = start_of_month(now, -1)

    def count(*filters) -> int:
        return db.query(func.count(Reservation.id)).filter(*filters).scalar() or 0

    total_reservations = count()
    # checked-in guests are the ones holding a room right now
    active_reservations = count(
        Reservation.reservation_status == ReservationStatus.CHECKED_IN.value)
    today_check_ins = count(
        Reservation.check_in_date >= today,
        Reservation.check_in_date < tomorrow,
        Reservation.reservation_status.in_(
            [ReservationStatus.CONFIRMED.value, ReservationStatus.CHECKED_IN.value]),
    )
    today_check_outs = count(
        Reservation.check_out_date >= today,
        Reservation.check_out_date < tomorrow,
        Reservation.reservation_status == ReservationStatus.CHECKED_IN.value,
    )
    pending_reservations = count(
        Reservation.reservation_status == ReservationStatus.CONFIRMED.value)
    cancelled_reservations = count(
        Reservation.reservation_status == ReservationStatus.CANCELLED.value)

    monthly_revenue, total_room_nights = db.query(
        func.coalesce(func.sum(Reservation.total_amount), 0),
        func.coalesce(func.sum(Reservation.number_of_nights), 0),
    ).filter(
        Reservation.check_in_date >= this_month,
        Reservation.check_in_date < next_month,
        Reservation.reservation_status.in_(REVENUE_STATUSES),
    ).one()

    last_month_revenue = db.query(
        func.coalesce(func.sum(Reservation.total_amount), 0)
    ).filter(
        Reservation.check_in_date >= last_month,
        Reservation.check_in_date < this_month,
        Reservation.reservation_status.in_(REVENUE_STATUSES),
    ).scalar()

    total_rooms = db.query(func.count(Room.id)).scalar() or 0

    monthly_revenue = to_money(monthly_revenue)
    last_month_revenue = to_money(last_month_revenue)
    total_room_nights = int(total_room_nights or 0)

    average_daily_rate = (
        quantize(monthly_revenue / total_room_nights) if total_room_nights > 0 else ZERO
    )
    revenue_growth = (
        _percentage(monthly_revenue - last_month_revenue, last_month_revenue)
        if last_month_revenue > 0 else 0
    )

    return ReservationStats(
        total_reservations=total_reservations,
        active_reservations=active_reservations,
        today_check_ins=today_check_ins,
        today_check_outs=today_check_outs,
        pending_reservations=pending_reservations,
        cancelled_reservations=cancelled_reservations,
        monthly_revenue=float(monthly_revenue),
        average_daily_rate=float(average_daily_rate),
        occupancy_rate=_percentage(Decimal(active_reservations), Decimal(total_rooms)),
        revenue_growth=revenue_growth,
        total_room_nights=total_room_nights,
    )


# ----------------- Get All Reservations -----------------
def get_reservations(db: Session, params: ReservationRequest) -> Dict[str, Any]:
    page = max(1, params.page)
    limit = min(max(1, params.limit), settings.MAX_PAGE_SIZE)

    base_query = get_reservation_query(db, params)
    total = base_query.with_entities(func.count(Reservation.id)).scalar() or 0

    reservations = (
        base_query
        .options(*_load_options())
        .order_by(Reservation.reservation_status.asc(), Reservation.check_in_date.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    total_pages = math.ceil(total / limit) if total else 0
    pagination = Pagination(
        page=page,
        limit=limit,
        total_count=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )

    return {
        "reservations": [serialize_reservation(r) for r in reservations],
        "stats": get_reservation_stats(db).model_dump(by_alias=True),
        "pagination": pagination.model_dump(by_alias=True),
    }


# ----------------- Get Single Reservation -----------------
def get_reservation(db: Session, reservation_id: int) -> Reservation:
    return _get_reservation_or_404(db, reservation_id)


def get_reservation_for_edit(db: Session, reservation_id: int) -> Dict[str, Any]:
    reservation = _get_reservation_or_404(db, reservation_id)
    _ensure_mutable(reservation, "edit")

    available_rooms = (
        db.query(Room)
        .options(joinedload(Room.room_class), joinedload(Room.floor))
        .filter(or_(
            Room.status == RoomStatus.AVAILABLE.value,
            Room.id == reservation.room_id,
        ))
        .order_by(Room.room_number.asc())
        .all()
    )
    room_classes = db.query(RoomClass).order_by(RoomClass.name.asc()).all()

    return {
        "reservation": serialize_reservation(reservation),
        "availableRooms": [
            RoomWithClassOut.model_validate(room).model_dump(by_alias=True, mode="json")
            for room in available_rooms
        ],
        "roomClasses": [
            RoomClassOut.model_validate(room_class).model_dump(by_alias=True, mode="json")
            for room_class in room_classes
        ],
    }


# ----------------- Create Reservation -----------------
def _require_entity(db: Session, model, entity_id: int, label: str):
    entity = db.query(model).filter(model.id == entity_id).first()
    if not entity:
        error_response(
            f"{label} not found",
            details=f"{label} {entity_id} does not exist",
            status_code=AppStatusCode.NOT_FOUND,
            http_status=404,
        )
    return entity


def create_reservation(
    db: Session,
    payload: ReservationCreate,
    now: Optional[datetime] = None,
) -> Reservation:
    missing = [
        wire_name for field, wire_name in REQUIRED_CREATE_FIELDS.items()
        if getattr(payload, field) is None
    ]
    if missing:
        error_response(
            "Missing required fields",
            details=", ".join(missing),
            status_code=AppStatusCode.MISSING_FIELD,
        )

    check_in, check_out = payload.check_in_date, payload.check_out_date
    _validate_date_range(check_in, check_out)

    customer = _require_entity(db, Customer, payload.customer_id, "Customer")
    room = _require_entity(db, Room, payload.room_id, "Room")
    room_class = _require_entity(db, RoomClass, payload.room_class_id, "Room class")

    _ensure_room_free(db, room, check_in, check_out)

    number_of_nights = calculate_nights(check_in, check_out)
    base_room_rate = (
        payload.base_room_rate if payload.base_room_rate is not None else room_class.rate_per_night
    )
    discount_type = normalize_discount_type(payload.discount_type)
    pricing = _calculate(PricingInput(
        base_room_rate=to_money(base_room_rate),
        number_of_nights=number_of_nights,
        extra_charges=payload.extra_charges,
        discount_type=discount_type,
        discount_value=payload.discount_value,
        service_charge=payload.service_charge,
        tax=payload.tax,
        advance_amount=payload.advance_amount,
    ))

    client_total = to_money(payload.total_amount)
    if abs(client_total) > MAX_AMOUNT or quantize(client_total) != pricing.total_amount:
        logger.warning(
            "Client total %s differs from computed total %s for room %s; storing computed total",
            payload.total_amount, pricing.total_amount, room.room_number)

    now = now or utc_now()
    max_attempts = max(1, settings.BOOKING_NUMBER_MAX_ATTEMPTS)

    for attempt in range(1, max_attempts + 1):
        booking_number = generate_booking_number(db, today=now.date())
        reservation = Reservation(
            booking_number=booking_number,
            customer_id=customer.id,
            room_id=room.id,
            room_class_id=room_class.id,
            check_in_date=check_in,
            check_out_date=check_out,
            check_in_time=payload.check_in_time or settings.DEFAULT_CHECK_IN_TIME,
            check_out_time=payload.check_out_time or settings.DEFAULT_CHECK_OUT_TIME,
            number_of_nights=number_of_nights,
            adults=payload.adults,
            children=payload.children,
            infants=payload.infants,
            booking_type=payload.booking_type,
            purpose_of_visit=payload.purpose_of_visit,
            arrival_from=payload.arrival_from,
            special_requests=payload.special_requests,
            remarks=payload.remarks,
            billing_type=payload.billing_type.value,
            base_room_rate=quantize(to_money(base_room_rate)),
            total_room_charge=pricing.total_room_charge,
            extra_charges=quantize(to_money(payload.extra_charges)),
            discount_type=discount_type.value if discount_type else None,
            discount_value=quantize(to_money(payload.discount_value)) if discount_type else ZERO,
            discount_reason=payload.discount_reason if discount_type else None,
            discount_amount=pricing.discount_amount,
            service_charge=quantize(to_money(payload.service_charge)),
            tax=quantize(to_money(payload.tax)),
            total_amount=pricing.total_amount,
            advance_amount=quantize(to_money(payload.advance_amount)),
            balance_amount=pricing.balance_amount,
            payment_method=payload.payment_method.value,
            payment_status=pricing.payment_status.value,
            advance_remarks=payload.advance_remarks,
            reservation_status=ReservationStatus.CONFIRMED.value,
        )
        db.add(reservation)

        if check_in <= now:
            room.status = RoomStatus.OCCUPIED.value

        try:
            db.commit()
        except IntegrityError as e:
            if _is_booking_number_conflict(e) and attempt < max_attempts:
                db.rollback()
                logger.warning(
                    "Booking number %s already taken (attempt %d of %d), retrying",
                    booking_number, attempt, max_attempts)
                continue
            _handle_commit_error(db, e, "create")
        except SQLAlchemyError as e:
            _handle_commit_error(db, e, "create")
        break

    db.refresh(reservation)
    logger.info(
        "Created reservation %s for room %s (%s to %s)",
        reservation.booking_number, room.room_number,
        check_in.isoformat(), check_out.isoformat())
    return reservation


# ----------------- Update Reservation -----------------
def _pick(update_data: dict, key: str, current):
    value = update_data.get(key)
    return current if value is None else value


def _reprice(reservation: Reservation, update_data: dict, number_of_nights: int):
    discount_type = normalize_discount_type(update_data.get("discount_type"))
    if discount_type is None:
        discount_value, discount_reason = ZERO, None
    else:
        discount_value = _pick(update_data, "discount_value", reservation.discount_value)
        discount_reason = update_data.get("discount_reason", reservation.discount_reason)

    base_room_rate = _pick(update_data, "base_room_rate", reservation.base_room_rate)
    extra_charges = _pick(update_data, "extra_charges", reservation.extra_charges)
    service_charge = _pick(update_data, "service_charge", reservation.service_charge)
    tax = _pick(update_data, "tax", reservation.tax)

    pricing = _calculate(PricingInput(
        base_room_rate=to_money(base_room_rate),
        number_of_nights=number_of_nights,
        extra_charges=extra_charges,
        discount_type=discount_type,
        discount_value=discount_value,
        service_charge=service_charge,
        tax=tax,
        advance_amount=reservation.advance_amount,
    ))

    reservation.base_room_rate = quantize(to_money(base_room_rate))
    reservation.extra_charges = quantize(to_money(extra_charges))
    reservation.discount_type = discount_type.value if discount_type else None
    reservation.discount_value = quantize(to_money(discount_value))
    reservation.discount_reason = discount_reason
    reservation.service_charge = quantize(to_money(service_charge))
    reservation.tax = quantize(to_money(tax))
    reservation.total_room_charge = pricing.total_room_charge
    reservation.discount_amount = pricing.discount_amount
    reservation.total_amount = pricing.total_amount
    reservation.balance_amount = pricing.balance_amount
    reservation.payment_status = pricing.payment_status.value


def update_reservation(db: Session, reservation_id: int, payload: ReservationUpdate) -> Reservation:
    reservation = _get_reservation_or_404(db, reservation_id)
    _ensure_mutable(reservation)

    # Update only fields provided
    update_data = payload.model_dump(exclude_unset=True, exclude={"id", "customer"})
    customer_data = (
        payload.customer.model_dump(exclude_unset=True) if payload.customer is not None else {}
    )

    dates_changed = "check_in_date" in update_data or "check_out_date" in update_data
    check_in = update_data.get("check_in_date") or reservation.check_in_date
    check_out = update_data.get("check_out_date") or reservation.check_out_date
    if dates_changed:
        _validate_date_range(check_in, check_out)

    new_room_id = update_data.get("room_id") or reservation.room_id
    room_changed = new_room_id != reservation.room_id
    target_room = reservation.room

    if room_changed:
        target_room = db.query(Room).filter(Room.id == new_room_id).first()
        if not target_room or target_room.status != RoomStatus.AVAILABLE.value:
            error_response(
                "Selected room is not available",
                details=(
                    f"Room {new_room_id} does not exist" if not target_room
                    else f"Room {target_room.room_number} is {target_room.status}"
                ),
                status_code=AppStatusCode.ROOM_UNAVAILABLE,
            )

    if dates_changed or room_changed:
        _ensure_room_free(db, target_room, check_in, check_out, exclude_reservation_id=reservation.id)

    if dates_changed:
        reservation.check_in_date = check_in
        reservation.check_out_date = check_out
        reservation.number_of_nights = calculate_nights(check_in, check_out)

    if PRICING_FIELDS & update_data.keys():
        _reprice(reservation, update_data, calculate_nights(check_in, check_out))

    for key in DESCRIPTIVE_FIELDS:
        if key not in update_data:
            continue
        value = update_data[key]
        if value is None and key in NON_NULLABLE_RESERVATION_FIELDS:
            continue
        if key == "billing_type" and value is not None:
            value = value.value
        setattr(reservation, key, value)

    if room_changed:
        old_room = reservation.room
        if (
            old_room
            and reservation.reservation_status == ReservationStatus.CONFIRMED.value
            and not _room_held_by_other_guest(db, reservation)
        ):
            old_room.status = RoomStatus.AVAILABLE.value
        target_room.status = (
            RoomStatus.OCCUPIED.value
            if reservation.reservation_status == ReservationStatus.CHECKED_IN.value
            else RoomStatus.AVAILABLE.value
        )
        reservation.room = target_room

    if customer_data:
        customer = reservation.customer
        for key, value in customer_data.items():
            if value is None and key in NON_NULLABLE_CUSTOMER_FIELDS:
                continue
            setattr(customer, key, value)

    _commit(db, "update")
    db.refresh(reservation)
    logger.info("Updated reservation %s", reservation.booking_number)
    return reservation


# ----------------- Cancel Reservation -----------------
def cancel_reservation(
    db: Session,
    reservation_id: int,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Reservation:
    reservation = _get_reservation_or_404(db, reservation_id)

    if reservation.reservation_status == ReservationStatus.CANCELLED.value:
        error_response(
            "Reservation is already cancelled",
            details=f"Reservation {reservation.booking_number} is already CANCELLED",
            status_code=AppStatusCode.ALREADY_CANCELLED,
        )
    _ensure_mutable(reservation, "cancel")

    reservation.reservation_status = ReservationStatus.CANCELLED.value
    reservation.cancellation_reason = reason or settings.DEFAULT_CANCELLATION_REASON
    reservation.cancellation_date = now or utc_now()
    if reservation.room and not _room_held_by_other_guest(db, reservation):
        reservation.room.status = RoomStatus.AVAILABLE.value

    _commit(db, "cancel")
    db.refresh(reservation)
    logger.info(
        "Cancelled reservation %s: %s", reservation.booking_number, reservation.cancellation_reason)
    return reservation


# ----------------- Check-in / Check-out -----------------
def _append_note(remarks: Optional[str], label: str, note: Optional[str]) -> Optional[str]:
    if not note:
        return remarks
    entry = f"{label}: {note}"
    return f"{remarks}\n\n{entry}" if remarks else entry


def _ensure_transition(reservation: Reservation, target: ReservationStatus, action: str):
    if not can_transition(reservation.reservation_status, target.value):
        error_response(
            f"Cannot {action} reservation with status {reservation.reservation_status}",
            details=f"Reservation {reservation.booking_number} is {reservation.reservation_status}",
            status_code=AppStatusCode.INVALID_STATUS_TRANSITION,
        )


def _apply_charges(reservation: Reservation, charges: Decimal, payment: Decimal):
    try:
        if charges < ZERO or payment < ZERO:
            raise InvalidArgument("Fees and payment amounts must not be negative")
        ensure_storable(charges, "charges")
        ensure_storable(payment, "payment_amount")
        total_amount = ensure_storable(
            quantize(to_money(reservation.total_amount) + charges), "total_amount")
        advance_amount = ensure_storable(
            quantize(to_money(reservation.advance_amount) + payment), "advance_amount")
        extra_charges = ensure_storable(
            quantize(to_money(reservation.extra_charges) + charges), "extra_charges")
    except InvalidArgument as e:
        error_response(
            "Invalid charge amount",
            details=str(e),
            status_code=AppStatusCode.INVALID_ARGUMENT,
        )

    reservation.extra_charges = extra_charges
    reservation.total_amount = total_amount
    reservation.advance_amount = advance_amount
    reservation.balance_amount = balance_due(total_amount, advance_amount)
    reservation.payment_status = derive_payment_status(advance_amount, total_amount).value


def _ensure_room_ready(db: Session, reservation: Reservation) -> Room:
    room = reservation.room
    # a same-day booking already marked the room OCCUPIED on creation
    room_ready = room.status == RoomStatus.AVAILABLE.value or (
        room.status == RoomStatus.OCCUPIED.value and not _room_held_by_other_guest(db, reservation)
    )
    if not room_ready:
        error_response(
            f"Room {room.room_number} is not available",
            details=f"Room status is {room.status}",
            status_code=AppStatusCode.ROOM_UNAVAILABLE,
        )
    return room


def check_in_reservation(
    db: Session,
    reservation_id: int,
    payload: CheckInRequest,
    now: Optional[datetime] = None,
) -> Reservation:
    reservation = _get_reservation_or_404(db, reservation_id)

    if not (payload.guest_confirmation and payload.identity_verified):
        error_response(
            "Guest confirmation and identity verification are required",
            details="guestConfirmation and identityVerified must both be true",
            status_code=AppStatusCode.INVALID_ARGUMENT,
        )
    _ensure_transition(reservation, ReservationStatus.CHECKED_IN, "check in")
    room = _ensure_room_ready(db, reservation)

    charges = (
        to_money(payload.early_check_in_fee)
        + to_money(payload.late_check_in_fee)
        + to_money(payload.additional_charges)
    )
    _apply_charges(reservation, charges, to_money(payload.payment_amount))

    reservation.reservation_status = ReservationStatus.CHECKED_IN.value
    reservation.actual_check_in = now or utc_now()
    reservation.remarks = _append_note(reservation.remarks, "Check-in Notes", payload.staff_notes)
    room.status = RoomStatus.OCCUPIED.value

    _commit(db, "check in")
    db.refresh(reservation)
    logger.info("Checked in reservation %s to room %s", reservation.booking_number, room.room_number)
    return reservation


def check_out_reservation(
    db: Session,
    reservation_id: int,
    payload: CheckOutRequest,
    now: Optional[datetime] = None,
) -> Reservation:
    reservation = _get_reservation_or_404(db, reservation_id)
    _ensure_transition(reservation, ReservationStatus.CHECKED_OUT, "check out")

    charges = (
        to_money(payload.additional_charges)
        + to_money(payload.late_checkout_fee)
        + to_money(payload.damage_fee)
    )
    _apply_charges(reservation, charges, to_money(payload.payment_amount))

    reservation.reservation_status = ReservationStatus.CHECKED_OUT.value
    reservation.actual_check_out = now or utc_now()
    remarks = _append_note(reservation.remarks, "Checkout Notes", payload.staff_notes)
    if payload.damage_description:
        remarks = _append_note(remarks, "Damage", payload.damage_description)
    reservation.remarks = remarks
    if reservation.room:
        reservation.room.status = RoomStatus.AVAILABLE.value

    _commit(db, "check out")
    db.refresh(reservation)
    logger.info("Checked out reservation %s", reservation.booking_number)
    return reservation


# ----------------- Check-in / Check-out Preview -----------------
def _with_preview(reservation: Reservation, preview) -> Dict[str, Any]:
    data = serialize_reservation(reservation)
    data.update(preview.model_dump(by_alias=True, mode="json"))
    return {"reservation": data}


def get_check_in_preview(
    db: Session,
    reservation_id: int,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Readiness check plus suggested early/late arrival fees, without changing anything."""
    reservation = _get_reservation_or_404(db, reservation_id)
    _ensure_transition(reservation, ReservationStatus.CHECKED_IN, "check in")
    _ensure_room_ready(db, reservation)

    now = now or utc_now()
    timing = check_in_timing(
        reservation.check_in_date,
        now,
        settings.EARLY_CHECK_IN_FEE_PER_HOUR,
        settings.LATE_CHECK_IN_FEE_PER_DAY,
    )
    return _with_preview(reservation, CheckInPreview(
        is_early_check_in=timing.is_early_check_in,
        is_late_check_in=timing.is_late_check_in,
        early_check_in_fee=timing.early_check_in_fee,
        late_check_in_fee=timing.late_check_in_fee,
        current_date_time=now,
    ))


def get_check_out_preview(
    db: Session,
    reservation_id: int,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Suggested late-checkout fee and the balance the guest would settle now."""
    reservation = _get_reservation_or_404(db, reservation_id)
    _ensure_transition(reservation, ReservationStatus.CHECKED_OUT, "check out")

    now = now or utc_now()
    settlement = check_out_settlement(
        check_in_date=reservation.check_in_date,
        check_out_date=reservation.check_out_date,
        total_amount=to_money(reservation.total_amount),
        advance_amount=to_money(reservation.advance_amount),
        now=now,
        standard_check_out=time.fromisoformat(settings.DEFAULT_CHECK_OUT_TIME),
        late_fee_per_hour=settings.LATE_CHECKOUT_FEE_PER_HOUR,
    )
    return _with_preview(reservation, CheckOutPreview(
        late_checkout_fee=settlement.late_checkout_fee,
        actual_stay_days=settlement.actual_stay_days,
        updated_total_amount=settlement.updated_total_amount,
        final_balance_amount=settlement.final_balance_amount,
        current_date_time=now,
    ))


# ----------------- Calendar -----------------
def _calendar_window(year: int, month: int) -> Tuple[datetime, datetime]:
    """Whole Sunday-to-Saturday weeks covering the month, end exclusive."""
    first = date(year, month, 1)
    last = date(year, month, monthrange(year, month)[1])
    start = first - timedelta(days=first.isoweekday() % 7)
    end = last + timedelta(days=7 - last.isoweekday() % 7)
    return datetime.combine(start, time.min), datetime.combine(end, time.min)


def get_reservation_calendar(
    db: Session,
    month: Optional[int] = None,
    year: Optional[int] = None,
    room_class_id: Optional[str] = None,
    status: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    now = now or utc_now()
    month = month if month is not None else now.month
    year = year if year is not None else now.year

    if not 1 <= month <= 12:
        error_response(
            "Invalid month",
            details=f"month must be between 1 and 12, got {month}",
            status_code=AppStatusCode.INVALID_ARGUMENT,
        )
    if not MIN_CALENDAR_YEAR <= year <= MAX_CALENDAR_YEAR:
        error_response(
            "Invalid year",
            details=f"year must be between {MIN_CALENDAR_YEAR} and {MAX_CALENDAR_YEAR}, got {year}",
            status_code=AppStatusCode.INVALID_ARGUMENT,
        )

    window_start, window_end = _calendar_window(year, month)
    filters = [
        Reservation.check_in_date < window_end,
        Reservation.check_out_date > window_start,
    ]
    if room_class_id and room_class_id.lower() != "all":
        filters.append(Reservation.room_class_id == parse_id(room_class_id, "room class"))
    if status and status.lower() != "all":
        filters.append(Reservation.reservation_status == status.upper())

    reservations = (
        _reservation_query(db)
        .join(Room, Reservation.room_id == Room.id)
        .filter(*filters)
        .order_by(Reservation.check_in_date.asc(), Room.room_number.asc())
        .all()
    )

    today = now.date()
    stats = CalendarStats(
        total_reservations=len(reservations),
        checked_in=sum(
            1 for r in reservations
            if r.reservation_status == ReservationStatus.CHECKED_IN.value
        ),
        checking_out=sum(
            1 for r in reservations
            if r.reservation_status == ReservationStatus.CHECKED_IN.value
            and r.check_out_date.date() == today
        ),
        arriving=sum(
            1 for r in reservations
            if r.reservation_status == ReservationStatus.CONFIRMED.value
            and r.check_in_date.date() == today
        ),
    )

    return {
        "calendar": {
            "month": month,
            "year": year,
            "startDate": window_start.date().isoformat(),
            "endDate": (window_end - timedelta(days=1)).date().isoformat(),
            "reservations": [serialize_reservation(r) for r in reservations],
            "stats": stats.model_dump(by_alias=True),
        },
        "filters": {
            "month": month,
            "year": year,
            "roomClassId": room_class_id,
            "status": status,
        },
    }
