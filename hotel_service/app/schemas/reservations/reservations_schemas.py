from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import field_validator

from shared.core.schemas import CamelModel, CommonQueryParams, Money
from shared.utils.date_helper import to_naive_utc
from ...enum.reservation_enum import BillingType, DiscountType, PaymentMethod


# ----------------- Customer -----------------
class CustomerPatch(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    nationality: Optional[str] = None
    identity_type: Optional[str] = None
    identity_number: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    occupation: Optional[str] = None


class CustomerOut(CamelModel):
    id: int
    customer_code: Optional[str] = None
    first_name: str
    last_name: Optional[str] = None
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    nationality: Optional[str] = None
    identity_type: Optional[str] = None
    identity_number: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    occupation: Optional[str] = None
    is_vip: Optional[bool] = False


# ----------------- Room -----------------
class FloorOut(CamelModel):
    id: int
    name: str
    floor_number: int


class RoomClassOut(CamelModel):
    id: int
    name: str
    rate_per_night: Money
    rate_day_use: Optional[Money] = None
    hourly_rate: Optional[Money] = None
    max_occupancy: Optional[int] = None


class RoomOut(CamelModel):
    id: int
    room_number: str
    status: str
    room_class_id: int
    floor_id: Optional[int] = None
    has_balcony: Optional[bool] = False
    has_sea_view: Optional[bool] = False
    has_kitchenette: Optional[bool] = False
    is_active: bool = True
    floor: Optional[FloorOut] = None


class RoomWithClassOut(RoomOut):
    room_class: Optional[RoomClassOut] = None


# ----------------- Base -----------------
class ReservationDates(CamelModel):
    check_in_date: Optional[datetime] = None
    check_out_date: Optional[datetime] = None

    @field_validator("check_in_date", "check_out_date")
    @classmethod
    def normalize_timezone(cls, value: Optional[datetime]):
        return to_naive_utc(value) if value is not None else None


# ----------------- Create -----------------
class ReservationCreate(ReservationDates):
    # Required fields are checked by the create operation so that every
    # missing one can be reported together.
    customer_id: Optional[int] = None
    room_id: Optional[int] = None
    room_class_id: Optional[int] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    adults: int = 1
    children: int = 0
    infants: int = 0
    booking_type: Optional[str] = None
    purpose_of_visit: Optional[str] = None
    arrival_from: Optional[str] = None
    special_requests: Optional[str] = None
    remarks: Optional[str] = None
    billing_type: BillingType = BillingType.NIGHT_STAY
    base_room_rate: Optional[Decimal] = None
    extra_charges: Decimal = Decimal("0")
    discount_type: Optional[DiscountType] = None
    discount_value: Decimal = Decimal("0")
    discount_reason: Optional[str] = None
    service_charge: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    payment_method: Optional[PaymentMethod] = None
    total_amount: Optional[Decimal] = None
    advance_amount: Decimal = Decimal("0")
    advance_remarks: Optional[str] = None


# ----------------- Update -----------------
class ReservationUpdate(ReservationDates):
    """Partial update: only fields present in the request are applied."""
    id: Optional[int] = None
    room_id: Optional[int] = None
    room_class_id: Optional[int] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    adults: Optional[int] = None
    children: Optional[int] = None
    infants: Optional[int] = None
    special_requests: Optional[str] = None
    remarks: Optional[str] = None
    billing_type: Optional[BillingType] = None
    base_room_rate: Optional[Decimal] = None
    extra_charges: Optional[Decimal] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = None
    discount_reason: Optional[str] = None
    service_charge: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    customer: Optional[CustomerPatch] = None


# ----------------- Check-in / Check-out -----------------
class CheckInRequest(CamelModel):
    early_check_in_fee: Decimal = Decimal("0")
    late_check_in_fee: Decimal = Decimal("0")
    additional_charges: Decimal = Decimal("0")
    payment_amount: Decimal = Decimal("0")
    payment_method: PaymentMethod = PaymentMethod.CASH
    staff_notes: Optional[str] = None
    guest_confirmation: bool = False
    identity_verified: bool = False


class CheckOutRequest(CamelModel):
    additional_charges: Decimal = Decimal("0")
    late_checkout_fee: Decimal = Decimal("0")
    damage_fee: Decimal = Decimal("0")
    damage_description: Optional[str] = None
    payment_amount: Decimal = Decimal("0")
    payment_method: PaymentMethod = PaymentMethod.CASH
    staff_notes: Optional[str] = None


# ----------------- Out -----------------
class ReservationOut(CamelModel):
    id: int
    booking_number: str
    customer_id: int
    room_id: int
    room_class_id: int
    check_in_date: datetime
    check_out_date: datetime
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    actual_check_in: Optional[datetime] = None
    actual_check_out: Optional[datetime] = None
    number_of_nights: int
    adults: int = 1
    children: int = 0
    infants: int = 0
    guest_count: int = 1
    booking_type: Optional[str] = None
    purpose_of_visit: Optional[str] = None
    arrival_from: Optional[str] = None
    special_requests: Optional[str] = None
    remarks: Optional[str] = None
    billing_type: Optional[str] = None
    base_room_rate: Money
    total_room_charge: Money
    extra_charges: Money
    discount_type: Optional[str] = None
    discount_value: Money
    discount_reason: Optional[str] = None
    discount_amount: Money
    service_charge: Money
    tax: Money
    total_amount: Money
    advance_amount: Money
    balance_amount: Money
    payment_method: Optional[str] = None
    payment_status: str
    advance_remarks: Optional[str] = None
    reservation_status: str
    cancellation_reason: Optional[str] = None
    cancellation_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    customer: Optional[CustomerOut] = None
    room: Optional[RoomOut] = None
    room_class: Optional[RoomClassOut] = None


# ----------------- Request -----------------
class ReservationRequest(CommonQueryParams):
    status: Optional[str] = None
    room_class_id: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None


# ----------------- List Response -----------------
class ReservationStats(CamelModel):
    total_reservations: int = 0
    active_reservations: int = 0
    today_check_ins: int = 0
    today_check_outs: int = 0
    pending_reservations: int = 0
    cancelled_reservations: int = 0
    monthly_revenue: float = 0
    average_daily_rate: float = 0
    occupancy_rate: int = 0
    revenue_growth: int = 0
    total_room_nights: int = 0


class Pagination(CamelModel):
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next: bool
    has_prev: bool


# ----------------- Check-in / Check-out Preview -----------------
class CheckInPreview(CamelModel):
    is_early_check_in: bool
    is_late_check_in: bool
    early_check_in_fee: Money
    late_check_in_fee: Money
    current_date_time: datetime


class CheckOutPreview(CamelModel):
    late_checkout_fee: Money
    actual_stay_days: int
    updated_total_amount: Money
    final_balance_amount: Money
    current_date_time: datetime


# ----------------- Calendar -----------------
class CalendarStats(CamelModel):
    total_reservations: int = 0
    checked_in: int = 0
    checking_out: int = 0
    arriving: int = 0
