from enum import Enum


class ReservationStatus(str, Enum):

    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    CANCELLED = "CANCELLED"


class RoomStatus(str, Enum):

    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    MAINTENANCE = "MAINTENANCE"
    CLEANING = "CLEANING"
    OUT_OF_ORDER = "OUT_OF_ORDER"


class PaymentStatus(str, Enum):

    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class DiscountType(str, Enum):

    NONE = "NONE"
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class PaymentMethod(str, Enum):

    CASH = "CASH"
    CARD = "CARD"
    CREDIT_CARD = "CREDIT_CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    MOBILE_PAYMENT = "MOBILE_PAYMENT"
    ONLINE = "ONLINE"


class BillingType(str, Enum):

    NIGHT_STAY = "NIGHT_STAY"
    DAY_USE = "DAY_USE"
    HOURLY = "HOURLY"
