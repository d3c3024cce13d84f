import logging
import time
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shared.core.config import settings
from ...models.hotel.reservations import Reservation

logger = logging.getLogger(__name__)

SEQUENCE_DIGITS = 3
MAX_SEQUENCE = 10 ** SEQUENCE_DIGITS - 1


def booking_prefix(today: date) -> str:
    return f"{settings.BOOKING_NUMBER_PREFIX}{today:%y%m%d}"


def fallback_booking_number(prefix: str) -> str:
    # last six digits of epoch milliseconds; ordering is not sequential
    return f"{prefix}{str(int(time.time() * 1000))[-6:]}"


def latest_booking_number(db: Session, prefix: str) -> Optional[str]:
    row = (
        db.query(Reservation.booking_number)
        .filter(
            Reservation.booking_number.like(f"{prefix}%"),
            func.length(Reservation.booking_number) == len(prefix) + SEQUENCE_DIGITS,
        )
        .order_by(Reservation.booking_number.desc())
        .first()
    )
    return row[0] if row else None


def generate_booking_number(db: Session, today: Optional[date] = None) -> str:
    """Next BK{YY}{MM}{DD}{NNN} identifier for the day.

    Falls back to a timestamp suffix when the day's sequence cannot be read,
    so a failing lookup never blocks a reservation.
    """
    prefix = booking_prefix(today or date.today())

    try:
        latest = latest_booking_number(db, prefix)
        sequence = int(latest[-SEQUENCE_DIGITS:]) + 1 if latest else 1
    except SQLAlchemyError:
        db.rollback()
        logger.warning(
            "Booking number lookup failed for %s, using timestamp fallback", prefix, exc_info=True)
        return fallback_booking_number(prefix)
    except ValueError:
        logger.warning(
            "Unparseable booking sequence for %s, using timestamp fallback", prefix)
        return fallback_booking_number(prefix)

    if sequence > MAX_SEQUENCE:
        logger.warning(
            "Daily booking sequence exhausted for %s, using timestamp fallback", prefix)
        return fallback_booking_number(prefix)

    return f"{prefix}{sequence:0{SEQUENCE_DIGITS}d}"
