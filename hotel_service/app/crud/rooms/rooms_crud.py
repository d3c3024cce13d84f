from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode
from shared.utils.date_helper import parse_datetime
from ...schemas.reservations.reservations_schemas import RoomWithClassOut
from ..reservations.availability import find_available_rooms
from ..reservations.pricing import calculate_nights
from ..reservations.reservations_crud import parse_id


def get_available_rooms(
    db: Session,
    room_class_id: Optional[str],
    check_in_date: Optional[str],
    check_out_date: Optional[str],
) -> Dict[str, Any]:
    missing = [
        name for name, value in (
            ("roomClassId", room_class_id),
            ("checkInDate", check_in_date),
            ("checkOutDate", check_out_date),
        )
        if not value
    ]
    if missing:
        error_response(
            "Missing required parameters",
            details=", ".join(missing),
            status_code=AppStatusCode.MISSING_FIELD,
        )

    class_id = parse_id(room_class_id, "room class")
    try:
        check_in = parse_datetime(check_in_date)
        check_out = parse_datetime(check_out_date)
    except ValueError as e:
        error_response(
            "Invalid date format",
            details=str(e),
            status_code=AppStatusCode.INVALID_DATE,
        )

    if check_in >= check_out:
        error_response(
            "Check-out date must be after check-in date",
            status_code=AppStatusCode.INVALID_DATE_RANGE,
        )

    rooms = find_available_rooms(db, class_id, check_in, check_out)
    return {
        "rooms": [
            RoomWithClassOut.model_validate(room).model_dump(by_alias=True, mode="json")
            for room in rooms
        ],
        "total": len(rooms),
        "period": {
            "checkInDate": check_in.isoformat(),
            "checkOutDate": check_out.isoformat(),
            "nights": calculate_nights(check_in, check_out),
        },
    }
