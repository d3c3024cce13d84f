from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shared.core.database import get_db
from shared.helpers.json_response_helper import success_response
from ...crud.rooms import rooms_crud as crud

router = APIRouter(prefix="/api/rooms", tags=["Rooms"])


# ---------------- Available Rooms ----------------
@router.get("/available")
def get_available_rooms_endpoint(
    room_class_id: Optional[str] = Query(None, alias="roomClassId"),
    check_in_date: Optional[str] = Query(None, alias="checkInDate"),
    check_out_date: Optional[str] = Query(None, alias="checkOutDate"),
    db: Session = Depends(get_db),
):
    return success_response(
        crud.get_available_rooms(db, room_class_id, check_in_date, check_out_date))
