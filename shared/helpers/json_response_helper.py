# shared/helpers/json_response_helper.py
from typing import Any, Optional

from fastapi import HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from shared.utils.app_status_code import AppStatusCode


def success_response(data: Optional[dict] = None, message: Optional[str] = None, http_status: int = 200):
    content: dict[str, Any] = {"success": True}
    content.update(jsonable_encoder(data or {}))
    if message:
        content["message"] = message
    return JSONResponse(content=content, status_code=http_status)


def error_response(
    message: str,
    details: Optional[str] = None,
    status_code: str = AppStatusCode.OPERATION_FAILED,
    http_status: int = 400,
):
    raise HTTPException(
        status_code=http_status,
        detail={
            "error": message,
            "details": details,
            "code": status_code,
        }
    )
