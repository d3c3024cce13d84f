import logging

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)


def failure_body(error: str, details=None, code: str = AppStatusCode.OPERATION_FAILED) -> dict:
    return {
        "success": False,
        "error": error,
        "details": details,
        "code": code,
    }


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        if isinstance(exc.detail, dict):
            body = failure_body(
                error=str(exc.detail.get("error", "")),
                details=exc.detail.get("details"),
                code=exc.detail.get("code") or AppStatusCode.OPERATION_FAILED,
            )
        else:
            code = AppStatusCode.NOT_FOUND if exc.status_code == 404 else AppStatusCode.OPERATION_FAILED
            body = failure_body(error=str(exc.detail), code=code)
        return JSONResponse(content=body, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        body = failure_body(
            error="Invalid request",
            details=details,
            code=AppStatusCode.VALIDATION_ERROR,
        )
        return JSONResponse(content=body, status_code=400)

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        body = failure_body(
            error="Internal server error",
            details=str(exc),
            code=AppStatusCode.OPERATION_FAILED,
        )
        return JSONResponse(content=body, status_code=500)
