from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.constants.error_codes import ErrorCode
from app.core.exceptions import AppException
import logging

logger = logging.getLogger(__name__)

# Postgres "lock_not_available", raised when lock_timeout expires
LOCK_NOT_AVAILABLE = "55P03"


def error_body(message, error_code: ErrorCode, details=None) -> dict:
    return {
        "success": False,
        "message": message,
        "error_code": error_code,
        "details": details,
    }


def _request_ctx(request: Request) -> dict:
    caller = getattr(request.state, "caller", None)
    return {
        "path": request.url.path,
        "method": request.method,
        "tenant_id": caller.tenant_id if caller else None,
    }


# -------------------------
# STOCK / APP EXCEPTIONS
# -------------------------
async def app_exception_handler(request: Request, exc: AppException):
    logger.warning(
        "[API] %s",
        exc.detail,
        extra={**_request_ctx(request), "error_code": exc.error_code.value},
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.detail, exc.error_code, exc.details),
    )


# -------------------------
# FASTAPI VALIDATION
# -------------------------
def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # ctx may hold exception instances (e.g. decimal parse errors)
    return [
        {k: v for k, v in err.items() if k != "ctx"}
        for err in exc.errors()
    ]


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
):
    return JSONResponse(
        status_code=422,
        content=error_body(
            "Invalid request data",
            ErrorCode.VALIDATION_ERROR,
            jsonable_errors(exc),
        ),
    )


# -------------------------
# HTTP EXCEPTIONS (mapped)
# -------------------------
HTTP_STATUS_TO_ERROR_CODE = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
}


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
):
    error_code = HTTP_STATUS_TO_ERROR_CODE.get(
        exc.status_code,
        ErrorCode.INTERNAL_ERROR,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.detail, error_code),
        headers=getattr(exc, "headers", None),
    )


# -------------------------
# STORAGE FAILURES
# -------------------------
def sqlstate_of(exc: SQLAlchemyError) -> str | None:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


async def storage_error_handler(
    request: Request, exc: SQLAlchemyError
):
    if sqlstate_of(exc) == LOCK_NOT_AVAILABLE:
        logger.warning("[API] stock lock wait timed out", extra=_request_ctx(request))
        return JSONResponse(
            status_code=503,
            content=error_body(
                "Stock is busy. Please retry.",
                ErrorCode.STOCK_LOCK_TIMEOUT,
            ),
        )

    logger.exception("Storage failure", extra=_request_ctx(request))

    return JSONResponse(
        status_code=500,
        content=error_body(
            "Storage failure. Please try again.",
            ErrorCode.STORAGE_ERROR,
        ),
    )


# -------------------------
# LAST RESORT
# -------------------------
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception", extra=_request_ctx(request))

    return JSONResponse(
        status_code=500,
        content=error_body(
            "Something went wrong. Please try again.",
            ErrorCode.INTERNAL_ERROR,
        ),
    )
