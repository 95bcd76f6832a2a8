from fastapi import HTTPException, status
from app.constants.error_codes import ErrorCode


class AppException(HTTPException):
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: ErrorCode,
        details: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.details = details


# -------------------------
# STOCK MOVEMENT TAXONOMY
# -------------------------
class StockValidationException(AppException):
    """Malformed movement request. Nothing was touched."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        field: str | None = None,
    ):
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            message,
            error_code,
            {"field": field} if field else None,
        )
        self.field = field


class StockNotFoundException(AppException):
    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.NOT_FOUND,
        entity: str | None = None,
        entity_id: int | None = None,
    ):
        details = None
        if entity:
            details = {"entity": entity, "id": entity_id}
        super().__init__(status.HTTP_404_NOT_FOUND, message, error_code, details)
        self.entity = entity


class StockConflictException(AppException):
    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFLICT,
        details: dict | None = None,
    ):
        super().__init__(status.HTTP_409_CONFLICT, message, error_code, details)


class InsufficientStockException(StockConflictException):
    def __init__(self, details: dict | None = None):
        super().__init__(
            "Insufficient stock",
            ErrorCode.INSUFFICIENT_STOCK,
            details,
        )
