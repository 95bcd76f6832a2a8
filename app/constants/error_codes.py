# app/constants/error_codes.py

from enum import Enum


class ErrorCode(str, Enum):
    # Generic
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    STORAGE_ERROR = "STORAGE_ERROR"
    STOCK_LOCK_TIMEOUT = "STOCK_LOCK_TIMEOUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Movement request shape
    MOVEMENT_LOCATION_REQUIRED = "MOVEMENT_LOCATION_REQUIRED"
    MOVEMENT_SAME_LOCATION = "MOVEMENT_SAME_LOCATION"
    MOVEMENT_INVALID_QUANTITY = "MOVEMENT_INVALID_QUANTITY"
    MOVEMENT_INVALID_PRESENTATION = "MOVEMENT_INVALID_PRESENTATION"
    MOVEMENT_FIELD_TOO_LONG = "MOVEMENT_FIELD_TOO_LONG"

    # Catalog lookups
    SUPPLY_NOT_FOUND = "SUPPLY_NOT_FOUND"
    LOCATION_NOT_FOUND = "LOCATION_NOT_FOUND"
    LOT_NOT_FOUND = "LOT_NOT_FOUND"
    MOVEMENT_NOT_FOUND = "MOVEMENT_NOT_FOUND"

    # Balance state
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    LOT_EXPIRED = "LOT_EXPIRED"
    BALANCE_VERSION_CONFLICT = "BALANCE_VERSION_CONFLICT"
    BALANCE_LIMIT_EXCEEDED = "BALANCE_LIMIT_EXCEEDED"
