from dataclasses import dataclass
from decimal import Decimal

from app.constants.error_codes import ErrorCode
from app.constants.stock_movement_type import StockMovementType
from app.core.exceptions import StockValidationException
from app.schemas.inventory.stock_movement_schemas import StockMovementCreateSchema
from app.utils.decimal_utils import to_quantity


MAX_REFERENCE_TYPE_LENGTH = 50
MAX_REFERENCE_ID_LENGTH = 80
MAX_NOTE_LENGTH = 500

FROM_SIDE = "from"
TO_SIDE = "to"


@dataclass(frozen=True)
class BalanceDelta:
    side: str
    location_id: int
    delta: Decimal


# =====================================================
# SHAPE VALIDATION
# =====================================================
def _require_location(value: int | None, field: str, movement_type: StockMovementType):
    if value is None:
        raise StockValidationException(
            f"{field} is required for {movement_type.value} movements",
            ErrorCode.MOVEMENT_LOCATION_REQUIRED,
            field,
        )


def _positive_quantity(value, field: str) -> Decimal:
    try:
        quantity = to_quantity(value)
    except ValueError as e:
        raise StockValidationException(str(e), ErrorCode.MOVEMENT_INVALID_QUANTITY, field)

    if quantity <= 0:
        raise StockValidationException(
            f"{field} must be a positive decimal",
            ErrorCode.MOVEMENT_INVALID_QUANTITY,
            field,
        )
    return quantity


def _check_length(value: str | None, field: str, limit: int):
    if value is not None and len(value) > limit:
        raise StockValidationException(
            f"{field} must be at most {limit} characters",
            ErrorCode.MOVEMENT_FIELD_TOO_LONG,
            field,
        )


def validate_movement_request(payload: StockMovementCreateSchema) -> Decimal | None:
    """
    Check the structural preconditions of a movement request.

    Returns the base quantity at storage scale, or None when it will be
    derived from the presentation during entity resolution. Raises
    StockValidationException naming the offending field; nothing is read
    or written.
    """
    movement_type = payload.type

    # -------------------------
    # LOCATIONS PER TYPE
    # -------------------------
    if movement_type == StockMovementType.IN:
        _require_location(payload.to_location_id, "to_location_id", movement_type)

    elif movement_type == StockMovementType.OUT:
        _require_location(payload.from_location_id, "from_location_id", movement_type)

    elif movement_type == StockMovementType.TRANSFER:
        _require_location(payload.from_location_id, "from_location_id", movement_type)
        _require_location(payload.to_location_id, "to_location_id", movement_type)
        if payload.from_location_id == payload.to_location_id:
            raise StockValidationException(
                "from_location_id and to_location_id must be different",
                ErrorCode.MOVEMENT_SAME_LOCATION,
                "to_location_id",
            )

    elif movement_type == StockMovementType.ADJUSTMENT:
        if payload.from_location_id is None and payload.to_location_id is None:
            raise StockValidationException(
                "from_location_id or to_location_id is required for ADJUSTMENT movements",
                ErrorCode.MOVEMENT_LOCATION_REQUIRED,
                "to_location_id",
            )

    # -------------------------
    # QUANTITY / PRESENTATION
    # -------------------------
    if payload.presentation_quantity is not None and payload.presentation_id is None:
        raise StockValidationException(
            "presentation_id is required when presentation_quantity is given",
            ErrorCode.MOVEMENT_INVALID_PRESENTATION,
            "presentation_id",
        )

    quantity = None
    if payload.presentation_id is not None:
        if payload.presentation_quantity is None:
            raise StockValidationException(
                "presentation_quantity is required when presentation_id is given",
                ErrorCode.MOVEMENT_INVALID_PRESENTATION,
                "presentation_quantity",
            )
        _positive_quantity(payload.presentation_quantity, "presentation_quantity")
        if payload.quantity is not None:
            quantity = _positive_quantity(payload.quantity, "quantity")
    else:
        if payload.quantity is None:
            raise StockValidationException(
                "quantity is required",
                ErrorCode.MOVEMENT_INVALID_QUANTITY,
                "quantity",
            )
        quantity = _positive_quantity(payload.quantity, "quantity")

    # -------------------------
    # REFERENCE / NOTE
    # -------------------------
    if payload.reference_id is not None and payload.reference_type is None:
        raise StockValidationException(
            "reference_type is required when reference_id is given",
            ErrorCode.VALIDATION_ERROR,
            "reference_type",
        )
    _check_length(payload.reference_type, "reference_type", MAX_REFERENCE_TYPE_LENGTH)
    _check_length(payload.reference_id, "reference_id", MAX_REFERENCE_ID_LENGTH)
    _check_length(payload.note, "note", MAX_NOTE_LENGTH)

    return quantity


# =====================================================
# SIGNED DELTAS
# =====================================================
def signed_deltas(
    movement_type: StockMovementType,
    from_location_id: int | None,
    to_location_id: int | None,
    quantity: Decimal,
) -> list[BalanceDelta]:
    """
    Balance effects of a movement, in application order.

    Shared by the engine and by ledger replay so both agree on signs.
    An ADJUSTMENT with a destination is a positive adjustment there; the
    source, if also present, is informational only.
    """
    if movement_type == StockMovementType.IN:
        return [BalanceDelta(TO_SIDE, to_location_id, quantity)]

    if movement_type == StockMovementType.OUT:
        return [BalanceDelta(FROM_SIDE, from_location_id, -quantity)]

    if movement_type == StockMovementType.TRANSFER:
        return [
            BalanceDelta(FROM_SIDE, from_location_id, -quantity),
            BalanceDelta(TO_SIDE, to_location_id, quantity),
        ]

    if movement_type == StockMovementType.ADJUSTMENT:
        if to_location_id is not None:
            return [BalanceDelta(TO_SIDE, to_location_id, quantity)]
        return [BalanceDelta(FROM_SIDE, from_location_id, -quantity)]

    raise ValueError(f"Unknown movement type {movement_type}")


def decreases_stock(payload: StockMovementCreateSchema) -> bool:
    if payload.type in (StockMovementType.OUT, StockMovementType.TRANSFER):
        return True
    return payload.type == StockMovementType.ADJUSTMENT and payload.to_location_id is None
