# app/utils/decimal_utils.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext

# Matches Numeric(18, 6) on quantity columns.
QUANTITY_PLACES = Decimal("0.000001")
MAX_INTEGER_DIGITS = 12
MAX_QUANTITY = Decimal("999999999999.999999")


def _as_decimal(value) -> Decimal:
    if value is None:
        raise ValueError("quantity is required")
    if isinstance(value, bool):
        raise ValueError("quantity must be numeric")
    try:
        dec = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"quantity is not a decimal: {value!r}")
    if not dec.is_finite():
        raise ValueError("quantity must be finite")
    return dec


def _check_magnitude(dec: Decimal):
    # adjusted() is the exponent of the leading digit, so 12 integer digits -> 11
    if dec and dec.adjusted() >= MAX_INTEGER_DIGITS:
        raise ValueError(f"quantity must not exceed {MAX_QUANTITY}")


def to_quantity(value) -> Decimal:
    """
    Exact decimal quantity at storage scale. Floats go through str() so 0.1 stays 0.1.

    Never rounds: more than 6 fractional digits or more than 12 integer
    digits raise ValueError.
    """
    dec = _as_decimal(value)
    _check_magnitude(dec)

    scaled = dec.quantize(QUANTITY_PLACES)
    if scaled != dec:
        raise ValueError("quantity allows at most 6 decimal places")
    return scaled


def convert_presentation(presentation_quantity, multiplier) -> Decimal:
    # business rule: convert first, round once, half-up at storage scale
    with localcontext() as ctx:
        ctx.prec = 50
        product = _as_decimal(presentation_quantity) * _as_decimal(multiplier)
        _check_magnitude(product)
        rounded = product.quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)

    if rounded.copy_abs() > MAX_QUANTITY:
        raise ValueError(f"quantity must not exceed {MAX_QUANTITY}")
    return rounded
