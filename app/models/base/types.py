from decimal import Decimal

from sqlalchemy import BigInteger, Numeric
from sqlalchemy.types import TypeDecorator

from app.utils.decimal_utils import to_quantity

QUANTITY_SCALE = 6


class Quantity(TypeDecorator):
    """
    Exact quantity column: NUMERIC(18, 6) on Postgres.

    SQLite has no exact decimal type and would round-trip NUMERIC through
    float, so there the value is stored as an integer count of millionths
    (at most 18 digits, inside BIGINT range). Check constraints such as
    `quantity >= 0` keep their meaning because the sign and order survive.
    """

    impl = Numeric
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(BigInteger())
        return dialect.type_descriptor(Numeric(18, QUANTITY_SCALE))

    def process_bind_param(self, value, dialect):
        if value is None or dialect.name != "sqlite":
            return value
        return int(to_quantity(value).scaleb(QUANTITY_SCALE))

    def process_result_value(self, value, dialect):
        if value is None or dialect.name != "sqlite":
            return value
        return Decimal(int(value)).scaleb(-QUANTITY_SCALE)
