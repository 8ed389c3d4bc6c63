from decimal import Decimal

from sqlalchemy import BigInteger, Integer, Numeric, String
from sqlalchemy.types import TypeDecorator

# Use BigInteger by default, with a SQLite-safe Integer variant for autoincrement PKs.
ID_TYPE = BigInteger().with_variant(Integer, "sqlite")

# 2**256 - 1 has 78 decimal digits.
AMOUNT_DIGITS = 78


class Amount(TypeDecorator):
    """Unsigned token amount of up to 256 bits, always returned as ``int``.

    Amounts are whole units of the smallest denomination, so a pot easily
    exceeds a signed 64-bit column. ``NUMERIC(78, 0)`` holds them on servers
    with exact decimals; SQLite would coerce such values to REAL, so there
    they are stored as decimal strings instead.
    """

    impl = Numeric(AMOUNT_DIGITS, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(AMOUNT_DIGITS))
        return dialect.type_descriptor(Numeric(AMOUNT_DIGITS, 0))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = int(value)
        if dialect.name == "sqlite":
            return str(value)
        return Decimal(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


AMOUNT_TYPE = Amount()
