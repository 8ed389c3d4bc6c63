from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .round import Round, RoundState  # noqa: F401
from .entry import RaffleEntry  # noqa: F401
from .draw import DrawRequest  # noqa: F401

__all__ = [
    "Base",
    "Round",
    "RoundState",
    "RaffleEntry",
    "DrawRequest",
]
