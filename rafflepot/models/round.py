"""Database model for a single raffle and its live round state."""

from __future__ import annotations

import enum
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Enum,
    Integer,
    String,
    UniqueConstraint,
    func,
    inspect,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from .base import Base
from .id_type import AMOUNT_TYPE, ID_TYPE

if TYPE_CHECKING:
    from .draw import DrawRequest
    from .entry import RaffleEntry


DEFAULT_REQUEST_CONFIRMATIONS = 3
DEFAULT_NUM_WORDS = 1


class RoundState(str, enum.Enum):
    """Two-valued gate controlling admission and draws."""

    OPEN = "open"
    CALCULATING = "calculating"


# Configuration that may be written exactly once, when the raffle is created.
IMMUTABLE_FIELDS = (
    "entry_fee",
    "draw_interval",
    "provider_endpoint",
    "gas_lane",
    "subscription_id",
    "callback_gas_limit",
    "request_confirmations",
    "num_words",
)


class Round(Base):
    """A raffle whose pot cycles through OPEN and CALCULATING indefinitely.

    One row is one independent raffle. The participants of the live cycle are
    the :class:`RaffleEntry` rows stamped with the current ``cycle``; advancing
    ``cycle`` clears them while keeping earlier entries for auditing.
    """

    __tablename__ = "rounds"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    """Machine friendly identifier so several raffles can coexist."""

    entry_fee: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False)
    """Minimum amount a participant must pay to enter."""

    draw_interval: Mapped[int] = mapped_column(Integer, nullable=False)
    """Seconds that must elapse after the last draw before the next one."""

    last_draw_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    """Epoch seconds of the last successful draw (or of creation)."""

    state: Mapped[RoundState] = mapped_column(
        Enum(
            RoundState,
            name="round_state",
            native_enum=False,
            create_constraint=True,
            length=20,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=RoundState.OPEN,
    )
    """Current gate; CALCULATING while a randomness request is outstanding."""

    cycle: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Number of completed draws; entries of the live cycle carry this value."""

    pot_balance: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False, default=0)
    """Accumulated fees since the last payout."""

    recent_winner: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Participant paid out by the most recent draw."""

    pending_request_id: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )
    """Correlation handle of the outstanding randomness request, if any."""

    provider_endpoint: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )
    """Identity of the randomness provider serving this raffle."""

    gas_lane: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Provider key hash selecting the priority lane for requests."""

    subscription_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Provider subscription billed for requests."""

    callback_gas_limit: Mapped[int] = mapped_column(
        Integer, nullable=False, default=500_000
    )
    """Resource limit granted to the provider's callback."""

    request_confirmations: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_REQUEST_CONFIRMATIONS
    )
    num_words: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_NUM_WORDS
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    entries: Mapped[list["RaffleEntry"]] = relationship(
        back_populates="round",
        cascade="all, delete-orphan",
        order_by="RaffleEntry.id",
    )
    """Every entry ever accepted, across all cycles."""

    draw_requests: Mapped[list["DrawRequest"]] = relationship(
        back_populates="round",
        cascade="all, delete-orphan",
        order_by="DrawRequest.id",
    )

    __table_args__ = (
        UniqueConstraint("name", name="rounds_name_key"),
        CheckConstraint("entry_fee >= 0", name="entry_fee_non_negative"),
        CheckConstraint("draw_interval >= 0", name="draw_interval_non_negative"),
        CheckConstraint("pot_balance >= 0", name="pot_balance_non_negative"),
    )

    def __init__(
        self,
        *,
        name: str,
        entry_fee: int,
        draw_interval: int,
        last_draw_timestamp: Optional[int] = None,
        provider_endpoint: Optional[str] = None,
        gas_lane: Optional[str] = None,
        subscription_id: Optional[str] = None,
        callback_gas_limit: int = 500_000,
        request_confirmations: int = DEFAULT_REQUEST_CONFIRMATIONS,
        num_words: int = DEFAULT_NUM_WORDS,
    ) -> None:
        if not name or not name.strip():
            raise ValueError("Round name must not be empty")
        self.name = name.strip()
        self.entry_fee = entry_fee
        self.draw_interval = draw_interval
        self.last_draw_timestamp = (
            last_draw_timestamp if last_draw_timestamp is not None else int(time.time())
        )
        self.provider_endpoint = provider_endpoint
        self.gas_lane = gas_lane
        self.subscription_id = subscription_id
        self.callback_gas_limit = callback_gas_limit
        self.request_confirmations = request_confirmations
        self.num_words = num_words
        self.state = RoundState.OPEN
        self.cycle = 0
        self.pot_balance = 0

    @validates(*IMMUTABLE_FIELDS)
    def _validate_immutable(self, key: str, value):
        if inspect(self).has_identity:
            # Persisted rows: an expired attribute cannot be compared, so refuse.
            if key not in self.__dict__ or self.__dict__[key] != value:
                raise ValueError(f"{key} is fixed once the raffle is created")
        else:
            current = self.__dict__.get(key)
            if current is not None and current != value:
                raise ValueError(f"{key} is fixed once the raffle is created")
        if key in ("entry_fee", "draw_interval", "callback_gas_limit"):
            if not isinstance(value, int) or value < 0:
                raise ValueError(f"{key} must be a non-negative integer")
        if key in ("request_confirmations", "num_words"):
            if not isinstance(value, int) or value < 1:
                raise ValueError(f"{key} must be a positive integer")
        return value

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Round(id={id}, name={name}, state={state}, cycle={cycle}, pot={pot})>".format(
            id=self.id,
            name=self.name,
            state=self.state.value if self.state else None,
            cycle=self.cycle,
            pot=self.pot_balance,
        )

    def current_entries(self, session: Session) -> list["RaffleEntry"]:
        """Return the entries of the live cycle in the order they were accepted."""

        from .entry import RaffleEntry

        stmt = (
            select(RaffleEntry)
            .where(RaffleEntry.round_id == self.id, RaffleEntry.cycle == self.cycle)
            .order_by(RaffleEntry.id.asc())
        )
        return list(session.scalars(stmt).all())

    def participants(self, session: Session) -> list[str]:
        """Return participant identifiers of the live cycle, insertion ordered."""

        return [entry.participant for entry in self.current_entries(session)]

    def participant_count(self, session: Session) -> int:
        from .entry import RaffleEntry

        stmt = select(func.count(RaffleEntry.id)).where(
            RaffleEntry.round_id == self.id, RaffleEntry.cycle == self.cycle
        )
        return int(session.scalar(stmt) or 0)

    def pending_draw_request(self, session: Session) -> Optional["DrawRequest"]:
        """Return the :class:`DrawRequest` matching ``pending_request_id``."""

        if self.pending_request_id is None:
            return None
        from .draw import DrawRequest

        return session.scalar(
            select(DrawRequest).where(
                DrawRequest.round_id == self.id,
                DrawRequest.request_id == self.pending_request_id,
            )
        )

    @classmethod
    def get_by_name(cls, session: Session, name: str) -> Optional["Round"]:
        """Return the raffle matching ``name`` if it exists."""

        return session.scalar(select(cls).where(cls.name == name))


__all__ = ["Round", "RoundState", "IMMUTABLE_FIELDS"]
