from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .id_type import AMOUNT_TYPE, ID_TYPE

if TYPE_CHECKING:
    from .round import Round


class RaffleEntry(Base):
    """One accepted entry; a participant entering twice holds two tickets."""

    __tablename__ = "raffle_entries"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    round_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("rounds.id", ondelete="CASCADE"), nullable=False
    )
    cycle: Mapped[int] = mapped_column(Integer, nullable=False)
    participant: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    round: Mapped["Round"] = relationship(back_populates="entries")

    __table_args__ = (
        CheckConstraint("amount >= 0", name="amount_non_negative"),
        Index("ix_raffle_entries_round_cycle", "round_id", "cycle"),
    )

    def __init__(
        self,
        *,
        participant: str,
        amount: int,
        cycle: int,
        round: Optional["Round"] = None,
        round_id: Optional[int] = None,
    ) -> None:
        self.participant = participant
        self.amount = amount
        self.cycle = cycle
        if round is not None:
            self.round = round
        if round_id is not None:
            self.round_id = round_id

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<RaffleEntry(id={self.id}, round_id={self.round_id}, cycle={self.cycle}, "
            f"participant={self.participant}, amount={self.amount})>"
        )
