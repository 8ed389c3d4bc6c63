"""Audit trail of randomness requests and their resolution."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .id_type import AMOUNT_TYPE, ID_TYPE

if TYPE_CHECKING:
    from .round import Round


class DrawRequest(Base):
    """A randomness request issued for one cycle of a raffle."""

    __tablename__ = "draw_requests"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Surrogate primary key."""

    round_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("rounds.id", ondelete="CASCADE"), nullable=False, index=True
    )
    """Raffle the request belongs to."""

    cycle: Mapped[int] = mapped_column(Integer, nullable=False)
    """Cycle whose participants the request will draw from."""

    request_id: Mapped[str] = mapped_column(String(255), nullable=False)
    """Correlation handle returned by the randomness provider."""

    participant_count: Mapped[int] = mapped_column(Integer, nullable=False)
    """Number of participants when the draw started."""

    pot_balance: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False)
    """Pot when the draw started."""

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    """``"pending"`` until resolved, then ``"fulfilled"``."""

    random_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Random value delivered by the provider, as an unbounded decimal string."""

    winner_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    winner: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    payout_amount: Mapped[Optional[int]] = mapped_column(AMOUNT_TYPE, nullable=True)

    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    fulfilled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    round: Mapped["Round"] = relationship(back_populates="draw_requests")

    __table_args__ = (
        UniqueConstraint("round_id", "request_id", name="uq_draw_request_handle"),
        CheckConstraint("status IN ('pending','fulfilled')", name="status_enum"),
        Index("ix_draw_requests_status", "status"),
    )

    def __init__(
        self,
        *,
        request_id: str,
        cycle: int,
        participant_count: int,
        pot_balance: int,
        round: Optional["Round"] = None,
        round_id: Optional[int] = None,
        status: str = "pending",
        requested_at: Optional[datetime] = None,
    ) -> None:
        self.request_id = request_id
        self.cycle = cycle
        self.participant_count = participant_count
        self.pot_balance = pot_balance
        self.status = status
        if round is not None:
            self.round = round
        if round_id is not None:
            self.round_id = round_id
        if requested_at is not None:
            self.requested_at = requested_at

    @property
    def random_int(self) -> Optional[int]:
        """The stored random value as an integer, when fulfilled."""

        return int(self.random_value) if self.random_value is not None else None

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<DrawRequest(id={id}, round_id={rid}, request_id={req}, status={status}, winner={winner})>".format(
            id=self.id,
            rid=self.round_id,
            req=self.request_id,
            status=self.status,
            winner=self.winner,
        )


__all__ = ["DrawRequest"]
