"""Read-only predicate deciding whether a raffle may start a draw."""

from __future__ import annotations

from dataclasses import dataclass

from ..models.round import RoundState


@dataclass(frozen=True)
class EligibilityReport:
    """Snapshot of every condition gating a draw.

    Attributes
    ----------
    interval_elapsed : bool
        ``now - last_draw_timestamp >= draw_interval``.
    is_open : bool
        The raffle is in :attr:`RoundState.OPEN`.
    has_balance : bool
        ``pot_balance > 0``.
    has_participants : bool
        At least one entry in the live cycle.
    pot_balance : int
    participant_count : int
    state : RoundState
        Diagnostic values copied into ``UpkeepNotNeeded`` on rejection.
    """

    interval_elapsed: bool
    is_open: bool
    has_balance: bool
    has_participants: bool
    pot_balance: int
    participant_count: int
    state: RoundState

    @property
    def eligible(self) -> bool:
        return (
            self.interval_elapsed
            and self.is_open
            and self.has_balance
            and self.has_participants
        )


def evaluate_eligibility(
    *,
    now: int,
    last_draw_timestamp: int,
    draw_interval: int,
    state: RoundState,
    pot_balance: int,
    participant_count: int,
) -> EligibilityReport:
    """Combine the four draw conditions into an :class:`EligibilityReport`.

    Pure function of its arguments; callers supply ``now`` so the result is
    reproducible.
    """

    return EligibilityReport(
        interval_elapsed=(now - last_draw_timestamp) >= draw_interval,
        is_open=state == RoundState.OPEN,
        has_balance=pot_balance > 0,
        has_participants=participant_count > 0,
        pot_balance=pot_balance,
        participant_count=participant_count,
        state=state,
    )


__all__ = ["EligibilityReport", "evaluate_eligibility"]
