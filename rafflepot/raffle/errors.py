"""Errors raised by raffle operations.

Every error is raised before any state is written, or after the partial
writes have been rolled back, so a caught error never leaves a raffle in an
intermediate state.
"""

from __future__ import annotations

from typing import Optional

from ..models.round import RoundState


class RaffleError(Exception):
    """Base class for rejected raffle operations."""


class InsufficientFee(RaffleError):
    def __init__(self, entry_fee: int, paid_amount: int) -> None:
        self.entry_fee = entry_fee
        self.paid_amount = paid_amount
        super().__init__(
            f"Entry requires at least {entry_fee}, got {paid_amount}"
        )


class RoundNotOpen(RaffleError):
    def __init__(self, state: RoundState) -> None:
        self.state = state
        super().__init__(f"Raffle is not accepting entries (state={state.value})")


class UpkeepNotNeeded(RaffleError):
    """A draw was requested while the raffle was not eligible.

    Carries a diagnostic snapshot of the values that gate eligibility.
    """

    def __init__(
        self, pot_balance: int, participant_count: int, state: RoundState
    ) -> None:
        self.pot_balance = pot_balance
        self.participant_count = participant_count
        self.state = state
        super().__init__(
            "Draw not needed: pot_balance={pot}, participant_count={count}, state={state}".format(
                pot=pot_balance, count=participant_count, state=state.value
            )
        )


class UnknownRequest(RaffleError):
    def __init__(self, request_id: str, pending_request_id: Optional[str]) -> None:
        self.request_id = request_id
        self.pending_request_id = pending_request_id
        super().__init__(
            f"Randomness response {request_id!r} does not match the outstanding "
            f"request {pending_request_id!r}"
        )


class PayoutTransferFailed(RaffleError):
    def __init__(self, winner: str, amount: int) -> None:
        self.winner = winner
        self.amount = amount
        super().__init__(f"Transfer of {amount} to {winner} failed; draw rolled back")


__all__ = [
    "RaffleError",
    "InsufficientFee",
    "RoundNotOpen",
    "UpkeepNotNeeded",
    "UnknownRequest",
    "PayoutTransferFailed",
]
