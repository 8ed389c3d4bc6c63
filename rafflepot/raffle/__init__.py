"""Raffle state machine: admission, eligibility, draw request and payout."""

from .eligibility import EligibilityReport, evaluate_eligibility
from .engine import RaffleEngine
from .errors import (
    InsufficientFee,
    PayoutTransferFailed,
    RaffleError,
    RoundNotOpen,
    UnknownRequest,
    UpkeepNotNeeded,
)
from .notifier import (
    DRAW_REQUESTED,
    ENTRY_ACCEPTED,
    WINNER_PICKED,
    EventNotifier,
    Notification,
)

__all__ = [
    "EligibilityReport",
    "evaluate_eligibility",
    "RaffleEngine",
    "RaffleError",
    "InsufficientFee",
    "RoundNotOpen",
    "UpkeepNotNeeded",
    "UnknownRequest",
    "PayoutTransferFailed",
    "EventNotifier",
    "Notification",
    "ENTRY_ACCEPTED",
    "DRAW_REQUESTED",
    "WINNER_PICKED",
]
