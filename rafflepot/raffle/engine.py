"""Engine driving a raffle through entry, draw request and payout."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from .eligibility import EligibilityReport, evaluate_eligibility
from .errors import (
    InsufficientFee,
    PayoutTransferFailed,
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
from ..models import DrawRequest, RaffleEntry, Round, RoundState
from ..provider.interfaces import PayoutGateway, RandomnessProvider

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class RaffleEngine:
    """Engine that applies raffle operations to one persisted :class:`Round`.

    Every mutating operation first locks the round row for the remainder of
    the caller's transaction, so operations on the same raffle are serialized.
    The engine flushes but never commits; the caller owns the transaction.
    """

    def __init__(
        self,
        session: Session,
        round: Round,
        *,
        randomness: Optional[RandomnessProvider] = None,
        payouts: Optional[PayoutGateway] = None,
        notifier: Optional[EventNotifier] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """Create a raffle engine bound to a SQLAlchemy session.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session used for locking and persistence.
        round : Round
            Persisted raffle the engine operates on.
        randomness : Optional[RandomnessProvider], default: None
            Provider used by :meth:`start_draw`. Required only for draws.
        payouts : Optional[PayoutGateway], default: None
            Gateway used by :meth:`resolve`. Required only for resolution.
        notifier : Optional[EventNotifier], default: None
            Receives entry/draw/winner notifications. A private notifier with
            no subscribers is used when omitted.
        clock : Optional[Callable[[], float]], default: None
            Returns the current time in epoch seconds. Defaults to
            :func:`time.time`.
        """

        if round.id is None:
            raise ValueError("Round must be persisted before running raffle operations")
        self._session = session
        self._round = round
        self._randomness = randomness
        self._payouts = payouts
        self._notifier = notifier or EventNotifier()
        self._clock = clock or time.time

    @property
    def round(self) -> Round:
        return self._round

    @property
    def notifier(self) -> EventNotifier:
        return self._notifier

    def _now(self) -> int:
        return int(self._clock())

    def _lock_round(self) -> Round:
        """Re-read the round with a row lock held until the transaction ends."""

        self._session.flush()
        stmt = (
            select(Round)
            .where(Round.id == self._round.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        locked = self._session.scalar(stmt)
        if locked is None:
            raise ValueError(f"Round {self._round.id} no longer exists")
        self._round = locked
        return locked

    def _report_for(self, round_: Round) -> EligibilityReport:
        return evaluate_eligibility(
            now=self._now(),
            last_draw_timestamp=round_.last_draw_timestamp,
            draw_interval=round_.draw_interval,
            state=round_.state,
            pot_balance=round_.pot_balance,
            participant_count=round_.participant_count(self._session),
        )

    # -------- entry --------
    def enter(self, participant: str, paid_amount: int) -> RaffleEntry:
        """Admit ``participant`` into the live cycle.

        Parameters
        ----------
        participant : str
            Identifier of the entrant. Entering again buys another ticket.
        paid_amount : int
            Amount paid. Anything above the entry fee also goes to the pot.

        Returns
        -------
        RaffleEntry
            The flushed entry row.

        Raises
        ------
        InsufficientFee
            If ``paid_amount`` is below the entry fee. Checked first.
        RoundNotOpen
            If a draw is in progress.
        ValueError
            If the participant is blank or the amount negative.
        """

        if not isinstance(participant, str) or not participant.strip():
            raise ValueError("participant must be a non-empty string")
        if paid_amount < 0:
            raise ValueError("paid_amount must be non-negative")

        round_ = self._lock_round()
        if paid_amount < round_.entry_fee:
            logger.warning(
                "Rejected entry from %s to %s: paid %s < fee %s",
                participant,
                round_.name,
                paid_amount,
                round_.entry_fee,
            )
            raise InsufficientFee(round_.entry_fee, paid_amount)
        if round_.state != RoundState.OPEN:
            logger.warning(
                "Rejected entry from %s to %s: state is %s",
                participant,
                round_.name,
                round_.state.value,
            )
            raise RoundNotOpen(round_.state)

        entry = RaffleEntry(
            round_id=round_.id,
            cycle=round_.cycle,
            participant=participant,
            amount=paid_amount,
        )
        self._session.add(entry)
        round_.pot_balance = round_.pot_balance + paid_amount
        self._session.flush()

        logger.info(
            "Accepted entry from %s to %s (pot=%s)",
            participant,
            round_.name,
            round_.pot_balance,
        )
        self._notifier.publish(
            Notification(
                kind=ENTRY_ACCEPTED,
                round_name=round_.name,
                payload={"participant": participant, "amount": paid_amount},
            )
        )
        return entry

    # -------- eligibility --------
    def eligibility_report(self) -> EligibilityReport:
        """Return every draw condition without changing any state."""

        return self._report_for(self._round)

    def check_eligibility(self) -> bool:
        """Return ``True`` when a draw may start now.

        All of the following must hold: the draw interval has elapsed since
        the last draw, the raffle is OPEN, the pot is positive and there is
        at least one participant. Safe to call any number of times.
        """

        return self.eligibility_report().eligible

    # -------- draw request --------
    def start_draw(self) -> DrawRequest:
        """Move the raffle to CALCULATING and request randomness.

        Returns as soon as the request is dispatched. The provider later
        answers through :meth:`resolve` with the handle recorded here.

        Returns
        -------
        DrawRequest
            The pending request, holding the provider's correlation handle.

        Raises
        ------
        UpkeepNotNeeded
            If the raffle is not eligible, including when a draw is already
            in progress.
        ValueError
            If no randomness provider was configured.

        Notes
        -----
        A provider failure propagates unchanged and the raffle stays OPEN.
        """

        if self._randomness is None:
            raise ValueError("A randomness provider is required to start a draw")

        round_ = self._lock_round()
        report = self._report_for(round_)
        if not report.eligible:
            logger.warning(
                "Draw not started for %s: pot=%s participants=%s state=%s",
                round_.name,
                report.pot_balance,
                report.participant_count,
                report.state.value,
            )
            raise UpkeepNotNeeded(
                report.pot_balance, report.participant_count, report.state
            )

        with self._session.begin_nested():
            round_.state = RoundState.CALCULATING
            self._session.flush()
            request_id = self._randomness.request_random_words(
                key_hash=round_.gas_lane,
                subscription_id=round_.subscription_id,
                request_confirmations=round_.request_confirmations,
                callback_gas_limit=round_.callback_gas_limit,
                num_words=round_.num_words,
            )
            if not request_id:
                raise RuntimeError("Randomness provider returned an empty request handle")
            round_.pending_request_id = str(request_id)
            draw = DrawRequest(
                round_id=round_.id,
                request_id=str(request_id),
                cycle=round_.cycle,
                participant_count=report.participant_count,
                pot_balance=report.pot_balance,
            )
            self._session.add(draw)
            self._session.flush()

        logger.info(
            "Requested randomness %s for %s (%s participants, pot=%s)",
            draw.request_id,
            round_.name,
            draw.participant_count,
            draw.pot_balance,
        )
        self._notifier.publish(
            Notification(
                kind=DRAW_REQUESTED,
                round_name=round_.name,
                payload={"request_id": draw.request_id},
            )
        )
        return draw

    # -------- resolution --------
    def resolve(self, request_id: str, random_value: int) -> DrawRequest:
        """Pick the winner for the outstanding request and pay out the pot.

        Parameters
        ----------
        request_id : str
            Correlation handle delivered with the provider's response.
        random_value : int
            Non-negative random value; the winner is
            ``participants[random_value % len(participants)]``.

        Returns
        -------
        DrawRequest
            The request row, now ``"fulfilled"`` with winner and payout.

        Raises
        ------
        UnknownRequest
            If ``request_id`` does not match the outstanding request.
        PayoutTransferFailed
            If the payout gateway raises or returns ``False``.
        ValueError
            If ``random_value`` is negative or no payout gateway is configured.

        Notes
        -----
        Resetting the raffle and paying the winner happen inside one
        savepoint:

        1. Record the winner, advance the cycle (clearing participants),
           reopen the raffle, stamp the draw time, clear the pending handle,
           fulfil the :class:`DrawRequest` and zero the pot.
        2. Transfer the whole pot to the winner.

        If step 2 fails the savepoint is rolled back, so the raffle is left
        CALCULATING with its pot and participants intact and the call can be
        retried. ``winner_picked`` is only published once the savepoint is
        released.
        """

        if not isinstance(random_value, int) or random_value < 0:
            raise ValueError("random_value must be a non-negative integer")
        if self._payouts is None:
            raise ValueError("A payout gateway is required to resolve a draw")

        round_ = self._lock_round()
        pending = round_.pending_request_id
        if pending is None or str(request_id) != pending:
            logger.warning(
                "Ignoring randomness response %s for %s (outstanding: %s)",
                request_id,
                round_.name,
                pending,
            )
            raise UnknownRequest(str(request_id), pending)

        draw = round_.pending_draw_request(self._session)
        if draw is None:
            raise RuntimeError(
                f"Round {round_.name} has no draw request recorded for {pending}"
            )
        entries = round_.current_entries(self._session)
        if not entries:
            raise RuntimeError(f"Round {round_.name} is drawing without participants")

        winner_index = random_value % len(entries)
        winner = entries[winner_index].participant
        amount = round_.pot_balance
        now = self._now()

        try:
            with self._session.begin_nested():
                round_.recent_winner = winner
                round_.cycle = round_.cycle + 1
                round_.state = RoundState.OPEN
                round_.last_draw_timestamp = now
                round_.pending_request_id = None
                round_.pot_balance = 0

                draw.status = "fulfilled"
                draw.random_value = str(random_value)
                draw.winner_index = winner_index
                draw.winner = winner
                draw.payout_amount = amount
                draw.fulfilled_at = datetime.now(timezone.utc)
                self._session.flush()

                self._pay(winner, amount)
        except PayoutTransferFailed:
            logger.error(
                "Payout of %s to %s failed; %s remains %s",
                amount,
                winner,
                round_.name,
                round_.state.value,
            )
            raise

        logger.info(
            "Winner of %s is %s (index %s of %s), paid %s",
            round_.name,
            winner,
            winner_index,
            len(entries),
            amount,
        )
        self._notifier.publish(
            Notification(
                kind=WINNER_PICKED,
                round_name=round_.name,
                payload={"winner": winner, "amount": amount, "request_id": draw.request_id},
            )
        )
        return draw

    def fulfill_random_words(
        self, request_id: str, random_words: Sequence[int]
    ) -> DrawRequest:
        """Provider-callback entry point; the first word decides the winner."""

        if not random_words:
            raise ValueError("random_words must contain at least one value")
        return self.resolve(request_id, int(random_words[0]))

    def _pay(self, winner: str, amount: int) -> None:
        assert self._payouts is not None
        try:
            delivered = self._payouts.transfer(winner, amount)
        except Exception as exc:
            raise PayoutTransferFailed(winner, amount) from exc
        if delivered is False:
            raise PayoutTransferFailed(winner, amount)

    # -------- read-only accessors --------
    def get_entrance_fee(self) -> int:
        return self._round.entry_fee

    def get_state(self) -> RoundState:
        return self._round.state

    def get_recent_winner(self) -> Optional[str]:
        return self._round.recent_winner

    def get_participants(self) -> list[str]:
        return self._round.participants(self._session)

    def get_participant(self, index: int) -> str:
        """Return the participant at ``index``; raises ``IndexError`` when out of range."""

        return self.get_participants()[index]

    def get_number_of_participants(self) -> int:
        return self._round.participant_count(self._session)

    def get_pot_balance(self) -> int:
        return self._round.pot_balance

    def get_last_draw_timestamp(self) -> int:
        return self._round.last_draw_timestamp

    def get_draw_interval(self) -> int:
        return self._round.draw_interval

    def get_request_confirmations(self) -> int:
        return self._round.request_confirmations

    def get_num_words(self) -> int:
        return self._round.num_words


__all__ = ["RaffleEngine"]
