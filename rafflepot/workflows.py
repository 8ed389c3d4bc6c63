from typing import TYPE_CHECKING, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import DrawRequest, RaffleEntry, Round
from .raffle.engine import Clock, RaffleEngine
from .raffle.notifier import EventNotifier

if TYPE_CHECKING:
    from .config import RoundSettings
    from .provider.interfaces import PayoutGateway, RandomnessProvider


def create_round(
    session: Session,
    name: str,
    *,
    settings: Optional["RoundSettings"] = None,
    entry_fee: Optional[int] = None,
    draw_interval: Optional[int] = None,
    created_at: Optional[int] = None,
) -> Round:
    """Persist a new raffle in the OPEN state.

    Configuration comes from ``settings`` when given; explicit ``entry_fee``
    and ``draw_interval`` override it. When neither is supplied the values
    are read from the environment through :meth:`RoundSettings.from_env`.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    name : str
        Unique raffle name.
    settings : Optional[RoundSettings]
        Immutable configuration for the raffle.
    entry_fee : Optional[int]
        Override for ``settings.entry_fee``.
    draw_interval : Optional[int]
        Override for ``settings.draw_interval`` (seconds).
    created_at : Optional[int]
        Epoch seconds used as the initial ``last_draw_timestamp``. Defaults
        to now.

    Returns
    -------
    Round
        The flushed raffle with a populated ``id``.

    Raises
    ------
    ValueError
        If a raffle named ``name`` already exists.
    """
    from .config import RoundSettings

    if Round.get_by_name(session, name) is not None:
        raise ValueError(f"A raffle named {name!r} already exists")

    if settings is None:
        settings = RoundSettings.from_env(entry_fee=entry_fee, draw_interval=draw_interval)

    round_ = Round(
        name=name,
        entry_fee=entry_fee if entry_fee is not None else settings.entry_fee,
        draw_interval=(
            draw_interval if draw_interval is not None else settings.draw_interval
        ),
        last_draw_timestamp=created_at,
        provider_endpoint=settings.provider_endpoint,
        gas_lane=settings.gas_lane,
        subscription_id=settings.subscription_id,
        callback_gas_limit=settings.callback_gas_limit,
    )
    session.add(round_)
    session.flush()
    return round_


def enter_raffle(
    session: Session,
    round: Round,
    participant: str,
    paid_amount: int,
    *,
    notifier: Optional[EventNotifier] = None,
) -> RaffleEntry:
    """Admit ``participant`` into ``round``; see :meth:`RaffleEngine.enter`."""

    engine = RaffleEngine(session, round, notifier=notifier)
    return engine.enter(participant, paid_amount)


def perform_upkeep(
    session: Session,
    round: Round,
    randomness: "RandomnessProvider",
    *,
    notifier: Optional[EventNotifier] = None,
    clock: Optional[Clock] = None,
) -> Optional[DrawRequest]:
    """Start a draw when ``round`` is eligible, as an automation agent would.

    Unlike :meth:`RaffleEngine.start_draw` an ineligible raffle is not an
    error here: the helper simply returns ``None``.
    """

    engine = RaffleEngine(
        session, round, randomness=randomness, notifier=notifier, clock=clock
    )
    if not engine.check_eligibility():
        return None
    return engine.start_draw()


def fulfill_draw(
    session: Session,
    round: Round,
    request_id: str,
    random_words: Sequence[int],
    payouts: "PayoutGateway",
    *,
    notifier: Optional[EventNotifier] = None,
    clock: Optional[Clock] = None,
) -> DrawRequest:
    """Deliver a provider response for ``round`` and pay out the winner.

    Raises whatever :meth:`RaffleEngine.resolve` raises; in particular a
    failed payout leaves ``round`` untouched for a later retry.
    """

    engine = RaffleEngine(
        session, round, payouts=payouts, notifier=notifier, clock=clock
    )
    return engine.fulfill_random_words(request_id, random_words)


def draw_history(
    session: Session,
    round: Round,
    *,
    limit: Optional[int] = None,
) -> list[DrawRequest]:
    """Return fulfilled draws of ``round``, most recent first."""

    if round.id is None:
        raise ValueError("Round must be persisted before reading its history")
    if limit is not None and limit <= 0:
        raise ValueError("limit must be a positive integer")

    stmt = (
        select(DrawRequest)
        .where(DrawRequest.round_id == round.id, DrawRequest.status == "fulfilled")
        .order_by(DrawRequest.cycle.desc(), DrawRequest.id.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(session.scalars(stmt).all())


def summarize_round(session: Session, round: Round, *, now: Optional[int] = None) -> dict:
    """Return a JSON-friendly snapshot of ``round`` for display."""

    clock = (lambda: now) if now is not None else None
    engine = RaffleEngine(session, round, clock=clock)
    report = engine.eligibility_report()
    return {
        "name": round.name,
        "state": round.state.value,
        "cycle": round.cycle,
        "entry_fee": round.entry_fee,
        "draw_interval": round.draw_interval,
        "last_draw_timestamp": round.last_draw_timestamp,
        "pot_balance": round.pot_balance,
        "participants": engine.get_participants(),
        "recent_winner": round.recent_winner,
        "pending_request_id": round.pending_request_id,
        "eligible": report.eligible,
    }
