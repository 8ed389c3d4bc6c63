"""Run one raffle round end to end against a local database.

Uses :class:`LocalRandomnessProvider` and a payout gateway that only logs,
so no external service is contacted.
"""

from __future__ import annotations

import argparse
import logging
import time

from rafflepot.config import RoundSettings
from rafflepot.db.engine import get_sessionmaker, make_engine
from rafflepot.models import Base
from rafflepot.provider.local import LocalRandomnessProvider
from rafflepot.raffle import EventNotifier
from rafflepot.workflows import create_round, enter_raffle, fulfill_draw, perform_upkeep

logger = logging.getLogger("simulate_round")


class LoggingPayouts:
    def transfer(self, recipient: str, amount: int) -> bool:
        logger.info("Would transfer %s to %s", amount, recipient)
        return True


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--db-url", default="sqlite+pysqlite:///:memory:")
    parser.add_argument("--name", default=f"sim-{int(time.time())}")
    parser.add_argument("--participants", nargs="+", default=["alice", "bob", "carol"])
    parser.add_argument("--entry-fee", type=int, default=100)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    engine = make_engine(database_url=args.db_url)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    notifier = EventNotifier()
    notifier.subscribe(lambda n: print(f"[{n.kind}] {n.payload}"))
    provider = LocalRandomnessProvider(prefix="sim")

    with Session.begin() as session:
        round_ = create_round(
            session,
            args.name,
            settings=RoundSettings(entry_fee=args.entry_fee, draw_interval=0),
        )
        for participant in args.participants:
            enter_raffle(session, round_, participant, args.entry_fee, notifier=notifier)

        draw = perform_upkeep(session, round_, provider, notifier=notifier)
        if draw is None:
            print("Raffle was not eligible for a draw")
            return
        words = provider.fulfill(draw.request_id)
        result = fulfill_draw(
            session, round_, draw.request_id, words, LoggingPayouts(), notifier=notifier
        )
        print(f"Winner: {result.winner} (pot {result.payout_amount})")


if __name__ == "__main__":
    main()
