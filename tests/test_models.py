from __future__ import annotations

import unittest

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from rafflepot.db.engine import make_engine
from rafflepot.models import Base, DrawRequest, RaffleEntry, Round, RoundState


class RoundModelTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self) -> None:
        self.engine.dispose()

    def test_new_round_starts_open_and_empty(self) -> None:
        with self.Session.begin() as session:
            round_ = Round(name=" daily ", entry_fee=10, draw_interval=30, last_draw_timestamp=5)
            session.add(round_)
            session.flush()

            self.assertEqual(round_.name, "daily")
            self.assertEqual(round_.state, RoundState.OPEN)
            self.assertEqual(round_.cycle, 0)
            self.assertEqual(round_.pot_balance, 0)
            self.assertEqual(round_.last_draw_timestamp, 5)
            self.assertEqual(round_.request_confirmations, 3)
            self.assertEqual(round_.num_words, 1)
            self.assertIsNone(round_.recent_winner)
            self.assertIsNone(round_.pending_request_id)
            self.assertEqual(round_.participants(session), [])
            self.assertEqual(round_.participant_count(session), 0)
            self.assertIsNone(round_.pending_draw_request(session))

    def test_last_draw_timestamp_defaults_to_now(self) -> None:
        round_ = Round(name="now", entry_fee=1, draw_interval=1)
        self.assertGreater(round_.last_draw_timestamp, 1_600_000_000)

    def test_configuration_is_immutable(self) -> None:
        round_ = Round(name="fixed", entry_fee=10, draw_interval=30, gas_lane="0xabc")
        with self.assertRaises(ValueError):
            round_.entry_fee = 11
        with self.assertRaises(ValueError):
            round_.draw_interval = 0
        with self.assertRaises(ValueError):
            round_.gas_lane = "0xdef"
        # Re-assigning the same value is harmless.
        round_.entry_fee = 10
        self.assertEqual(round_.entry_fee, 10)

    def test_configuration_is_immutable_after_commit(self) -> None:
        Session = sessionmaker(bind=self.engine, future=True)
        session = Session()
        try:
            round_ = Round(name="committed", entry_fee=100, draw_interval=30)
            session.add(round_)
            session.commit()

            # expire_on_commit left every attribute unloaded.
            with self.assertRaises(ValueError):
                round_.entry_fee = 1
            with self.assertRaises(ValueError):
                round_.gas_lane = "0xdef"

            session.refresh(round_)
            round_.entry_fee = 100
            with self.assertRaises(ValueError):
                round_.draw_interval = 31

            session.expire(round_)
            with self.assertRaises(ValueError):
                round_.num_words = 2
            session.commit()

            reloaded = session.get(Round, round_.id)
            self.assertEqual(reloaded.entry_fee, 100)
            self.assertEqual(reloaded.draw_interval, 30)
            self.assertEqual(reloaded.num_words, 1)
        finally:
            session.close()

    def test_configuration_is_validated(self) -> None:
        with self.assertRaises(ValueError):
            Round(name="neg", entry_fee=-1, draw_interval=30)
        with self.assertRaises(ValueError):
            Round(name="neg", entry_fee=1, draw_interval=-30)
        with self.assertRaises(ValueError):
            Round(name="words", entry_fee=1, draw_interval=30, num_words=0)
        with self.assertRaises(ValueError):
            Round(name="  ", entry_fee=1, draw_interval=30)

    def test_state_round_trips_through_database(self) -> None:
        with self.Session.begin() as session:
            round_ = Round(name="stateful", entry_fee=1, draw_interval=1)
            session.add(round_)
            session.flush()
            round_.state = RoundState.CALCULATING
            round_id = round_.id

        with self.Session.begin() as session:
            loaded = session.get(Round, round_id)
            self.assertIs(loaded.state, RoundState.CALCULATING)
            self.assertEqual(Round.get_by_name(session, "stateful").id, round_id)
            self.assertIsNone(Round.get_by_name(session, "missing"))

    def test_names_are_unique(self) -> None:
        with self.assertRaises(IntegrityError):
            with self.Session.begin() as session:
                session.add(Round(name="dup", entry_fee=1, draw_interval=1))
                session.flush()
                session.add(Round(name="dup", entry_fee=2, draw_interval=2))
                session.flush()

    def test_participants_follow_current_cycle(self) -> None:
        with self.Session.begin() as session:
            round_ = Round(name="cycles", entry_fee=1, draw_interval=1)
            session.add(round_)
            session.flush()
            session.add_all(
                [
                    RaffleEntry(round_id=round_.id, cycle=0, participant="old", amount=1),
                    RaffleEntry(round_id=round_.id, cycle=1, participant="x", amount=1),
                    RaffleEntry(round_id=round_.id, cycle=1, participant="y", amount=1),
                ]
            )
            session.flush()

            self.assertEqual(round_.participants(session), ["old"])
            round_.cycle = 1
            self.assertEqual(round_.participants(session), ["x", "y"])
            self.assertEqual(round_.participant_count(session), 2)
            self.assertEqual(len(round_.entries), 3)

    def test_pending_draw_request_lookup(self) -> None:
        with self.Session.begin() as session:
            round_ = Round(name="pending", entry_fee=1, draw_interval=1)
            session.add(round_)
            session.flush()
            draw = DrawRequest(
                round_id=round_.id,
                request_id="req-9",
                cycle=0,
                participant_count=1,
                pot_balance=1,
            )
            session.add(draw)
            round_.pending_request_id = "req-9"
            session.flush()

            self.assertIs(round_.pending_draw_request(session), draw)
            self.assertIsNone(draw.random_int)
            self.assertEqual(
                session.scalars(select(DrawRequest.status)).all(), ["pending"]
            )

    def test_draw_request_status_is_constrained(self) -> None:
        with self.assertRaises(IntegrityError):
            with self.Session.begin() as session:
                round_ = Round(name="bad-status", entry_fee=1, draw_interval=1)
                session.add(round_)
                session.flush()
                session.add(
                    DrawRequest(
                        round_id=round_.id,
                        request_id="r",
                        cycle=0,
                        participant_count=1,
                        pot_balance=1,
                        status="lost",
                    )
                )
                session.flush()


if __name__ == "__main__":
    unittest.main()
