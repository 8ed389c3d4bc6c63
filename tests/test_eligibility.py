from __future__ import annotations

import unittest

from rafflepot.models import RoundState
from rafflepot.raffle import evaluate_eligibility


def _evaluate(**overrides):
    values = dict(
        now=160,
        last_draw_timestamp=100,
        draw_interval=60,
        state=RoundState.OPEN,
        pot_balance=300,
        participant_count=3,
    )
    values.update(overrides)
    return evaluate_eligibility(**values)


class EvaluateEligibilityTests(unittest.TestCase):
    def test_all_conditions_hold(self) -> None:
        report = _evaluate()
        self.assertTrue(report.eligible)

    def test_each_condition_flips_result(self) -> None:
        cases = {
            "interval": dict(now=159),
            "state": dict(state=RoundState.CALCULATING),
            "balance": dict(pot_balance=0),
            "participants": dict(participant_count=0),
        }
        for label, override in cases.items():
            with self.subTest(condition=label):
                self.assertFalse(_evaluate(**override).eligible)

    def test_report_carries_diagnostics(self) -> None:
        report = _evaluate(state=RoundState.CALCULATING, pot_balance=7, participant_count=2)
        self.assertFalse(report.is_open)
        self.assertTrue(report.interval_elapsed)
        self.assertEqual(report.pot_balance, 7)
        self.assertEqual(report.participant_count, 2)
        self.assertIs(report.state, RoundState.CALCULATING)

    def test_zero_interval_is_always_elapsed(self) -> None:
        self.assertTrue(_evaluate(now=100, draw_interval=0).interval_elapsed)


if __name__ == "__main__":
    unittest.main()
