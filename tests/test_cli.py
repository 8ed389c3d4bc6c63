import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import MagicMock, patch

from rafflepot.cli import main
from rafflepot.db.engine import get_sessionmaker, make_engine
from rafflepot.models import Base, Round
from rafflepot.workflows import enter_raffle


@patch("rafflepot.config.load_dotenv")
class CliTestCase(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.url = f"sqlite:///{Path(self.tmpdir.name) / 'raffle.db'}"
        self.engine = make_engine(self.url)
        Base.metadata.create_all(self.engine)
        self.env = patch.dict(os.environ, {}, clear=True)
        self.env.start()

    def tearDown(self):
        self.env.stop()
        self.engine.dispose()
        self.tmpdir.cleanup()

    def _run(self, *argv: str) -> tuple[int, str]:
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(["--db-url", self.url, *argv])
        return code, out.getvalue()

    def _open(self, name: str = "weekly") -> None:
        code, output = self._run("open-round", name, "--entry-fee", "10", "--interval", "0")
        self.assertEqual(code, 0)
        self.assertIn(f"Opened raffle {name}", output)

    def _enter(self, name: str, participant: str) -> None:
        Session = get_sessionmaker(self.engine)
        with Session.begin() as session:
            enter_raffle(session, Round.get_by_name(session, name), participant, 10)

    def test_open_round_and_status(self, mock_load_dotenv):
        self._open()
        code, output = self._run("status", "weekly")
        self.assertEqual(code, 0)
        summary = json.loads(output)
        self.assertEqual(summary["state"], "open")
        self.assertEqual(summary["entry_fee"], 10)
        self.assertEqual(summary["participants"], [])

    def test_check_upkeep_exit_status(self, mock_load_dotenv):
        self._open()
        code, output = self._run("check-upkeep", "weekly")
        self.assertEqual(code, 1)
        self.assertIn("not eligible", output)

        self._enter("weekly", "alice")
        code, output = self._run("check-upkeep", "weekly")
        self.assertEqual(code, 0)
        self.assertEqual(output.strip(), "eligible")

    @patch("rafflepot.provider.api.RandomnessClient")
    def test_perform_upkeep_starts_draw(self, mock_client_cls, mock_load_dotenv):
        client = MagicMock()
        client.request_random_words.return_value = "vrf-77"
        mock_client_cls.return_value = client

        self._open()
        code, output = self._run("perform-upkeep", "weekly")
        self.assertEqual(code, 1)
        self.assertIn("Draw not needed", output)
        client.request_random_words.assert_not_called()

        self._enter("weekly", "alice")
        code, output = self._run("perform-upkeep", "weekly")
        self.assertEqual(code, 0)
        self.assertIn("vrf-77", output)
        client.request_random_words.assert_called_once()

        _, output = self._run("status", "weekly")
        summary = json.loads(output)
        self.assertEqual(summary["state"], "calculating")
        self.assertEqual(summary["pending_request_id"], "vrf-77")

    @patch("rafflepot.provider.api.load_dotenv")
    def test_perform_upkeep_without_provider_endpoint(self, mock_api_dotenv, mock_load_dotenv):
        self._open()
        self._enter("weekly", "alice")

        with self.assertLogs("upkeep", level="ERROR") as logs:
            code, _ = self._run("perform-upkeep", "weekly")
        self.assertEqual(code, 1)
        self.assertIn("RANDOMNESS_PROVIDER_FQDN", logs.output[0])

        _, output = self._run("status", "weekly")
        summary = json.loads(output)
        self.assertEqual(summary["state"], "open")
        self.assertIsNone(summary["pending_request_id"])

    def test_history_starts_empty(self, mock_load_dotenv):
        self._open()
        code, output = self._run("history", "weekly")
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(output), [])

    def test_unknown_raffle_exits(self, mock_load_dotenv):
        with self.assertRaises(SystemExit):
            self._run("status", "missing")


if __name__ == "__main__":
    unittest.main()
