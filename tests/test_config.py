import os
import unittest
from unittest.mock import patch

from rafflepot.config import RoundSettings


@patch("rafflepot.config.load_dotenv")
class RoundSettingsTests(unittest.TestCase):
    def test_reads_environment(self, mock_load_dotenv):
        env = {
            "RAFFLE_ENTRY_FEE": "100",
            "RAFFLE_DRAW_INTERVAL": "60",
            "RAFFLE_GAS_LANE": "0xlane",
            "RAFFLE_SUBSCRIPTION_ID": "7",
            "RAFFLE_CALLBACK_GAS_LIMIT": "300000",
            "RANDOMNESS_PROVIDER_FQDN": "vrf.example.com",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = RoundSettings.from_env()
        self.assertEqual(settings.entry_fee, 100)
        self.assertEqual(settings.draw_interval, 60)
        self.assertEqual(settings.gas_lane, "0xlane")
        self.assertEqual(settings.subscription_id, "7")
        self.assertEqual(settings.callback_gas_limit, 300_000)
        self.assertEqual(settings.provider_endpoint, "vrf.example.com")
        mock_load_dotenv.assert_called_once()

    def test_explicit_values_win(self, mock_load_dotenv):
        env = {"RAFFLE_ENTRY_FEE": "100", "RAFFLE_DRAW_INTERVAL": "60"}
        with patch.dict(os.environ, env, clear=True):
            settings = RoundSettings.from_env(entry_fee=5, draw_interval=1)
        self.assertEqual((settings.entry_fee, settings.draw_interval), (5, 1))
        self.assertEqual(settings.callback_gas_limit, 500_000)
        self.assertIsNone(settings.gas_lane)

    def test_missing_values_raise(self, mock_load_dotenv):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(RuntimeError):
                RoundSettings.from_env()

    def test_malformed_integer_raises(self, mock_load_dotenv):
        env = {"RAFFLE_ENTRY_FEE": "ten", "RAFFLE_DRAW_INTERVAL": "60"}
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(RuntimeError) as ctx:
                RoundSettings.from_env()
        self.assertIn("RAFFLE_ENTRY_FEE", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
