from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


def _env_str(name: str) -> Optional[str]:
    return os.getenv(name, "").strip() or None


@dataclass(frozen=True)
class RoundSettings:
    entry_fee: int
    draw_interval: int
    provider_endpoint: Optional[str] = None
    gas_lane: Optional[str] = None
    subscription_id: Optional[str] = None
    callback_gas_limit: int = 500_000

    @staticmethod
    def from_env(
        entry_fee: Optional[int] = None,
        draw_interval: Optional[int] = None,
    ) -> "RoundSettings":
        load_dotenv()

        # Explicit values (e.g. CLI flags) win over the environment.
        fee = entry_fee if entry_fee is not None else _env_int("RAFFLE_ENTRY_FEE", None)
        interval = (
            draw_interval
            if draw_interval is not None
            else _env_int("RAFFLE_DRAW_INTERVAL", None)
        )
        if fee is None or interval is None:
            raise RuntimeError(
                "Missing RAFFLE_ENTRY_FEE or RAFFLE_DRAW_INTERVAL. Put them in .env or pass them explicitly."
            )

        return RoundSettings(
            entry_fee=fee,
            draw_interval=interval,
            provider_endpoint=_env_str("RAFFLE_PROVIDER_ENDPOINT")
            or _env_str("RANDOMNESS_PROVIDER_FQDN"),
            gas_lane=_env_str("RAFFLE_GAS_LANE"),
            subscription_id=_env_str("RAFFLE_SUBSCRIPTION_ID"),
            callback_gas_limit=_env_int("RAFFLE_CALLBACK_GAS_LIMIT", 500_000),  # type: ignore[arg-type]
        )
