"""Capabilities the raffle core calls through; implementations live elsewhere."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class RandomnessProvider(Protocol):
    def request_random_words(
        self,
        *,
        key_hash: Optional[str],
        subscription_id: Optional[str],
        request_confirmations: int,
        callback_gas_limit: int,
        num_words: int,
    ) -> str:
        """Dispatch a request and return its correlation handle.

        Must return without waiting for the random value; the provider
        answers later through the raffle's resolve callback.
        """
        ...


@runtime_checkable
class PayoutGateway(Protocol):
    def transfer(self, recipient: str, amount: int) -> Optional[bool]:
        """Move ``amount`` to ``recipient``.

        Signal failure by raising or by returning ``False``.
        """
        ...


__all__ = ["RandomnessProvider", "PayoutGateway"]
