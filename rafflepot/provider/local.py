"""In-process randomness provider for development and tests."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalRequest:
    request_id: str
    key_hash: Optional[str]
    subscription_id: Optional[str]
    request_confirmations: int
    callback_gas_limit: int
    num_words: int


class LocalRandomnessProvider:
    """Issue sequential handles and produce words only when asked to.

    ``fulfill`` returns the words for a handle so the caller can deliver them
    to :meth:`RaffleEngine.fulfill_random_words`, imitating a provider callback.
    """

    def __init__(self, prefix: str = "local") -> None:
        self._prefix = prefix
        self._counter = 0
        self.requests: dict[str, LocalRequest] = {}

    def request_random_words(
        self,
        *,
        key_hash: Optional[str],
        subscription_id: Optional[str],
        request_confirmations: int,
        callback_gas_limit: int,
        num_words: int,
    ) -> str:
        self._counter += 1
        request_id = f"{self._prefix}-{self._counter}"
        self.requests[request_id] = LocalRequest(
            request_id=request_id,
            key_hash=key_hash,
            subscription_id=subscription_id,
            request_confirmations=request_confirmations,
            callback_gas_limit=callback_gas_limit,
            num_words=num_words,
        )
        logger.debug("Recorded local randomness request %s", request_id)
        return request_id

    @property
    def last_request_id(self) -> Optional[str]:
        if not self._counter:
            return None
        return f"{self._prefix}-{self._counter}"

    def fulfill(self, request_id: str, words: Optional[list[int]] = None) -> list[int]:
        """Produce the random words for ``request_id``.

        Explicit ``words`` override the generated ones, which lets tests pick
        the winner.
        """

        request = self.requests.get(request_id)
        if request is None:
            raise KeyError(f"Unknown local request: {request_id}")
        if words is None:
            words = [secrets.randbits(256) for _ in range(request.num_words)]
        return list(words)
