import os
import logging
from urllib.parse import urljoin
from dotenv import load_dotenv
from .utils import open_session
from typing import Any, Optional, Mapping

logger = logging.getLogger(__name__)


class ProviderClient:
    """Thin JSON-over-HTTPS client shared by the external collaborators."""

    fqdn_env = "RANDOMNESS_PROVIDER_FQDN"
    token_env = "RANDOMNESS_PROVIDER_TOKEN"

    def __init__(
        self,
        base_fqdn: Optional[str] = None,
        token: Optional[str] = None,
        timeout: int = 45,
    ):
        load_dotenv()
        fqdn = base_fqdn or os.getenv(self.fqdn_env)
        if not fqdn:
            raise ValueError(f"Environment variable '{self.fqdn_env}' is not set")

        self.base_url = f"https://{fqdn}".rstrip("/")
        self.session = open_session(self.token_env, token=token)
        self.timeout = timeout

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        r = self.session.request(
            method=method.upper(),
            url=url,
            headers=headers,
            params=params,
            json=json,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json() if r.content else None


class RandomnessClient(ProviderClient):
    """Request random words from a verifiable randomness service.

    The service answers asynchronously; its callback must end up in
    :meth:`RaffleEngine.fulfill_random_words` with the handle returned here.
    """

    def request_random_words(
        self,
        *,
        key_hash: Optional[str],
        subscription_id: Optional[str],
        request_confirmations: int,
        callback_gas_limit: int,
        num_words: int,
    ) -> str:
        response = self._request(
            "POST",
            "/api/v1/randomness/requests",
            json={
                "key_hash": key_hash,
                "subscription_id": subscription_id,
                "request_confirmations": request_confirmations,
                "callback_gas_limit": callback_gas_limit,
                "num_words": num_words,
            },
        )
        if not isinstance(response, dict) or not response.get("request_id"):
            raise RuntimeError(f"Unexpected randomness response: {response!r}")
        request_id = str(response["request_id"])
        logger.info("Randomness request %s dispatched", request_id)
        return request_id


class PayoutClient(ProviderClient):
    """Send pot payouts through a value-transfer gateway."""

    fqdn_env = "PAYOUT_GATEWAY_FQDN"
    token_env = "PAYOUT_GATEWAY_TOKEN"

    def transfer(self, recipient: str, amount: int) -> bool:
        response = self._request(
            "POST",
            "/api/v1/transfers",
            json={"recipient": recipient, "amount": str(amount)},
        )
        if not isinstance(response, dict):
            raise RuntimeError(f"Unexpected transfer response: {response!r}")
        status = response.get("status")
        if status != "success":
            message = response.get("message")
            logger.error(
                "Transfer to %s rejected" + (f": {message}" if message else ""),
                recipient,
            )
            return False
        return True
