import httpx
import logging
from typing import Dict, Optional, Protocol, Sequence
from swap_engine.clarity import ClarityValue, deserialize_hex, serialize_hex
from swap_engine.errors import ContractExecutionError, MalformedResponseError
from swap_engine.config import NETWORK_API_URLS, settings

logger = logging.getLogger(__name__)


class ReadOnlyCallProvider(Protocol):
    async def call_read_only(
            self,
            contract_address: str,
            contract_name: str,
            function_name: str,
            function_args: Sequence[ClarityValue],
            network: str,
            sender_address: str
    ) -> ClarityValue:
        ...


class StacksReadOnlyClient:
    """Read-only contract calls through the Stacks node API"""

    def __init__(
            self,
            client: Optional[httpx.AsyncClient] = None,
            api_urls: Optional[Dict[str, str]] = None
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=settings.HTTP_TIMEOUT,
            headers={
                "Accept": "application/json",
                "User-Agent": "SwapEngine/1.0"
            }
        )
        self.api_urls = api_urls or NETWORK_API_URLS

    async def call_read_only(
            self,
            contract_address: str,
            contract_name: str,
            function_name: str,
            function_args: Sequence[ClarityValue],
            network: str,
            sender_address: str
    ) -> ClarityValue:
        try:
            base_url = self.api_urls[network]
        except KeyError:
            raise ValueError(f"Unknown network: {network}") from None

        url = f"{base_url}/v2/contracts/call-read/{contract_address}/{contract_name}/{function_name}"
        logger.debug(f"Calling {contract_address}.{contract_name}::{function_name} on {network}")

        response = await self.client.post(
            url,
            json={
                "sender": sender_address,
                "arguments": [serialize_hex(arg) for arg in function_args]
            }
        )
        response.raise_for_status()
        body = response.json()

        if not isinstance(body, dict):
            raise MalformedResponseError(f"Unexpected call-read payload: {body!r}")
        if "okay" not in body:
            raise MalformedResponseError(f"call-read response has no okay flag: {body!r}")
        if not body.get("okay"):
            raise ContractExecutionError(body.get("cause"))

        result = body.get("result")
        if not isinstance(result, str):
            raise MalformedResponseError(f"call-read response has no result: {body!r}")
        try:
            return deserialize_hex(result)
        except ValueError as e:
            raise MalformedResponseError(f"Undecodable call-read result: {str(e)}") from e

    async def close(self):
        if self._owns_client:
            await self.client.aclose()
