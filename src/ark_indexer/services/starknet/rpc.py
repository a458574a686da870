"""Starknet JSON-RPC client for block reads and read-only contract calls."""

import itertools
from typing import Any, Protocol, Sequence

import httpx
import structlog

from ark_indexer.services.exceptions import ContractCallError, RpcError, RpcRateLimitError
from ark_indexer.services.starknet.encoding import Felt, get_selector_from_name, to_int

logger = structlog.get_logger()

# Node error codes meaning "this contract cannot answer", never worth a retry
CONTRACT_ERROR_CODES = frozenset({20, 21, 40})


class ChainReader(Protocol):
    """Read-only ledger capability consumed by the transfer pipeline."""

    async def get_block_with_txs(self, block_number: int) -> dict[str, Any]: ...

    async def call_contract(
        self,
        contract_address: str,
        entry_point: str,
        calldata: Sequence[Felt],
        block_number: int,
    ) -> list[str]: ...


class StarknetRpcClient:
    """Minimal Starknet JSON-RPC client (v0.6+)."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize RPC client.

        Args:
            rpc_url: Node JSON-RPC endpoint
            timeout: Per-request timeout in seconds (ignored if http_client is given)
            http_client: Optional pre-configured client (tests inject a MockTransport)
        """
        self.rpc_url = rpc_url
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "StarknetRpcClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, params: dict[str, Any]) -> Any:
        """Send one JSON-RPC request and return its ``result``.

        Raises:
            RpcRateLimitError: Node answered 429
            RpcError: Transport failure, non-2xx status, malformed body or node error
            ContractCallError: Node reported a contract-level error
        """
        payload = {"jsonrpc": "2.0", "method": method, "params": params, "id": next(self._ids)}

        try:
            response = await self._client.post(self.rpc_url, json=payload)
        except httpx.TimeoutException as e:
            raise RpcError(f"{method} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise RpcError(f"{method} transport error: {e}") from e

        if response.status_code == 429:
            raise RpcRateLimitError(f"Rate limit exceeded: {response.text}")
        if response.status_code >= 400:
            raise RpcError(f"{method} failed with HTTP {response.status_code}: {response.text}")

        try:
            body = response.json()
        except ValueError as e:
            raise RpcError(f"{method} returned a non-JSON body") from e

        if not isinstance(body, dict):
            raise RpcError(f"{method} returned an unexpected body: {body!r}")

        error = body.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            if code in CONTRACT_ERROR_CODES:
                raise ContractCallError(f"{method}: {message}", code=code)
            raise RpcError(f"{method}: {message} (code={code})")

        if "result" not in body:
            raise RpcError(f"{method} response has no result")

        return body["result"]

    async def get_block_with_txs(self, block_number: int) -> dict[str, Any]:
        """Fetch a block header with its transactions."""
        result = await self._request(
            "starknet_getBlockWithTxs", {"block_id": {"block_number": block_number}}
        )
        if not isinstance(result, dict):
            raise RpcError(f"Unexpected block payload for block {block_number}")
        return result

    async def get_block_with_receipts(self, block_number: int) -> dict[str, Any]:
        """Fetch a block with every transaction receipt (and therefore its events)."""
        result = await self._request(
            "starknet_getBlockWithReceipts", {"block_id": {"block_number": block_number}}
        )
        if not isinstance(result, dict):
            raise RpcError(f"Unexpected block payload for block {block_number}")
        return result

    async def call_contract(
        self,
        contract_address: str,
        entry_point: str,
        calldata: Sequence[Felt],
        block_number: int,
    ) -> list[str]:
        """Invoke a read-only contract entry point at a given block.

        Args:
            contract_address: Contract address (hex felt)
            entry_point: Entry point name, e.g. "tokenURI"
            calldata: Arguments as felts
            block_number: Block to read state at

        Returns:
            Raw return words as hex strings
        """
        request = {
            "contract_address": contract_address,
            "entry_point_selector": hex(get_selector_from_name(entry_point)),
            "calldata": [hex(to_int(arg)) for arg in calldata],
        }
        result = await self._request(
            "starknet_call",
            {"request": request, "block_id": {"block_number": block_number}},
        )
        if not isinstance(result, list):
            raise RpcError(f"{entry_point} returned a non-list result: {result!r}")

        logger.debug(
            "rpc.call_contract",
            contract_address=contract_address,
            entry_point=entry_point,
            words=len(result),
        )
        return [str(word) for word in result]
