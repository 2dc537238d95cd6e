"""
Remote ledger client adapter.

A polling source talks to the ledger only through the LedgerClient
interface: one awaitable method per remote call shape, each performing
exactly one request/response round trip. Timeouts are the adapter's
responsibility; the source wraps any adapter failure as RemoteQueryError.

JsonRpcLedgerClient implements the interface as JSON-RPC 2.0 over HTTP
against a Sui full node.
"""

import httpx
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional
from core.config import settings
from core.exceptions import RPCError, SourceConnectionError
import logging

logger = logging.getLogger(__name__)

Page = Dict[str, Any]


class LedgerClient(ABC):
    """Capability to query a remote ledger, owned by exactly one source."""

    @abstractmethod
    async def query_events(
        self,
        query: Any,
        cursor: Optional[Any] = None,
        limit: Optional[int] = None,
        descending: bool = False
    ) -> Page:
        """Query events matching a filter, one page per call."""

    @abstractmethod
    async def get_owned_objects(
        self,
        address: str,
        query: Optional[Dict[str, Any]] = None,
        cursor: Optional[str] = None,
        limit: Optional[int] = None
    ) -> Page:
        """Query the objects owned by an address, one page per call."""

    @abstractmethod
    async def query_transaction_blocks(
        self,
        query: Dict[str, Any],
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        descending: bool = False
    ) -> Page:
        """Query transaction blocks, one page per call."""

    @abstractmethod
    async def get_latest_checkpoint_sequence_number(self) -> int:
        """Return the sequence number of the latest executed checkpoint."""

    @abstractmethod
    async def get_checkpoint(self, sequence_number: int) -> Dict[str, Any]:
        """Return the full content of one checkpoint."""

    async def close(self) -> None:
        """Release transport resources."""


class JsonRpcLedgerClient(LedgerClient):
    """
    LedgerClient speaking JSON-RPC 2.0 over HTTP.

    Use ``connect`` rather than the constructor: it performs the
    handshake and fails with SourceConnectionError when the endpoint is
    unreachable or rejects it.

    Attributes:
        rpc_url: Full node endpoint
        timeout: Per-request timeout in seconds
        chain_identifier: Chain id reported during the handshake
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout if timeout is not None else settings.RPC_TIMEOUT
        self.chain_identifier: Optional[str] = None
        self._request_id = 0
        self._http = httpx.AsyncClient(
            timeout=self.timeout,
            transport=transport,
            headers={"Content-Type": "application/json"}
        )

    @classmethod
    async def connect(
        cls,
        rpc_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "JsonRpcLedgerClient":
        """
        Build a client and verify the endpoint answers.

        Raises:
            SourceConnectionError: If the handshake fails for any reason
        """
        try:
            client = cls(rpc_url, timeout=timeout, transport=transport)
        except Exception as e:
            raise SourceConnectionError(
                f"Invalid RPC endpoint {rpc_url}",
                context={"rpc_url": rpc_url},
                original_exception=e
            )

        try:
            client.chain_identifier = await client.call("sui_getChainIdentifier", [])
        except Exception as e:
            await client.close()
            raise SourceConnectionError(
                f"Handshake with {rpc_url} failed",
                context={"rpc_url": rpc_url, "method": "sui_getChainIdentifier"},
                original_exception=e
            )

        logger.debug(f"Connected to {rpc_url} (chain: {client.chain_identifier})")
        return client

    async def call(self, method: str, params: List[Any]) -> Any:
        """
        Perform one JSON-RPC call and return its ``result`` member.

        Raises:
            RPCError: If the node answers with an error object or unparsable body
            httpx.HTTPError: For transport failures and non-2xx statuses
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params
        }

        response = await self._http.post(self.rpc_url, json=payload)
        response.raise_for_status()

        try:
            body = response.json()
        except ValueError as e:
            raise RPCError(
                "Failed to parse JSON-RPC response",
                context={
                    "method": method,
                    "response_body": response.text[:500]
                },
                original_exception=e
            )

        error = body.get("error") if isinstance(body, dict) else None
        if error:
            raise RPCError(
                str(error.get("message", "JSON-RPC error")),
                context={"method": method, "code": error.get("code")}
            )

        return body.get("result") if isinstance(body, dict) else None

    async def _page(self, method: str, params: List[Any]) -> Page:
        result = await self.call(method, params)
        if not isinstance(result, dict):
            return {"data": [], "nextCursor": None, "hasNextPage": False}
        result.setdefault("data", [])
        return result

    async def query_events(self, query, cursor=None, limit=None, descending=False) -> Page:
        return await self._page("suix_queryEvents", [query, cursor, limit, descending])

    async def get_owned_objects(self, address, query=None, cursor=None, limit=None) -> Page:
        return await self._page("suix_getOwnedObjects", [address, query, cursor, limit])

    async def query_transaction_blocks(self, query, cursor=None, limit=None, descending=False) -> Page:
        return await self._page("suix_queryTransactionBlocks", [query, cursor, limit, descending])

    async def get_latest_checkpoint_sequence_number(self) -> int:
        result = await self.call("sui_getLatestCheckpointSequenceNumber", [])
        return int(result)

    async def get_checkpoint(self, sequence_number: int) -> Dict[str, Any]:
        result = await self.call("sui_getCheckpoint", [str(sequence_number)])
        return result or {}

    async def close(self) -> None:
        await self._http.aclose()
