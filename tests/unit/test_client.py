"""
Unit tests for the JSON-RPC ledger client
"""

import json
import httpx
import pytest
from ingestion.client import JsonRpcLedgerClient
from core.exceptions import RPCError, SourceConnectionError

RPC_URL = "https://fullnode.test.example:443"


def rpc_transport(results, requests=None):
    """MockTransport answering each JSON-RPC method from ``results``"""

    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        if requests is not None:
            requests.append(payload)

        result = results.get(payload["method"])
        if isinstance(result, Exception):
            raise result
        if isinstance(result, httpx.Response):
            return result
        if isinstance(result, dict) and "error" in result:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "error": result["error"]})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result})

    return httpx.MockTransport(handler)


class TestConnect:
    """Test client handshake"""

    @pytest.mark.asyncio
    async def test_connect_success(self):
        transport = rpc_transport({"sui_getChainIdentifier": "35834a8a"})

        client = await JsonRpcLedgerClient.connect(RPC_URL, transport=transport)

        assert client.chain_identifier == "35834a8a"
        await client.close()

    @pytest.mark.asyncio
    async def test_connect_unreachable(self):
        transport = rpc_transport({"sui_getChainIdentifier": httpx.ConnectError("Connection refused")})

        with pytest.raises(SourceConnectionError) as exc_info:
            await JsonRpcLedgerClient.connect(RPC_URL, transport=transport)

        assert exc_info.value.context["rpc_url"] == RPC_URL
        assert isinstance(exc_info.value.original_exception, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_connect_http_error(self):
        transport = rpc_transport({"sui_getChainIdentifier": httpx.Response(503, text="unavailable")})

        with pytest.raises(SourceConnectionError):
            await JsonRpcLedgerClient.connect(RPC_URL, transport=transport)

    @pytest.mark.asyncio
    async def test_connect_rpc_error(self):
        transport = rpc_transport({"sui_getChainIdentifier": {"error": {"code": -32601, "message": "Method not found"}}})

        with pytest.raises(SourceConnectionError) as exc_info:
            await JsonRpcLedgerClient.connect(RPC_URL, transport=transport)

        assert isinstance(exc_info.value.original_exception, RPCError)


class TestCalls:
    """Test remote call shapes"""

    @pytest.fixture
    def requests(self):
        return []

    async def _client(self, results, requests):
        results = dict(results, sui_getChainIdentifier="35834a8a")
        return await JsonRpcLedgerClient.connect(RPC_URL, transport=rpc_transport(results, requests))

    @pytest.mark.asyncio
    async def test_query_events(self, requests):
        client = await self._client({"suix_queryEvents": {"data": [{"id": 1}], "hasNextPage": False}}, requests)

        page = await client.query_events({"All": []}, None, 10, True)

        assert page["data"] == [{"id": 1}]
        assert requests[-1]["method"] == "suix_queryEvents"
        assert requests[-1]["params"] == [{"All": []}, None, 10, True]
        assert requests[-1]["jsonrpc"] == "2.0"
        await client.close()

    @pytest.mark.asyncio
    async def test_get_owned_objects(self, requests):
        client = await self._client({"suix_getOwnedObjects": {"data": []}}, requests)

        await client.get_owned_objects("0xabc", {"options": {"showType": True}}, None, 5)

        assert requests[-1]["params"] == ["0xabc", {"options": {"showType": True}}, None, 5]
        await client.close()

    @pytest.mark.asyncio
    async def test_query_transaction_blocks(self, requests):
        client = await self._client({"suix_queryTransactionBlocks": {"data": [{"digest": "d"}]}}, requests)

        page = await client.query_transaction_blocks({"filter": None}, "cursor", 3, False)

        assert page["data"] == [{"digest": "d"}]
        assert requests[-1]["params"] == [{"filter": None}, "cursor", 3, False]
        await client.close()

    @pytest.mark.asyncio
    async def test_checkpoint_calls(self, requests):
        client = await self._client({
            "sui_getLatestCheckpointSequenceNumber": "1234",
            "sui_getCheckpoint": {"sequenceNumber": "1234", "transactions": ["t0"]},
        }, requests)

        latest = await client.get_latest_checkpoint_sequence_number()
        checkpoint = await client.get_checkpoint(latest)

        assert latest == 1234
        assert checkpoint["transactions"] == ["t0"]
        assert requests[-1]["params"] == ["1234"]
        await client.close()

    @pytest.mark.asyncio
    async def test_null_result_is_an_empty_page(self, requests):
        client = await self._client({"suix_queryEvents": None}, requests)

        page = await client.query_events({"All": []})

        assert page["data"] == []
        await client.close()

    @pytest.mark.asyncio
    async def test_rpc_error(self, requests):
        client = await self._client({"suix_queryEvents": {"error": {"code": -32602, "message": "Invalid params"}}}, requests)

        with pytest.raises(RPCError) as exc_info:
            await client.query_events({"All": []})

        assert exc_info.value.context["method"] == "suix_queryEvents"
        assert exc_info.value.context["code"] == -32602
        await client.close()

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, requests):
        client = await self._client({"suix_queryEvents": httpx.ReadTimeout("timed out")}, requests)

        with pytest.raises(httpx.ReadTimeout):
            await client.query_events({"All": []})
        await client.close()

    @pytest.mark.asyncio
    async def test_request_ids_increase(self, requests):
        client = await self._client({"suix_queryEvents": {"data": []}}, requests)

        await client.query_events({"All": []})
        await client.query_events({"All": []})

        assert [r["id"] for r in requests] == [1, 2, 3]
        await client.close()
