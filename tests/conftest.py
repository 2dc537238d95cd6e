"""
Pytest configuration and fixtures
"""

import pytest
from collections import defaultdict, deque
from typing import Any, Dict, List, Optional
from ingestion.client import LedgerClient

TEST_ADDRESS = "0xac5bceec1b789ff840d7d4e6ce4ce61c90d190a7f8c4f4ddf0bff6ee2413c33c"


class FakeLedgerClient(LedgerClient):
    """
    Scripted LedgerClient.

    Each remote method answers from its own queue of responses: a list is
    returned as a page, a dict as-is, an exception is raised. An empty
    queue answers with an empty page.
    """

    def __init__(self, latest_checkpoint: int = 0, checkpoints: Optional[Dict[int, Dict[str, Any]]] = None):
        self.responses = defaultdict(deque)
        self.calls: List[tuple] = []
        self.latest_checkpoint = latest_checkpoint
        self.checkpoints = checkpoints or {}
        self.closed = False

    def queue(self, method: str, *responses) -> "FakeLedgerClient":
        self.responses[method].extend(responses)
        return self

    def calls_to(self, method: str) -> List[tuple]:
        return [args for name, args in self.calls if name == method]

    async def _respond(self, method: str, *args) -> Any:
        self.calls.append((method, args))
        if not self.responses[method]:
            return {"data": [], "nextCursor": None, "hasNextPage": False}

        response = self.responses[method].popleft()
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, list):
            return {"data": response, "nextCursor": None, "hasNextPage": False}
        return response

    async def query_events(self, query, cursor=None, limit=None, descending=False):
        return await self._respond("query_events", query, cursor, limit, descending)

    async def get_owned_objects(self, address, query=None, cursor=None, limit=None):
        return await self._respond("get_owned_objects", address, query, cursor, limit)

    async def query_transaction_blocks(self, query, cursor=None, limit=None, descending=False):
        return await self._respond("query_transaction_blocks", query, cursor, limit, descending)

    async def get_latest_checkpoint_sequence_number(self):
        self.calls.append(("get_latest_checkpoint_sequence_number", ()))
        return self.latest_checkpoint

    async def get_checkpoint(self, sequence_number):
        self.calls.append(("get_checkpoint", (sequence_number,)))
        checkpoint = self.checkpoints.get(sequence_number)
        if isinstance(checkpoint, BaseException):
            raise checkpoint
        return checkpoint or {"sequenceNumber": str(sequence_number), "transactions": []}

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_client():
    """Scripted ledger client shared by a source and the test"""
    return FakeLedgerClient()


@pytest.fixture
def client_factory(fake_client):
    """Client factory handing out ``fake_client``"""

    async def factory(rpc_url: str) -> LedgerClient:
        factory.urls.append(rpc_url)
        return fake_client

    factory.urls = []
    return factory


@pytest.fixture
def target_address():
    return TEST_ADDRESS


@pytest.fixture
def make_event():
    """Build a raw event as returned by suix_queryEvents"""

    def build(digest: str, seq: int = 0, timestamp: Optional[int] = 1700000000000, **fields) -> Dict[str, Any]:
        event = {
            "id": {"txDigest": digest, "eventSeq": str(seq)},
            "packageId": "0x2",
            "transactionModule": "coin",
            "sender": TEST_ADDRESS,
            "type": "0x2::coin::CoinMinted",
            "parsedJson": {"amount": "100"},
        }
        if timestamp is not None:
            event["timestampMs"] = str(timestamp)
        event.update(fields)
        return event

    return build


@pytest.fixture
def make_object():
    """Build an owned-object entry as returned by suix_getOwnedObjects"""

    def build(object_id: str, version: int, **fields) -> Dict[str, Any]:
        data = {
            "objectId": object_id,
            "version": str(version),
            "digest": f"digest-{object_id}-{version}",
            "type": "0x2::coin::Coin<0x2::sui::SUI>",
            "previousTransaction": f"tx-{object_id}-{version}",
        }
        data.update(fields)
        return {"data": data}

    return build


@pytest.fixture
def make_transaction():
    """Build a transaction block response as returned by suix_queryTransactionBlocks"""

    def build(digest: str, timestamp: Optional[int] = 1700000000000, sender: Any = TEST_ADDRESS,
              kind: str = "ProgrammableTransaction", checkpoint: Optional[int] = 42) -> Dict[str, Any]:
        transaction = {
            "digest": digest,
            "transaction": {
                "data": {
                    "messageVersion": "v1",
                    "transaction": {"kind": kind},
                    "sender": sender,
                    "gasData": {"budget": "1000"},
                }
            },
        }
        if timestamp is not None:
            transaction["timestampMs"] = str(timestamp)
        if checkpoint is not None:
            transaction["checkpoint"] = str(checkpoint)
        return transaction

    return build


@pytest.fixture
def make_checkpoint():
    """Build a checkpoint as returned by sui_getCheckpoint"""

    def build(sequence_number: int, digests: List[str], timestamp: int = 1700000000000) -> Dict[str, Any]:
        return {
            "sequenceNumber": str(sequence_number),
            "digest": f"checkpoint-{sequence_number}",
            "epoch": "7",
            "timestampMs": str(timestamp),
            "transactions": list(digests),
        }

    return build
