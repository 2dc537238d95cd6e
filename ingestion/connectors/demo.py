"""
Offline ledger client producing simulated events.

Pair it with an EventSource to run a pipeline without a network:

    source = EventSource(client_factory=demo_client_factory(max_events=10))
"""

import math
from typing import Dict, Any, Optional
from ingestion.base import ClientFactory
from ingestion.client import LedgerClient, Page

EVENT_TYPES = ["create", "update", "delete"]


class DemoLedgerClient(LedgerClient):
    """
    LedgerClient that generates one new event per ``query_events`` call.

    Event ``n`` has type ``create``/``update``/``delete`` in rotation,
    value ``sin(n) * 100`` and timestamp ``n``. After ``max_events``
    events every query returns an empty page.
    """

    def __init__(self, rpc_url: str = "demo://local", max_events: int = 10):
        self.rpc_url = rpc_url
        self.max_events = max_events
        self.counter = 0
        self.closed = False

    def generate_event(self) -> Dict[str, Any]:
        n = self.counter
        self.counter += 1
        return {
            "id": {"txDigest": f"demo-{n}", "eventSeq": "0"},
            "packageId": "0x2",
            "transactionModule": "demo",
            "sender": "0x0",
            "type": EVENT_TYPES[n % len(EVENT_TYPES)],
            "parsedJson": {"value": math.sin(n) * 100, "metadata": f"Event metadata {n}"},
            "timestampMs": str(n),
        }

    async def query_events(self, query, cursor=None, limit=None, descending=False) -> Page:
        if self.counter >= self.max_events:
            return {"data": [], "nextCursor": None, "hasNextPage": False}
        return {"data": [self.generate_event()], "nextCursor": None, "hasNextPage": False}

    async def get_owned_objects(self, address, query=None, cursor=None, limit=None) -> Page:
        return {"data": [], "nextCursor": None, "hasNextPage": False}

    async def query_transaction_blocks(self, query, cursor=None, limit=None, descending=False) -> Page:
        return {"data": [], "nextCursor": None, "hasNextPage": False}

    async def get_latest_checkpoint_sequence_number(self) -> int:
        return 0

    async def get_checkpoint(self, sequence_number: int) -> Dict[str, Any]:
        return {"sequenceNumber": str(sequence_number), "transactions": []}

    async def close(self) -> None:
        self.closed = True


def demo_client_factory(max_events: int = 10, client: Optional[DemoLedgerClient] = None) -> ClientFactory:
    """Client factory for PollingSource that hands out a DemoLedgerClient"""

    async def factory(rpc_url: str) -> LedgerClient:
        return client or DemoLedgerClient(rpc_url, max_events=max_events)

    return factory
