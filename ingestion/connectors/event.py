"""
Event source: polls events matching a filter.
"""

from typing import List, Dict, Any, Optional
from ingestion.base import PollingSource, ClientFactory
from ingestion.client import LedgerClient
from ingestion.watermarks import LastIdTracker
from ingestion.transformers.mappers import event_identifier, map_event
from schemas.records import ChainEvent
from core.config import SUI_MAINNET_URL


class EventSource(PollingSource):
    """
    Emit the events returned by each poll as one batch.

    The whole page is delivered whenever the identifier of its latest
    event differs from the last delivered one.

    Args:
        rpc_url: Full node endpoint
        interval_ms: Poll interval in milliseconds
        max_events: Maximum number of events fetched per poll
        query: Event filter (defaults to all events)
        cursor: Event id to start paginating from
        descending: Query order; decides which event counts as the latest
    """

    operation = "query_events"

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        interval_ms: Optional[int] = None,
        max_events: Optional[int] = None,
        query: Optional[Dict[str, Any]] = None,
        cursor: Optional[Dict[str, Any]] = None,
        descending: bool = True,
        source_name: str = "event_source",
        client_factory: Optional[ClientFactory] = None
    ):
        super().__init__(
            source_name=source_name,
            tracker=LastIdTracker(event_identifier, descending=descending, emit_batch=True),
            rpc_url=rpc_url,
            interval_ms=interval_ms,
            batch_size=max_events,
            client_factory=client_factory
        )
        self.query = query if query is not None else {"All": []}
        self.cursor = cursor
        self.descending = descending

    @classmethod
    def mainnet(cls, interval_ms: int, max_events: int, **kwargs) -> "EventSource":
        return cls(SUI_MAINNET_URL, interval_ms, max_events, **kwargs)

    def with_query(self, query: Dict[str, Any]) -> "EventSource":
        self.query = query
        return self

    def with_cursor(self, cursor: Dict[str, Any]) -> "EventSource":
        self.cursor = cursor
        return self

    def with_descending_order(self, descending: bool) -> "EventSource":
        self.descending = descending
        self.tracker.descending = descending
        return self

    async def fetch_batch(self, client: LedgerClient) -> List[Dict[str, Any]]:
        page = await client.query_events(self.query, self.cursor, self.batch_size, self.descending)
        return page.get("data") or []

    def map_record(self, raw: Dict[str, Any]) -> ChainEvent:
        return map_event(raw)
