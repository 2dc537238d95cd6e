"""
Transaction source: polls recent transaction blocks.
"""

from typing import List, Dict, Any, Optional
from ingestion.base import PollingSource, ClientFactory
from ingestion.client import LedgerClient
from ingestion.watermarks import LastIdTracker, Selection
from ingestion.transformers.mappers import transaction_digest, map_transaction
from schemas.records import Record, TransactionEvent
from core.config import SUI_MAINNET_URL
import logging

logger = logging.getLogger(__name__)

DEFAULT_RESPONSE_OPTIONS = {
    "showInput": True,
    "showEffects": True,
    "showEvents": True,
    "showBalanceChanges": True,
}


class TransactionSource(PollingSource):
    """
    Emit the latest transaction block, one per poll.

    Args:
        rpc_url: Full node endpoint
        interval_ms: Poll interval in milliseconds
        max_transactions: Maximum number of transactions fetched per poll
        query: Transaction block query (defaults to no filter with input,
            effects, events and balance changes)
        cursor: Transaction digest to start paginating from
        descending: Query order; decides which transaction counts as the latest
    """

    operation = "query_transaction_blocks"

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        interval_ms: Optional[int] = None,
        max_transactions: Optional[int] = None,
        query: Optional[Dict[str, Any]] = None,
        cursor: Optional[str] = None,
        descending: bool = True,
        source_name: str = "transaction_source",
        client_factory: Optional[ClientFactory] = None
    ):
        super().__init__(
            source_name=source_name,
            tracker=LastIdTracker(transaction_digest, descending=descending),
            rpc_url=rpc_url,
            interval_ms=interval_ms,
            batch_size=max_transactions,
            client_factory=client_factory
        )
        self.query = query if query is not None else {
            "filter": None,
            "options": dict(DEFAULT_RESPONSE_OPTIONS)
        }
        self.cursor = cursor
        self.descending = descending
        self.last_processed_checkpoint: Optional[int] = None

    @classmethod
    def mainnet(cls, interval_ms: int, max_transactions: int, **kwargs) -> "TransactionSource":
        return cls(SUI_MAINNET_URL, interval_ms, max_transactions, **kwargs)

    @property
    def last_processed_digest(self) -> Optional[str]:
        return self.tracker.watermark

    def with_query(self, query: Dict[str, Any]) -> "TransactionSource":
        self.query = query
        return self

    def with_cursor(self, cursor: str) -> "TransactionSource":
        self.cursor = cursor
        return self

    def with_descending_order(self, descending: bool) -> "TransactionSource":
        self.descending = descending
        self.tracker.descending = descending
        return self

    async def fetch_batch(self, client: LedgerClient) -> List[Dict[str, Any]]:
        page = await client.query_transaction_blocks(self.query, self.cursor, self.batch_size, self.descending)
        return page.get("data") or []

    def map_record(self, raw: Dict[str, Any]) -> TransactionEvent:
        return map_transaction(raw)

    def package(self, records: List[TransactionEvent]) -> Record:
        return Record(data=records[0])

    def on_commit(self, selection: Selection, records: List[TransactionEvent]) -> None:
        self.last_processed_checkpoint = records[0].checkpoint
        logger.info(
            f"Processed transaction: {self.last_processed_digest} "
            f"checkpoint: {self.last_processed_checkpoint}"
        )
