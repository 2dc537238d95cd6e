"""
Checkpoint source: replays the transactions of one checkpoint in order.
"""

from typing import List, Dict, Any, Optional
from ingestion.base import PollingSource, ClientFactory
from ingestion.client import LedgerClient
from ingestion.watermarks import CheckpointCursorTracker
from ingestion.transformers.mappers import flatten_checkpoint, map_checkpoint_entry
from schemas.records import Record, LedgerEvent
from core.config import SUI_MAINNET_URL
from core.exceptions import ConfigurationError, RemoteQueryError


class CheckpointSource(PollingSource):
    """
    Deliver each transaction of a checkpoint exactly once, one per poll.

    The first poll fetches the checkpoint (resolving the latest one when
    no start was given); following polls only advance through it. When
    it is exhausted polls return no data until ``set_checkpoint`` is
    called or the source is closed and initialized again.

    Args:
        rpc_url: Full node endpoint
        interval_ms: Poll interval in milliseconds
        start_checkpoint: Sequence number of the checkpoint to replay
    """

    operation = "get_checkpoint"

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        interval_ms: Optional[int] = None,
        start_checkpoint: Optional[int] = None,
        source_name: str = "checkpoint_source",
        client_factory: Optional[ClientFactory] = None
    ):
        _check_sequence_number(start_checkpoint, allow_none=True)
        super().__init__(
            source_name=source_name,
            tracker=CheckpointCursorTracker(start_checkpoint),
            rpc_url=rpc_url,
            interval_ms=interval_ms,
            client_factory=client_factory
        )

    @classmethod
    def mainnet(cls, interval_ms: int, **kwargs) -> "CheckpointSource":
        return cls(SUI_MAINNET_URL, interval_ms, **kwargs)

    @property
    def checkpoint(self) -> Optional[int]:
        """Sequence number of the loaded checkpoint"""
        return self.tracker.watermark

    def set_checkpoint(self, sequence_number: int) -> None:
        """Replay ``sequence_number`` from the next poll on."""
        _check_sequence_number(sequence_number)
        self.tracker.set_checkpoint(sequence_number)

    async def fetch_batch(self, client: LedgerClient) -> List[Dict[str, Any]]:
        sequence_number = self.tracker.target
        if sequence_number is None:
            try:
                sequence_number = await client.get_latest_checkpoint_sequence_number()
            except Exception as e:
                raise RemoteQueryError(
                    "Failed to get latest checkpoint sequence number",
                    context=self._context(operation="get_latest_checkpoint_sequence_number"),
                    original_exception=e
                )
            # resolved once per activation
            self.tracker.set_checkpoint(sequence_number)

        checkpoint = await client.get_checkpoint(sequence_number)
        return flatten_checkpoint(checkpoint, sequence_number)

    def map_record(self, raw: Dict[str, Any]) -> LedgerEvent:
        return map_checkpoint_entry(raw)

    def package(self, records: List[LedgerEvent]) -> Record:
        return Record(data=records[0])


def _check_sequence_number(value: Any, allow_none: bool = False) -> None:
    if value is None and allow_none:
        return
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ConfigurationError(
            "Checkpoint sequence number must be a non-negative integer",
            context={"field_name": "checkpoint", "field_value": value}
        )
