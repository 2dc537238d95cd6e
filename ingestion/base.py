"""
Abstract base class for polling sources with watermark tracking
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Dict, Any, Optional, Callable, Awaitable
from pydantic import BaseModel
from ingestion.client import LedgerClient, JsonRpcLedgerClient
from ingestion.watermarks import WatermarkTracker, Selection
from schemas.records import Record
from core.config import settings
from core.exceptions import (
    ConfigurationError,
    NotInitializedError,
    RemoteQueryError,
    SourceConnectionError
)
import asyncio
import logging

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], Awaitable[LedgerClient]]


class SourceState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


class PollStatus(str, Enum):
    """Outcome of one successful poll"""
    RECORDS = "records"
    EMPTY = "empty"              # the remote call returned nothing
    NO_NEW_DATA = "no_new_data"  # everything returned was already delivered


class PollResult:
    """Status of a poll plus its output (None unless status is RECORDS)"""

    def __init__(self, status: PollStatus, output: Optional[Record] = None):
        self.status = status
        self.output = output

    def __repr__(self) -> str:
        return f"PollResult(status={self.status.value}, output={self.output!r})"


class PollingSource(ABC):
    """
    Abstract base class for all ledger polling sources.

    Responsibilities:
    - Lifecycle (init / next / close) driven by the downstream pipeline
    - Exactly one remote query per poll, after the poll interval
    - Dedup through the configured watermark tracker
    - Wrapping remote failures with source and operation context

    Subclasses provide the remote query (``fetch_batch``), the record
    conversion (``map_record``) and, for single-record connectors, the
    output shape (``package``).

    ``next`` mutates watermark state and must not be called concurrently
    on one instance; run one instance per parallel task instead.
    """

    operation = "query"

    def __init__(
        self,
        source_name: str,
        tracker: WatermarkTracker,
        rpc_url: Optional[str] = None,
        interval_ms: Optional[int] = None,
        batch_size: Optional[int] = None,
        client_factory: Optional[ClientFactory] = None
    ):
        interval_ms = settings.POLL_INTERVAL_MS if interval_ms is None else interval_ms
        batch_size = settings.POLL_BATCH_SIZE if batch_size is None else batch_size

        if interval_ms < 0:
            raise ConfigurationError(
                "Poll interval cannot be negative",
                context={"field_name": "interval_ms", "field_value": interval_ms}
            )
        if batch_size < 1:
            raise ConfigurationError(
                "Batch size must be at least 1",
                context={"field_name": "batch_size", "field_value": batch_size}
            )

        self.source_name = source_name
        self.tracker = tracker
        self.rpc_url = rpc_url or settings.LEDGER_RPC_URL
        self.interval_ms = interval_ms
        self.batch_size = batch_size
        self.client_factory = client_factory or JsonRpcLedgerClient.connect

        self.state = SourceState.UNINITIALIZED
        self.client: Optional[LedgerClient] = None
        self.last_status: Optional[PollStatus] = None

    @property
    def interval(self) -> float:
        """Poll interval in seconds"""
        return self.interval_ms / 1000

    @property
    def is_initialized(self) -> bool:
        return self.state == SourceState.READY

    def _context(self, **extra) -> Dict[str, Any]:
        context = {
            "source_name": self.source_name,
            "operation": self.operation,
            "rpc_url": self.rpc_url
        }
        context.update(extra)
        return context

    @abstractmethod
    async def fetch_batch(self, client: LedgerClient) -> List[Dict[str, Any]]:
        """
        Issue the connector's remote query.

        Args:
            client: Connected ledger client

        Returns:
            Raw records in the order the remote service returned them
        """
        pass

    @abstractmethod
    def map_record(self, raw: Dict[str, Any]) -> BaseModel:
        """Convert one raw record into a domain record"""
        pass

    def package(self, records: List[BaseModel]) -> Record:
        """Wrap mapped records as one unit of output (a batch by default)"""
        return Record(data=records)

    def on_commit(self, selection: Selection, records: List[BaseModel]) -> None:
        """Hook called with the mapped records after the tracker committed them"""

    async def init(self) -> None:
        """
        Connect the remote client and become ready.

        A no-op when already ready.

        Raises:
            SourceConnectionError: If the endpoint is unreachable or rejects
                the handshake. The source stays not ready and ``init`` may be
                retried.
        """
        if self.state == SourceState.READY:
            return

        try:
            client = await self.client_factory(self.rpc_url)
        except SourceConnectionError as e:
            logger.error(f"Failed to initialize {self.source_name}: {e.message}")
            raise
        except Exception as e:
            logger.error(f"Failed to initialize {self.source_name}: {str(e)}")
            raise SourceConnectionError(
                f"Failed to connect to {self.rpc_url}",
                context=self._context(operation="connect"),
                original_exception=e
            )

        self.tracker.reset()
        self.client = client
        self.state = SourceState.READY
        logger.info(f"{self.source_name} initialized with RPC URL: {self.rpc_url}")

    async def poll(self) -> PollResult:
        """
        Run one poll and report how it ended.

        Raises:
            NotInitializedError: If the source is not ready
            RemoteQueryError: If the remote call fails
            MappingError: If a selected raw record cannot be converted
        """
        if self.state != SourceState.READY or self.client is None:
            raise NotInitializedError(
                f"{self.source_name} not initialized",
                context={"source_name": self.source_name, "state": self.state.value}
            )

        await asyncio.sleep(self.interval)

        raw_records: List[Dict[str, Any]] = []
        fetched = self.tracker.needs_fetch()
        if fetched:
            try:
                raw_records = await self.fetch_batch(self.client)
            except RemoteQueryError as e:
                logger.error(f"{self.source_name}: {e.context.get('operation')} failed: {str(e.original_exception)}")
                raise
            except Exception as e:
                logger.error(f"{self.source_name}: {self.operation} failed: {str(e)}")
                raise RemoteQueryError(
                    f"Failed to {self.operation.replace('_', ' ')}",
                    context=self._context(),
                    original_exception=e
                )

        selection = self.tracker.select(raw_records)
        if not selection:
            # nothing to map; commits an empty checkpoint load
            self.tracker.commit(selection)

            if fetched and not raw_records:
                logger.info(f"{self.source_name}: no records returned")
                return self._finish(PollResult(PollStatus.EMPTY))

            logger.info(f"{self.source_name}: no new records since last check")
            return self._finish(PollResult(PollStatus.NO_NEW_DATA))

        records = [self.map_record(raw) for raw in selection.records]

        self.tracker.commit(selection)
        self.on_commit(selection, records)

        for record in records:
            logger.debug(f"{self.source_name}: delivered {record!r}")

        return self._finish(PollResult(PollStatus.RECORDS, self.package(records)))

    def _finish(self, result: PollResult) -> PollResult:
        self.last_status = result.status
        return result

    async def next(self) -> Optional[Record]:
        """
        Run one poll and return its output, or None when there is no new data.

        Raises:
            NotInitializedError: If the source is not ready
            RemoteQueryError: If the remote call fails
        """
        result = await self.poll()
        return result.output

    async def close(self) -> None:
        """Release the remote client. Idempotent and never raises."""
        client = self.client
        self.client = None

        if self.state == SourceState.READY:
            self.state = SourceState.CLOSED

        if client is not None:
            try:
                await client.close()
            except Exception as e:
                logger.warning(f"{self.source_name}: error while closing client: {str(e)}")

        logger.info(f"{self.source_name} closed")
