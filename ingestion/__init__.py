"""
Incremental polling sources for a remote ledger.

This package contains everything a stream pipeline needs to pull
deduplicated records from a Sui full node:

Modules:
    base: PollingSource lifecycle (init / next / close) shared by every connector
    client: LedgerClient adapter interface and its JSON-RPC implementation
    watermarks: Dedup strategies (last id, per-key version, checkpoint cursor)
    runner: Caller-side driver with retry/backoff and parallel fan-out

Subpackages:
    connectors: Event, object, transaction and checkpoint sources, plus an
        offline demo client
    transformers: Pure mappers from raw payloads to domain records

Architecture:
    Each call to ``next`` on a source goes through the same steps:

    1. Sleep for the poll interval
    2. Issue exactly one remote query
    3. Let the watermark tracker select the records not delivered yet
    4. Map them to domain records, then commit the new watermark

    "No new data" is a normal outcome (``None``); remote failures raise
    RemoteQueryError and the caller decides whether to poll again.

Usage:
    from ingestion.connectors.event import EventSource
    from ingestion.runner import SourceRunner

Example:
    source = EventSource(interval_ms=500, max_events=10)
    await source.init()

    record = await source.next()
    if record is not None:
        print(f"Received {len(record.data)} events")

    await source.close()
"""

from ingestion.base import PollingSource, PollResult, PollStatus, SourceState
from ingestion.client import LedgerClient, JsonRpcLedgerClient
from ingestion.watermarks import (
    WatermarkTracker,
    LastIdTracker,
    VersionMapTracker,
    CheckpointCursorTracker,
)
from ingestion.connectors.event import EventSource
from ingestion.connectors.object import ObjectSource
from ingestion.connectors.transaction import TransactionSource
from ingestion.connectors.checkpoint import CheckpointSource
from ingestion.connectors.demo import DemoLedgerClient, demo_client_factory
from ingestion.runner import SourceRunner

__all__ = [
    "PollingSource",
    "PollResult",
    "PollStatus",
    "SourceState",
    "LedgerClient",
    "JsonRpcLedgerClient",
    "WatermarkTracker",
    "LastIdTracker",
    "VersionMapTracker",
    "CheckpointCursorTracker",
    "EventSource",
    "ObjectSource",
    "TransactionSource",
    "CheckpointSource",
    "DemoLedgerClient",
    "demo_client_factory",
    "SourceRunner",
]
