"""
Pydantic schemas for the records emitted by polling sources.

Every source converts raw ledger payloads into one of these models
before handing them to the downstream pipeline:

Schemas:
    records: Domain records and the Record output envelope

    EventId           - (transaction digest, event sequence) identifier
    ChainEvent        - event emitted by a Move call
    ChainObject       - full state of an owned object at one version
    TransactionEvent  - transaction block reduced to aggregate-friendly fields
    LedgerEvent       - one entry of a replayed checkpoint
    Record            - envelope around a single record or a batch

Usage:
    from schemas import ChainEvent, Record
    from schemas.records import UNKNOWN_OBJECT_TYPE

Example:
    record = await source.next()
    if record is not None:
        for event in record.data:
            print(event.event_type, event.timestamp)
"""

from schemas.records import (
    EventId,
    ChainEvent,
    ChainObject,
    TransactionEvent,
    LedgerEvent,
    Record,
)

__all__ = [
    "EventId",
    "ChainEvent",
    "ChainObject",
    "TransactionEvent",
    "LedgerEvent",
    "Record",
]
