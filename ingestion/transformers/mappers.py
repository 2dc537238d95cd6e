"""
Convert raw ledger payloads into domain records.

Each connector shape has one pure mapper. They are not equally strict:
an event without a timestamp is rejected, while a transaction with an
unparsable sender is still delivered with an "unknown" sender.
"""

import re
from typing import Dict, Any, Optional, List
from pydantic import ValidationError
from schemas.records import (
    EventId,
    ChainEvent,
    ChainObject,
    TransactionEvent,
    LedgerEvent,
    UNKNOWN_SENDER,
)
from core.exceptions import MappingError, MissingFieldError


_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{1,64}$")


# ============================================================================
# Events
# ============================================================================

def event_identifier(raw: Dict[str, Any]) -> str:
    """Identifier of a raw event: ``<txDigest>:<eventSeq>``"""
    event_id = raw.get("id")
    if not isinstance(event_id, dict) or not event_id.get("txDigest"):
        raise MissingFieldError(
            "Event id not available",
            context={"field_name": "id"}
        )
    return f"{event_id['txDigest']}:{_parse_int(event_id.get('eventSeq')) or 0}"


def map_event(raw: Dict[str, Any]) -> ChainEvent:
    """
    Map a raw event to a ChainEvent.

    Raises:
        MissingFieldError: If the event carries no timestamp
    """
    record_id = event_identifier(raw)

    timestamp = _parse_int(raw.get("timestampMs"))
    if timestamp is None:
        raise MissingFieldError(
            "Timestamp not available",
            context={"field_name": "timestampMs", "record_id": record_id}
        )

    event_id = raw["id"]
    try:
        return ChainEvent(
            id=EventId(
                tx_digest=event_id["txDigest"],
                event_seq=_parse_int(event_id.get("eventSeq")) or 0
            ),
            package_id=str(raw.get("packageId", "")),
            module_name=str(raw.get("transactionModule", "")),
            event_type=str(raw.get("type", "")),
            sender=str(raw.get("sender", "")),
            data=repr(raw.get("parsedJson")),
            timestamp=timestamp,
        )
    except ValidationError as e:
        raise MappingError(
            "Invalid event payload",
            context={"record_id": record_id},
            original_exception=e
        )


# ============================================================================
# Objects
# ============================================================================

def _object_data(raw: Dict[str, Any]) -> Dict[str, Any]:
    data = raw.get("data")
    if not isinstance(data, dict):
        raise MissingFieldError(
            "Object data is missing",
            context={"field_name": "data", "error": raw.get("error")}
        )
    return data


def object_key(raw: Dict[str, Any]) -> str:
    object_id = _object_data(raw).get("objectId")
    if not object_id:
        raise MissingFieldError("Object id is missing", context={"field_name": "objectId"})
    return str(object_id)


def object_version(raw: Dict[str, Any]) -> int:
    version = _parse_int(_object_data(raw).get("version"))
    if version is None:
        raise MissingFieldError(
            "Object version is missing",
            context={"field_name": "version", "record_id": object_key(raw)}
        )
    return version


def map_object(raw: Dict[str, Any], owner: str) -> ChainObject:
    """
    Map one entry of an owned-objects page to a ChainObject.

    ``owner`` is the address that was queried. A missing type tag maps
    to "Unknown" and a missing previous transaction to an empty string.
    """
    data = _object_data(raw)
    object_id = object_key(raw)

    try:
        return ChainObject(
            id=object_id,
            object_type=data.get("type"),
            owner=owner,
            version=object_version(raw),
            data=data,
            last_transaction_digest=data.get("previousTransaction") or "",
        )
    except ValidationError as e:
        raise MappingError(
            "Invalid object payload",
            context={"record_id": object_id},
            original_exception=e
        )


# ============================================================================
# Transactions
# ============================================================================

def transaction_digest(raw: Dict[str, Any]) -> str:
    digest = raw.get("digest")
    if not digest:
        raise MissingFieldError("Transaction digest is missing", context={"field_name": "digest"})
    return str(digest)


def map_transaction(raw: Dict[str, Any]) -> TransactionEvent:
    """
    Map a transaction block response to a TransactionEvent.

    Timestamp defaults to 0 and sender to "unknown". Recipient and
    amount are left unset.

    Raises:
        MappingError: If the checkpoint field is present but not a sequence number
    """
    digest = transaction_digest(raw)

    checkpoint = _parse_int(raw.get("checkpoint"))
    if raw.get("checkpoint") is not None and (checkpoint is None or checkpoint < 0):
        raise MappingError(
            "Invalid checkpoint sequence number",
            context={"field_name": "checkpoint", "field_value": raw.get("checkpoint"), "record_id": digest}
        )

    transaction = raw.get("transaction") or {}
    data = transaction.get("data") if isinstance(transaction, dict) else None

    transaction_type = "unknown"
    sender = UNKNOWN_SENDER
    metadata = "unknown"

    if isinstance(data, dict):
        kind = (data.get("transaction") or {}).get("kind")
        if kind:
            transaction_type = str(kind)
        sender = _parse_address(data.get("sender")) or UNKNOWN_SENDER
        metadata = repr(data)

    return TransactionEvent(
        transaction_digest=digest,
        transaction_type=transaction_type,
        timestamp=_parse_int(raw.get("timestampMs")) or 0,
        sender=sender,
        recipient=None,
        amount=None,
        metadata=metadata,
        checkpoint=checkpoint,
    )


# ============================================================================
# Checkpoints
# ============================================================================

def flatten_checkpoint(checkpoint: Dict[str, Any], sequence_number: int) -> List[Dict[str, Any]]:
    """
    Flatten a checkpoint into one raw entry per contained transaction.

    Entries keep the checkpoint-internal order and carry the checkpoint
    sequence number, their index and the checkpoint timestamp.
    """
    entries = []
    for index, transaction in enumerate(checkpoint.get("transactions") or []):
        entries.append({
            "checkpoint": sequence_number,
            "index": index,
            "timestampMs": checkpoint.get("timestampMs"),
            "epoch": checkpoint.get("epoch"),
            "checkpointDigest": checkpoint.get("digest"),
            "transaction": transaction,
        })
    return entries


def map_checkpoint_entry(raw: Dict[str, Any]) -> LedgerEvent:
    """Map a flattened checkpoint entry to a LedgerEvent"""
    transaction = raw.get("transaction")

    if isinstance(transaction, dict):
        entry_id = transaction.get("digest")
        event_type = str(transaction.get("type") or "transaction")
        payload = dict(transaction)
    else:
        entry_id = transaction
        event_type = "transaction"
        payload = {"digest": transaction}

    if not entry_id:
        raise MissingFieldError(
            "Checkpoint entry has no digest",
            context={"field_name": "digest", "checkpoint": raw.get("checkpoint"), "index": raw.get("index")}
        )

    payload.setdefault("epoch", raw.get("epoch"))
    payload.setdefault("checkpoint_digest", raw.get("checkpointDigest"))

    try:
        return LedgerEvent(
            id=str(entry_id),
            event_type=event_type,
            timestamp=_parse_int(raw.get("timestampMs")) or 0,
            checkpoint=raw["checkpoint"],
            index=raw["index"],
            payload=payload,
        )
    except (KeyError, ValidationError) as e:
        raise MappingError(
            "Invalid checkpoint entry",
            context={"record_id": entry_id},
            original_exception=e
        )


# ============================================================================
# Helpers
# ============================================================================

def _parse_int(value: Any) -> Optional[int]:
    """Safely parse int value; the node encodes u64 fields as strings"""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def _parse_address(value: Any) -> Optional[str]:
    """Normalize an address to 0x + 64 lowercase hex digits, or None"""
    if not isinstance(value, str) or not _ADDRESS_RE.match(value):
        return None
    return "0x" + value[2:].lower().rjust(64, "0")
