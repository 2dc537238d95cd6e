"""
Pydantic schemas for the domain records emitted by polling sources
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, Dict, Any, Generic, TypeVar
from datetime import datetime, timezone


T = TypeVar("T")

UNKNOWN_OBJECT_TYPE = "Unknown"
UNKNOWN_SENDER = "unknown"


def now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


class EventId(BaseModel):
    """Identifier of a ledger event: the emitting transaction plus a sequence number"""

    tx_digest: str = Field(..., min_length=1)
    event_seq: int = Field(0, ge=0)

    def __str__(self) -> str:
        return f"{self.tx_digest}:{self.event_seq}"


class ChainEvent(BaseModel):
    """
    An event emitted by a Move call.

    ``data`` is the debug rendering of the event's parsed JSON body.
    ``timestamp`` is mandatory: the mapper refuses records without one.
    """

    id: EventId
    package_id: str
    module_name: str
    event_type: str
    sender: str
    data: str
    timestamp: int = Field(..., ge=0)


class ChainObject(BaseModel):
    """
    The full state of an owned object at one version.

    ``owner`` is the address the source was polling, not a field of the object.
    """

    id: str = Field(..., min_length=1)
    object_type: str = UNKNOWN_OBJECT_TYPE
    owner: str
    version: int = Field(..., ge=0)
    data: Dict[str, Any] = Field(default_factory=dict)
    last_transaction_digest: str = ""

    @validator("object_type", pre=True)
    def default_object_type(cls, v):
        """Objects without a type tag are reported as Unknown"""
        return v or UNKNOWN_OBJECT_TYPE


class TransactionEvent(BaseModel):
    """
    A transaction block reduced to the fields a stream consumer aggregates on.

    Recipient and amount are not extracted from transaction effects and
    are always None.
    """

    transaction_digest: str = Field(..., min_length=1)
    transaction_type: str = "unknown"
    timestamp: int = Field(0, ge=0)
    sender: str = UNKNOWN_SENDER
    recipient: Optional[str] = None
    amount: Optional[int] = None
    metadata: str = "unknown"
    checkpoint: Optional[int] = Field(None, ge=0, description="Checkpoint that included the transaction")


class LedgerEvent(BaseModel):
    """One entry of a checkpoint, delivered in checkpoint order"""

    id: str = Field(..., min_length=1)
    event_type: str
    timestamp: int = Field(0, ge=0)
    checkpoint: int = Field(..., ge=0)
    index: int = Field(..., ge=0)
    payload: Dict[str, Any] = Field(default_factory=dict)


class Record(BaseModel, Generic[T]):
    """One unit of source output: a single record or a batch, stamped at emit time"""

    data: T
    timestamp: int = Field(default_factory=now_ms)
