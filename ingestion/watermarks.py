"""
Watermark trackers for incremental polling.

A tracker decides which elements of a freshly fetched batch have not
been delivered yet. Updates are two-phase: ``select`` inspects the batch
without touching tracker state and returns a Selection, and ``commit``
applies it once the source has mapped every selected record. A poll that
fails or is cancelled between the two leaves the watermark unchanged.

Strategies:
    LastIdTracker: single last-seen identifier of an ordered batch
    VersionMapTracker: per-key last-delivered version
    CheckpointCursorTracker: replay of one checkpoint, one entry per poll
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, Callable, Sequence
import logging

logger = logging.getLogger(__name__)

RawRecord = Dict[str, Any]


class Selection:
    """
    Outcome of ``WatermarkTracker.select``.

    Attributes:
        records: Raw records deemed new, in delivery order
        update: Pending watermark change, applied by ``commit``
    """

    def __init__(self, records: Optional[List[RawRecord]] = None, update: Any = None):
        self.records = records or []
        self.update = update

    def __bool__(self) -> bool:
        return bool(self.records)

    def __repr__(self) -> str:
        return f"Selection(records={len(self.records)}, update={self.update!r})"


class WatermarkTracker(ABC):
    """Base class for the dedup strategies a PollingSource is parameterized by."""

    def needs_fetch(self) -> bool:
        """Whether the next poll must call the remote service."""
        return True

    def reset(self) -> None:
        """Hook called when the owning source is (re)initialized."""

    @property
    @abstractmethod
    def watermark(self) -> Any:
        """Current progress marker."""

    @abstractmethod
    def select(self, batch: Sequence[RawRecord]) -> Selection:
        """Return the new subset of ``batch`` without mutating state."""

    @abstractmethod
    def commit(self, selection: Selection) -> None:
        """Apply the watermark change carried by ``selection``."""


class LastIdTracker(WatermarkTracker):
    """
    Dedup an ordered batch by the identifier of its latest element.

    The latest element is the first one for a descending query and the
    last one for an ascending query. The declared order is trusted over
    any timestamp field. When its identifier equals the stored one the
    whole batch counts as delivered.

    Args:
        id_fn: Extracts the identifier of a raw record
        descending: Declared order of the remote query
        emit_batch: Select the whole batch instead of only the latest element
    """

    def __init__(
        self,
        id_fn: Callable[[RawRecord], str],
        descending: bool = True,
        emit_batch: bool = False
    ):
        self.id_fn = id_fn
        self.descending = descending
        self.emit_batch = emit_batch
        self.last_id: Optional[str] = None

    @property
    def watermark(self) -> Optional[str]:
        return self.last_id

    def latest(self, batch: Sequence[RawRecord]) -> RawRecord:
        return batch[0] if self.descending else batch[-1]

    def select(self, batch: Sequence[RawRecord]) -> Selection:
        if not batch:
            return Selection()

        latest = self.latest(batch)
        latest_id = self.id_fn(latest)

        if latest_id == self.last_id:
            logger.debug(f"Latest id {latest_id} already delivered")
            return Selection()

        records = list(batch) if self.emit_batch else [latest]
        return Selection(records, latest_id)

    def commit(self, selection: Selection) -> None:
        if selection.update is not None:
            self.last_id = selection.update


class VersionMapTracker(WatermarkTracker):
    """
    Dedup per-key entities whose version only grows.

    An element is dropped when its key was already delivered at a version
    greater than or equal to its own. The map is never evicted and lives
    as long as the tracker.

    Args:
        key_fn: Extracts the entity key of a raw record
        version_fn: Extracts the entity version of a raw record
    """

    def __init__(
        self,
        key_fn: Callable[[RawRecord], str],
        version_fn: Callable[[RawRecord], int]
    ):
        self.key_fn = key_fn
        self.version_fn = version_fn
        self.versions: Dict[str, int] = {}

    @property
    def watermark(self) -> Dict[str, int]:
        return dict(self.versions)

    def select(self, batch: Sequence[RawRecord]) -> Selection:
        pending: Dict[str, int] = {}
        records = []

        for raw in batch:
            key = self.key_fn(raw)
            version = self.version_fn(raw)

            last_version = pending.get(key, self.versions.get(key))
            if last_version is not None and last_version >= version:
                continue

            pending[key] = version
            records.append(raw)

        return Selection(records, pending)

    def commit(self, selection: Selection) -> None:
        if selection.update:
            self.versions.update(selection.update)


class CheckpointCursorTracker(WatermarkTracker):
    """
    Replay the entries of one checkpoint, one entry per poll.

    The first select loads the flattened checkpoint into a queue; later
    polls advance a cursor over it without any remote call. Once the
    queue is exhausted every poll yields nothing: moving on requires
    ``set_checkpoint`` or a re-initialization of the source, which
    continues with the checkpoint following the exhausted one.

    Args:
        start_checkpoint: Checkpoint to load first; None resolves the latest one
        sequence_fn: Extracts the checkpoint sequence number of a flattened entry
    """

    def __init__(
        self,
        start_checkpoint: Optional[int] = None,
        sequence_fn: Callable[[RawRecord], int] = lambda raw: int(raw["checkpoint"])
    ):
        self.sequence_fn = sequence_fn
        self.target: Optional[int] = start_checkpoint
        self.checkpoint: Optional[int] = None
        self.queue: Optional[List[RawRecord]] = None
        self.cursor = 0

    @property
    def watermark(self) -> Optional[int]:
        return self.checkpoint

    @property
    def exhausted(self) -> bool:
        return self.queue is not None and self.cursor >= len(self.queue)

    def needs_fetch(self) -> bool:
        return self.queue is None

    def reset(self) -> None:
        if self.exhausted:
            logger.info(f"Checkpoint {self.checkpoint} consumed, moving to {self.checkpoint + 1}")
            self.set_checkpoint(self.checkpoint + 1)

    def set_checkpoint(self, sequence_number: int) -> None:
        """Drop the loaded queue; the next poll fetches ``sequence_number``."""
        self.target = sequence_number
        self.queue = None
        self.cursor = 0

    def select(self, batch: Sequence[RawRecord]) -> Selection:
        if self.queue is None:
            if not batch:
                # an empty checkpoint is loaded as an already exhausted queue
                if self.target is None:
                    return Selection()
                return Selection([], ("load", self.target, []))
            queue = list(batch)
            return Selection(queue[:1], ("load", self.sequence_fn(queue[0]), queue))

        if self.cursor >= len(self.queue):
            return Selection()

        return Selection([self.queue[self.cursor]], ("advance", self.cursor + 1))

    def commit(self, selection: Selection) -> None:
        if selection.update is None:
            return

        action = selection.update[0]
        if action == "load":
            _, sequence_number, queue = selection.update
            self.checkpoint = sequence_number
            self.target = sequence_number
            self.queue = queue
            self.cursor = min(1, len(queue))
            logger.info(f"Loaded checkpoint {sequence_number} with {len(queue)} entries")
        else:
            self.cursor = selection.update[1]
