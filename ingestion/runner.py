# ============================================================================
# File: ingestion/runner.py
# Description: Caller-side driver for polling sources
# ============================================================================
"""
Source Runner - drives polling sources the way a stream pipeline does.

Sources never retry on their own. This module holds the retry policy:
- Exponential backoff on RemoteQueryError, up to a number of consecutive failures
- Immediate propagation of non-retryable errors
- Guaranteed close of the source when the stream ends
- Parallel fan-out of independent sources into one sink
"""

from typing import Dict, Any, List, Optional, Callable, AsyncIterator
from ingestion.base import PollingSource
from schemas.records import Record
from core.config import settings
from core.exceptions import RemoteQueryError, SourceError
import asyncio
import inspect
import logging

logger = logging.getLogger(__name__)


class SourceRunner:
    """
    Polling loop with backoff

    Attributes:
        max_retries: Consecutive RemoteQueryErrors tolerated before giving up
        retry_delay: Initial backoff delay in seconds, doubled per failure
        stats: Per-source statistics of the streams run so far
    """

    def __init__(self, max_retries: Optional[int] = None, retry_delay: Optional[float] = None):
        self.max_retries = settings.MAX_RETRIES if max_retries is None else max_retries
        self.retry_delay = settings.RETRY_DELAY if retry_delay is None else retry_delay
        self.stats: Dict[str, Dict[str, Any]] = {}

    async def stream(
        self,
        source: PollingSource,
        max_polls: Optional[int] = None,
        stats_key: Optional[str] = None
    ) -> AsyncIterator[Record]:
        """
        Initialize ``source`` and yield every record it emits.

        Args:
            source: Source to drive
            max_polls: Stop after this many polls (None polls forever)
            stats_key: Key of the stats entry (defaults to the source name)

        Raises:
            SourceConnectionError: If the source cannot be initialized
            RemoteQueryError: After ``max_retries`` consecutive failed polls
            SourceError: For any non-retryable source error
        """
        stats = {"records": 0, "polls": 0, "errors": 0, "status": "running"}
        self.stats[stats_key or source.source_name] = stats

        failures = 0
        try:
            await source.init()

            while max_polls is None or stats["polls"] < max_polls:
                stats["polls"] += 1

                try:
                    record = await source.next()
                except RemoteQueryError as e:
                    failures += 1
                    stats["errors"] += 1

                    if failures >= self.max_retries:
                        logger.error(
                            f"{source.source_name}: giving up after {failures} consecutive failures",
                            extra={"error_context": e.to_dict()}
                        )
                        raise

                    delay = self.retry_delay * (2 ** (failures - 1))
                    logger.warning(
                        f"{source.source_name}: poll failed. "
                        f"Retrying in {delay} seconds (attempt {failures}/{self.max_retries})"
                    )
                    await asyncio.sleep(delay)
                    continue

                failures = 0
                if record is None:
                    continue

                stats["records"] += 1
                yield record

            stats["status"] = "success"

        except SourceError:
            stats["status"] = "failed"
            raise

        finally:
            if stats["status"] == "running":
                stats["status"] = "stopped"
            await source.close()

    async def drain(
        self,
        source: PollingSource,
        sink: Callable[[Record], Any],
        max_polls: Optional[int] = None,
        stats_key: Optional[str] = None
    ) -> Dict[str, Any]:
        """Feed every record of ``source`` into ``sink`` (sync or async callable)."""
        stats_key = stats_key or source.source_name
        stream = self.stream(source, max_polls, stats_key)
        try:
            async for record in stream:
                result = sink(record)
                if inspect.isawaitable(result):
                    await result
        finally:
            await stream.aclose()

        return self.stats[stats_key]

    async def run_parallel(
        self,
        sources: List[PollingSource],
        sink: Callable[[Record], Any],
        max_polls: Optional[int] = None
    ) -> Dict[str, Dict[str, Any]]:
        """
        Drive independent sources concurrently into one sink.

        One failing source does not stop the others; its stats carry
        ``status="failed"`` and the error message.

        Returns:
            Statistics keyed by source name; sources sharing a name are
            keyed ``name#1``, ``name#2``, ... in list order
        """
        keys = _stats_keys(sources)
        results = await asyncio.gather(
            *(self.drain(source, sink, max_polls, key) for source, key in zip(sources, keys)),
            return_exceptions=True
        )

        summary = {}
        for key, result in zip(keys, results):
            stats = dict(self.stats.get(key, {}))
            if isinstance(result, BaseException):
                logger.error(f"{key} failed: {str(result)}")
                stats["status"] = "failed"
                stats["error"] = str(result)
            summary[key] = stats

        logger.info(
            "Parallel run completed: " +
            ", ".join(f"{name}={s.get('records', 0)}" for name, s in summary.items())
        )
        return summary


def _stats_keys(sources: List[PollingSource]) -> List[str]:
    names = [source.source_name for source in sources]
    keys = []
    for i, name in enumerate(names):
        if names.count(name) == 1:
            keys.append(name)
        else:
            keys.append(f"{name}#{names[:i].count(name) + 1}")
    return keys
