"""
Object source: polls the objects owned by one address.
"""

import re
from typing import List, Dict, Any, Optional
from ingestion.base import PollingSource, ClientFactory
from ingestion.client import LedgerClient
from ingestion.watermarks import VersionMapTracker
from ingestion.transformers.mappers import object_key, object_version, map_object
from schemas.records import ChainObject
from core.config import SUI_MAINNET_URL
from core.exceptions import ConfigurationError

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{1,64}$")

FULL_CONTENT_OPTIONS = {
    "showType": True,
    "showOwner": True,
    "showPreviousTransaction": True,
    "showDisplay": True,
    "showContent": True,
    "showBcs": True,
    "showStorageRebate": True,
}


class ObjectSource(PollingSource):
    """
    Emit the owned objects whose version changed since they were last delivered.

    Args:
        rpc_url: Full node endpoint
        interval_ms: Poll interval in milliseconds
        target_address: Address whose owned objects are polled
        max_objects: Maximum number of objects fetched per poll
        query: Owned-objects query (defaults to full content)
        cursor: Object id to start paginating from
    """

    operation = "get_owned_objects"

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        interval_ms: Optional[int] = None,
        target_address: str = "",
        max_objects: Optional[int] = None,
        query: Optional[Dict[str, Any]] = None,
        cursor: Optional[str] = None,
        source_name: str = "object_source",
        client_factory: Optional[ClientFactory] = None
    ):
        if not isinstance(target_address, str) or not _ADDRESS_RE.match(target_address):
            raise ConfigurationError(
                "Invalid target address",
                context={"field_name": "target_address", "field_value": target_address}
            )

        super().__init__(
            source_name=source_name,
            tracker=VersionMapTracker(object_key, object_version),
            rpc_url=rpc_url,
            interval_ms=interval_ms,
            batch_size=max_objects,
            client_factory=client_factory
        )
        self.target_address = target_address
        self.query = query if query is not None else {"options": dict(FULL_CONTENT_OPTIONS)}
        self.cursor = cursor

    @classmethod
    def mainnet(cls, interval_ms: int, target_address: str, max_objects: int, **kwargs) -> "ObjectSource":
        return cls(SUI_MAINNET_URL, interval_ms, target_address, max_objects, **kwargs)

    def with_query(self, query: Dict[str, Any]) -> "ObjectSource":
        self.query = query
        return self

    def with_cursor(self, cursor: str) -> "ObjectSource":
        self.cursor = cursor
        return self

    async def fetch_batch(self, client: LedgerClient) -> List[Dict[str, Any]]:
        page = await client.get_owned_objects(self.target_address, self.query, self.cursor, self.batch_size)
        return page.get("data") or []

    def map_record(self, raw: Dict[str, Any]) -> ChainObject:
        return map_object(raw, owner=self.target_address)
