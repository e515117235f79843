"""
Document store collaborator.

A schemaless, collection-keyed store with equality filters, a single
ordered prefix range, result limits and live subscriptions. Backends
implement the five primitive operations; subscription bookkeeping is
shared here.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Upper bound for prefix ranges: a private-use code point that sorts after
# every character that appears in course codes or names.
PREFIX_END = "\uf8ff"


class _ServerTimestamp:
    """Placeholder replaced by the store with its own clock on write."""

    def __repr__(self):
        return "SERVER_TIMESTAMP"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


SERVER_TIMESTAMP = _ServerTimestamp()


class DocumentMissingError(LookupError):
    """Raised when updating a document that does not exist."""


@dataclass(frozen=True)
class Query:
    collection: str
    filters: Tuple[Tuple[str, Any], ...] = ()
    order_by: Optional[str] = None
    descending: bool = False
    start_at: Optional[str] = None
    end_at: Optional[str] = None
    limit: Optional[int] = None

    def where(self, field_name: str, value: Any) -> "Query":
        return replace(self, filters=self.filters + ((field_name, value),))

    def order(self, field_name: str, descending: bool = False) -> "Query":
        return replace(self, order_by=field_name, descending=descending)

    def prefix(self, field_name: str, term: str) -> "Query":
        """Ordered range matching values that start with ``term``"""
        return replace(self, order_by=field_name, descending=False,
                       start_at=term, end_at=term + PREFIX_END)

    def take(self, count: int) -> "Query":
        return replace(self, limit=count)


Listener = Callable[[List[Dict[str, Any]]], None]


@dataclass(eq=False)
class _Subscription:
    query: Query
    callback: Listener
    active: bool = field(default=True)


def resolve_server_timestamps(data: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Replace top-level SERVER_TIMESTAMP placeholders with the current UTC time"""
    now = now or datetime.now(timezone.utc)
    return {k: (now if v is SERVER_TIMESTAMP else v) for k, v in data.items()}


class DocumentStore(ABC):
    """Async document store interface.

    Documents are plain dicts; reads return them with their ``id`` merged in.
    """

    def __init__(self):
        self._subscriptions: List[_Subscription] = []

    @abstractmethod
    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Create a document with a store-assigned id and return the id"""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one document or None"""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Merge top-level fields into an existing document"""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document; deleting a missing document is not an error"""

    @abstractmethod
    async def query(self, query: Query) -> List[Dict[str, Any]]:
        """Run a query and return matching documents"""

    async def subscribe(self, query: Query, callback: Listener) -> Callable[[], None]:
        """
        Register a live listener.

        The callback receives the current result immediately and again after
        every write to the query's collection. Returns an unsubscribe function.
        """
        subscription = _Subscription(query=query, callback=callback)
        self._subscriptions.append(subscription)
        callback(await self.query(query))

        def unsubscribe():
            subscription.active = False
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    async def _notify(self, collection: str) -> None:
        for subscription in list(self._subscriptions):
            if not subscription.active or subscription.query.collection != collection:
                continue
            try:
                subscription.callback(await self.query(subscription.query))
            except Exception as e:
                # one broken listener must not fail the write that triggered it
                logger.error(f"Subscriber for '{collection}' failed: {e}", exc_info=True)
