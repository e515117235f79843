import copy
import uuid
from typing import Any, Dict, List, Optional

from paperhub.store.base import (
    DocumentMissingError,
    DocumentStore,
    Query,
    resolve_server_timestamps,
)


class InMemoryDocumentStore(DocumentStore):
    """Process-local store used for development and tests"""

    def __init__(self):
        super().__init__()
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(name, {})

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        self._collection(collection)[doc_id] = copy.deepcopy(resolve_server_timestamps(data))
        await self._notify(collection)
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        doc = self._collection(collection).get(doc_id)
        if doc is None:
            return None
        return {"id": doc_id, **copy.deepcopy(doc)}

    async def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        docs = self._collection(collection)
        if doc_id not in docs:
            raise DocumentMissingError(f"{collection}/{doc_id} does not exist")
        docs[doc_id].update(copy.deepcopy(resolve_server_timestamps(data)))
        await self._notify(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        self._collection(collection).pop(doc_id, None)
        await self._notify(collection)

    async def query(self, query: Query) -> List[Dict[str, Any]]:
        results = []
        for doc_id, doc in self._collection(query.collection).items():
            if not all(doc.get(name) == value for name, value in query.filters):
                continue
            if query.order_by is not None:
                value = doc.get(query.order_by)
                # documents without the ordered field are excluded
                if value is None:
                    continue
                if query.start_at is not None and not (isinstance(value, str) and value >= query.start_at):
                    continue
                if query.end_at is not None and not (isinstance(value, str) and value <= query.end_at):
                    continue
            results.append({"id": doc_id, **copy.deepcopy(doc)})

        if query.order_by is not None:
            results.sort(key=lambda d: d[query.order_by], reverse=query.descending)
        if query.limit is not None:
            results = results[:query.limit]
        return results
