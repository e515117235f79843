import logging
from paperhub.config import config
from paperhub.store.base import DocumentStore
from paperhub.store.memory import InMemoryDocumentStore

logger = logging.getLogger(__name__)

def create_store(backend: str = None) -> DocumentStore:
    """Create the document store selected by STORE_BACKEND"""
    backend = (backend or config.STORE_BACKEND).lower()
    if backend == "postgres":
        if not config.DATABASE_URL:
            raise ValueError("DATABASE_URL is required when STORE_BACKEND=postgres")
        from paperhub.store.postgres import PostgresDocumentStore
        logger.info("Using PostgreSQL document store")
        return PostgresDocumentStore(config.DATABASE_URL)
    if backend == "memory":
        logger.info("Using in-memory document store")
        return InMemoryDocumentStore()
    raise ValueError(f"Unknown store backend: {backend}")
