"""Record store implementations

- SqlRecordStore: SQLAlchemy (PostgreSQL in production)
- InMemoryRecordStore: process-local store for dev and tests
"""
from .memory_store import InMemoryRecordStore
from .sql_store import SqlRecordStore

__all__ = [
    'InMemoryRecordStore',
    'SqlRecordStore',
]
