"""
Repository layer over the DuckDB record store.

- BaseRepository: connection management and schema initialization
- RecordStore: the read/write contract the services depend on
- DuckDBRecordStore: concrete implementation
"""
from trackr.repositories.base import BaseRepository
from trackr.repositories.store import DuckDBRecordStore, RecordStore

__all__ = [
    "BaseRepository",
    "RecordStore",
    "DuckDBRecordStore",
]
