"""
Storage Services Package

Provides the blob store interface, its implementations, and the record
store built on top of it.
"""

from smartshop.services.storage.interface import (
    BlobStoreInterface,
    ConnectionError,
    StorageError,
)
from smartshop.services.storage.blob_stores import (
    InMemoryBlobStore,
    JsonFileBlobStore,
)
from smartshop.services.storage.record_store import (
    DEFAULT_RECORDS_KEY,
    CorruptStoreError,
    RecordStore,
    dump_records,
    load_records,
    salvage_records,
    new_id,
)

__all__ = [
    # Interfaces
    "BlobStoreInterface",
    # Exceptions
    "ConnectionError",
    "CorruptStoreError",
    "StorageError",
    # Blob stores
    "InMemoryBlobStore",
    "JsonFileBlobStore",
    # Record store
    "DEFAULT_RECORDS_KEY",
    "RecordStore",
    "dump_records",
    "load_records",
    "salvage_records",
    "new_id",
]
