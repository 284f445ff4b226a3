"""Services package."""

from smartshop.services.image import (
    ImageService,
    ImageUpload,
    InvalidImageError,
)
from smartshop.services.storage import (
    BlobStoreInterface,
    ConnectionError,
    CorruptStoreError,
    InMemoryBlobStore,
    JsonFileBlobStore,
    RecordStore,
    StorageError,
)

__all__ = [
    # Image services
    "ImageService",
    "ImageUpload",
    "InvalidImageError",
    # Storage services
    "BlobStoreInterface",
    "ConnectionError",
    "CorruptStoreError",
    "InMemoryBlobStore",
    "JsonFileBlobStore",
    "RecordStore",
    "StorageError",
]
