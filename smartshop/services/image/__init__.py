"""Image intake services package."""

from smartshop.services.image.image_service import (
    ImageService,
    ImageUpload,
    InvalidImageError,
)

__all__ = [
    "ImageService",
    "ImageUpload",
    "InvalidImageError",
]
