"""
Image Intake Service

Checks screenshots and receipt photos before they are sent to the AI
model for parsing.

This service handles:
1. MIME type and size limits
2. Verifying the bytes really are an image (using Pillow)
3. Reporting the detected MIME type, which wins over the declared one

CRITICAL: We do NOT send arbitrary uploads to the AI model. Anything
that is not a readable image of a supported type is rejected here.
"""

from datetime import datetime, timezone
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, Field

from smartshop.config import get_settings
from smartshop.config.settings import AppSettings


class InvalidImageError(Exception):
    """The upload cannot be used for AI parsing."""
    pass


class ImageUpload(BaseModel):
    """An image accepted for AI parsing."""

    received_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    data: bytes = Field(repr=False)
    mime_type: str
    size_bytes: int = Field(ge=0)
    width: int = Field(ge=1)
    height: int = Field(ge=1)


class ImageService:
    """Validates image uploads against the configured limits."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def validate(self, image_bytes: bytes, mime_type: str) -> ImageUpload:
        """
        Validate an upload.

        Args:
            image_bytes: Raw file content
            mime_type: MIME type reported by the browser

        Returns:
            ImageUpload with the detected MIME type and dimensions

        Raises:
            InvalidImageError: If the upload is not a usable image
        """
        declared = (mime_type or "").lower().strip()
        if not declared.startswith("image/"):
            raise InvalidImageError("Please upload an image file")

        if not image_bytes:
            raise InvalidImageError("The image file is empty")

        if len(image_bytes) > self._settings.max_upload_size_bytes:
            raise InvalidImageError(
                f"Image is too large (maximum {self._settings.max_upload_size_mb} MB)"
            )

        try:
            img = Image.open(BytesIO(image_bytes))
            width, height = img.size
            detected = Image.MIME.get(img.format or "", declared)
            img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise InvalidImageError(f"Could not read the image: {e}") from e

        subtype = detected.split("/", 1)[-1]
        if subtype not in self._settings.supported_formats_list:
            raise InvalidImageError(
                f"Unsupported image type: {detected}. "
                f"Allowed: {', '.join(self._settings.supported_formats_list)}"
            )

        return ImageUpload(
            data=image_bytes,
            mime_type=detected,
            size_bytes=len(image_bytes),
            width=width,
            height=height,
        )
