"""Values held by the key-value store.

A stored value is either a decoded image or an opaque payload tagged with
its declared content type. Which one is decided once, at write time, by
``classify``.
"""

import io
import logging
from dataclasses import dataclass
from typing import Union

from PIL import Image, UnidentifiedImageError

from kv_image_service.errors import InvalidImageError
from kv_image_service.image_ops import normalize_mode

logger = logging.getLogger(__name__)

IMAGE_CONTENT_TYPE_PREFIX = "image/"

# Pillow signals undecodable data through several unrelated exception types.
_DECODE_ERRORS = (
    UnidentifiedImageError,
    Image.DecompressionBombError,
    OSError,
    SyntaxError,
    ValueError,
)


@dataclass(frozen=True)
class ImageValue:
    """A fully decoded image.

    The image is shared between concurrent readers and must be treated as
    read-only; operations always work on copies.
    """

    image: Image.Image


@dataclass(frozen=True)
class OpaqueValue:
    """Raw bytes stored together with their declared MIME type."""

    content_type: str
    content: bytes


StoredValue = Union[ImageValue, OpaqueValue]


def is_image_content_type(content_type: str) -> bool:
    """Return True if the content type declares an image."""
    return content_type.strip().lower().startswith(IMAGE_CONTENT_TYPE_PREFIX)


def decode_image(content: bytes) -> Image.Image:
    """Decode image bytes into a Pillow image.

    ``Image.open`` only reads the header, so the pixel data is loaded
    explicitly to catch truncated or corrupt payloads here rather than
    on first use. The result is normalized to a mode every image
    operation and the PNG encoder support, so CMYK JPEGs come back as RGB
    and 16-bit PNGs as 8-bit grayscale.

    Args:
        content: Raw image bytes.

    Returns:
        Image.Image: The decoded image.

    Raises:
        InvalidImageError: If the bytes are not a decodable image.
    """
    if not content:
        raise InvalidImageError("Invalid image: empty body")

    try:
        image = Image.open(io.BytesIO(content))
        image.load()
        image = normalize_mode(image)
    except _DECODE_ERRORS as e:
        logger.debug(f"Failed to decode image ({len(content)} bytes): {e}")
        raise InvalidImageError(f"Invalid image: {e}") from e

    return image


def classify(content_type: str, content: bytes) -> StoredValue:
    """Turn a declared content type and payload into a stored value.

    Image content types are decoded and rejected if decoding fails; there
    is no fallback to opaque storage. Anything else is kept verbatim.

    Args:
        content_type: MIME type declared by the client.
        content: Raw payload bytes.

    Returns:
        StoredValue: ``ImageValue`` or ``OpaqueValue``.

    Raises:
        InvalidImageError: If an image content type carries undecodable bytes.
    """
    if is_image_content_type(content_type):
        return ImageValue(decode_image(content))
    return OpaqueValue(content_type=content_type, content=content)
