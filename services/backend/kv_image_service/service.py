"""Store operations exposed to the HTTP layer."""

import logging
from dataclasses import dataclass
from typing import Callable

from PIL import Image

from kv_image_service import image_ops
from kv_image_service.errors import UnsupportedOperationError
from kv_image_service.models import ImageValue, OpaqueValue, classify
from kv_image_service.storage import SharedState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Payload:
    """Response body together with its media type."""

    content: bytes
    media_type: str


class KVService:
    """Reads, writes and image transforms over the shared store.

    Each operation either returns a ``Payload`` or raises a ``KVError``
    subclass that the HTTP layer maps to a status code.
    """

    def __init__(
        self,
        state: SharedState,
        thumbnail_size: tuple[int, int] = (100, 100),
        max_blur_sigma: float = image_ops.DEFAULT_MAX_BLUR_SIGMA,
    ):
        self.state = state
        self.thumbnail_size = thumbnail_size
        self.max_blur_sigma = max_blur_sigma

    def write(self, key: str, content_type: str, content: bytes) -> None:
        """Classify a payload and store it under ``key``.

        Raises:
            InvalidImageError: If an image content type carries undecodable bytes.
            StoreUnavailableError: If the store lock cannot be acquired.
        """
        value = classify(content_type, content)
        self.state.write(key, value)
        logger.info(
            f"Stored key {key!r} as {type(value).__name__} "
            f"({content_type}, {len(content)} bytes)"
        )

    def read(self, key: str) -> Payload:
        """Return the value stored under ``key``.

        Opaque values come back verbatim with their declared content type.
        Images are re-encoded as PNG.
        """
        value = self.state.read(key)
        if isinstance(value, OpaqueValue):
            return Payload(content=value.content, media_type=value.content_type)
        return self._png(value.image)

    def grayscale(self, key: str) -> Payload:
        """Return the grayscale version of the image stored under ``key``."""
        return self._transform(key, "grayscale", image_ops.grayscale)

    def blur(self, key: str, sigma: float) -> Payload:
        """Return a Gaussian-blurred version of the image stored under ``key``."""
        return self._transform(
            key,
            "blur",
            lambda image: image_ops.blur(image, sigma, max_sigma=self.max_blur_sigma),
        )

    def thumbnail(self, key: str) -> Payload:
        """Return the image stored under ``key`` shrunk to the thumbnail box."""
        width, height = self.thumbnail_size
        return self._transform(
            key,
            "thumbnail",
            lambda image: image_ops.thumbnail(image, width, height),
        )

    def _transform(
        self,
        key: str,
        operation: str,
        func: Callable[[Image.Image], Image.Image],
    ) -> Payload:
        # The read lock is released before transforming; stored images are
        # never mutated, only copied.
        value = self.state.read(key)
        if not isinstance(value, ImageValue):
            logger.warning(f"Refusing to {operation} non-image key {key!r}")
            raise UnsupportedOperationError.for_operation(operation)

        logger.debug(f"Applying {operation} to key {key!r}")
        return self._png(func(value.image))

    @staticmethod
    def _png(image: Image.Image) -> Payload:
        return Payload(content=image_ops.encode_png(image), media_type=image_ops.PNG_MEDIA_TYPE)
