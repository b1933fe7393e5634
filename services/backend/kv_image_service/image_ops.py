"""Image transformations applied to stored images.

Every function here returns a new image and leaves its input untouched,
since stored images are shared between concurrent requests.
"""

import io
import logging
import math

from PIL import Image, ImageFilter

from kv_image_service.errors import ImageEncodingError

logger = logging.getLogger(__name__)

DEFAULT_MAX_BLUR_SIGMA = 50.0
PNG_MEDIA_TYPE = "image/png"


# Modes every operation here can process and PNG can store
NATIVE_MODES = frozenset({"1", "L", "LA", "P", "RGB", "RGBA"})

# 16-bit samples are scaled down to 8 bits
_SIXTEEN_BIT_SCALE = 1 / 256


def _has_alpha(image: Image.Image) -> bool:
    return "A" in image.getbands() or "transparency" in image.info


def normalize_mode(image: Image.Image) -> Image.Image:
    """Convert an image to a mode the operations and PNG encoder support.

    Images already in one of ``NATIVE_MODES`` are returned as-is. 16-bit
    integer images (``I``, ``I;16`` and its variants) are scaled to ``L``,
    float images are clipped to ``L``, images with alpha become ``RGBA``
    and every other mode (``CMYK``, ``YCbCr``, ``HSV``, ...) becomes
    ``RGB``.

    Raises:
        ValueError: If Pillow has no conversion for the image's mode.
    """
    mode = image.mode
    if mode in NATIVE_MODES:
        return image

    if mode == "I" or mode.startswith("I;16"):
        scaled = image.convert("I").point(lambda v: v * _SIXTEEN_BIT_SCALE)
        return scaled.convert("L")
    if mode == "F":
        return image.convert("L")

    bands = image.getbands()
    if "A" in bands or "a" in bands:
        return image.convert("RGBA")
    return image.convert("RGB")


def grayscale(image: Image.Image) -> Image.Image:
    """Convert an image to grayscale using ITU-R 601-2 luma.

    Alpha is preserved, so RGBA input yields an ``LA`` image.
    """
    image = normalize_mode(image)
    if _has_alpha(image):
        return image.convert("RGBA").convert("LA")
    return image.convert("L")


def blur(
    image: Image.Image,
    sigma: float,
    max_sigma: float = DEFAULT_MAX_BLUR_SIGMA,
) -> Image.Image:
    """Apply a Gaussian blur.

    Args:
        image: Source image.
        sigma: Standard deviation of the Gaussian kernel.
        max_sigma: Upper bound for ``sigma``.

    Returns:
        Image.Image: The blurred image. A ``sigma`` that is NaN or not
        positive yields an unmodified copy; larger values than
        ``max_sigma`` (including infinity) are clamped.
    """
    source = normalize_mode(image)
    if math.isnan(sigma) or sigma <= 0:
        logger.debug(f"Blur sigma {sigma} is not positive, returning copy")
        return source.copy()

    if sigma > max_sigma:
        logger.debug(f"Clamping blur sigma {sigma} to {max_sigma}")
        sigma = max_sigma

    # GaussianBlur does not support palette or bilevel images
    if source.mode in ("P", "1"):
        source = source.convert("RGBA" if _has_alpha(source) else "RGB")

    return source.filter(ImageFilter.GaussianBlur(radius=sigma))


def thumbnail(image: Image.Image, width: int, height: int) -> Image.Image:
    """Shrink an image to fit within ``width`` x ``height``.

    Aspect ratio is preserved. Images that already fit are not enlarged.

    Raises:
        ValueError: If either bound is not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Thumbnail bounds must be positive, got {width}x{height}")

    result = normalize_mode(image).copy()
    result.thumbnail((width, height))
    return result


def encode_png(image: Image.Image) -> bytes:
    """Serialize an image as PNG.

    Raises:
        ImageEncodingError: If Pillow cannot write the image as PNG.
    """
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Failed to encode {image.mode} image as PNG: {e}")
        raise ImageEncodingError(f"Failed to encode image: {e}") from e
    return buffer.getvalue()
