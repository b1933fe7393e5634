"""Tests for stored value classification."""
import io
from unittest.mock import patch

import pytest
from PIL import Image

from kv_image_service.errors import InvalidImageError
from kv_image_service.models import ImageValue, OpaqueValue, classify
from kv_image_service.models.stored_value import decode_image, is_image_content_type


def create_test_image(fmt: str = "PNG", size: tuple[int, int] = (8, 6)) -> bytes:
    """Create a small test image in the given format."""
    img = Image.new("RGB", size, color=(200, 40, 90))
    img_bytes = io.BytesIO()
    img.save(img_bytes, format=fmt)
    return img_bytes.getvalue()


class TestClassify:
    """Test classify()."""

    def test_png_classified_as_image(self):
        """Test valid PNG bytes declared as image/png become an ImageValue."""
        value = classify("image/png", create_test_image())

        assert isinstance(value, ImageValue)
        assert value.image.size == (8, 6)

    def test_declared_type_need_not_match_format(self):
        """Test any image/* type is decoded by content, not by subtype."""
        value = classify("image/jpeg", create_test_image("PNG"))
        assert isinstance(value, ImageValue)

    @pytest.mark.parametrize("fmt", ["JPEG", "GIF", "BMP"])
    def test_other_formats_decoded(self, fmt):
        """Test common image formats are decoded."""
        value = classify(f"image/{fmt.lower()}", create_test_image(fmt))
        assert isinstance(value, ImageValue)

    def test_text_stored_verbatim(self):
        """Test text content is kept as opaque bytes."""
        value = classify("text/plain", b"Hello World")

        assert value == OpaqueValue(content_type="text/plain", content=b"Hello World")

    def test_non_image_type_never_decoded(self):
        """Test opaque content types skip image decoding entirely."""
        with patch("kv_image_service.models.stored_value.decode_image") as mock_decode:
            value = classify("application/octet-stream", create_test_image())

        mock_decode.assert_not_called()
        assert isinstance(value, OpaqueValue)

    def test_image_bytes_with_non_image_type_stay_opaque(self):
        """Test image bytes are only decoded when declared as an image."""
        content = create_test_image()
        value = classify("application/octet-stream", content)

        assert isinstance(value, OpaqueValue)
        assert value.content == content

    def test_empty_opaque_payload_allowed(self):
        """Test an empty body with a non-image type is stored as-is."""
        value = classify("text/plain", b"")
        assert value == OpaqueValue(content_type="text/plain", content=b"")

    def test_undecodable_image_rejected(self):
        """Test garbage declared as an image raises InvalidImageError."""
        with pytest.raises(InvalidImageError) as exc_info:
            classify("image/png", b"Hello World")

        assert exc_info.value.status_code == 400

    def test_truncated_image_rejected(self):
        """Test a PNG cut short is rejected rather than stored lazily."""
        img = Image.frombytes("RGB", (64, 64), bytes(range(256)) * 48)
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        content = buffer.getvalue()
        truncated = content[: len(content) // 2]

        with pytest.raises(InvalidImageError):
            classify("image/png", truncated)

    def test_empty_image_rejected(self):
        """Test an empty body declared as an image is rejected."""
        with pytest.raises(InvalidImageError, match="empty"):
            classify("image/png", b"")

    def test_content_type_parameters_preserved(self):
        """Test the full declared content type is kept for opaque values."""
        value = classify("text/plain; charset=utf-8", b"abc")
        assert value.content_type == "text/plain; charset=utf-8"


class TestHelpers:
    """Test classification helpers."""

    @pytest.mark.parametrize("content_type,expected", [
        ("image/png", True),
        ("image/jpeg", True),
        ("IMAGE/PNG", True),
        (" image/gif", True),
        ("text/plain", False),
        ("application/image", False),
        ("image", False),
        ("", False),
    ])
    def test_is_image_content_type(self, content_type, expected):
        """Test detection of image content types."""
        assert is_image_content_type(content_type) is expected

    def test_decode_image_loads_pixels(self):
        """Test decode_image returns a fully loaded image."""
        image = decode_image(create_test_image())
        assert image.getpixel((0, 0)) == (200, 40, 90)

    def test_values_are_immutable(self):
        """Test stored values cannot be modified after creation."""
        value = OpaqueValue(content_type="text/plain", content=b"x")
        with pytest.raises(AttributeError):
            value.content = b"y"


def encode_in_mode(mode: str, fmt: str, color) -> bytes:
    img_bytes = io.BytesIO()
    Image.new(mode, (8, 6), color).save(img_bytes, format=fmt)
    return img_bytes.getvalue()


class TestDecodeModes:
    """Test decoded images are normalized to an 8-bit mode."""

    def test_cmyk_jpeg_becomes_rgb(self):
        """Test CMYK JPEGs decode as RGB."""
        image = decode_image(encode_in_mode("CMYK", "JPEG", (0, 0, 0, 0)))

        assert image.mode == "RGB"
        r, g, b = image.getpixel((0, 0))
        assert min(r, g, b) > 240

    def test_sixteen_bit_png_becomes_l(self):
        """Test 16-bit grayscale PNGs are scaled down to L."""
        image = decode_image(encode_in_mode("I;16", "PNG", 40000))

        assert image.mode == "L"
        assert 155 <= image.getpixel((0, 0)) <= 157

    def test_float_tiff_becomes_l(self):
        """Test floating-point TIFFs decode as L."""
        image = decode_image(encode_in_mode("F", "TIFF", 12.0))

        assert image.mode == "L"
        assert image.getpixel((0, 0)) == 12

    @pytest.mark.parametrize("mode", ["1", "L", "LA", "P", "RGB", "RGBA"])
    def test_png_modes_kept(self, mode):
        """Test modes PNG stores natively are not converted."""
        image = decode_image(encode_in_mode(mode, "PNG", 0))
        assert image.mode == mode

    def test_unconvertible_mode_rejected(self):
        """Test a mode with no 8-bit conversion is an invalid image."""
        with patch(
            "kv_image_service.models.stored_value.normalize_mode",
            side_effect=ValueError("conversion not supported"),
        ):
            with pytest.raises(InvalidImageError, match="conversion not supported"):
                classify("image/png", create_test_image())
