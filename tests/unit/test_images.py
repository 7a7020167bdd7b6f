"""
Tests for selfie payload validation.
"""

import base64

import pytest

from analysis.images import strip_data_url, validate_image
from core.exceptions import MalformedInput


class TestValidateImage:

    def test_png(self, png_b64):
        image = validate_image(png_b64)
        assert image.image_format == "PNG"
        assert image.size_bytes > 0
        assert image.data_url.startswith("data:image/png;base64,")

    def test_data_url_prefix_removed(self, jpeg_b64):
        image = validate_image(f"data:image/jpeg;base64,{jpeg_b64}")
        assert image.base64_data == jpeg_b64
        assert image.image_format == "JPEG"
        assert image.data_url == f"data:image/jpeg;base64,{jpeg_b64}"

    @pytest.mark.parametrize("payload", ["", "   "])
    def test_empty(self, payload):
        with pytest.raises(MalformedInput) as exc_info:
            validate_image(payload)
        assert exc_info.value.status_code == 400

    def test_not_base64(self):
        with pytest.raises(MalformedInput, match="Invalid base64 format"):
            validate_image("this is not base64!")

    def test_not_an_image(self):
        payload = base64.b64encode(b"plain text, not pixels").decode("ascii")
        with pytest.raises(MalformedInput, match="could not be decoded"):
            validate_image(payload)

    def test_too_large(self, png_b64):
        with pytest.raises(MalformedInput, match="exceeds"):
            validate_image(png_b64, max_mb=0.00001)

    def test_preview_is_truncated(self, png_b64):
        image = validate_image(png_b64)
        preview = image.preview()
        assert preview.startswith("data:image/jpeg;base64,")
        assert preview.endswith("...")
        assert len(preview) <= len("data:image/jpeg;base64,") + 100 + 3


def test_strip_data_url():
    assert strip_data_url("data:image/png;base64,AAAA") == "AAAA"
    assert strip_data_url("AAAA") == "AAAA"
