"""
Unit tests for image metadata reading.

Run: pytest tests/unit/test_image_metadata_service.py -v
"""

import pytest

from exceptions import MetadataReadError
from models.item import ImageKind
from services.image_metadata_service import classify_dimensions, read_image_metadata
from tests.factories import make_image_bytes


class TestClassifyDimensions:
    """Tests for classify_dimensions()"""

    def test_portrait(self):
        assert classify_dimensions(500, 693) == ImageKind.PORTRAIT

    def test_landscape(self):
        assert classify_dimensions(500, 333) == ImageKind.LANDSCAPE

    @pytest.mark.parametrize("width,height", [(693, 500), (501, 693), (540, 540), (1000, 666)])
    def test_anything_else_is_standard(self, width, height):
        assert classify_dimensions(width, height) == ImageKind.STANDARD


class TestReadImageMetadata:
    """Tests for read_image_metadata()"""

    def test_reads_png_dimensions(self):
        metadata = read_image_metadata(make_image_bytes(500, 693), "portrait.png")

        assert metadata.width == 500
        assert metadata.height == 693
        assert metadata.image_kind == ImageKind.PORTRAIT

    def test_reads_jpeg_dimensions(self):
        metadata = read_image_metadata(make_image_bytes(500, 333, fmt="JPEG"), "landscape.jpg")

        assert (metadata.width, metadata.height) == (500, 333)
        assert metadata.image_kind == ImageKind.LANDSCAPE

    def test_unreadable_bytes(self):
        with pytest.raises(MetadataReadError) as exc_info:
            read_image_metadata(b"not an image", "broken.webp")

        assert exc_info.value.details["filename"] == "broken.webp"
