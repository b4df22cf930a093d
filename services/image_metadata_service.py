"""
Image metadata service.

Reads width/height from uploaded bytes with Pillow and classifies the
orientation used for archive sub-folders.
"""

from dataclasses import dataclass
from io import BytesIO
import structlog

from PIL import Image, UnidentifiedImageError

from exceptions import MetadataReadError
from models.item import ImageKind

logger = structlog.get_logger(__name__)


# Exact dimensions of the two templated artwork formats
PORTRAIT_SIZE = (500, 693)
LANDSCAPE_SIZE = (500, 333)


@dataclass(frozen=True)
class ImageMetadata:
    """Dimensions and orientation class of one image."""
    width: int
    height: int
    image_kind: ImageKind


def classify_dimensions(width: int, height: int) -> ImageKind:
    """
    Classify an image by its exact size.

    500x693 is portrait, 500x333 is landscape, anything else is standard.
    """
    if (width, height) == PORTRAIT_SIZE:
        return ImageKind.PORTRAIT
    if (width, height) == LANDSCAPE_SIZE:
        return ImageKind.LANDSCAPE
    return ImageKind.STANDARD


def read_image_metadata(content: bytes, filename: str) -> ImageMetadata:
    """
    Read dimensions from image bytes.

    Args:
        content: Raw image bytes
        filename: Original file name (for error context)

    Returns:
        ImageMetadata

    Raises:
        MetadataReadError: If the bytes are not a readable image
    """
    try:
        with Image.open(BytesIO(content)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning("image_metadata_read_failed", filename=filename, error=str(e))
        raise MetadataReadError(filename, str(e))

    kind = classify_dimensions(width, height)
    logger.debug(
        "image_metadata_read",
        filename=filename,
        width=width,
        height=height,
        image_kind=kind.value
    )
    return ImageMetadata(width=width, height=height, image_kind=kind)
