"""Container format classification from picture ids."""

from typing import Dict

from .exceptions import UnsupportedFormatError
from .models import ImageFormat

SUPPORTED_EXTENSIONS: Dict[str, ImageFormat] = {
    "jpg": ImageFormat.JPEG,
    "jpeg": ImageFormat.JPEG,
    "png": ImageFormat.PNG,
    "webp": ImageFormat.WEBP,
}


def extract_extension(picture_id: str) -> str:
    """Return the text after the last '.', or '' when there is no dot."""
    _, dot, extension = picture_id.rpartition(".")
    return extension if dot else ""


def classify(picture_id: str) -> ImageFormat:
    """
    Determine the container format of a picture from its extension.

    Matching is case-sensitive: ``photo.JPG`` is rejected.

    Raises:
        UnsupportedFormatError: If the extension is missing or not supported
    """
    extension = extract_extension(picture_id)
    try:
        return SUPPORTED_EXTENSIONS[extension]
    except KeyError:
        raise UnsupportedFormatError(
            f"Unsupported image type: {extension or '<none>'} ({picture_id})"
        ) from None
