"""
Supported image containers and their per-format settings.

The set of formats is closed: ImageFormat enumerates it, EXTENSIONS maps
file extensions onto it and PROFILES holds the settings each embedding
routine needs, including the keyword separator. JPEG and TIFF store
keywords in a single semicolon-delimited tag, PNG and WebP use a
comma-space joined string.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Sequence

from metadata_embedder.exceptions import UnsupportedFormatError


class ImageFormat(Enum):
    """Image containers that can carry embedded metadata."""
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    TIFF = "tiff"


@dataclass(frozen=True)
class FormatProfile:
    """Settings for one container format."""
    image_format: ImageFormat
    pil_format: str
    keyword_separator: str

    def join_keywords(self, keywords: Sequence[str]) -> str:
        return self.keyword_separator.join(keywords)

    def split_keywords(self, value: str | None) -> list[str]:
        """Inverse of join_keywords; an empty value gives no keywords."""
        if not value:
            return []
        return value.split(self.keyword_separator)


PROFILES: dict[ImageFormat, FormatProfile] = {
    ImageFormat.JPEG: FormatProfile(ImageFormat.JPEG, "JPEG", ";"),
    ImageFormat.PNG: FormatProfile(ImageFormat.PNG, "PNG", ", "),
    ImageFormat.WEBP: FormatProfile(ImageFormat.WEBP, "WEBP", ", "),
    ImageFormat.TIFF: FormatProfile(ImageFormat.TIFF, "TIFF", ";"),
}

EXTENSIONS: dict[str, ImageFormat] = {
    ".jpg": ImageFormat.JPEG,
    ".jpeg": ImageFormat.JPEG,
    ".png": ImageFormat.PNG,
    ".webp": ImageFormat.WEBP,
    ".tiff": ImageFormat.TIFF,
}

SUPPORTED_EXTENSIONS = frozenset(EXTENSIONS)


def resolve_format(path: str | Path) -> FormatProfile:
    """
    Look up the format profile for a file by its extension.

    Args:
        path: Path to the image file. Only the name is inspected.

    Returns:
        FormatProfile for the container.

    Raises:
        UnsupportedFormatError: If the extension is not supported.
    """
    extension = Path(path).suffix.lower()
    image_format = EXTENSIONS.get(extension)
    if image_format is None:
        raise UnsupportedFormatError(extension)
    return PROFILES[image_format]
