"""
Data types passed into and out of the metadata embedder.

- ImageMetadata: the SEO title, description and keywords to embed
- EmbedRequest: a source image paired with its metadata
- EmbedResult: outcome of a successful embed call
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from metadata_embedder.exceptions import ValidationError

OUTPUT_SUFFIX = "_with_metadata"


class EmbedStatus(Enum):
    """Status of an embed call."""
    SUCCESS = "success"


@dataclass
class ImageMetadata:
    """SEO metadata generated for a single image."""
    title: str
    description: str
    keywords: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Check field types.

        Keywords must be a list or tuple of strings. A bare string is
        rejected rather than being split into characters.

        Raises:
            ValidationError: If any field has the wrong type.
        """
        if not isinstance(self.title, str):
            raise ValidationError(
                f"title must be a string, got {type(self.title).__name__}"
            )
        if not isinstance(self.description, str):
            raise ValidationError(
                f"description must be a string, got {type(self.description).__name__}"
            )
        if isinstance(self.keywords, str) or not isinstance(self.keywords, (list, tuple)):
            raise ValidationError(
                f"keywords must be a list of strings, got {type(self.keywords).__name__}"
            )
        for index, keyword in enumerate(self.keywords):
            if not isinstance(keyword, str):
                raise ValidationError(
                    f"keywords[{index}] must be a string, got {type(keyword).__name__}"
                )
        self.keywords = list(self.keywords)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImageMetadata":
        """
        Build metadata from a decoded AI reply.

        Args:
            data: Mapping with "title", "description" and "keywords" keys.
                  Missing keys fall back to empty values.

        Returns:
            ImageMetadata instance.

        Raises:
            ValidationError: If data is not a mapping or a field is invalid.
        """
        if not isinstance(data, dict):
            raise ValidationError(
                f"metadata must be an object, got {type(data).__name__}"
            )
        return cls(
            title=data.get("title") or "",
            description=data.get("description") or "",
            keywords=data.get("keywords") or [],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "keywords": list(self.keywords),
        }


@dataclass
class EmbedRequest:
    """A source image and the metadata to embed into it."""
    source_path: str | Path
    metadata: ImageMetadata | dict[str, Any]


@dataclass
class EmbedResult:
    """Result of embedding metadata into one image."""
    output_path: str
    status: EmbedStatus = EmbedStatus.SUCCESS
    message: str = "Metadata added successfully"

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON shape returned to HTTP callers."""
        return {
            "status": self.status.value,
            "outputPath": self.output_path,
            "message": self.message,
        }


def output_path_for(source_path: str | Path) -> Path:
    """
    Derive the output path for a source image.

    The suffix is inserted before the extension; directory and extension
    (including its case) are kept, e.g. photos/IMG.JPG ->
    photos/IMG_with_metadata.JPG.
    """
    source_path = Path(source_path)
    return source_path.with_name(
        f"{source_path.stem}{OUTPUT_SUFFIX}{source_path.suffix}"
    )
