"""
Entry point for embedding SEO metadata into image files.

MetadataEmbedder validates the request, resolves the container format
from the file extension and hands off to the matching handler. The source
file is only ever read; results go to a new file next to it.
"""

import logging
import os
from pathlib import Path
from typing import Any

from metadata_embedder.config import EmbedderSettings, get_settings
from metadata_embedder.exceptions import (
    EmbeddingError,
    NotFoundError,
    ValidationError,
)
from metadata_embedder.formats import resolve_format
from metadata_embedder.handlers import HANDLERS
from metadata_embedder.models import EmbedResult, ImageMetadata, output_path_for

logger = logging.getLogger(__name__)


class MetadataEmbedder:
    """
    Embeds title, description and keywords into JPEG, PNG, WebP and TIFF
    files.

    The embedder holds no per-call state, so one instance can be shared
    between threads as long as each call works on a different source file.
    """

    def __init__(self, settings: EmbedderSettings | None = None):
        """
        Initialize the embedder.

        Args:
            settings: Runtime settings. If None, loads them from the
                      environment.
        """
        self.settings = settings or get_settings()

    def embed(
        self,
        source_path: str | Path | None,
        metadata: ImageMetadata | dict[str, Any] | None
    ) -> EmbedResult:
        """
        Embed metadata into a copy of an image.

        Args:
            source_path: Path to an existing .jpg, .jpeg, .png, .webp or
                         .tiff file.
            metadata: Metadata to embed, or its dict form as returned by
                      the vision service.

        Returns:
            EmbedResult pointing at <dir>/<stem>_with_metadata<ext>.

        Raises:
            ValidationError: If source_path or metadata is missing or invalid.
            NotFoundError: If the source file doesn't exist or can't be read.
            UnsupportedFormatError: If the extension is not supported.
            EmbeddingError: If reading the image or writing the output fails.
        """
        source_path = self._validate_path(source_path)
        metadata = self._validate_metadata(metadata)

        if not source_path.is_file():
            raise NotFoundError(f"Image not found: {source_path}")
        if not os.access(source_path, os.R_OK):
            raise NotFoundError(f"Image is not readable: {source_path}")

        profile = resolve_format(source_path)
        output_path = output_path_for(source_path)
        handler = HANDLERS[profile.image_format]

        logger.debug(
            f"Embedding metadata into {source_path.name} "
            f"as {profile.image_format.value} -> {output_path.name}"
        )

        try:
            handler(source_path, output_path, metadata, profile, self.settings)
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(f"{source_path.name}: {e}") from e

        logger.info(f"Added metadata to {output_path.name}")
        return EmbedResult(output_path=str(output_path))

    def _validate_path(self, source_path: Any) -> Path:
        if source_path is None or source_path == "":
            raise ValidationError("Image path and metadata are required")
        if not isinstance(source_path, (str, os.PathLike)):
            raise ValidationError(
                f"Image path must be a string or path, got {type(source_path).__name__}"
            )
        return Path(source_path)

    def _validate_metadata(self, metadata: Any) -> ImageMetadata:
        if metadata is None:
            raise ValidationError("Image path and metadata are required")
        if isinstance(metadata, dict):
            return ImageMetadata.from_dict(metadata)
        if not isinstance(metadata, ImageMetadata):
            raise ValidationError(
                f"metadata must be ImageMetadata or dict, got {type(metadata).__name__}"
            )
        # Fields may have been reassigned since construction
        metadata.validate()
        return metadata


def add_image_metadata(
    source_path: str | Path,
    metadata: ImageMetadata | dict[str, Any]
) -> EmbedResult:
    """
    Convenience function to embed metadata into a single image.

    Args:
        source_path: Path to the image file.
        metadata: Metadata to embed.

    Returns:
        EmbedResult with the output path.
    """
    embedder = MetadataEmbedder()
    return embedder.embed(source_path, metadata)
