"""
SEO metadata embedding for stock images.

This package writes AI-generated titles, descriptions and keywords into
image files using each container's native metadata slots:
- JPEG: EXIF and IPTC
- PNG: text chunks
- WebP: XMP
- TIFF: TIFF tags
"""

from metadata_embedder.batch import BatchItem, BatchReport, embed_batch
from metadata_embedder.embedder import MetadataEmbedder, add_image_metadata
from metadata_embedder.exceptions import (
    EmbeddingError,
    MetadataEmbedderError,
    NotFoundError,
    UnsupportedFormatError,
    ValidationError,
)
from metadata_embedder.formats import SUPPORTED_EXTENSIONS, ImageFormat
from metadata_embedder.models import EmbedRequest, EmbedResult, EmbedStatus, ImageMetadata
from metadata_embedder.reader import EmbeddedMetadata, MetadataReader, read_embedded_metadata

__all__ = [
    "MetadataEmbedder",
    "add_image_metadata",
    "embed_batch",
    "BatchItem",
    "BatchReport",
    "MetadataReader",
    "read_embedded_metadata",
    "EmbeddedMetadata",
    "ImageMetadata",
    "EmbedRequest",
    "EmbedResult",
    "EmbedStatus",
    "ImageFormat",
    "SUPPORTED_EXTENSIONS",
    "MetadataEmbedderError",
    "ValidationError",
    "NotFoundError",
    "UnsupportedFormatError",
    "EmbeddingError",
]
