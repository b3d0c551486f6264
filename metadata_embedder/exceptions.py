"""
Exceptions raised by the metadata embedder.

Every error derives from MetadataEmbedderError so callers can catch the
whole family, while the subclasses tell apart bad input, a missing file,
an unsupported container and a failure while writing metadata.
"""


class MetadataEmbedderError(Exception):
    """Base exception for metadata embedding errors."""
    pass


class ValidationError(MetadataEmbedderError):
    """Required input is missing or has the wrong type."""
    pass


class NotFoundError(MetadataEmbedderError):
    """Source image does not exist or cannot be read."""
    pass


class UnsupportedFormatError(MetadataEmbedderError):
    """File extension is not one of the supported containers."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Unsupported image format: {extension or '(none)'}")


class EmbeddingError(MetadataEmbedderError):
    """Writing metadata into the image container failed."""

    PREFIX = "Failed to add metadata"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"{self.PREFIX}: {detail}")
