"""
Read embedded SEO metadata back out of an image.

Reports the raw value of every native slot the embedder writes and
recovers title, description and keywords from the primary slots of each
format. Used to inspect output files and to verify round trips.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import piexif
from iptcinfo3 import IPTCInfo
from PIL import Image

from metadata_embedder.exceptions import NotFoundError
from metadata_embedder.formats import FormatProfile, ImageFormat, resolve_format
from metadata_embedder.handlers import (
    TAG_DOCUMENT_NAME,
    TAG_IMAGE_DESCRIPTION,
    TAG_XP_KEYWORDS,
)

logger = logging.getLogger(__name__)

XMP_NAMESPACES = {
    "x": "adobe:ns:meta/",
    "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "dc": "http://purl.org/dc/elements/1.1/",
    "pdf": "http://ns.adobe.com/pdf/1.3/",
}


@dataclass
class EmbeddedMetadata:
    """Metadata found in an image file."""
    filepath: str
    image_format: ImageFormat
    title: str | None = None
    description: str | None = None
    keywords: list[str] = field(default_factory=list)

    # Native slot name -> decoded value
    slots: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "filepath": self.filepath,
            "format": self.image_format.value,
            "title": self.title,
            "description": self.description,
            "keywords": list(self.keywords),
            "slots": dict(self.slots),
        }


class MetadataReader:
    """
    Reads the title, description and keyword slots of supported images.
    """

    def read(self, filepath: str | Path) -> EmbeddedMetadata:
        """
        Read embedded metadata from an image file.

        Args:
            filepath: Path to the image file.

        Returns:
            EmbeddedMetadata with decoded slots.

        Raises:
            NotFoundError: If the file doesn't exist.
            UnsupportedFormatError: If the extension is not supported.
        """
        filepath = Path(filepath)

        if not filepath.is_file():
            raise NotFoundError(f"Image not found: {filepath}")

        profile = resolve_format(filepath)
        result = EmbeddedMetadata(filepath=str(filepath), image_format=profile.image_format)

        logger.debug(f"Reading embedded metadata from: {filepath.name}")

        readers = {
            ImageFormat.JPEG: self._read_jpeg,
            ImageFormat.PNG: self._read_png,
            ImageFormat.WEBP: self._read_webp,
            ImageFormat.TIFF: self._read_tiff,
        }
        readers[profile.image_format](filepath, result, profile)
        return result

    def _read_jpeg(self, filepath: Path, result: EmbeddedMetadata, profile: FormatProfile) -> None:
        """Read EXIF 0th IFD and IPTC records."""
        try:
            exif_dict = piexif.load(str(filepath))
        except Exception as e:
            logger.debug(f"Could not extract EXIF from {filepath.name}: {e}")
            exif_dict = {}

        ifd_0 = exif_dict.get("0th", {})
        slots = result.slots
        slots["exif_image_description"] = self._decode_string(
            ifd_0.get(piexif.ImageIFD.ImageDescription)
        )
        slots["exif_xp_title"] = self._decode_xp_string(ifd_0.get(piexif.ImageIFD.XPTitle))
        slots["exif_xp_keywords"] = self._decode_xp_string(
            ifd_0.get(piexif.ImageIFD.XPKeywords)
        )

        iptc = IPTCInfo(str(filepath), force=True)
        slots["iptc_object_name"] = self._decode_string(self._iptc_value(iptc, "object name"))
        slots["iptc_caption"] = self._decode_string(self._iptc_value(iptc, "caption/abstract"))
        slots["iptc_keywords"] = [
            self._decode_string(keyword)
            for keyword in self._iptc_value(iptc, "keywords") or []
        ]

        result.title = slots["iptc_object_name"] or slots["exif_xp_title"]
        result.description = slots["iptc_caption"] or slots["exif_image_description"]
        result.keywords = slots["iptc_keywords"] or profile.split_keywords(
            slots["exif_xp_keywords"]
        )

    def _read_png(self, filepath: Path, result: EmbeddedMetadata, profile: FormatProfile) -> None:
        """Read Title, Description and Keywords text chunks."""
        with Image.open(filepath) as img:
            text = dict(getattr(img, "text", {}))

        result.slots["png_text_title"] = text.get("Title")
        result.slots["png_text_description"] = text.get("Description")
        result.slots["png_text_keywords"] = text.get("Keywords")

        result.title = result.slots["png_text_title"]
        result.description = result.slots["png_text_description"]
        result.keywords = profile.split_keywords(result.slots["png_text_keywords"])

    def _read_webp(self, filepath: Path, result: EmbeddedMetadata, profile: FormatProfile) -> None:
        """Read the XMP packet."""
        with Image.open(filepath) as img:
            xmp = img.info.get("xmp")

        if not xmp:
            return
        if isinstance(xmp, str):
            xmp = xmp.encode("utf-8")

        root = ET.fromstring(xmp.rstrip(b"\x00"))
        slots = result.slots
        slots["xmp_dc_title"] = root.findtext(
            ".//dc:title/rdf:Alt/rdf:li", namespaces=XMP_NAMESPACES
        )
        slots["xmp_dc_description"] = root.findtext(
            ".//dc:description/rdf:Alt/rdf:li", namespaces=XMP_NAMESPACES
        )
        slots["xmp_dc_subject"] = [
            li.text or ""
            for li in root.findall(".//dc:subject/rdf:Bag/rdf:li", XMP_NAMESPACES)
        ]
        slots["xmp_pdf_keywords"] = root.findtext(".//pdf:Keywords", namespaces=XMP_NAMESPACES)

        result.title = slots["xmp_dc_title"]
        result.description = slots["xmp_dc_description"]
        result.keywords = profile.split_keywords(slots["xmp_pdf_keywords"])

    def _read_tiff(self, filepath: Path, result: EmbeddedMetadata, profile: FormatProfile) -> None:
        """Read DocumentName, ImageDescription and XPKeywords tags."""
        with Image.open(filepath) as img:
            tags = img.tag_v2
            document_name = tags.get(TAG_DOCUMENT_NAME)
            image_description = tags.get(TAG_IMAGE_DESCRIPTION)
            xp_keywords = tags.get(TAG_XP_KEYWORDS)

        slots = result.slots
        slots["tiff_document_name"] = self._decode_string(document_name)
        slots["tiff_image_description"] = self._decode_string(image_description)
        slots["tiff_xp_keywords"] = self._decode_xp_string(xp_keywords)

        result.title = slots["tiff_document_name"]
        result.description = slots["tiff_image_description"]
        result.keywords = profile.split_keywords(slots["tiff_xp_keywords"])

    def _iptc_value(self, iptc: IPTCInfo, key: str) -> Any:
        try:
            return iptc[key]
        except KeyError:
            return None

    def _decode_string(self, value: bytes | str | None) -> str | None:
        """Decode an EXIF/IPTC string value."""
        if value is None:
            return None
        if isinstance(value, bytes):
            try:
                return value.decode("utf-8").rstrip("\x00")
            except UnicodeDecodeError:
                return value.decode("latin-1").rstrip("\x00")
        return str(value).rstrip("\x00")

    def _decode_xp_string(self, value: bytes | tuple | int | None) -> str | None:
        """Decode a Windows XP* tag (UTF-16LE, NUL terminated)."""
        if value is None:
            return None
        if isinstance(value, int):
            value = (value,)
        return bytes(value).decode("utf-16le", errors="replace").rstrip("\x00")


def read_embedded_metadata(filepath: str | Path) -> EmbeddedMetadata:
    """
    Convenience function to read embedded metadata from an image.

    Args:
        filepath: Path to the image file.

    Returns:
        EmbeddedMetadata with decoded slots.
    """
    reader = MetadataReader()
    return reader.read(filepath)
