"""
Format-specific metadata embedding routines.

Each handler maps the title, description and keywords of an ImageMetadata
onto the native metadata slots of one container and writes a new file:

- JPEG: EXIF (XPTitle, ImageDescription, XPKeywords) and IPTC
  (Object Name, Caption/Abstract, Keywords), spliced in without re-encoding
- PNG: Title, Description and Keywords text chunks, spliced in without
  decoding
- WebP: XMP packet (dc:title, dc:description, dc:subject, pdf:Keywords)
- TIFF: DocumentName, ImageDescription and XPKeywords tags

Pixel data is never changed. JPEG segments and PNG chunks other than the
metadata ones are copied byte for byte. WebP and TIFF are re-saved
losslessly with every frame or page of the source.
"""

import logging
import os
import re
import struct
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator
from xml.sax.saxutils import escape

import piexif
from iptcinfo3 import IPTCInfo
from PIL import Image, TiffImagePlugin, TiffTags
from PIL.PngImagePlugin import PngInfo, putchunk

from metadata_embedder.config import EmbedderSettings
from metadata_embedder.exceptions import EmbeddingError
from metadata_embedder.formats import FormatProfile, ImageFormat
from metadata_embedder.models import ImageMetadata

logger = logging.getLogger(__name__)

# TIFF tag numbers
TAG_DOCUMENT_NAME = 269
TAG_IMAGE_DESCRIPTION = 270
TAG_XP_KEYWORDS = 40094

# Pillow reports multi-picture JPEGs from cameras and phones as MPO
JPEG_PIL_FORMATS = ("JPEG", "MPO")

# JPEG markers
JPEG_SOS = 0xDA
JPEG_APP0 = 0xE0
JPEG_APP1 = 0xE1
JPEG_APP13 = 0xED

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
PNG_TEXT_CHUNKS = (b"tEXt", b"zTXt", b"iTXt")
PNG_TEXT_KEYS = ("Title", "Description", "Keywords")

# Characters XML 1.0 does not allow in a document
XML_INVALID_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

XMP_TEMPLATE = """<?xpacket begin="\ufeff" id="W5M0MpCehiHzreSzNTczkc9d"?>
<x:xmpmeta xmlns:x="adobe:ns:meta/">
  <rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">
    <rdf:Description rdf:about=""
        xmlns:dc="http://purl.org/dc/elements/1.1/"
        xmlns:pdf="http://ns.adobe.com/pdf/1.3/">
      <dc:title>
        <rdf:Alt>
          <rdf:li xml:lang="x-default">{title}</rdf:li>
        </rdf:Alt>
      </dc:title>
      <dc:description>
        <rdf:Alt>
          <rdf:li xml:lang="x-default">{description}</rdf:li>
        </rdf:Alt>
      </dc:description>
      <dc:subject>
        <rdf:Bag>
{subject_items}
        </rdf:Bag>
      </dc:subject>
      <pdf:Keywords>{keywords}</pdf:Keywords>
    </rdf:Description>
  </rdf:RDF>
</x:xmpmeta>
<?xpacket end="w"?>"""

Handler = Callable[[Path, Path, ImageMetadata, FormatProfile, EmbedderSettings], None]


# ────────────────────────────────────────────────────────────────────────────────
# Helpers
# ────────────────────────────────────────────────────────────────────────────────

@contextmanager
def atomic_output(output_path: Path) -> Iterator[Path]:
    """
    Yield a temporary path next to output_path.

    The temporary file is moved onto output_path when the block exits
    cleanly and removed otherwise, so output_path never holds a partial
    write.
    """
    tmp_path = output_path.with_name(
        f".{output_path.name}.{uuid.uuid4().hex[:8]}.tmp"
    )
    try:
        yield tmp_path
        os.replace(tmp_path, output_path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def encode_xp_string(text: str) -> bytes:
    """Encode text for a Windows XP* tag (NUL terminated UTF-16LE)."""
    return (text + "\x00").encode("utf-16le")


def xml_text(value: str) -> str:
    """Escape text for XML content, dropping characters XML 1.0 forbids."""
    return escape(XML_INVALID_CHARS.sub("", value))


def build_xmp_packet(metadata: ImageMetadata, profile: FormatProfile) -> str:
    """Create an XMP packet carrying the title, description and keywords."""
    subject_items = "\n".join(
        f"          <rdf:li>{xml_text(keyword)}</rdf:li>"
        for keyword in metadata.keywords
    )
    return XMP_TEMPLATE.format(
        title=xml_text(metadata.title),
        description=xml_text(metadata.description),
        subject_items=subject_items,
        keywords=xml_text(profile.join_keywords(metadata.keywords)),
    )


def _load_exif(source_path: Path) -> dict:
    """Load existing EXIF from a JPEG, or an empty structure if there is none."""
    empty = {"0th": {}, "Exif": {}, "GPS": {}, "1st": {}, "thumbnail": None}
    try:
        return piexif.load(str(source_path))
    except Exception as e:
        logger.warning(
            f"Existing EXIF in {source_path.name} is unreadable and will be replaced: {e}"
        )
        return empty


def _hoist_iptc_segment(data: bytes) -> bytes:
    """
    Move the APP13 segment up to follow the leading APP0/APP1 segments.

    iptcinfo3 writes APP13 just before the scan data. In an MPO file that
    lands between the MPF (APP2) header and the following pictures and
    shifts the picture offsets the header records. Only segments of the
    first picture are reordered; the rest of the file is left as is.
    """
    segments = []
    pos = 2
    while True:
        if pos + 4 > len(data) or data[pos] != 0xFF:
            raise EmbeddingError("JPEG marker stream is malformed")
        if data[pos + 1] == JPEG_SOS:
            break
        length = struct.unpack(">H", data[pos + 2:pos + 4])[0]
        segments.append(data[pos:pos + 2 + length])
        pos += 2 + length

    iptc_segments = [s for s in segments if s[1] == JPEG_APP13]
    others = [s for s in segments if s[1] != JPEG_APP13]

    insert_at = 0
    while insert_at < len(others) and others[insert_at][1] in (JPEG_APP0, JPEG_APP1):
        insert_at += 1

    ordered = others[:insert_at] + iptc_segments + others[insert_at:]
    return data[:2] + b"".join(ordered) + data[pos:]


def _iter_png_chunks(data: bytes) -> Iterator[tuple[bytes, bytes, bytes]]:
    """Yield (chunk type, chunk data, raw chunk bytes) for each chunk of a PNG."""
    pos = len(PNG_SIGNATURE)
    while pos < len(data):
        if pos + 8 > len(data):
            raise EmbeddingError("PNG chunk header is truncated")
        length, cid = struct.unpack(">I4s", data[pos:pos + 8])
        end = pos + 12 + length
        if end > len(data):
            raise EmbeddingError(f"PNG {cid.decode('latin-1')} chunk is truncated")
        yield cid, data[pos + 8:pos + 8 + length], data[pos:end]
        pos = end


def _png_text_key(chunk_data: bytes) -> str:
    return chunk_data.split(b"\x00", 1)[0].decode("latin-1")


# ────────────────────────────────────────────────────────────────────────────────
# Format Handlers
# ────────────────────────────────────────────────────────────────────────────────

def embed_jpeg(
    source_path: Path,
    output_path: Path,
    metadata: ImageMetadata,
    profile: FormatProfile,
    settings: EmbedderSettings
) -> None:
    """
    Write EXIF and IPTC metadata into a copy of a JPEG.

    The IPTC block is written into the APP13 segment by iptcinfo3 and the
    EXIF block then replaces the APP1 segment through piexif. Neither step
    touches the compressed image data. Multi-picture (MPO) files keep
    their additional pictures.

    Raises:
        EmbeddingError: If the source is not a JPEG or the IPTC write fails.
    """
    with Image.open(source_path) as img:
        if img.format not in JPEG_PIL_FORMATS:
            raise EmbeddingError(
                f"{source_path.name} is not a JPEG file (detected {img.format})"
            )

    keywords = profile.join_keywords(metadata.keywords)

    exif_dict = _load_exif(source_path)
    ifd_0 = exif_dict.setdefault("0th", {})
    ifd_0[piexif.ImageIFD.ImageDescription] = metadata.description.encode("utf-8")
    ifd_0[piexif.ImageIFD.XPTitle] = encode_xp_string(metadata.title)
    ifd_0[piexif.ImageIFD.XPKeywords] = encode_xp_string(keywords)
    exif_bytes = piexif.dump(exif_dict)

    iptc = IPTCInfo(str(source_path), force=True, out_charset=settings.iptc_charset)
    iptc["object name"] = metadata.title
    iptc["caption/abstract"] = metadata.description
    iptc["keywords"] = list(metadata.keywords)

    with atomic_output(output_path) as tmp_path:
        iptc.save_as(str(tmp_path))
        if not tmp_path.exists():
            raise EmbeddingError(f"IPTC block could not be written for {source_path.name}")
        piexif.insert(exif_bytes, str(tmp_path))
        tmp_path.write_bytes(_hoist_iptc_segment(tmp_path.read_bytes()))

    logger.debug(
        f"JPEG {output_path.name}: XPTitle/ObjectName={metadata.title!r}, "
        f"XPKeywords={keywords!r}, {len(metadata.keywords)} IPTC keyword(s)"
    )


def embed_png(
    source_path: Path,
    output_path: Path,
    metadata: ImageMetadata,
    profile: FormatProfile,
    settings: EmbedderSettings
) -> None:
    """
    Copy a PNG chunk by chunk with new Title, Description and Keywords text.

    Old text chunks with those keys are dropped and the new ones follow
    IHDR. Image data is never decoded, so any bit depth, color type or
    APNG animation comes through unchanged.

    Raises:
        EmbeddingError: If the source is not a PNG or its chunks are truncated.
    """
    with Image.open(source_path) as img:
        if img.format != "PNG":
            raise EmbeddingError(
                f"{source_path.name} is not a PNG file (detected {img.format})"
            )
        # Checks every chunk CRC up to IEND
        img.verify()

    data = source_path.read_bytes()

    # add_text picks tEXt or iTXt depending on whether the value is Latin-1
    pnginfo = PngInfo()
    pnginfo.add_text("Title", metadata.title)
    pnginfo.add_text("Description", metadata.description)
    pnginfo.add_text("Keywords", profile.join_keywords(metadata.keywords))

    with atomic_output(output_path) as tmp_path:
        with open(tmp_path, "wb") as fp:
            fp.write(PNG_SIGNATURE)
            for cid, chunk_data, raw in _iter_png_chunks(data):
                if cid in PNG_TEXT_CHUNKS and _png_text_key(chunk_data) in PNG_TEXT_KEYS:
                    continue
                fp.write(raw)
                if cid == b"IHDR":
                    for text_cid, text_data, *_ in pnginfo.chunks:
                        putchunk(fp, text_cid, text_data)


def embed_webp(
    source_path: Path,
    output_path: Path,
    metadata: ImageMetadata,
    profile: FormatProfile,
    settings: EmbedderSettings
) -> None:
    """
    Re-save a WebP losslessly with an XMP packet attached.

    exact=True keeps the RGB values of fully transparent pixels. Animated
    sources keep every frame with its duration and the loop count.
    """
    xmp = build_xmp_packet(metadata, profile).encode("utf-8")

    with Image.open(source_path) as img:
        img.load()

        save_kwargs = {"lossless": True, "exact": True, "xmp": xmp}
        for key in ("exif", "icc_profile"):
            if img.info.get(key):
                save_kwargs[key] = img.info[key]

        n_frames = getattr(img, "n_frames", 1)
        if n_frames > 1:
            durations = []
            for index in range(n_frames):
                img.seek(index)
                img.load()
                durations.append(img.info.get("duration", 0))
            img.seek(0)

            save_kwargs.update(
                save_all=True,
                duration=durations,
                loop=img.info.get("loop", 0),
            )
            if "background" in img.info:
                save_kwargs["background"] = img.info["background"]

        with atomic_output(output_path) as tmp_path:
            img.save(tmp_path, format=profile.pil_format, **save_kwargs)

    logger.debug(f"WebP {output_path.name}: {n_frames} frame(s), {len(xmp)} byte XMP packet")


def embed_tiff(
    source_path: Path,
    output_path: Path,
    metadata: ImageMetadata,
    profile: FormatProfile,
    settings: EmbedderSettings
) -> None:
    """
    Re-save a TIFF with DocumentName, ImageDescription and XPKeywords tags.

    DocumentName and ImageDescription are ASCII tags, so characters outside
    ASCII are written as "?". XPKeywords is UTF-16LE and keeps them.
    Output is always uncompressed so a JPEG-compressed source is not
    re-encoded. Every page of a multi-page source is written and carries
    the tags.
    """
    with Image.open(source_path) as img:
        img.load()

        ifd = TiffImagePlugin.ImageFileDirectory_v2()
        ifd[TAG_DOCUMENT_NAME] = metadata.title
        ifd[TAG_IMAGE_DESCRIPTION] = metadata.description
        ifd.tagtype[TAG_XP_KEYWORDS] = TiffTags.BYTE
        ifd[TAG_XP_KEYWORDS] = encode_xp_string(
            profile.join_keywords(metadata.keywords)
        )

        save_kwargs = {"tiffinfo": ifd, "compression": "raw"}
        for key in ("dpi", "icc_profile"):
            if img.info.get(key):
                save_kwargs[key] = img.info[key]

        if getattr(img, "n_frames", 1) > 1:
            save_kwargs["save_all"] = True

        with atomic_output(output_path) as tmp_path:
            img.save(tmp_path, format=profile.pil_format, **save_kwargs)


HANDLERS: dict[ImageFormat, Handler] = {
    ImageFormat.JPEG: embed_jpeg,
    ImageFormat.PNG: embed_png,
    ImageFormat.WEBP: embed_webp,
    ImageFormat.TIFF: embed_tiff,
}
