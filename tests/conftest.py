"""Shared fixtures for metadata embedder tests."""

import struct
import zlib
from pathlib import Path

import pytest
from PIL import Image
from PIL.PngImagePlugin import putchunk

from metadata_embedder.config import EmbedderSettings
from metadata_embedder.embedder import MetadataEmbedder
from metadata_embedder.models import ImageMetadata

PIL_FORMATS = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".webp": "WEBP",
    ".tiff": "TIFF",
    ".bmp": "BMP",
}

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

WIDTH = 16
HEIGHT = 12


def make_test_image(mode: str = "RGB", shift: int = 0) -> Image.Image:
    """Small gradient so pixel comparisons are meaningful."""
    if mode == "I;16":
        # Full 16-bit range, so a drop to 8 bits would show
        samples = [
            (x * 4099 + y * 311 + shift) % 65536
            for y in range(HEIGHT)
            for x in range(WIDTH)
        ]
        return Image.frombytes("I;16", (WIDTH, HEIGHT), struct.pack(f"<{len(samples)}H", *samples))

    img = Image.new("RGB", (WIDTH, HEIGHT))
    img.putdata([
        ((x * 16 + shift) % 256, (y * 20) % 256, ((x + y) * 7 + shift) % 256)
        for y in range(HEIGHT)
        for x in range(WIDTH)
    ])

    if mode == "RGBA":
        alpha = Image.new("L", img.size)
        alpha.putdata([(x * y * 5) % 256 for y in range(HEIGHT) for x in range(WIDTH)])
        img.putalpha(alpha)
    elif mode != "RGB":
        img = img.convert(mode)
    return img


@pytest.fixture
def make_image(tmp_path):
    """
    Factory writing a test image named `name` into tmp_path.

    `frames` > 1 writes a multi-frame file (animated WebP, multi-page TIFF,
    or MPO when pil_format="MPO").
    """
    def _make(name: str, mode: str = "RGB", frames: int = 1, pil_format: str | None = None,
              **save_kwargs) -> Path:
        path = tmp_path / name
        pil_format = pil_format or PIL_FORMATS[path.suffix.lower()]
        if pil_format == "WEBP":
            save_kwargs.setdefault("lossless", True)

        images = [make_test_image(mode, shift=index * 37) for index in range(frames)]
        if frames > 1:
            save_kwargs.update(save_all=True, append_images=images[1:])

        images[0].save(path, format=pil_format, **save_kwargs)
        return path
    return _make


@pytest.fixture
def sunset_metadata() -> ImageMetadata:
    return ImageMetadata(
        title="Sunset",
        description="A beach at dusk",
        keywords=["beach", "sunset"],
    )


@pytest.fixture
def embedder() -> MetadataEmbedder:
    return MetadataEmbedder(EmbedderSettings())


def as_text(value) -> str:
    """IPTC values come back as bytes or str depending on the charset record."""
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def frame_pixels(path) -> list[tuple[str, tuple[int, int], bytes]]:
    """Decoded (mode, size, pixels) of every frame or page in an image."""
    frames = []
    with Image.open(path) as img:
        for index in range(getattr(img, "n_frames", 1)):
            img.seek(index)
            # Animated WebP may decode RGB frames as RGBA
            frame = img.convert("RGBA") if img.mode in ("RGB", "RGBA") else img.copy()
            frames.append((frame.mode, frame.size, frame.tobytes()))
    return frames


def write_png16(path: Path) -> Path:
    """Write a 16-bit-per-channel RGB PNG. Pillow can only save 8-bit RGB."""
    rows = b"".join(
        b"\x00" + b"".join(
            struct.pack(">3H", x * 4099 + 1, y * 5003 + 2, (x + y) * 257 + 3)
            for x in range(WIDTH)
        )
        for y in range(HEIGHT)
    )
    with open(path, "wb") as fp:
        fp.write(PNG_SIGNATURE)
        putchunk(fp, b"IHDR", struct.pack(">IIBBBBB", WIDTH, HEIGHT, 16, 2, 0, 0, 0))
        putchunk(fp, b"IDAT", zlib.compress(rows))
        putchunk(fp, b"IEND", b"")
    return path


def png_chunks(path) -> list[tuple[bytes, bytes]]:
    """(chunk type, chunk data) for every chunk of a PNG file."""
    data = Path(path).read_bytes()
    assert data[:8] == PNG_SIGNATURE
    chunks = []
    pos = 8
    while pos < len(data):
        length, cid = struct.unpack(">I4s", data[pos:pos + 8])
        chunks.append((cid, data[pos + 8:pos + 8 + length]))
        pos += 12 + length
    return chunks
