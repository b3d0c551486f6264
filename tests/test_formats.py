import pytest

from metadata_embedder.exceptions import UnsupportedFormatError
from metadata_embedder.formats import (
    EXTENSIONS,
    PROFILES,
    SUPPORTED_EXTENSIONS,
    ImageFormat,
    resolve_format,
)
from metadata_embedder.handlers import HANDLERS


@pytest.mark.parametrize(
    "name, image_format",
    [
        ("a.jpg", ImageFormat.JPEG),
        ("a.JPEG", ImageFormat.JPEG),
        ("a.Png", ImageFormat.PNG),
        ("a.webp", ImageFormat.WEBP),
        ("a.TIFF", ImageFormat.TIFF),
    ],
)
def test_resolve_format_is_case_insensitive(name, image_format):
    assert resolve_format(name).image_format is image_format


@pytest.mark.parametrize("name", ["a.bmp", "a.gif", "a.tif", "a.heic", "noext"])
def test_resolve_format_rejects_other_extensions(name):
    with pytest.raises(UnsupportedFormatError, match="Unsupported image format"):
        resolve_format(name)


def test_supported_extensions():
    assert SUPPORTED_EXTENSIONS == {".jpg", ".jpeg", ".png", ".webp", ".tiff"}


def test_every_format_has_profile_and_handler():
    assert set(EXTENSIONS.values()) == set(ImageFormat)
    assert set(PROFILES) == set(ImageFormat)
    assert set(HANDLERS) == set(ImageFormat)


@pytest.mark.parametrize(
    "image_format, joined",
    [
        (ImageFormat.JPEG, "beach;sunset;golden hour"),
        (ImageFormat.TIFF, "beach;sunset;golden hour"),
        (ImageFormat.PNG, "beach, sunset, golden hour"),
        (ImageFormat.WEBP, "beach, sunset, golden hour"),
    ],
)
def test_keyword_separator_per_format(image_format, joined):
    profile = PROFILES[image_format]

    assert profile.join_keywords(["beach", "sunset", "golden hour"]) == joined
    assert profile.split_keywords(joined) == ["beach", "sunset", "golden hour"]


def test_split_empty_keywords():
    assert PROFILES[ImageFormat.PNG].split_keywords("") == []
    assert PROFILES[ImageFormat.JPEG].split_keywords(None) == []
