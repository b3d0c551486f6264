from pathlib import Path

import pytest

from metadata_embedder.batch import embed_batch
from metadata_embedder.exceptions import NotFoundError, UnsupportedFormatError
from metadata_embedder.models import EmbedRequest


def test_batch_embeds_every_file(make_image, embedder, sunset_metadata):
    sources = [make_image(name) for name in ("a.jpg", "b.png", "c.webp", "d.tiff")]
    requests = [EmbedRequest(source, sunset_metadata) for source in sources]

    report = embed_batch(requests, embedder=embedder, max_workers=2)

    assert report.succeeded == 4
    assert report.failed == 0
    assert [item.source_path for item in report.items] == sources
    assert all(Path(item.result.output_path).is_file() for item in report.items)
    assert report.end_time is not None


def test_batch_records_failures_and_continues(make_image, embedder, sunset_metadata, tmp_path):
    good = make_image("good.png")
    requests = [
        EmbedRequest(tmp_path / "missing.jpg", sunset_metadata),
        EmbedRequest(good, sunset_metadata),
        EmbedRequest(make_image("old.bmp"), sunset_metadata),
    ]

    report = embed_batch(requests, embedder=embedder)

    assert report.succeeded == 1
    assert report.failed == 2
    assert isinstance(report.items[0].error, NotFoundError)
    assert report.items[1].success
    assert isinstance(report.items[2].error, UnsupportedFormatError)

    summary = report.summary()
    assert "Succeeded: 1" in summary
    assert "Failed: 2" in summary
    assert "missing.jpg" in summary


def test_batch_fail_fast_raises_first_error(make_image, embedder, sunset_metadata, tmp_path):
    good = make_image("good.png")
    requests = [
        EmbedRequest(good, sunset_metadata),
        EmbedRequest(tmp_path / "missing.jpg", sunset_metadata),
    ]

    with pytest.raises(NotFoundError):
        embed_batch(requests, embedder=embedder, continue_on_error=False)

    # Work already submitted still completes
    assert (tmp_path / "good_with_metadata.png").is_file()


def test_batch_accepts_dict_metadata(make_image, embedder):
    source = make_image("photo.jpg")

    report = embed_batch(
        [EmbedRequest(source, {"title": "t", "description": "d", "keywords": ["k"]})],
        embedder=embedder,
    )

    assert report.succeeded == 1


def test_empty_batch(embedder):
    report = embed_batch([], embedder=embedder)

    assert report.items == []
    assert report.failed == 0
