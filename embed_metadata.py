#!/usr/bin/env python3
"""
CLI entry point for embedding SEO metadata into images.

Metadata comes either from command-line options or from a JSON file in
the shape returned by the vision service: a single object applied to
every image, or an array with one object per image.

Usage:
    python embed_metadata.py photo.jpg --title "Sunset" --keywords "beach,sunset"
    python embed_metadata.py photo.png --metadata seo.json
    python embed_metadata.py a.jpg b.webp --metadata seo_array.json --workers 2
    python embed_metadata.py photo_with_metadata.jpg --show
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from metadata_embedder.batch import BatchReport, embed_batch
from metadata_embedder.config import get_settings
from metadata_embedder.embedder import MetadataEmbedder
from metadata_embedder.exceptions import MetadataEmbedderError
from metadata_embedder.models import EmbedRequest, ImageMetadata
from metadata_embedder.reader import read_embedded_metadata


def setup_logging(verbose: bool = False, log_file: str | None = None, level: str = "INFO") -> None:
    """Configure logging for the CLI run."""
    log_level = logging.DEBUG if verbose else getattr(logging, level, logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers
    )


def load_requests(args: argparse.Namespace) -> list[EmbedRequest]:
    """
    Pair each image with its metadata.

    Raises:
        ValueError: If no metadata was given or the JSON array length
                    doesn't match the number of images.
        ValidationError: If the metadata is malformed.
    """
    if args.metadata:
        data = json.loads(Path(args.metadata).read_text(encoding="utf-8"))
        if isinstance(data, list):
            if len(data) != len(args.images):
                raise ValueError(
                    f"Metadata file has {len(data)} entries for {len(args.images)} image(s)"
                )
            return [
                EmbedRequest(image, ImageMetadata.from_dict(entry))
                for image, entry in zip(args.images, data)
            ]
        metadata = ImageMetadata.from_dict(data)
    else:
        if args.title is None and args.description is None and args.keywords is None:
            raise ValueError("Provide --metadata FILE or --title/--description/--keywords")
        keywords = [k.strip() for k in (args.keywords or "").split(",") if k.strip()]
        metadata = ImageMetadata(
            title=args.title or "",
            description=args.description or "",
            keywords=keywords,
        )

    return [EmbedRequest(image, metadata) for image in args.images]


def print_report(report: BatchReport, as_json: bool) -> None:
    """Print per-image results."""
    if as_json:
        print(json.dumps([
            item.result.to_dict() if item.success
            else {"status": "error", "sourcePath": str(item.source_path), "error": str(item.error)}
            for item in report.items
        ], indent=2))
        return

    for item in report.items:
        if item.success:
            print(f"OK    {item.source_path} -> {item.result.output_path}")
        else:
            print(f"FAIL  {item.source_path}: {item.error}")
    print("\n" + report.summary())


def show_metadata(images: list[str], as_json: bool) -> int:
    """Print metadata embedded in each image."""
    exit_code = 0
    found = []

    for image in images:
        try:
            embedded = read_embedded_metadata(image)
        except MetadataEmbedderError as e:
            print(f"ERROR: {image}: {e}")
            exit_code = 1
            continue

        if as_json:
            found.append(embedded.to_dict())
            continue

        print(f"{embedded.filepath} ({embedded.image_format.value})")
        print(f"  Title:       {embedded.title}")
        print(f"  Description: {embedded.description}")
        print(f"  Keywords:    {', '.join(embedded.keywords)}")
        for slot, value in embedded.slots.items():
            print(f"    {slot}: {value!r}")

    if as_json:
        print(json.dumps(found, indent=2, ensure_ascii=False))
    return exit_code


def run(args: argparse.Namespace) -> int:
    """Embed metadata into the given images."""
    if args.show:
        return show_metadata(args.images, args.json)

    try:
        requests = load_requests(args)
    except (ValueError, OSError, MetadataEmbedderError) as e:
        print(f"ERROR: {e}")
        return 1

    embedder = MetadataEmbedder()
    report = embed_batch(
        requests,
        embedder=embedder,
        max_workers=args.workers,
        continue_on_error=not args.fail_fast
    )
    print_report(report, args.json)

    return 0 if report.failed == 0 else 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Embed SEO title, description and keywords into image files.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Supported formats:
  .jpg/.jpeg  EXIF XPTitle/ImageDescription/XPKeywords + IPTC ObjectName/Caption/Keywords
  .png        Title/Description/Keywords text chunks
  .webp       XMP dc:title/dc:description/pdf:Keywords
  .tiff       DocumentName/ImageDescription/XPKeywords tags

Output is written next to each source as <name>_with_metadata<ext>.
The source file is never modified.

Examples:
  python embed_metadata.py photo.jpg --title "Sunset" --keywords "beach,sunset"
  python embed_metadata.py *.png --metadata seo.json --workers 8
  python embed_metadata.py photo_with_metadata.jpg --show --json
        """
    )

    parser.add_argument(
        "images",
        nargs="+",
        help="Image files to process"
    )

    # Metadata source
    parser.add_argument(
        "--metadata",
        metavar="FILE",
        help="JSON file with an object, or an array with one object per image"
    )
    parser.add_argument("--title", help="SEO title")
    parser.add_argument("--description", help="SEO description")
    parser.add_argument(
        "--keywords",
        help="Comma-separated keywords"
    )

    # Processing options
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of images processed in parallel (default: EMBED_MAX_WORKERS or 4)"
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help=("Exit with an error instead of a report if any file fails; "
              "files already queued still finish")
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Print embedded metadata instead of writing"
    )

    # Output options
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging"
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file"
    )

    args = parser.parse_args(argv)

    if args.metadata and any(v is not None for v in (args.title, args.description, args.keywords)):
        parser.error("--metadata cannot be combined with --title/--description/--keywords")
    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be at least 1")

    try:
        settings = get_settings()
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    setup_logging(args.verbose, args.log_file or settings.log_file, settings.log_level)

    try:
        return run(args)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user.")
        return 130
    except MetadataEmbedderError as e:
        print(f"\nERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
