"""
Batch embedding across many images.

Each request is embedded on a worker thread. Calls on distinct files are
independent, so no coordination is needed beyond collecting results.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Sequence

from metadata_embedder.embedder import MetadataEmbedder
from metadata_embedder.models import EmbedRequest, EmbedResult

logger = logging.getLogger(__name__)


@dataclass
class BatchItem:
    """Outcome of embedding one request."""
    source_path: Path
    result: EmbedResult | None = None
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.error is None and self.result is not None


@dataclass
class BatchReport:
    """Statistics for a batch run."""
    items: list[BatchItem] = field(default_factory=list)
    start_time: datetime = field(default_factory=datetime.now)
    end_time: datetime | None = None

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.items if item.success)

    @property
    def failed(self) -> int:
        return sum(1 for item in self.items if not item.success)

    @property
    def duration_seconds(self) -> float:
        """Get total duration in seconds."""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0

    def summary(self) -> str:
        """Generate summary string."""
        lines = [
            "=" * 50,
            "Metadata Embedding Complete",
            "=" * 50,
            f"Total images: {len(self.items)}",
            f"Succeeded: {self.succeeded}",
            f"Failed: {self.failed}",
            f"Duration: {self.duration_seconds:.1f} seconds",
        ]

        if self.failed > 0:
            lines.append("")
            lines.append("Failed images:")
            for item in self.items:
                if not item.success:
                    lines.append(f"  - {item.source_path.name}: {item.error}")

        return "\n".join(lines)


def embed_batch(
    requests: Sequence[EmbedRequest],
    embedder: MetadataEmbedder | None = None,
    max_workers: int | None = None,
    continue_on_error: bool = True
) -> BatchReport:
    """
    Embed metadata into many images concurrently.

    Args:
        requests: Source paths paired with their metadata.
        embedder: Embedder to use. If None, creates one from the environment.
        max_workers: Thread pool size. Defaults to the configured value.
        continue_on_error: If False, re-raise the first failure (in request
                           order) once all submitted work has finished.

    Returns:
        BatchReport with one item per request, in request order.
    """
    embedder = embedder or MetadataEmbedder()
    workers = max_workers or embedder.settings.max_workers
    report = BatchReport()

    logger.info(f"Embedding metadata into {len(requests)} image(s) with {workers} worker(s)")

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(embedder.embed, request.source_path, request.metadata)
            for request in requests
        ]

        for i, (request, future) in enumerate(zip(requests, futures), 1):
            item = BatchItem(source_path=Path(str(request.source_path)))
            try:
                item.result = future.result()
                logger.debug(f"[{i}/{len(requests)}] {item.source_path.name} -> {item.result.output_path}")
            except Exception as e:
                item.error = e
                logger.error(f"Failed to add metadata to {item.source_path.name}: {e}")
            report.items.append(item)

    report.end_time = datetime.now()

    if not continue_on_error:
        for item in report.items:
            if item.error is not None:
                raise item.error

    return report
