# Path: core/indexing/index_builder.py
# Purpose: Run a full ingest: reset the collection, discover images, normalize them, and upsert in batches.
# Layer: core/indexing.
# Details: Waves of P files are normalized on a bounded worker pool; records are upserted in sub-groups of B
#          with a per-record fallback for a failed batch call or for the records a batch rejected.

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence, TypeVar

from tqdm import tqdm

from config import AppSettings
from core.models.domain import CollectionSchema, ImageRecord, IngestionReport, IngestionState, ItemOutcome
from core.vector_store.base import PartialBatchError, VectorIndex
from .lifecycle import CollectionManager
from .normalizer import ImageNormalizer
from .scanner import ImageScanner

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PROCESSING_BATCH_SIZE = 20
DEFAULT_STORE_BATCH_SIZE = 50
DEFAULT_PROGRESS_EVERY = 50


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of ``items`` of at most ``size`` elements."""

    if size <= 0:
        raise ValueError("Chunk size must be positive.")
    for start in range(0, len(items), size):
        yield items[start : start + size]


class ThroughputMeter:
    """Track processed records against wall-clock time and log at a fixed cadence."""

    def __init__(self, total: int, every: int = DEFAULT_PROGRESS_EVERY, clock: Callable[[], float] = time.perf_counter) -> None:
        self.total = total
        self.every = every
        self.clock = clock
        self.processed = 0
        self._started = clock()

    @property
    def elapsed(self) -> float:
        return max(0.0, self.clock() - self._started)

    @property
    def rate(self) -> float:
        elapsed = self.elapsed
        return self.processed / elapsed if elapsed > 0 else 0.0

    def add(self, count: int) -> None:
        previous = self.processed
        self.processed += count
        crossed = self.processed // self.every > previous // self.every
        if count and (crossed or self.processed == self.total):
            logger.info(
                "[%d/%d] Processed (%.1f images/sec, %.1fs elapsed)",
                self.processed,
                self.total,
                self.rate,
                self.elapsed,
            )


class IngestionEngine:
    """Batch process a directory of images into the configured vector index.

    Only one engine run may write to a collection at a time; callers must serialize runs.
    """

    def __init__(
        self,
        index: VectorIndex,
        schema: CollectionSchema,
        normalizer: Optional[ImageNormalizer] = None,
        processing_batch_size: int = DEFAULT_PROCESSING_BATCH_SIZE,
        store_batch_size: int = DEFAULT_STORE_BATCH_SIZE,
        progress_every: int = DEFAULT_PROGRESS_EVERY,
        show_progress: bool = False,
    ) -> None:
        if processing_batch_size <= 0 or store_batch_size <= 0:
            raise ValueError("Batch sizes must be positive.")
        self.index = index
        self.schema = schema
        self.normalizer = normalizer or ImageNormalizer()
        self.lifecycle = CollectionManager(index, schema)
        self.processing_batch_size = processing_batch_size
        self.store_batch_size = store_batch_size
        self.progress_every = progress_every
        self.show_progress = show_progress

    @classmethod
    def from_settings(cls, index: VectorIndex, settings: AppSettings) -> "IngestionEngine":
        ingestion = settings.ingestion
        return cls(
            index=index,
            schema=CollectionSchema.for_images(settings.index.collection_name, settings.index.vectorizer),
            normalizer=ImageNormalizer(size=ingestion.image_size, quality=ingestion.jpeg_quality),
            processing_batch_size=ingestion.processing_batch_size,
            store_batch_size=ingestion.store_batch_size,
            progress_every=ingestion.progress_every,
            show_progress=ingestion.show_progress,
        )

    def run(self, root: Path) -> IngestionReport:
        """
        Reset the collection and ingest every supported image under ``root``.

        External calls:
        - core/indexing/lifecycle.py::CollectionManager.reset - drop and recreate the collection.
        - core/indexing/normalizer.py::ImageNormalizer.normalize_file - prepare each image.
        - core/vector_store/base.py::VectorIndex.batch_upsert / single_upsert - write records.
        """

        report = IngestionReport()
        logger.info("Starting image ingestion from %s", root)

        report.state = IngestionState.RESETTING
        try:
            self.lifecycle.reset()
        except Exception:
            report.state = IngestionState.FAILED
            raise

        report.state = IngestionState.DISCOVERING
        image_files = ImageScanner(root).scan()
        report.discovered = len(image_files)
        if not image_files:
            logger.warning("No image files found in %s.", root)
            report.state = IngestionState.FAILED
            return report
        logger.info("Found %d image(s) to ingest.", len(image_files))

        report.state = IngestionState.PROCESSING
        meter = ThroughputMeter(total=len(image_files), every=self.progress_every)
        with ThreadPoolExecutor(max_workers=self.processing_batch_size, thread_name_prefix="normalize") as pool, tqdm(
            total=len(image_files), desc="Ingesting images", unit="img", disable=not self.show_progress
        ) as bar:
            for wave_number, wave in enumerate(chunked(image_files, self.processing_batch_size), start=1):
                outcomes: List[ItemOutcome] = list(pool.map(self._prepare, wave))
                records = [outcome.record for outcome in outcomes if outcome.record is not None]
                report.waves.append(len(wave))
                report.normalization_failures += len(wave) - len(records)
                logger.debug("Wave %d: %d of %d file(s) normalized", wave_number, len(records), len(wave))

                for group in chunked(records, self.store_batch_size):
                    self._upsert_group(group, report, meter)
                report.processed = meter.processed
                bar.update(len(wave))

        report.processed = meter.processed
        report.elapsed = meter.elapsed
        report.state = IngestionState.COMPLETED
        logger.info("Ingestion complete! %s", report.summary())
        return report

    def _prepare(self, path: Path) -> ItemOutcome:
        """Normalize one file, converting any failure into a failed outcome."""

        try:
            normalized = self.normalizer.normalize_file(path)
        except Exception as exc:  # noqa: BLE001 - one bad file must not abort its wave
            logger.error("Failed to process image %s: %s", path, exc)
            return ItemOutcome.failure(path, str(exc))
        return ItemOutcome.success(path, ImageRecord.from_path(path, normalized.data))

    def _upsert_group(self, group: Sequence[ImageRecord], report: IngestionReport, meter: ThroughputMeter) -> None:
        """Send one sub-group as a batch, falling back to one insert per record on failure."""

        report.batch_calls += 1
        try:
            self.index.batch_upsert(self.schema.name, group)
        except PartialBatchError as exc:
            report.fallback_batches += 1
            meter.add(len(group) - len(exc.rejected))
            logger.error(
                "Batch of %d record(s) rejected %d: %s; retrying those individually", len(group), len(exc.rejected), exc
            )
            self._insert_individually(exc.rejected, report, meter)
            return
        except Exception as exc:  # noqa: BLE001 - degrade to individual inserts
            report.fallback_batches += 1
            logger.error("Failed to ingest batch of %d record(s): %s; retrying individually", len(group), exc)
            self._insert_individually(group, report, meter)
            return
        meter.add(len(group))

    def _insert_individually(
        self, records: Sequence[ImageRecord], report: IngestionReport, meter: ThroughputMeter
    ) -> None:
        for record in records:
            try:
                self.index.single_upsert(self.schema.name, record)
            except Exception as exc:  # noqa: BLE001 - drop just this record
                report.insert_failures += 1
                logger.error("Failed to ingest %s: %s", record.filename, exc)
                continue
            meter.add(1)
