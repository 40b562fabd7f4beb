# Path: scripts/index_images.py
# Purpose: CLI tool to reset the collection and ingest a folder of images.
# Layer: scripts.
# Details: Wires settings, the index backend, and the ingestion engine together.

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import AppSettings, configure_logging
from core.indexing.index_builder import IngestionEngine
from core.vector_store import InMemoryVectorIndex, VectorIndexError, build_index

logger = logging.getLogger("index_images")


def main() -> int:
    """Run a full ingest over a folder of images."""

    settings = AppSettings.from_env()

    parser = argparse.ArgumentParser(description="Reset the image collection and ingest a folder")
    parser.add_argument("--folder", type=Path, default=settings.image_folder, help="Folder containing images to index")
    parser.add_argument(
        "--processing-batch-size",
        type=int,
        default=settings.ingestion.processing_batch_size,
        help="Number of images normalized concurrently per wave",
    )
    parser.add_argument(
        "--store-batch-size",
        type=int,
        default=settings.ingestion.store_batch_size,
        help="Number of records sent per batch insert",
    )
    parser.add_argument("--backend", choices=["weaviate", "memory"], default=settings.index.backend)
    parser.add_argument("--url", default=settings.index.url, help="Weaviate base URL")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar")
    args = parser.parse_args()
    if args.processing_batch_size <= 0 or args.store_batch_size <= 0:
        parser.error("batch sizes must be positive")

    settings = settings.model_copy(
        update={
            "image_folder": args.folder,
            "index": settings.index.model_copy(update={"backend": args.backend, "url": args.url}),
            "ingestion": settings.ingestion.model_copy(
                update={
                    "processing_batch_size": args.processing_batch_size,
                    "store_batch_size": args.store_batch_size,
                    "show_progress": args.progress,
                }
            ),
        }
    )
    configure_logging(settings.log_level)

    index = build_index(settings, load_existing=False)
    engine = IngestionEngine.from_settings(index, settings)
    try:
        report = engine.run(settings.image_folder)
    except VectorIndexError as exc:
        logger.error("Ingestion failed: %s", exc)
        return 1

    if isinstance(index, InMemoryVectorIndex):
        index.save(str(settings.index.persist_path))

    print(report.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
