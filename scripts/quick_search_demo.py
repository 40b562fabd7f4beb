# Path: scripts/quick_search_demo.py
# Purpose: Simple CLI to run a text search against the image collection, or serve the HTTP API.
# Layer: scripts.
# Details: Builds the index client and query engine from settings; --api starts uvicorn.

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
from core.models.domain import UNAVAILABLE
from core.search.pipeline import QueryEngine, QueryValidationError
from core.vector_store import VectorIndexError, build_index

logger = logging.getLogger("quick_search_demo")


def main() -> int:
    """Execute a search from the command line or start the API server."""

    settings = AppSettings.from_env()

    parser = argparse.ArgumentParser(description="Search ingested images with a text prompt")
    parser.add_argument("prompt", nargs="?", help="Text query to search for")
    parser.add_argument("--limit", type=int, default=settings.search.default_limit, help="Number of results to return")
    parser.add_argument("--backend", choices=["weaviate", "memory"], default=settings.index.backend)
    parser.add_argument("--url", default=settings.index.url, help="Weaviate base URL")
    parser.add_argument("--api", action="store_true", help="Start the HTTP API instead of running one query")
    args = parser.parse_args()

    settings = settings.model_copy(
        update={"index": settings.index.model_copy(update={"backend": args.backend, "url": args.url})}
    )
    configure_logging(settings.log_level)

    index = build_index(settings)
    engine = QueryEngine(index, settings.index.collection_name, settings.search.images_route)

    if args.api:
        import uvicorn

        from api.app import create_app

        logger.info("Image search API server running on http://localhost:%d", settings.port)
        uvicorn.run(create_app(engine, settings), host=settings.host, port=settings.port)
        return 0

    if not args.prompt:
        parser.print_usage()
        print("Please provide a search prompt as an argument, or start the API server with --api.")
        return 1

    print(f'Searching for images matching: "{args.prompt}"\n')
    try:
        response = engine.search(args.prompt, limit=args.limit)
    except (QueryValidationError, VectorIndexError) as exc:
        logger.error("Search failed: %s", exc)
        return 1

    if response.count == 0:
        print("No images found matching your prompt.")
        print("Make sure you have ingested images first using scripts/index_images.py")
        return 0

    print(f"Found {response.count} result(s):\n")
    for rank, hit in enumerate(response.results, start=1):
        similarity = UNAVAILABLE if hit.similarity is None else f"{hit.similarity:.4f}"
        distance = UNAVAILABLE if hit.distance is None else hit.distance
        print(f"{rank}. {hit.filename}")
        print(f"   Path: {hit.filepath}")
        print(f"   Similarity: {similarity}")
        print(f"   Distance: {distance}")
        print("")
    return 0


if __name__ == "__main__":
    sys.exit(main())
