# Path: api/app.py
# Purpose: Expose a FastAPI application for text-to-image search.
# Layer: api.
# Details: Provides health checks, the /search endpoint delegating to the query engine, and static image serving.

import logging
from typing import Dict, Optional

from config import AppSettings
from core.search.pipeline import QueryEngine, QueryValidationError
from core.search.urls import resolve_base_url
from core.vector_store.base import VectorIndexError

logger = logging.getLogger(__name__)


def parse_limit(raw: Optional[str], default: int) -> int:
    """Parse the optional ``limit`` query parameter into a positive integer."""

    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise QueryValidationError(f"limit must be a positive integer, got {raw!r}.") from exc
    if value <= 0:
        raise QueryValidationError(f"limit must be a positive integer, got {raw!r}.")
    return value


def create_app(engine: Optional[QueryEngine] = None, settings: Optional[AppSettings] = None):  # type: ignore[override]
    """Create a FastAPI app instance configured with the provided query engine."""

    from fastapi import FastAPI, Request
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse
    from fastapi.staticfiles import StaticFiles

    settings = settings or AppSettings()
    app = FastAPI(title="Image Prompt Search API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.get("/health")
    def health() -> Dict[str, str]:
        """Return a simple health status payload."""

        return {"status": "ok"}

    @app.get("/search")
    def search(request: Request, prompt: Optional[str] = None, limit: Optional[str] = None):
        """Run a text search and return enriched hits."""

        if engine is None:
            return JSONResponse(status_code=500, content={"error": "Search engine is not configured."})

        try:
            if not prompt or not prompt.strip():
                raise QueryValidationError(
                    "Please provide a search prompt as a query parameter: ?prompt=your+search+term"
                )
            parsed_limit = parse_limit(limit, settings.search.default_limit)
            base_url = resolve_base_url(
                request.headers.get("x-forwarded-proto"),
                request.url.scheme,
                request.headers.get("host"),
                default_host=f"localhost:{settings.port}",
            )
            response = engine.search(prompt, limit=parsed_limit, base_url=base_url)
        except QueryValidationError as exc:
            return JSONResponse(status_code=400, content={"error": str(exc)})
        except VectorIndexError as exc:
            logger.error("Search API error: %s", exc)
            return JSONResponse(status_code=500, content={"error": "Internal server error during search"})
        except Exception:  # noqa: BLE001 - keep the JSON error contract
            logger.exception("Unexpected search API error")
            return JSONResponse(status_code=500, content={"error": "Internal server error during search"})

        return response.to_payload()

    app.mount(
        settings.search.images_route,
        StaticFiles(directory=str(settings.image_folder), check_dir=False),
        name="images",
    )

    return app
