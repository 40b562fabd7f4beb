# Path: config/settings.py
# Purpose: Provide typed application configuration models.
# Layer: config.
# Details: Centralizes settings for the vector index, embedder, ingestion batching, search, and serving.

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, Field


class IndexSettings(BaseModel):
    """Settings controlling which vector index backend is used and where it lives."""

    backend: Literal["weaviate", "memory"] = Field(default="weaviate", description="Vector index implementation.")
    url: str = Field(default="http://localhost:8080", description="Base URL of the Weaviate server.")
    collection_name: str = Field(default="Image", description="Name of the collection holding image records.")
    vectorizer: str = Field(default="multi2vec-clip", description="Index-side vectorizer module bound to image fields.")
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds for index calls.")
    persist_path: Path = Field(
        default=Path("storage/indexes/memory_index"),
        description="Base path used by the in-memory backend to save and load collections.",
    )


class EmbedderSettings(BaseModel):
    """Settings describing the embedder used by the in-process index backend."""

    name: str = Field(default="clip", description="Identifier of the embedder implementation.")
    model_name: str = Field(default="ViT-B-32", description="Model variant used by the embedder.")
    dim: int = Field(default=512, gt=0, description="Embedding dimensionality.")


class IngestionSettings(BaseModel):
    """Batching and image preparation parameters for a full ingest run."""

    processing_batch_size: int = Field(default=20, gt=0, description="Files normalized concurrently per wave.")
    store_batch_size: int = Field(default=50, gt=0, description="Records submitted per batch upsert call.")
    image_size: int = Field(default=224, gt=0, description="Edge length of the square image sent to the index.")
    jpeg_quality: int = Field(default=95, ge=1, le=100, description="JPEG quality used when re-encoding images.")
    progress_every: int = Field(default=50, gt=0, description="Report throughput every N processed records.")
    show_progress: bool = Field(default=False, description="Render a tqdm progress bar during ingestion.")


class SearchSettings(BaseModel):
    """Defaults applied by the query engine and its HTTP shell."""

    default_limit: int = Field(default=10, gt=0, description="Number of hits returned when no limit is given.")
    images_route: str = Field(default="/images", description="URL prefix under which original images are served.")


class AppSettings(BaseModel):
    """Top-level application settings shared across services and interfaces."""

    image_folder: Path = Field(default=Path("./images"), description="Root folder containing the image corpus.")
    host: str = Field(default="0.0.0.0", description="Interface the HTTP API binds to.")
    port: int = Field(default=3000, gt=0, description="Port the HTTP API listens on.")
    log_level: str = Field(default="INFO", description="Verbosity level for application logs.")
    index: IndexSettings = Field(default_factory=IndexSettings)
    embedder: EmbedderSettings = Field(default_factory=EmbedderSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppSettings":
        """Instantiate settings, applying overrides from environment variables when present."""

        env = os.environ if environ is None else environ
        settings = cls()

        if env.get("IMAGES_FOLDER"):
            settings.image_folder = Path(env["IMAGES_FOLDER"])
        if env.get("PORT"):
            settings.port = int(env["PORT"])
        if env.get("LOG_LEVEL"):
            settings.log_level = env["LOG_LEVEL"]

        index_overrides = {}
        if env.get("WEAVIATE_URL"):
            index_overrides["url"] = env["WEAVIATE_URL"]
        if env.get("INDEX_BACKEND"):
            index_overrides["backend"] = env["INDEX_BACKEND"]
        if env.get("COLLECTION_NAME"):
            index_overrides["collection_name"] = env["COLLECTION_NAME"]
        if index_overrides:
            settings.index = IndexSettings.model_validate({**settings.index.model_dump(), **index_overrides})

        ingestion_overrides = {}
        if env.get("PROCESSING_BATCH_SIZE"):
            ingestion_overrides["processing_batch_size"] = env["PROCESSING_BATCH_SIZE"]
        if env.get("STORE_BATCH_SIZE"):
            ingestion_overrides["store_batch_size"] = env["STORE_BATCH_SIZE"]
        if ingestion_overrides:
            settings.ingestion = IngestionSettings.model_validate(
                {**settings.ingestion.model_dump(), **ingestion_overrides}
            )

        return settings


__all__ = ["AppSettings", "EmbedderSettings", "IndexSettings", "IngestionSettings", "SearchSettings"]
