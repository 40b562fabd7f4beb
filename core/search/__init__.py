# Path: core/search/__init__.py
# Purpose: Package initializer for the query engine.
# Layer: core/search.
# Details: Exposes the engine, its validation error, and URL helpers.

from .pipeline import DEFAULT_LIMIT, QueryEngine, QueryValidationError, encode_image_to_data_uri
from .urls import resolve_base_url

__all__ = [
    "DEFAULT_LIMIT",
    "QueryEngine",
    "QueryValidationError",
    "encode_image_to_data_uri",
    "resolve_base_url",
]
