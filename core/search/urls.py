# Path: core/search/urls.py
# Purpose: Build the public origin used in image URLs.
# Layer: core/search.
# Details: Prefers the reverse proxy's X-Forwarded-Proto over the scheme seen by the server.

from __future__ import annotations

from typing import Optional


def resolve_base_url(
    forwarded_proto: Optional[str],
    scheme: Optional[str],
    host: Optional[str],
    default_host: str = "localhost:3000",
) -> str:
    """Return ``scheme://host`` for the serving origin."""

    protocol = (forwarded_proto or "").split(",")[0].strip() or scheme or "https"
    return f"{protocol}://{host or default_host}"
