# Path: core/indexing/scanner.py
# Purpose: Scan folders and collect eligible image file paths.
# Layer: core/indexing.
# Details: Provides reusable filesystem scanning for ingest runs.

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}


class ImageScanner:
    """Scan filesystem paths for supported image files."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def scan(self) -> List[Path]:
        """Return discovered image paths in file-system order.

        A missing root yields an empty list and a warning rather than an error.
        """

        if not self.root.is_dir():
            logger.warning("Directory %s does not exist.", self.root)
            return []
        return list(self._iter_image_files(self.root))

    def _iter_image_files(self, directory: Path) -> Iterable[Path]:
        """Yield image files under ``directory``, recursing into subdirectories.

        A directory that cannot be listed is logged and skipped.
        """

        try:
            entries = list(directory.iterdir())
        except OSError as exc:
            logger.error("Failed to read directory %s: %s", directory, exc)
            return
        for path in entries:
            if path.is_dir():
                yield from self._iter_image_files(path)
            elif path.is_file() and path.suffix.lower() in SUPPORTED_EXTENSIONS:
                yield path
