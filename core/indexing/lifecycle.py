# Path: core/indexing/lifecycle.py
# Purpose: Reset the target collection before a full ingest.
# Layer: core/indexing.
# Details: Delete-if-exists then create; the two steps are not atomic.

from __future__ import annotations

import logging

from core.models.domain import CollectionSchema
from core.vector_store.base import VectorIndex

logger = logging.getLogger(__name__)


class CollectionManager:
    """Owns the create/delete lifecycle of one collection."""

    def __init__(self, index: VectorIndex, schema: CollectionSchema) -> None:
        self.index = index
        self.schema = schema

    def reset(self) -> None:
        """Drop the collection if present, then create it empty.

        If the process dies after the delete, the collection stays absent until the next reset.
        """

        name = self.schema.name
        if self.index.collection_exists(name):
            logger.info('Deleting existing "%s" collection and all its data...', name)
            self.index.delete_collection(name)
            logger.info('Collection "%s" deleted.', name)
        else:
            logger.info('Collection "%s" does not exist. Nothing to delete.', name)

        try:
            self.index.create_collection(self.schema)
        except Exception:
            logger.error('Creating collection "%s" failed; it is absent until the next reset.', name)
            raise
        logger.info('Collection "%s" created.', name)
