# fedstore/identifiers.py
"""
Identifier generation for new local documents.

Identifiers look like https://{hostname}/{segment}/{uuid4 hex}. The path
carries no meaning beyond grouping by document kind.
"""

import logging
import uuid

from .config import Config
from .documents import ACTIVITY_TYPES, ACTOR_TYPES
from .store import ResourceStore

logger = logging.getLogger(__name__)


def _segment_for(document_type: str) -> str:
    """Path segment grouping identifiers of one document kind."""
    if document_type in ACTIVITY_TYPES:
        return "activities"
    if document_type in ACTOR_TYPES:
        return "users"
    if document_type in ("OrderedCollection", "OrderedCollectionPage", "Collection"):
        return "collections"
    return "objects"


class IdentifierGenerator:
    """Mints identifiers that are unused in the store and owned by this host."""

    def __init__(self, config: Config, store: ResourceStore):
        self.config = config
        self.store = store

    def new_id(self, document_type: str = "Object") -> str:
        """
        Mint a fresh identifier for a document of the given type.

        Raises:
            RuntimeError: every attempt collided with a stored document
        """
        segment = _segment_for(document_type)
        for attempt in range(self.config.id_attempts):
            candidate = f"{self.config.base_url}/{segment}/{uuid.uuid4().hex}"
            if not self.store.exists(candidate):
                return candidate
            logger.warning(f"Identifier collision on {candidate} (attempt {attempt + 1})")
        raise RuntimeError(
            f"Could not mint a free identifier for {document_type} "
            f"after {self.config.id_attempts} attempts"
        )
