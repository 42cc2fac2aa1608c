# fedstore/store.py
"""
The addressable-document table.

Every document lives in exactly one ContentEntry keyed by its canonical
identifier. Local and federated documents share the table; each entry
records which it is at write time.

Documents are copied on the way in and out, so callers never share
state with the table (the same contract a serializing backend gives).
"""

import copy
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .documents import Document, from_activitypub
from .errors import NotFound
from .iri import normalize
from .ownership import OwnershipResolver

logger = logging.getLogger(__name__)


@dataclass
class ContentEntry:
    """
    A stored document.

    Attributes:
        identifier: Canonical identifier of the document
        document: The payload
        is_local: Owned by this server (set once from OwnershipResolver)
    """
    identifier: str
    document: Document
    is_local: bool


class ResourceStore:
    """
    In-memory document table.

    The table is guarded by an internal mutex, so operations on different
    identifiers are safe from any thread. Callers hold the identifier's
    domain lock when several operations on one identifier must be atomic.
    """

    def __init__(self, ownership: OwnershipResolver):
        self.ownership = ownership
        self._entries: Dict[str, ContentEntry] = {}
        self._lock = threading.Lock()

    def exists(self, identifier: str) -> bool:
        """Check whether a document is stored at identifier. Never raises."""
        try:
            key = normalize(identifier)
        except ValueError:
            return False
        with self._lock:
            return key in self._entries

    def get_entry(self, identifier: str) -> ContentEntry:
        """Get the entry (copy) stored at identifier."""
        key = normalize(identifier)
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            raise NotFound(f"No document at {key}", key)
        return copy.deepcopy(entry)

    def get(self, identifier: str) -> Document:
        """Get the document stored at identifier; raises NotFound."""
        return self.get_entry(identifier).document

    def create(self, document: Document | dict) -> str:
        """
        Store a document under its own identifier.

        Ownership is classified here and never recomputed.

        Returns:
            The canonical identifier the document was stored under
        """
        document = from_activitypub(document)
        key = document.identifier()
        entry = ContentEntry(
            identifier=key,
            document=copy.deepcopy(document),
            is_local=self.ownership.owns(key),
        )
        with self._lock:
            replaced = key in self._entries
            self._entries[key] = entry

        logger.debug(
            f"{'Replaced' if replaced else 'Stored'} {document.type} {key} "
            f"({'local' if entry.is_local else 'federated'})"
        )
        return key

    def update(self, document: Document | dict) -> str:
        """
        Overwrite the document at its identifier.

        Same as create: an actor's followers, following and liked collections
        only ever arrive through update, but the table does not care.
        """
        return self.create(document)

    def delete(self, identifier: str) -> None:
        """Remove the document at identifier. Absent identifiers are a no-op."""
        key = normalize(identifier)
        with self._lock:
            removed = self._entries.pop(key, None)
        if removed is not None:
            logger.debug(f"Deleted {key}")

    def is_local(self, identifier: str) -> bool:
        """Provenance recorded for a stored document; raises NotFound."""
        key = normalize(identifier)
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            raise NotFound(f"No document at {key}", key)
        return entry.is_local

    def find(
        self,
        predicate: Callable[[Document], bool],
        local_only: bool = False,
    ) -> List[Document]:
        """Copies of the documents matching predicate, from a snapshot of the table."""
        with self._lock:
            entries = list(self._entries.values())
        return [
            copy.deepcopy(e.document)
            for e in entries
            if (e.is_local or not local_only) and predicate(e.document)
        ]

    def find_one(
        self,
        predicate: Callable[[Document], bool],
        local_only: bool = False,
    ) -> Optional[Document]:
        matches = self.find(predicate, local_only=local_only)
        return matches[0] if matches else None

    def __contains__(self, identifier: str) -> bool:
        return self.exists(identifier)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
