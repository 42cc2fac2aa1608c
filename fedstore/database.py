# fedstore/database.py
"""
The database a federation protocol engine is handed.

Wires the lock registry, document table, collection manager, actor
linkage and identifier generator behind the method set the engine
expects (lock, unlock, owns, get, create, inbox_contains, ...).

Usage:
    db = Database(load_config("fedstore.yaml"))
    db.lock(inbox_id)
    try:
        if not db.inbox_contains(inbox_id, activity_id):
            page = db.get_inbox(inbox_id)
            page.ordered_items.insert(0, activity_id)
            db.set_inbox(page)
    finally:
        db.unlock(inbox_id)
"""

import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from .collections import OrderedCollectionManager
from .config import Config
from .documents import Actor, Document, OrderedCollection, OrderedCollectionPage
from .identifiers import IdentifierGenerator
from .linkage import ACTOR_COLLECTIONS, ActorLinkage
from .locks import LockRegistry
from .ownership import OwnershipResolver
from .store import ResourceStore


class Database:
    """
    Storage and concurrency core.

    Integrates:
    - LockRegistry: per-identifier locks
    - ResourceStore: document table
    - OrderedCollectionManager: inbox/outbox/collection pages
    - ActorLinkage: actor <-> collection lookups
    - IdentifierGenerator: new local identifiers
    """

    def __init__(self, config: Config):
        self.config = config
        self.locks = LockRegistry(poll_interval=config.lock_poll_interval)
        self.ownership = OwnershipResolver(config)
        self.store = ResourceStore(self.ownership)
        self.collections = OrderedCollectionManager(config, self.store)
        self.linkage = ActorLinkage(config, self.store, self.collections)
        self.identifiers = IdentifierGenerator(config, self.store)

    # Locking

    def lock(
        self,
        identifier: str,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        self.locks.acquire(identifier, timeout=timeout, cancel=cancel)

    def unlock(self, identifier: str) -> None:
        self.locks.release(identifier)

    @contextmanager
    def locked(
        self,
        *identifiers: str,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[List[str]]:
        """Hold one or more identifiers for the duration of a with-block."""
        with self.locks.locked(*identifiers, timeout=timeout, cancel=cancel) as keys:
            yield keys

    # Documents

    def owns(self, identifier: str) -> bool:
        return self.ownership.owns(identifier)

    def exists(self, identifier: str) -> bool:
        return self.store.exists(identifier)

    def get(self, identifier: str) -> Document:
        return self.store.get(identifier)

    def create(self, document: Document | dict) -> str:
        return self.store.create(document)

    def update(self, document: Document | dict) -> str:
        return self.store.update(document)

    def delete(self, identifier: str) -> None:
        self.store.delete(identifier)

    def new_id(self, document: Document | str) -> str:
        """Mint an identifier for a document (or document type name)."""
        document_type = document.type if isinstance(document, Document) else document
        return self.identifiers.new_id(document_type)

    # Collections

    def inbox_contains(self, inbox_id: str, item_id: str) -> bool:
        return self.collections.contains(inbox_id, item_id)

    def get_inbox(self, inbox_id: str) -> OrderedCollectionPage:
        return self.collections.get_inbox(inbox_id)

    def set_inbox(self, page: OrderedCollectionPage | dict) -> None:
        self.collections.set_inbox(page)

    def get_outbox(self, outbox_id: str) -> OrderedCollectionPage:
        return self.collections.get_outbox(outbox_id)

    def set_outbox(self, page: OrderedCollectionPage | dict) -> None:
        self.collections.set_outbox(page)

    # Actors

    def actor_for_inbox(self, inbox_id: str) -> str:
        return self.linkage.actor_for_inbox(inbox_id)

    def actor_for_outbox(self, outbox_id: str) -> str:
        return self.linkage.actor_for_outbox(outbox_id)

    def outbox_for_inbox(self, inbox_id: str) -> str:
        return self.linkage.outbox_for_inbox(inbox_id)

    def followers(self, actor_id: str) -> OrderedCollection:
        return self.linkage.followers(actor_id)

    def following(self, actor_id: str) -> OrderedCollection:
        return self.linkage.following(actor_id)

    def liked(self, actor_id: str) -> OrderedCollection:
        return self.linkage.liked(actor_id)

    def provision_actor(
        self,
        username: str,
        display_name: Optional[str] = None,
        actor_type: str = "Person",
    ) -> Tuple[Actor, bytes]:
        """Create a local actor and its collections, holding all their locks."""
        actor = Actor.for_username(self.config.base_url, username)
        identifiers = [actor.id] + [getattr(actor, prop) for prop in ACTOR_COLLECTIONS]
        with self.locked(*identifiers):
            return self.linkage.provision_actor(username, display_name, actor_type)
