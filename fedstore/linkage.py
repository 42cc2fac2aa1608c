# fedstore/linkage.py
"""
Actor linkage.

Resolves an actor's collections (followers, following, liked) and the
reverse relations inbox -> actor, outbox -> actor, inbox -> outbox.
Reverse lookups only work for actors on this server: a peer's internal
linkage is not known here.

Also provisions new local actors, since an actor and its five
collections are created together.
"""

import logging
from typing import Optional, Tuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .collections import OrderedCollectionManager
from .config import Config
from .documents import Actor, Document, OrderedCollection, from_activitypub, to_id
from .errors import InvalidDocument, MissingCollection, NotFound, UnsupportedLocality
from .iri import normalize
from .store import ResourceStore

logger = logging.getLogger(__name__)

ACTOR_COLLECTIONS = ("inbox", "outbox", "followers", "following", "liked")


def _generate_keypair() -> Tuple[bytes, bytes]:
    """Generate RSA key pair for the actor's publicKey."""
    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048,
    )
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_pem


class ActorLinkage:
    """Lookups between actors and the collections they own."""

    def __init__(
        self,
        config: Config,
        store: ResourceStore,
        collections: OrderedCollectionManager,
    ):
        self.config = config
        self.store = store
        self.collections = collections

    def get_actor(self, actor_id: str) -> Actor:
        """Load an actor document; NotFound if absent, InvalidDocument if not an actor."""
        document = self.store.get(actor_id)
        if not isinstance(document, Actor):
            raise InvalidDocument(f"{normalize(actor_id)} is a {document.type}, not an actor", actor_id)
        return document

    def _collection(self, actor_id: str, prop: str) -> OrderedCollection:
        actor = self.get_actor(actor_id)
        ref = getattr(actor, prop)
        if ref is None:
            raise MissingCollection(f"Actor {actor.id} has no {prop} collection", actor.id)

        # The property is a reference: an IRI or an embedded collection
        collection_id = to_id(ref)
        if isinstance(ref, (dict, Document)) and not self.store.exists(collection_id):
            embedded = from_activitypub(ref)
            if isinstance(embedded, OrderedCollection):
                return embedded
        return self.collections.get_collection(collection_id)

    def followers(self, actor_id: str) -> OrderedCollection:
        return self._collection(actor_id, "followers")

    def following(self, actor_id: str) -> OrderedCollection:
        return self._collection(actor_id, "following")

    def liked(self, actor_id: str) -> OrderedCollection:
        return self._collection(actor_id, "liked")

    def _local_actor_by(self, prop: str, identifier: str) -> Actor:
        """Find the local actor whose `prop` references identifier."""
        key = normalize(identifier)
        if not self.store.ownership.owns(key):
            raise UnsupportedLocality(
                f"Cannot resolve the {prop} owner of federated {key}", key
            )

        def matches(document: Document) -> bool:
            if not isinstance(document, Actor):
                return False
            ref = getattr(document, prop)
            return ref is not None and to_id(ref) == key

        actor = self.store.find_one(matches, local_only=True)
        if actor is None:
            raise NotFound(f"No local actor owns {prop} {key}", key)
        return actor

    def actor_for_inbox(self, inbox_id: str) -> str:
        return self._local_actor_by("inbox", inbox_id).identifier()

    def actor_for_outbox(self, outbox_id: str) -> str:
        return self._local_actor_by("outbox", outbox_id).identifier()

    def outbox_for_inbox(self, inbox_id: str) -> str:
        actor = self._local_actor_by("inbox", inbox_id)
        if actor.outbox is None:
            raise MissingCollection(f"Actor {actor.id} has no outbox", actor.id)
        return to_id(actor.outbox)

    def provision_actor(
        self,
        username: str,
        display_name: Optional[str] = None,
        actor_type: str = "Person",
    ) -> Tuple[Actor, bytes]:
        """
        Create a local actor with empty collections and a fresh key pair.

        The caller holds the actor identifier's lock.

        Returns:
            (actor, PEM-encoded private key); the private key is not stored
        """
        actor = Actor.for_username(self.config.base_url, username, display_name, actor_type)
        actor_id = actor.identifier()
        if self.store.exists(actor_id):
            raise ValueError(f"Actor {username} already exists")

        private_pem, public_pem = _generate_keypair()
        actor.public_key = {
            "id": f"{actor.id}#main-key",
            "owner": actor.id,
            "publicKeyPem": public_pem.decode("utf-8"),
        }

        for prop in ACTOR_COLLECTIONS:
            collection_id = to_id(getattr(actor, prop))
            self.store.update(OrderedCollection(id=collection_id, attributed_to=actor.id))
        self.store.create(actor)

        logger.info(f"Provisioned {actor_type} {actor_id}")
        return actor, private_pem
