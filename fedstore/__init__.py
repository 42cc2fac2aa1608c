# fedstore - Storage and concurrency core for a federated (ActivityPub) server
#
# Stores addressable documents, serializes mutation per identifier,
# resolves ownership, and maintains the paginated ordered collections
# (inbox, outbox, followers, following, liked) that actors reference.
#
# Core concepts:
# - LockRegistry: one exclusive lock per identifier, taken by the caller
# - ResourceStore: identifier -> document table with local/federated provenance
# - OrderedCollectionManager: contains, paginated reads, merge-by-diff page writes
# - ActorLinkage: actor <-> inbox/outbox/collection lookups
# - Database: everything above behind the protocol engine's interface

from .config import Config, load_config
from .documents import (
    Activity,
    Actor,
    Document,
    Object,
    OrderedCollection,
    OrderedCollectionPage,
    from_activitypub,
    to_id,
)
from .errors import (
    Cancelled,
    FedstoreError,
    InvalidDocument,
    LockNotHeld,
    MissingCollection,
    NotFound,
    UnsupportedLocality,
)
from .locks import LockRegistry
from .ownership import OwnershipResolver
from .store import ContentEntry, ResourceStore
from .collections import OrderedCollectionManager, merge_window
from .linkage import ActorLinkage
from .identifiers import IdentifierGenerator
from .database import Database

__all__ = [
    # Core
    "Database",
    "Config",
    "load_config",
    "LockRegistry",
    "OwnershipResolver",
    "ResourceStore",
    "ContentEntry",
    "OrderedCollectionManager",
    "merge_window",
    "ActorLinkage",
    "IdentifierGenerator",
    # Documents
    "Document",
    "Object",
    "Actor",
    "Activity",
    "OrderedCollection",
    "OrderedCollectionPage",
    "from_activitypub",
    "to_id",
    # Errors
    "FedstoreError",
    "NotFound",
    "LockNotHeld",
    "InvalidDocument",
    "MissingCollection",
    "Cancelled",
    "UnsupportedLocality",
]

__version__ = "0.1.0"
