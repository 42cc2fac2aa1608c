# fedstore/documents.py
"""
Document types and the JSON-LD codec.

A document is one of a small set of ActivityStreams shapes:
- Actor: Person, Service, Application, Group, Organization
- Activity: Create, Follow, Like, ... (anything in ACTIVITY_TYPES)
- OrderedCollection / OrderedCollectionPage
- Object: everything else (Note, Image, ...)

Documents reference each other by identifier. A reference may be an
IRI string, an embedded document, or an embedded JSON-LD mapping;
to_id() reduces all three to a canonical identifier.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type, Union

from .errors import InvalidDocument
from .iri import normalize

AS_CONTEXT = "https://www.w3.org/ns/activitystreams"
SECURITY_CONTEXT = "https://w3id.org/security/v1"

ACTOR_TYPES = frozenset({
    "Person", "Service", "Application", "Group", "Organization",
})

ACTIVITY_TYPES = frozenset({
    "Accept", "Add", "Announce", "Arrive", "Block", "Create", "Delete",
    "Dislike", "Flag", "Follow", "Ignore", "Invite", "Join", "Leave",
    "Like", "Listen", "Move", "Offer", "Question", "Read", "Reject",
    "Remove", "TentativeAccept", "TentativeReject", "Travel", "Undo",
    "Update", "View",
})

# Keys handled by the codec itself, never carried in `extra`
_RESERVED = ("@context", "id", "type")

Reference = Union[str, "Document", Dict[str, Any]]


def to_id(value: Reference) -> str:
    """
    Resolve a reference to a canonical identifier.

    Accepts an IRI, an embedded Document, or an embedded mapping with "id".
    """
    if isinstance(value, Document):
        return value.identifier()
    if isinstance(value, dict):
        ident = value.get("id")
        if not ident:
            raise InvalidDocument(f"Embedded {value.get('type', 'object')} has no id")
        return normalize(ident)
    if isinstance(value, str):
        return normalize(value)
    raise InvalidDocument(f"Cannot resolve reference of type {type(value).__name__}")


def _encode(value: Any) -> Any:
    if isinstance(value, Document):
        data = value.to_activitypub()
        data.pop("@context", None)
        return data
    if isinstance(value, list):
        return [_encode(v) for v in value]
    return value


@dataclass
class Document:
    """
    Base document.

    Attributes:
        id: The document's IRI (absent only for transient embedded values)
        type: ActivityStreams type name
        extra: Properties without a dedicated attribute, kept through the codec
    """
    id: Optional[str] = None
    type: str = "Object"
    extra: Dict[str, Any] = field(default_factory=dict)

    # attribute name -> JSON-LD property name
    _FIELDS: ClassVar[Dict[str, str]] = {}
    # attributes holding references to other documents
    _REFERENCES: ClassVar[Tuple[str, ...]] = ()
    # JSON-LD properties computed on encode and ignored on decode
    _DERIVED: ClassVar[Tuple[str, ...]] = ()
    # attributes that are always lists; compacted JSON-LD sends one item bare
    _LISTS: ClassVar[Tuple[str, ...]] = ()

    def identifier(self) -> str:
        """Canonical identifier; raises InvalidDocument if absent."""
        if not self.id:
            raise InvalidDocument(f"{self.type} document has no id")
        return normalize(self.id)

    def references(self) -> Dict[str, str]:
        """Identifiers of the documents this one refers to, by attribute."""
        refs = {}
        for attr in self._REFERENCES:
            value = getattr(self, attr)
            if value is not None:
                refs[attr] = to_id(value)
        return refs

    def to_activitypub(self) -> Dict[str, Any]:
        """Return ActivityPub JSON-LD representation."""
        data: Dict[str, Any] = {"@context": AS_CONTEXT}
        data.update(self.extra)
        data["type"] = self.type
        if self.id:
            data["id"] = self.id
        for attr, key in self._FIELDS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            data[key] = _encode(value)
        data.update(self._derived())
        return data

    def _derived(self) -> Dict[str, Any]:
        return {}

    @classmethod
    def _decode(cls, data: Dict[str, Any], type_name: str) -> "Document":
        kwargs = {
            attr: data[key]
            for attr, key in cls._FIELDS.items()
            if key in data
        }
        for attr in cls._LISTS:
            value = kwargs.get(attr)
            if value is None:
                kwargs.pop(attr, None)
            elif not isinstance(value, list):
                kwargs[attr] = [value]
        skip = set(_RESERVED) | set(cls._FIELDS.values()) | set(cls._DERIVED)
        extra = {k: v for k, v in data.items() if k not in skip}
        return cls(id=data.get("id"), type=type_name, extra=extra, **kwargs)


@dataclass
class Object(Document):
    """Any non-actor, non-activity, non-collection object (Note, Image, ...)."""
    type: str = "Object"
    name: Optional[str] = None
    content: Optional[str] = None
    attributed_to: Optional[Reference] = None
    published: Optional[str] = None

    _FIELDS: ClassVar[Dict[str, str]] = {
        "name": "name",
        "content": "content",
        "attributed_to": "attributedTo",
        "published": "published",
    }
    _REFERENCES: ClassVar[Tuple[str, ...]] = ("attributed_to",)


@dataclass
class Actor(Document):
    """
    An actor. Its collections are referenced, never embedded by the store.
    """
    type: str = "Person"
    preferred_username: Optional[str] = None
    name: Optional[str] = None
    inbox: Optional[Reference] = None
    outbox: Optional[Reference] = None
    followers: Optional[Reference] = None
    following: Optional[Reference] = None
    liked: Optional[Reference] = None
    public_key: Optional[Dict[str, Any]] = None

    _FIELDS: ClassVar[Dict[str, str]] = {
        "preferred_username": "preferredUsername",
        "name": "name",
        "inbox": "inbox",
        "outbox": "outbox",
        "followers": "followers",
        "following": "following",
        "liked": "liked",
        "public_key": "publicKey",
    }
    _REFERENCES: ClassVar[Tuple[str, ...]] = (
        "inbox", "outbox", "followers", "following", "liked",
    )

    def to_activitypub(self) -> Dict[str, Any]:
        data = super().to_activitypub()
        if self.public_key:
            data["@context"] = [AS_CONTEXT, SECURITY_CONTEXT]
        return data

    @classmethod
    def for_username(
        cls,
        base_url: str,
        username: str,
        display_name: str = None,
        actor_type: str = "Person",
    ) -> "Actor":
        """Actor rooted at {base_url}/users/{username} with its collection IRIs."""
        actor_id = f"{base_url}/users/{username}"
        return cls(
            id=actor_id,
            type=actor_type,
            preferred_username=username,
            name=display_name or username,
            inbox=f"{actor_id}/inbox",
            outbox=f"{actor_id}/outbox",
            followers=f"{actor_id}/followers",
            following=f"{actor_id}/following",
            liked=f"{actor_id}/liked",
        )


@dataclass
class Activity(Document):
    """An activity. Its meaning is the protocol engine's business."""
    type: str = "Create"
    actor: Optional[Reference] = None
    object: Optional[Reference] = None
    target: Optional[Reference] = None
    to: Optional[List[str]] = None
    cc: Optional[List[str]] = None
    published: Optional[str] = None

    _FIELDS: ClassVar[Dict[str, str]] = {
        "actor": "actor",
        "object": "object",
        "target": "target",
        "to": "to",
        "cc": "cc",
        "published": "published",
    }
    _REFERENCES: ClassVar[Tuple[str, ...]] = ("actor", "object", "target")
    _LISTS: ClassVar[Tuple[str, ...]] = ("to", "cc")


@dataclass
class OrderedCollection(Document):
    """An ordered sequence of item references. Duplicates are allowed."""
    type: str = "OrderedCollection"
    ordered_items: List[Reference] = field(default_factory=list)
    attributed_to: Optional[Reference] = None

    _FIELDS: ClassVar[Dict[str, str]] = {
        "ordered_items": "orderedItems",
        "attributed_to": "attributedTo",
    }
    _REFERENCES: ClassVar[Tuple[str, ...]] = ("attributed_to",)
    _DERIVED: ClassVar[Tuple[str, ...]] = ("totalItems",)
    _LISTS: ClassVar[Tuple[str, ...]] = ("ordered_items",)

    @property
    def total_items(self) -> int:
        return len(self.ordered_items)

    def item_ids(self) -> List[str]:
        return [to_id(item) for item in self.ordered_items]

    def _derived(self) -> Dict[str, Any]:
        return {"totalItems": self.total_items}


@dataclass
class OrderedCollectionPage(Document):
    """
    A bounded view over an OrderedCollection.

    Attributes:
        part_of: The full collection's identifier
        ordered_items: Items in this window
        start_index: Offset of the first item within the full collection
        total_items: Size of the full collection when the page was read
        next: IRI of the following page (cursor), if any
        prev: IRI of the preceding page, if any
    """
    type: str = "OrderedCollectionPage"
    part_of: Optional[str] = None
    ordered_items: List[Reference] = field(default_factory=list)
    start_index: Optional[int] = None
    total_items: Optional[int] = None
    next: Optional[str] = None
    prev: Optional[str] = None

    _FIELDS: ClassVar[Dict[str, str]] = {
        "part_of": "partOf",
        "ordered_items": "orderedItems",
        "start_index": "startIndex",
        "total_items": "totalItems",
        "next": "next",
        "prev": "prev",
    }
    _LISTS: ClassVar[Tuple[str, ...]] = ("ordered_items",)

    def item_ids(self) -> List[str]:
        return [to_id(item) for item in self.ordered_items]


def document_class(type_name: str) -> Type[Document]:
    """Pick the document variant for an ActivityStreams type name."""
    if type_name in ACTOR_TYPES:
        return Actor
    if type_name in ACTIVITY_TYPES:
        return Activity
    if type_name == "OrderedCollection":
        return OrderedCollection
    if type_name == "OrderedCollectionPage":
        return OrderedCollectionPage
    return Object


def from_activitypub(data: Union[Dict[str, Any], Document]) -> Document:
    """
    Decode a JSON-LD mapping into a document.

    Documents pass through unchanged. Unknown types decode as Object.
    """
    if isinstance(data, Document):
        return data
    if not isinstance(data, dict):
        raise InvalidDocument(f"Expected a JSON-LD mapping, got {type(data).__name__}")

    type_name = data.get("type")
    if isinstance(type_name, list):
        type_name = next((t for t in type_name if isinstance(t, str)), None)
    if not isinstance(type_name, str) or not type_name:
        raise InvalidDocument("Document has no type", data.get("id"))

    return document_class(type_name)._decode(data, type_name)
