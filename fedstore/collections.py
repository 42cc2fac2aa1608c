# fedstore/collections.py
"""
Ordered collections: inbox, outbox, followers, following, liked.

A collection is stored as one OrderedCollection document. It is read
whole (contains), as a bounded page (get_page), and written back one
page at a time (set_page). A written page is merged into the stored
collection rather than replacing it, since a page only shows a window
of the items.

Merge policy for set_page, with old window W = items[s:s+L] where s is
the page's startIndex and L the page limit:
1. Items in W but not on the page are removed (earliest surplus
   occurrences first when an item repeats).
2. Items kept from W stay in collection order. Reordering a page does
   not move them; the page decides membership, not position.
3. Items on the page but not in W are inserted right after the item
   that precedes them on the page, or at the start of the window.
4. Items outside W are untouched. A window past the end appends.

Callers hold the collection's identifier lock around set_page,
add_item and remove_item.

Followers, following and liked are sets. Writers of those collections
pass unique=True to set_page and add_item; nothing here knows which
collection plays which role.
"""

import logging
from collections import Counter
from typing import List, Optional, Tuple

from .config import Config
from .documents import OrderedCollection, OrderedCollectionPage, from_activitypub, to_id
from .errors import InvalidDocument, NotFound
from .iri import normalize, split_query, with_query
from .store import ResourceStore

logger = logging.getLogger(__name__)


def merge_window(old: List[str], new: List[str]) -> List[str]:
    """
    Apply the edit between two versions of a window.

    Args:
        old: Item identifiers of the window as currently stored
        new: Item identifiers the page now holds

    Returns:
        The merged window (see module docstring for the policy)
    """
    surplus = Counter(old) - Counter(new)

    # (item, n) marks the n-th kept occurrence of item; (item, None) an insertion
    merged: List[Tuple[str, Optional[int]]] = []
    kept = Counter()
    for item in old:
        if surplus[item]:
            surplus[item] -= 1
            continue
        merged.append((item, kept[item]))
        kept[item] += 1

    cursor = 0
    seen = Counter()
    for item in new:
        occurrence = seen[item]
        seen[item] += 1
        if occurrence < kept[item]:
            cursor = merged.index((item, occurrence)) + 1
        else:
            merged.insert(cursor, (item, None))
            cursor += 1

    return [item for item, _ in merged]


class OrderedCollectionManager:
    """
    Reads and writes ordered collections stored in a ResourceStore.

    Local collections that were never written read as empty; they are
    created on first write. Federated collections must be in the store.
    """

    def __init__(self, config: Config, store: ResourceStore):
        self.config = config
        self.store = store

    def _load(self, collection_id: str) -> Optional[OrderedCollection]:
        """Stored collection, None for an unwritten local one."""
        key = normalize(collection_id)
        try:
            document = self.store.get(key)
        except NotFound:
            if self.store.ownership.owns(key):
                return None
            raise NotFound(f"Cannot resolve federated collection {key}", key)
        if not isinstance(document, OrderedCollection):
            raise InvalidDocument(f"{key} is a {document.type}, not an OrderedCollection", key)
        return document

    def get_collection(self, collection_id: str) -> OrderedCollection:
        """The full collection; empty for a local collection never written."""
        collection = self._load(collection_id)
        if collection is None:
            return OrderedCollection(id=normalize(collection_id))
        return collection

    def contains(self, collection_id: str, item_id: str) -> bool:
        """Whether any item of the collection has exactly this identifier."""
        collection = self._load(collection_id)
        if collection is None or not collection.ordered_items:
            return False
        target = normalize(item_id)
        return any(to_id(item) == target for item in collection.ordered_items)

    def _window(
        self,
        page_id: str,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Tuple[str, int, int]:
        """Resolve (collection id, offset, limit) from a page IRI and overrides."""
        collection_id, params = split_query(page_id)
        try:
            offset = int(params.get("offset", 0) if offset is None else offset)
            limit = int(params.get("limit", self.config.page_size) if limit is None else limit)
        except (TypeError, ValueError) as e:
            raise InvalidDocument(f"Bad pagination parameters in {page_id}: {e}", page_id) from e
        if offset < 0 or limit <= 0:
            raise InvalidDocument(
                f"Pagination needs offset >= 0 and limit > 0, got {offset}/{limit}", page_id
            )
        return collection_id, offset, min(limit, self.config.max_page_size)

    def get_page(
        self,
        page_id: str,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> OrderedCollectionPage:
        """
        Read a bounded slice of a collection.

        Args:
            page_id: Collection IRI, optionally with offset/limit query parameters
            offset: Index of the first item (overrides the query)
            limit: Maximum number of items (overrides the query)

        Returns:
            OrderedCollectionPage whose next/prev IRIs act as cursors
        """
        collection_id, offset, limit = self._window(page_id, offset, limit)
        collection = self.get_collection(collection_id)
        total = collection.total_items
        end = offset + limit

        return OrderedCollectionPage(
            id=with_query(collection_id, offset=offset, limit=limit),
            part_of=collection_id,
            ordered_items=list(collection.ordered_items[offset:end]),
            start_index=offset,
            total_items=total,
            next=with_query(collection_id, offset=end, limit=limit) if end < total else None,
            prev=(
                with_query(collection_id, offset=max(0, offset - limit), limit=limit)
                if offset > 0 else None
            ),
        )

    def set_page(self, page: OrderedCollectionPage | dict, unique: bool = False) -> None:
        """
        Merge an edited page back into its collection and persist it.

        The page's partOf (or, failing that, its own IRI without query)
        names the collection; startIndex and the IRI's limit locate the
        window. Items inside the merged window are stored by identifier.

        With unique=True the collection is treated as a set: an item
        already present outside the window, or twice inside it, is kept
        only once.
        """
        page = from_activitypub(page)
        if not isinstance(page, OrderedCollectionPage):
            raise InvalidDocument(f"Expected an OrderedCollectionPage, got {page.type}", page.id)

        page_id = page.id or page.part_of
        if not page_id:
            raise InvalidDocument("Page names neither itself nor its collection")
        collection_id, offset, limit = self._window(page_id, offset=page.start_index)
        if page.part_of:
            collection_id = normalize(page.part_of)

        collection = self.get_collection(collection_id)
        items = list(collection.ordered_items)
        old = [to_id(item) for item in items[offset:offset + limit]]
        new = page.item_ids()
        merged = merge_window(old, new)
        if unique:
            seen = {to_id(item) for item in items[:offset] + items[offset + limit:]}
            deduped = []
            for item in merged:
                if item not in seen:
                    seen.add(item)
                    deduped.append(item)
            merged = deduped

        collection.ordered_items = items[:offset] + merged + items[offset + limit:]
        self.store.update(collection)
        logger.debug(
            f"Merged page of {collection_id} at {offset}: "
            f"{len(old)} -> {len(merged)} items, total {collection.total_items}"
        )

    def add_item(self, collection_id: str, item_id: str, unique: bool = False) -> bool:
        """
        Prepend an item (newest first).

        With unique=True the item is not added again if already present.

        Returns:
            True if the collection changed
        """
        collection = self.get_collection(collection_id)
        key = normalize(item_id)
        if unique and key in collection.item_ids():
            return False
        collection.ordered_items.insert(0, key)
        self.store.update(collection)
        return True

    def remove_item(self, collection_id: str, item_id: str) -> int:
        """Remove every occurrence of an item. Returns how many were removed."""
        collection = self.get_collection(collection_id)
        key = normalize(item_id)
        remaining = [item for item in collection.ordered_items if to_id(item) != key]
        removed = len(collection.ordered_items) - len(remaining)
        if removed:
            collection.ordered_items = remaining
            self.store.update(collection)
        return removed

    def get_inbox(self, inbox_id: str) -> OrderedCollectionPage:
        return self.get_page(inbox_id)

    def set_inbox(self, page: OrderedCollectionPage | dict) -> None:
        self.set_page(page)

    def get_outbox(self, outbox_id: str) -> OrderedCollectionPage:
        return self.get_page(outbox_id)

    def set_outbox(self, page: OrderedCollectionPage | dict) -> None:
        self.set_page(page)
