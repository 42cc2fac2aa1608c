# tests/test_store.py
"""Tests for the document table."""

import threading

import pytest

from fedstore.config import Config
from fedstore.documents import Actor, Object
from fedstore.errors import InvalidDocument, NotFound
from fedstore.ownership import OwnershipResolver
from fedstore.store import ResourceStore

LOCAL_NOTE = "https://social.example/objects/1"
REMOTE_NOTE = "https://peer.example/notes/1"


@pytest.fixture
def store():
    """Create a store for social.example."""
    return ResourceStore(OwnershipResolver(Config(hostname="social.example")))


@pytest.fixture
def note():
    return Object(id=LOCAL_NOTE, type="Note", content="hello")


class TestCrud:
    """Test create/get/update/delete."""

    def test_create_then_get(self, store, note):
        """A created document reads back equal."""
        key = store.create(note)

        assert key == LOCAL_NOTE
        assert store.exists(LOCAL_NOTE)
        assert store.get(LOCAL_NOTE) == note

    def test_get_missing(self, store):
        """Missing identifiers raise NotFound (a KeyError)."""
        with pytest.raises(NotFound):
            store.get(LOCAL_NOTE)
        with pytest.raises(KeyError):
            store.get(LOCAL_NOTE)

    def test_create_without_id(self, store):
        """Documents without an identifier are rejected."""
        with pytest.raises(InvalidDocument):
            store.create(Object(type="Note", content="no id"))

    def test_create_with_relative_id(self, store):
        """Relative identifiers are rejected."""
        with pytest.raises(InvalidDocument):
            store.create(Object(id="/objects/1", type="Note"))

    def test_create_from_mapping(self, store):
        """JSON-LD mappings are decoded before storing."""
        store.create({"type": "Note", "id": LOCAL_NOTE, "content": "hi"})

        stored = store.get(LOCAL_NOTE)
        assert isinstance(stored, Object)
        assert stored.content == "hi"

    def test_update_overwrites(self, store, note):
        """Update replaces the whole document."""
        store.create(note)
        store.update(Object(id=LOCAL_NOTE, type="Note", content="edited"))

        assert store.get(LOCAL_NOTE).content == "edited"
        assert len(store) == 1

    def test_get_by_noncanonical_identifier(self, store, note):
        """Lookups use the canonical identifier."""
        store.create(note)
        assert store.get("HTTPS://SOCIAL.EXAMPLE:443/objects/1") == note

    def test_delete_is_idempotent(self, store, note):
        """Deleting twice is a no-op the second time."""
        store.create(note)

        store.delete(LOCAL_NOTE)
        assert not store.exists(LOCAL_NOTE)
        store.delete(LOCAL_NOTE)
        assert not store.exists(LOCAL_NOTE)

    def test_exists_never_raises(self, store):
        """Malformed identifiers are simply absent."""
        assert not store.exists("not a url")
        assert "not a url" not in store

    def test_documents_are_copied(self, store, note):
        """Mutating a read or written document does not touch the table."""
        store.create(note)
        note.content = "changed after create"

        fetched = store.get(LOCAL_NOTE)
        fetched.content = "changed after get"

        assert store.get(LOCAL_NOTE).content == "hello"


class TestProvenance:
    """Test local/federated tagging."""

    def test_local_document(self, store, note):
        store.create(note)
        assert store.is_local(LOCAL_NOTE)
        assert store.get_entry(LOCAL_NOTE).is_local

    def test_federated_document(self, store):
        store.create(Object(id=REMOTE_NOTE, type="Note"))
        assert not store.is_local(REMOTE_NOTE)

    def test_is_local_missing(self, store):
        with pytest.raises(NotFound):
            store.is_local(REMOTE_NOTE)

    def test_find_local_only(self, store, note):
        """find() filters by predicate and provenance."""
        store.create(note)
        store.create(Object(id=REMOTE_NOTE, type="Note"))
        store.create(Actor(id="https://social.example/users/alice"))

        notes = store.find(lambda d: d.type == "Note")
        local_notes = store.find(lambda d: d.type == "Note", local_only=True)

        assert len(notes) == 2
        assert [d.id for d in local_notes] == [LOCAL_NOTE]
        assert store.find_one(lambda d: d.type == "Question") is None


class TestConcurrency:
    """Test concurrent writes to distinct identifiers."""

    def test_concurrent_creates_do_not_interfere(self, store):
        """Writers on different identifiers never lose each other's documents."""
        workers = 8
        per_worker = 50
        barrier = threading.Barrier(workers)

        def worker(n):
            barrier.wait()
            for i in range(per_worker):
                store.create(Object(
                    id=f"https://social.example/objects/{n}-{i}",
                    type="Note",
                    content=f"{n}:{i}",
                ))
                store.update(Object(
                    id=f"https://social.example/objects/{n}-{i}",
                    type="Note",
                    content=f"{n}:{i}:v2",
                ))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(10)

        assert len(store) == workers * per_worker
        for n in range(workers):
            for i in range(per_worker):
                doc = store.get(f"https://social.example/objects/{n}-{i}")
                assert doc.content == f"{n}:{i}:v2"
