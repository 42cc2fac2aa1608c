# fedstore/locks.py
"""
Per-identifier exclusive locks.

The protocol engine brackets every mutation of a document (and every
read-modify-write of a collection) with acquire/release on its
identifier. The store itself never locks on the caller's behalf.

Lock entries are created lazily and never removed, so an entry can
never be torn down while another thread is about to wait on it.
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from .errors import Cancelled, LockNotHeld
from .iri import normalize

logger = logging.getLogger(__name__)


class _LockEntry:
    """A non-reentrant lock that remembers which thread holds it."""

    __slots__ = ("identifier", "condition", "holder")

    def __init__(self, identifier: str):
        self.identifier = identifier
        self.condition = threading.Condition(threading.Lock())
        self.holder: Optional[int] = None


class LockRegistry:
    """
    Registry mapping identifiers to exclusive locks.

    The registry map has its own mutex, distinct from the locks it hands
    out; creating an entry is a check-and-insert under that mutex, so
    concurrent first acquirers of one identifier all wait on the same entry.

    Locks are neither reentrant nor fair. Waiting observes `cancel`
    (a threading.Event) and `timeout`, re-checking every `poll_interval`
    seconds.
    """

    def __init__(self, poll_interval: float = 0.05):
        self.poll_interval = poll_interval
        self._entries: Dict[str, _LockEntry] = {}
        self._registry_lock = threading.Lock()

    def _entry(self, key: str) -> _LockEntry:
        with self._registry_lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = _LockEntry(key)
                self._entries[key] = entry
            return entry

    def _existing(self, key: str) -> Optional[_LockEntry]:
        with self._registry_lock:
            return self._entries.get(key)

    def acquire(
        self,
        identifier: str,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """
        Block until the calling thread holds the lock for identifier.

        Args:
            identifier: Identifier to lock
            timeout: Seconds to wait before giving up (None waits forever)
            cancel: Event that aborts the wait when set

        Raises:
            Cancelled: cancel was set, or timeout elapsed, before acquisition
        """
        key = normalize(identifier)
        if cancel is not None and cancel.is_set():
            raise Cancelled(f"Cancelled before acquiring {key}", key)

        entry = self._entry(key)
        deadline = None if timeout is None else time.monotonic() + timeout

        with entry.condition:
            while entry.holder is not None:
                if cancel is not None and cancel.is_set():
                    raise Cancelled(f"Cancelled while waiting for {key}", key)
                wait = self.poll_interval
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise Cancelled(f"Timed out waiting for {key}", key)
                    wait = min(wait, remaining)
                entry.condition.wait(wait)
            entry.holder = threading.get_ident()

        logger.debug(f"Locked {key}")

    def release(self, identifier: str) -> None:
        """
        Release a lock held by the calling thread.

        Raises:
            LockNotHeld: no entry, entry not held, or held by another thread
        """
        key = normalize(identifier)
        entry = self._existing(key)
        if entry is None:
            raise LockNotHeld(f"No lock exists for {key}", key)

        with entry.condition:
            if entry.holder is None:
                raise LockNotHeld(f"Lock for {key} is not held", key)
            if entry.holder != threading.get_ident():
                raise LockNotHeld(f"Lock for {key} is held by another thread", key)
            entry.holder = None
            entry.condition.notify()

        logger.debug(f"Unlocked {key}")

    @contextmanager
    def locked(
        self,
        *identifiers: str,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[List[str]]:
        """
        Hold several identifiers at once.

        Locks are taken in lexicographic order of the canonical identifiers
        and released in reverse. If any acquisition fails, the locks already
        taken are released before the error propagates. `timeout` applies to
        each acquisition.

        Usage:
            with registry.locked(inbox_id, outbox_id):
                ...
        """
        keys = sorted({normalize(i) for i in identifiers})
        held: List[str] = []
        try:
            for key in keys:
                self.acquire(key, timeout=timeout, cancel=cancel)
                held.append(key)
            yield keys
        finally:
            for key in reversed(held):
                self.release(key)

    def is_locked(self, identifier: str) -> bool:
        """Whether any thread currently holds the identifier's lock."""
        entry = self._existing(normalize(identifier))
        if entry is None:
            return False
        with entry.condition:
            return entry.holder is not None

    def __contains__(self, identifier: str) -> bool:
        return self._existing(normalize(identifier)) is not None

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._entries)
