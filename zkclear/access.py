"""
Access control: owned resources and the reentrancy guard
========================================================

**Owned**
  A resource with exactly one owner. Only the current owner may hand it to
  somebody else. When a store is given the owner is kept in its ``meta``
  table, so ownership survives a restart.

**ReentrancyGuard**
  Per-resource mutual exclusion held for the whole duration of a mutating
  call. A nested entry from the thread that already holds the guard fails
  with ``ReentrantCall``; other threads wait for their turn, which gives
  every mutating call a single total order.

Usage:
    >>> guard = ReentrancyGuard()
    >>> with guard:
    ...     pass  # mutate state
"""

import logging
import threading

from zkclear.errors import OwnableInvalidOwner, OwnableUnauthorizedAccount, ReentrantCall

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "00" * 20


def is_null_address(address):
    if not address:
        return True
    return str(address).lower() == ZERO_ADDRESS


def same_address(a, b):
    if a is None or b is None:
        return False
    return str(a).lower() == str(b).lower()


class Owned:

    def __init__(self, owner, events=None, store=None, key="owner"):
        self._events = events
        self._store = store
        self._key = key
        stored = store.get_meta(key) if store is not None else None
        if stored is not None:
            self._owner = stored
            return
        if is_null_address(owner):
            raise OwnableInvalidOwner("owner must not be the null address")
        self._owner = owner
        if store is not None:
            store.set_meta(key, owner)

    @property
    def owner(self):
        return self._owner

    def only_owner(self, caller):
        if not same_address(caller, self._owner):
            raise OwnableUnauthorizedAccount(f"{caller} is not the owner")

    def transfer_ownership(self, caller, new_owner):
        self.only_owner(caller)
        if is_null_address(new_owner):
            raise OwnableInvalidOwner("new owner must not be the null address")
        previous = self._owner
        if self._store is not None:
            self._store.set_meta(self._key, new_owner)
        self._owner = new_owner
        logger.info("%s transferred from %s to %s", self._key, previous, new_owner)
        if self._events is not None:
            return self._events.emit("OwnershipTransferred", resource=self._key,
                              previous_owner=previous, new_owner=new_owner)


class ReentrancyGuard:

    def __init__(self):
        self._lock = threading.Lock()
        self._holder = None

    @property
    def entered(self):
        return self._holder is not None

    def __enter__(self):
        me = threading.get_ident()
        if self._holder == me:
            raise ReentrantCall("reentrant call into a guarded entry point")
        self._lock.acquire()
        self._holder = me
        return self

    def __exit__(self, exc_type, exc, tb):
        self._holder = None
        self._lock.release()
        return False
