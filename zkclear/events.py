"""
Notifications
=============

Append-only log of the events emitted by the settlement layer
(StateRootUpdated, WithdrawalCompleted, SequencerUpdated, VerifyingKeySet,
OwnershipTransferred, ...). Once emitted an event is never modified.

Usage:
    >>> log = EventLog()
    >>> log.subscribe(print)
    >>> log.emit("SequencerUpdated", old="0xaa..", new="0xbb..")
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    seq: int
    name: str
    args: Mapping[str, Any] = field(default_factory=dict)

    def __getitem__(self, key):
        return self.args[key]


class EventLog:

    def __init__(self):
        self._events = []
        self._subscribers = []

    def subscribe(self, callback):
        """Register ``callback(event)``; called synchronously on every emit.

        A failing subscriber is logged and skipped, never raised to the emitter.
        """
        self._subscribers.append(callback)
        return callback

    def unsubscribe(self, callback):
        self._subscribers.remove(callback)

    def emit(self, name, **args):
        event = Event(len(self._events), name, MappingProxyType(dict(args)))
        self._events.append(event)
        logger.info("event %s %s", name, _short_args(args))
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                # the operation behind the event has already committed
                logger.exception("subscriber %r failed on %s", callback, name)
        return event

    def events(self, name=None):
        if name is None:
            return list(self._events)
        return [e for e in self._events if e.name == name]

    def last(self, name=None):
        found = self.events(name)
        return found[-1] if found else None

    def __len__(self):
        return len(self._events)


def _short_args(args):
    out = {}
    for key, value in args.items():
        if isinstance(value, (bytes, bytearray)):
            value = "0x" + bytes(value).hex()
        out[key] = value
    return out
