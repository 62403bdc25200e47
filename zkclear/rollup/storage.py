"""
Rollup store
============

Persistent state of the settlement layer on TinyDB. Tables:

  meta        key/value: genesis root, sequencer, owner
  blocks      one record per admitted block
              {block_id, prev_state_root, new_state_root, withdrawals_root, verified}
  nullifiers  one record per used nullifier
  ledger      deposit / release / asset entries of the deposit ledger

Admitting a block is a single insert into ``blocks``: processed-block
membership and the new state root become visible together. The current
roots are those of the newest block record.

Roots and nullifiers are stored as 0x-hex strings.

Usage:
    >>> store = RollupStore.memory()
    >>> store.set_meta("sequencer", "0xabc..")
"""

import logging
import threading

from tinydb import Query, TinyDB
from tinydb.storages import MemoryStorage

logger = logging.getLogger(__name__)

DATA = Query()


def to_hex(value):
    return "0x" + bytes(value).hex()


def from_hex(text):
    return bytes.fromhex(text[2:] if text.startswith("0x") else text)


class RollupStore:

    def __init__(self, db):
        self.db = db
        self.lock = threading.RLock()
        self.meta = db.table("meta")
        self.blocks = db.table("blocks")
        self.nullifiers = db.table("nullifiers")
        self.ledger = db.table("ledger")

    @classmethod
    def memory(cls):
        return cls(TinyDB(storage=MemoryStorage))

    @classmethod
    def open(cls, path):
        logger.info("opening rollup store at %s", path)
        return cls(TinyDB(path))

    def close(self):
        self.db.close()

    # ─── meta ───

    def get_meta(self, key):
        with self.lock:
            row = self.meta.get(DATA.key == key)
        return None if row is None else row["value"]

    def set_meta(self, key, value):
        with self.lock:
            self.meta.upsert({"key": key, "value": value}, DATA.key == key)

    # ─── blocks ───

    def append_block(self, block_id, prev_state_root, new_state_root, withdrawals_root, verified):
        record = {
            "block_id": block_id,
            "prev_state_root": to_hex(prev_state_root),
            "new_state_root": to_hex(new_state_root),
            "withdrawals_root": to_hex(withdrawals_root),
            "verified": verified,
        }
        with self.lock:
            self.blocks.insert(record)
        return record

    def has_block(self, block_id):
        with self.lock:
            return self.blocks.contains(DATA.block_id == block_id)

    def get_block(self, block_id):
        with self.lock:
            return self.blocks.get(DATA.block_id == block_id)

    def latest_block(self):
        with self.lock:
            rows = self.blocks.all()
        if not rows:
            return None
        return max(rows, key=lambda row: row.doc_id)

    def block_count(self):
        with self.lock:
            return len(self.blocks)

    # ─── nullifiers ───

    def has_nullifier(self, nullifier):
        with self.lock:
            return self.nullifiers.contains(DATA.nullifier == to_hex(nullifier))

    def add_nullifier(self, nullifier):
        with self.lock:
            self.nullifiers.insert({"nullifier": to_hex(nullifier)})

    # ─── ledger ───

    def ledger_entries(self, kind=None, **fields):
        cond = None
        if kind is not None:
            cond = DATA.kind == kind
        for name, value in fields.items():
            term = DATA[name] == value
            cond = term if cond is None else (cond & term)
        with self.lock:
            if cond is None:
                return self.ledger.all()
            return self.ledger.search(cond)

    def add_ledger_entry(self, kind, **fields):
        entry = dict(fields, kind=kind)
        with self.lock:
            self.ledger.insert(entry)
        return entry
