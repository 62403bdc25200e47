"""
Deposit ledger
==============

Escrow bookkeeping keyed by asset id. Token custody itself happens on the
ledger the rollup settles to; this records what entered and left escrow.

  - register_asset : owner maps an asset id to a token identity
  - deposit        : token deposit for a registered asset
  - deposit_native : native-currency deposit (asset ids with no token)
  - release        : owner takes funds out of escrow

Each deposit has a fingerprint sha256(user, asset id, amount, tx_ref); a
fingerprint is accepted once.
"""

import hashlib
import logging

from zkclear.access import Owned, is_null_address
from zkclear.errors import (
    AssetNotRegistered,
    DepositAlreadyProcessed,
    InsufficientBalance,
    InvalidAddress,
    InvalidAmount,
    NativeDepositNotAllowed,
)
from zkclear.events import EventLog

logger = logging.getLogger(__name__)

NATIVE_ASSET_ID = 0


def deposit_fingerprint(user, asset_id, amount, tx_ref=b""):
    if isinstance(tx_ref, str):
        tx_ref = tx_ref.encode()
    h = hashlib.sha256()
    h.update(user.lower().encode())
    h.update(int(asset_id).to_bytes(32, "big"))
    h.update(int(amount).to_bytes(32, "big"))
    h.update(bytes(tx_ref))
    return "0x" + h.hexdigest()


class DepositLedger:

    def __init__(self, store, owner=None, events=None, ownership=None):
        self.store = store
        self.events = events if events is not None else EventLog()
        if ownership is None:
            ownership = Owned(owner, events=self.events, store=store, key="deposit_owner")
        self.ownership = ownership

    def asset_token(self, asset_id):
        rows = self.store.ledger_entries("asset", asset_id=asset_id)
        return rows[-1]["token"] if rows else None

    def register_asset(self, caller, asset_id, token):
        self.ownership.only_owner(caller)
        if is_null_address(token):
            raise InvalidAddress("invalid token address")
        self.store.add_ledger_entry("asset", asset_id=asset_id, token=token)
        logger.info("asset %s registered as %s", asset_id, token)
        return self.events.emit("AssetRegistered", asset_id=asset_id, token=token)

    def _record(self, user, asset_id, amount, tx_ref, native):
        if amount <= 0:
            raise InvalidAmount("amount must be greater than 0")
        fingerprint = deposit_fingerprint(user, asset_id, amount, tx_ref)
        with self.store.lock:
            if self.store.ledger_entries("deposit", fingerprint=fingerprint):
                raise DepositAlreadyProcessed(f"deposit {fingerprint} already processed")
            self.store.add_ledger_entry("deposit", fingerprint=fingerprint, user=user,
                                        asset_id=asset_id, amount=amount, native=native)
        logger.info("deposit %s: %s of asset %s from %s", fingerprint, amount, asset_id, user)
        return self.events.emit("Deposit", user=user, asset_id=asset_id, amount=amount,
                                deposit_hash=fingerprint)

    def deposit(self, user, asset_id, amount, tx_ref=b""):
        if self.asset_token(asset_id) is None:
            raise AssetNotRegistered(f"asset {asset_id} not registered")
        return self._record(user, asset_id, amount, tx_ref, native=False)

    def deposit_native(self, user, amount, asset_id=NATIVE_ASSET_ID, tx_ref=b""):
        if self.asset_token(asset_id) is not None:
            raise NativeDepositNotAllowed(f"use the token deposit for asset {asset_id}")
        return self._record(user, asset_id, amount, tx_ref, native=True)

    def balance_of(self, asset_id):
        deposited = sum(e["amount"] for e in self.store.ledger_entries("deposit", asset_id=asset_id))
        released = sum(e["amount"] for e in self.store.ledger_entries("release", asset_id=asset_id))
        return deposited - released

    def release(self, caller, asset_id, amount, to=None):
        """Take funds out of escrow to ``to`` (the caller when omitted). Owner only."""
        self.ownership.only_owner(caller)
        if to is None:
            to = caller
        if is_null_address(to):
            raise InvalidAddress("invalid recipient address")
        if amount <= 0:
            raise InvalidAmount("amount must be greater than 0")
        with self.store.lock:
            if self.balance_of(asset_id) < amount:
                raise InsufficientBalance(f"escrow holds less than {amount} of asset {asset_id}")
            self.store.add_ledger_entry("release", asset_id=asset_id, amount=amount,
                                        to=to)
        logger.info("released %s of asset %s to %s", amount, asset_id, to)
        return self.events.emit("Released", asset_id=asset_id, amount=amount, to=to)
