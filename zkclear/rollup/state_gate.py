"""
State transition gate
=====================

Admission control of the rollup. The only state is the current state root
(plus the set of processed blocks and the nullifier registry); the one
external transition is ``submit_block_proof``:

  1. block id already processed            -> BlockAlreadyProcessed
  2. prev root != current root, or new root is zero -> InvalidStateRoot
  3. proof check
       engine configured : decode 256-byte proof, derive 24 public inputs
                           from (prev, new, withdrawals) roots, verify
       no engine         : placeholder policy (non-empty proof), only when
                           unverified admission is enabled
  4. failed check                          -> InvalidProof, nothing changes
  5. success: one block record is written (processed id + new root +
     withdrawals root), then StateRootUpdated is emitted

Every mutating entry point runs under the shared reentrancy guard.
"""

import logging

from zkclear.access import Owned, ReentrancyGuard, is_null_address, same_address
from zkclear.errors import (
    BlockAlreadyProcessed,
    InvalidAddress,
    InvalidProof,
    InvalidSequencerAddress,
    InvalidStateRoot,
    InvalidVerifyingKey,
    NullifierAlreadyUsed,
    OnlySequencer,
)
from zkclear.events import EventLog
from zkclear.groth16.codec import ZERO_ROOT, as_bytes32, block_public_inputs, decode_proof
from zkclear.rollup.storage import from_hex

logger = logging.getLogger(__name__)


class StateTransitionGate:

    def __init__(self, store, sequencer, owner, engine=None, events=None, guard=None,
                 initial_state_root=ZERO_ROOT, allow_unverified=False):
        self.store = store
        self.engine = engine
        self.events = events if events is not None else EventLog()
        self.guard = guard if guard is not None else ReentrancyGuard()
        self.allow_unverified = allow_unverified
        self.ownership = Owned(owner, events=self.events, store=store, key="owner")

        if store.get_meta("sequencer") is None:
            if is_null_address(sequencer):
                raise InvalidSequencerAddress("sequencer must not be the null address")
            store.set_meta("sequencer", sequencer)
        if store.get_meta("genesis_state_root") is None:
            store.set_meta("genesis_state_root", "0x" + as_bytes32(initial_state_root).hex())

        latest = store.latest_block()
        if latest is None:
            self._state_root = from_hex(store.get_meta("genesis_state_root"))
            self._withdrawals_root = ZERO_ROOT
        else:
            self._state_root = from_hex(latest["new_state_root"])
            self._withdrawals_root = from_hex(latest["withdrawals_root"])
        logger.info("state gate ready at root 0x%s (%d blocks)",
                    self._state_root.hex(), store.block_count())

    # ─── queries ───

    @property
    def state_root(self):
        return self._state_root

    @property
    def withdrawals_root(self):
        return self._withdrawals_root

    @property
    def sequencer(self):
        return self.store.get_meta("sequencer")

    @property
    def owner(self):
        return self.ownership.owner

    @property
    def unverified_mode(self):
        return self.engine is None

    def is_block_processed(self, block_id):
        return self.store.has_block(block_id)

    def block(self, block_id):
        return self.store.get_block(block_id)

    def is_nullifier_used(self, nullifier):
        return self.store.has_nullifier(as_bytes32(nullifier))

    # ─── admission ───

    def _only_sequencer(self, caller):
        if not same_address(caller, self.sequencer):
            raise OnlySequencer(f"{caller} is not the sequencer")

    def _verify_block_proof(self, prev_state_root, new_state_root, withdrawals_root, proof_bytes):
        if self.engine is None:
            if not self.allow_unverified:
                raise InvalidVerifyingKey("no verifying engine configured")
            if not proof_bytes:
                return False
            logger.warning("UNVERIFIED admission: no verifying engine configured, "
                           "proof accepted on placeholder policy")
            return True

        try:
            proof = decode_proof(proof_bytes)
        except ValueError as exc:
            raise InvalidProof(str(exc)) from exc
        inputs = block_public_inputs(prev_state_root, new_state_root, withdrawals_root)
        return self.engine.verify(proof, inputs)

    def submit_block_proof(self, caller, block_id, prev_state_root, new_state_root,
                           withdrawals_root, proof_bytes):
        self._only_sequencer(caller)
        prev_state_root = as_bytes32(prev_state_root)
        new_state_root = as_bytes32(new_state_root)
        withdrawals_root = as_bytes32(withdrawals_root)
        proof_bytes = bytes(proof_bytes or b"")

        with self.guard:
            if self.store.has_block(block_id):
                raise BlockAlreadyProcessed(f"block {block_id} already processed")
            if prev_state_root != self._state_root:
                raise InvalidStateRoot("prevStateRoot does not match the current state root")
            if new_state_root == ZERO_ROOT:
                raise InvalidStateRoot("newStateRoot must not be zero")

            verified = self.engine is not None
            if not self._verify_block_proof(prev_state_root, new_state_root,
                                            withdrawals_root, proof_bytes):
                raise InvalidProof(f"proof for block {block_id} rejected")

            self.store.append_block(block_id, prev_state_root, new_state_root,
                                    withdrawals_root, verified)
            old_root = self._state_root
            self._state_root = new_state_root
            self._withdrawals_root = withdrawals_root
            logger.info("block %s admitted: 0x%s -> 0x%s%s", block_id, old_root.hex(),
                        new_state_root.hex(), "" if verified else " (unverified)")
            return self.events.emit("StateRootUpdated", block_id=block_id,
                                    old_state_root=old_root, new_state_root=new_state_root,
                                    withdrawals_root=withdrawals_root, verified=verified)

    # ─── administration ───

    def set_sequencer(self, caller, new_sequencer):
        with self.guard:
            self._only_sequencer(caller)
            if is_null_address(new_sequencer):
                raise InvalidSequencerAddress("sequencer must not be the null address")
            old = self.sequencer
            self.store.set_meta("sequencer", new_sequencer)
        logger.info("sequencer rotated from %s to %s", old, new_sequencer)
        return self.events.emit("SequencerUpdated", old_sequencer=old, new_sequencer=new_sequencer)

    def set_verifying_engine(self, caller, engine):
        with self.guard:
            self.ownership.only_owner(caller)
            if engine is None:
                raise InvalidAddress("verifying engine must not be null")
            self.engine = engine
        logger.info("verifying engine set to %s", getattr(engine, "name", engine))
        return self.events.emit("VerifierUpdated", engine=getattr(engine, "name", None))

    def transfer_ownership(self, caller, new_owner):
        with self.guard:
            return self.ownership.transfer_ownership(caller, new_owner)

    # ─── nullifier registry ───

    def mark_nullifier_used(self, nullifier):
        """Record a nullifier. Called by the withdrawal gate inside its own guarded call."""
        nullifier = as_bytes32(nullifier)
        with self.store.lock:
            if self.store.has_nullifier(nullifier):
                raise NullifierAlreadyUsed(f"nullifier 0x{nullifier.hex()} already used")
            self.store.add_nullifier(nullifier)

