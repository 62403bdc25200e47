"""
Withdrawal gate
===============

Authorizes one asset release per nullifier. Checks run cheapest first, so a
claim that fails a field check never reaches the pairing:

  1. amount == 0                                -> InvalidAmount
     claim.user != caller                       -> InvalidUser
     claim for another chain (if configured)    -> InvalidChainId
  2. nullifier already used                     -> NullifierAlreadyUsed
  3. claimed root non-zero and != recorded root -> InvalidWithdrawalsRoot
  4. claim leaf not under the root              -> InvalidMerkleProof
  5. withdrawal proof does not verify           -> InvalidProof
  6. nullifier marked used, WithdrawalCompleted emitted

The nullifier alone is the uniqueness key: once used it stays used whatever
the other claim fields say.

The withdrawal circuit's public inputs are the words of
(withdrawalsRoot, nullifier, claim leaf), 24 in total.
"""

import hashlib
import logging
from dataclasses import dataclass

from zkclear.access import same_address
from zkclear.errors import (
    InvalidAmount,
    InvalidChainId,
    InvalidMerkleProof,
    InvalidProof,
    InvalidUser,
    InvalidVerifyingKey,
    InvalidWithdrawalsRoot,
    NullifierAlreadyUsed,
)
from zkclear.groth16.codec import ZERO_ROOT, as_bytes32, decode_proof, withdrawal_public_inputs
from zkclear.rollup.merkle import verify_inclusion

logger = logging.getLogger(__name__)

LEAF_TAG = b"zkclear.withdrawal.v1"
WORD_LIMIT = 1 << 256


@dataclass(frozen=True)
class WithdrawalClaim:
    user: str
    asset_id: int
    amount: int
    chain_id: int

    def __post_init__(self):
        for name in ("asset_id", "chain_id"):
            if not 0 <= getattr(self, name) < WORD_LIMIT:
                raise ValueError(f"{name} must fit in 32 bytes, got {getattr(self, name)}")
        # amount <= 0 is left to the gate, which answers InvalidAmount
        if self.amount >= WORD_LIMIT:
            raise ValueError(f"amount must fit in 32 bytes, got {self.amount}")

    def leaf(self):
        h = hashlib.sha256()
        h.update(LEAF_TAG)
        h.update(self.user.lower().encode())
        h.update(int(self.asset_id).to_bytes(32, "big"))
        h.update(int(self.amount).to_bytes(32, "big"))
        h.update(int(self.chain_id).to_bytes(32, "big"))
        return h.digest()


class WithdrawalGate:

    def __init__(self, state_gate, engine=None, chain_id=None, allow_unverified=False,
                 inclusion=verify_inclusion):
        self.state_gate = state_gate
        self.engine = engine
        self.chain_id = chain_id
        self.allow_unverified = allow_unverified
        self.inclusion = inclusion

    @property
    def events(self):
        return self.state_gate.events

    @property
    def guard(self):
        return self.state_gate.guard

    @property
    def withdrawals_root(self):
        return self.state_gate.withdrawals_root

    def _check_claim(self, caller, claim):
        if claim.amount <= 0:
            raise InvalidAmount("withdrawal amount must be greater than 0")
        if not same_address(claim.user, caller):
            raise InvalidUser(f"{caller} cannot withdraw for {claim.user}")
        if self.chain_id is not None and claim.chain_id != self.chain_id:
            raise InvalidChainId(f"claim is for chain {claim.chain_id}, this is {self.chain_id}")

    def _verify_zk_proof(self, root, nullifier, leaf, zk_proof):
        if self.engine is None:
            if not self.allow_unverified:
                raise InvalidVerifyingKey("no withdrawal verifying engine configured")
            if not zk_proof:
                return False
            logger.warning("UNVERIFIED withdrawal: no verifying engine configured, "
                           "proof accepted on placeholder policy")
            return True
        try:
            proof = decode_proof(zk_proof)
        except ValueError as exc:
            raise InvalidProof(str(exc)) from exc
        return self.engine.verify(proof, withdrawal_public_inputs(root, nullifier, leaf))

    def withdraw(self, caller, claim, merkle_proof, nullifier, zk_proof, withdrawals_root=ZERO_ROOT):
        self._check_claim(caller, claim)
        nullifier = as_bytes32(nullifier)
        claimed_root = as_bytes32(withdrawals_root)
        merkle_proof = bytes(merkle_proof or b"")
        zk_proof = bytes(zk_proof or b"")

        with self.guard:
            if self.state_gate.is_nullifier_used(nullifier):
                raise NullifierAlreadyUsed(f"nullifier 0x{nullifier.hex()} already used")

            recorded = self.withdrawals_root
            if claimed_root != ZERO_ROOT and claimed_root != recorded:
                raise InvalidWithdrawalsRoot("withdrawals root does not match the recorded root")
            root = claimed_root if claimed_root != ZERO_ROOT else recorded

            leaf = claim.leaf()
            if not self.inclusion(leaf, merkle_proof, root):
                raise InvalidMerkleProof("claim is not included under the withdrawals root")

            verified = self.engine is not None
            if not self._verify_zk_proof(root, nullifier, leaf, zk_proof):
                raise InvalidProof("withdrawal proof rejected")

            self.state_gate.mark_nullifier_used(nullifier)
            logger.info("withdrawal of %s of asset %s to %s (nullifier 0x%s)%s", claim.amount,
                        claim.asset_id, claim.user, nullifier.hex(),
                        "" if verified else " (unverified)")
            return self.events.emit("WithdrawalCompleted", user=claim.user,
                                    asset_id=claim.asset_id, amount=claim.amount,
                                    nullifier=nullifier, withdrawals_root=root,
                                    verified=verified)
