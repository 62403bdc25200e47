"""
Rollup node
===========

Wires one settlement instance together: store, event log, the shared
reentrancy guard, the block and withdrawal engines, both gates and the
deposit ledger.

Usage:
    >>> node = RollupNode.from_config(RollupConfig(sequencer=seq, owner=owner))
    >>> node.state_gate.submit_block_proof(seq, 1, prev, new, wr, proof)
"""

import logging

from zkclear.access import ReentrancyGuard
from zkclear.events import EventLog
from zkclear.groth16.keyfile import load_verifying_key
from zkclear.groth16.verifying import Groth16Engine
from zkclear.rollup.deposit import DepositLedger
from zkclear.rollup.state_gate import StateTransitionGate
from zkclear.rollup.storage import RollupStore
from zkclear.rollup.withdrawal import WithdrawalGate

logger = logging.getLogger(__name__)


def _engine(config, ownership, events, guard, name, vk_path):
    if vk_path is None:
        logger.info("no %s verifying key configured", name)
        return None
    engine = Groth16Engine(num_public_inputs=config.num_public_inputs, events=events,
                           guard=guard, name=name, ownership=ownership)
    engine.set_verifying_key(ownership.owner,
                             load_verifying_key(vk_path, config.num_public_inputs))
    logger.info("%s verifying key loaded from %s", name, vk_path)
    return engine


class RollupNode:

    def __init__(self, config, store, events, guard, state_gate, withdrawal_gate, deposits):
        self.config = config
        self.store = store
        self.events = events
        self.guard = guard
        self.state_gate = state_gate
        self.withdrawal_gate = withdrawal_gate
        self.deposits = deposits

    @property
    def ownership(self):
        return self.state_gate.ownership

    @classmethod
    def from_config(cls, config):
        store = RollupStore.memory() if config.db_path is None else RollupStore.open(config.db_path)
        events = EventLog()
        guard = ReentrancyGuard()

        state_gate = StateTransitionGate(
            store,
            sequencer=config.sequencer,
            owner=config.owner,
            events=events,
            guard=guard,
            initial_state_root=config.initial_state_root,
            allow_unverified=config.allow_unverified,
        )
        # one owner for the gates, the engines and the ledger
        ownership = state_gate.ownership
        state_gate.engine = _engine(config, ownership, events, guard, "block",
                                    config.block_vk_path)
        withdrawal_gate = WithdrawalGate(
            state_gate,
            engine=_engine(config, ownership, events, guard, "withdrawal",
                           config.withdrawal_vk_path),
            chain_id=config.chain_id,
            allow_unverified=config.allow_unverified,
        )
        deposits = DepositLedger(store, events=events, ownership=ownership)
        if state_gate.unverified_mode and config.allow_unverified:
            logger.warning("node running in UNVERIFIED mode: block proofs are not checked")
        return cls(config, store, events, guard, state_gate, withdrawal_gate, deposits)

    def engine(self, name):
        if name == "block":
            return self.state_gate.engine
        if name == "withdrawal":
            return self.withdrawal_gate.engine
        raise ValueError(f"unknown engine {name!r}")

    def install_verifying_key(self, caller, name, vk):
        """Set the key of the named engine, creating the engine on first use."""
        engine = self.engine(name)
        if engine is not None:
            return engine.set_verifying_key(caller, vk)
        engine = Groth16Engine(num_public_inputs=self.config.num_public_inputs,
                               events=self.events, guard=self.guard, name=name,
                               ownership=self.ownership)
        event = engine.set_verifying_key(caller, vk)
        if name == "block":
            self.state_gate.set_verifying_engine(caller, engine)
        else:
            self.withdrawal_gate.engine = engine
            logger.info("withdrawal verifying engine installed")
        return event

    def close(self):
        self.store.close()
