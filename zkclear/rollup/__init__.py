"""
Rollup settlement
=================

  storage     : TinyDB-backed rollup store
  state_gate  : StateTransitionGate, block admission
  withdrawal  : WithdrawalGate and WithdrawalClaim
  merkle      : withdrawal inclusion proofs
  deposit     : DepositLedger, escrow bookkeeping
  node        : RollupNode, wiring from a RollupConfig
"""

from zkclear.rollup.deposit import NATIVE_ASSET_ID, DepositLedger
from zkclear.rollup.node import RollupNode
from zkclear.rollup.state_gate import StateTransitionGate
from zkclear.rollup.storage import RollupStore
from zkclear.rollup.withdrawal import WithdrawalClaim, WithdrawalGate
