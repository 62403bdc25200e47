"""
Groth16 over BN254
==================

  curve      : G1/G2 group operations and the multi-pairing check
  codec      : 256-byte proof wire format, root -> public-input words
  verifying  : VerifyingKey and the Groth16Engine
  keyfile    : verifying key text files
  setup      : development key ceremony (toxic waste kept)
  proving    : trapdoor prover for development keys
"""

from zkclear.groth16.codec import (
    BLOCK_PUBLIC_INPUTS,
    PROOF_SIZE,
    ZERO_ROOT,
    Proof,
    as_bytes32,
    block_public_inputs,
    decode_proof,
    encode_proof,
    root_to_words,
    withdrawal_public_inputs,
    words_to_root,
)
from zkclear.groth16.verifying import Groth16Engine, VerifyingKey
