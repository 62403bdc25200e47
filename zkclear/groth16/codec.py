"""
Proof wire format and public-input encoding
===========================================

**Proof (256 bytes)**
  Eight 32-byte big-endian unsigned integers:

    [  0: 32) A.x        [ 32: 64) A.y
    [ 64: 96) B.x.c0     [ 96:128) B.x.c1
    [128:160) B.y.c0     [160:192) B.y.c1
    [192:224) C.x        [224:256) C.y

  Decoding does not validate the points; that happens in the pairing check,
  so decode/encode is an exact round trip for any 256-byte buffer.

**Public inputs**
  A 32-byte root is split into eight 4-byte words, word i taken from bytes
  [4i, 4i+4) and read little-endian. Three roots give 24 field elements:

    prevStateRoot  -> inputs[0:8]
    newStateRoot   -> inputs[8:16]
    withdrawalsRoot-> inputs[16:24]

  The proving circuit packs roots the same way, bit for bit.
"""

from dataclasses import dataclass
from typing import Tuple

PROOF_SIZE = 256
ROOT_SIZE = 32
WORDS_PER_ROOT = 8
BLOCK_PUBLIC_INPUTS = 3 * WORDS_PER_ROOT

ZERO_ROOT = bytes(ROOT_SIZE)


@dataclass(frozen=True)
class Proof:
    a: Tuple[int, int]
    b: Tuple[Tuple[int, int], Tuple[int, int]]
    c: Tuple[int, int]


def as_bytes32(value):
    """bytes or 0x-hex string -> 32 bytes."""
    if isinstance(value, str):
        text = value[2:] if value.lower().startswith("0x") else value
        try:
            value = bytes.fromhex(text)
        except ValueError:
            raise ValueError(f"not a hex string: {value!r}") from None
    value = bytes(value)
    if len(value) != ROOT_SIZE:
        raise ValueError(f"expected {ROOT_SIZE} bytes, got {len(value)}")
    return value


def _read(data, i):
    return int.from_bytes(data[i * 32:(i + 1) * 32], "big")


def decode_proof(data):
    data = bytes(data)
    if len(data) != PROOF_SIZE:
        raise ValueError(f"proof must be {PROOF_SIZE} bytes, got {len(data)}")
    return Proof(
        a=(_read(data, 0), _read(data, 1)),
        b=((_read(data, 2), _read(data, 3)), (_read(data, 4), _read(data, 5))),
        c=(_read(data, 6), _read(data, 7)),
    )


def encode_proof(proof):
    (bx0, bx1), (by0, by1) = proof.b
    fields = [proof.a[0], proof.a[1], bx0, bx1, by0, by1, proof.c[0], proof.c[1]]
    return b"".join(int(f).to_bytes(32, "big") for f in fields)


def root_to_words(root):
    root = as_bytes32(root)
    return [int.from_bytes(root[i * 4:i * 4 + 4], "little") for i in range(WORDS_PER_ROOT)]


def words_to_root(words):
    if len(words) != WORDS_PER_ROOT:
        raise ValueError(f"expected {WORDS_PER_ROOT} words, got {len(words)}")
    return b"".join(int(w).to_bytes(4, "little") for w in words)


def public_inputs(*roots):
    inputs = []
    for root in roots:
        inputs.extend(root_to_words(root))
    return inputs


def block_public_inputs(prev_state_root, new_state_root, withdrawals_root):
    return public_inputs(prev_state_root, new_state_root, withdrawals_root)


def withdrawal_public_inputs(withdrawals_root, nullifier, leaf):
    return public_inputs(withdrawals_root, nullifier, leaf)
