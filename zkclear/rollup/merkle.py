"""
Withdrawal Merkle tree
======================

Inclusion of a withdrawal claim under a withdrawals root.

  - leaf       : 32-byte claim hash (``WithdrawalClaim.leaf()``)
  - parent     : sha256(min(l, r) || max(l, r))   (sorted pair, no direction bits)
  - odd level  : the last node is paired with itself
  - proof bytes: sibling hashes from the leaf level upward, 32 bytes each

A zero root never verifies.

Usage:
    >>> root = build_root(leaves)
    >>> proof = build_proof(leaves, 2)
    >>> verify_inclusion(leaves[2], proof, root)
    True
"""

import hashlib

HASH_SIZE = 32
ZERO_HASH = bytes(HASH_SIZE)


def hash_pair(a, b):
    if b < a:
        a, b = b, a
    return hashlib.sha256(a + b).digest()


def _next_level(level):
    if len(level) % 2:
        level = level + [level[-1]]
    return [hash_pair(level[i], level[i + 1]) for i in range(0, len(level), 2)]


def build_root(leaves):
    if not leaves:
        raise ValueError("cannot build a Merkle root without leaves")
    level = [bytes(leaf) for leaf in leaves]
    while len(level) > 1:
        level = _next_level(level)
    return level[0]


def build_proof(leaves, index):
    if not 0 <= index < len(leaves):
        raise ValueError(f"leaf index {index} out of range")
    level = [bytes(leaf) for leaf in leaves]
    siblings = []
    while len(level) > 1:
        padded = level + [level[-1]] if len(level) % 2 else level
        siblings.append(padded[index ^ 1])
        level = _next_level(level)
        index //= 2
    return b"".join(siblings)


def verify_inclusion(leaf, proof, root):
    proof = bytes(proof)
    root = bytes(root)
    if root == ZERO_HASH or len(proof) % HASH_SIZE:
        return False
    node = bytes(leaf)
    for i in range(0, len(proof), HASH_SIZE):
        node = hash_pair(node, proof[i:i + HASH_SIZE])
    return node == root
