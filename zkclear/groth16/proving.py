"""
Trapdoor prover for development keys
====================================

With the toxic waste of a development key, a proof for public inputs x is

    A = r · G1
    B = s · G2
    C = (r·s - alpha·beta - gamma·L(x)) / delta · G1,   L(x) = abc[0] + Σ x_i·abc[i+1]

which satisfies e(A, B) = e(alpha, beta) · e(vk_x, gamma) · e(C, delta).
Used by tests and local sequencers; real deployments get proofs from the
off-chain proving service.

Usage:
    >>> vk, toxic = setup(seed=1)
    >>> proof = prove(toxic, block_public_inputs(prev, new, wr))
    >>> encode_proof(proof)  # 256 bytes
"""

import secrets

from zkclear.errors import InvalidPublicInputs
from zkclear.groth16.codec import Proof
from zkclear.groth16.curve import CURVE_ORDER, FR
from zkclear.groth16.setup import mult_g1, mult_g2


def input_scalar(toxic, inputs):
    if len(inputs) != toxic.num_public_inputs:
        raise InvalidPublicInputs(
            f"expected {toxic.num_public_inputs} public inputs, got {len(inputs)}"
        )
    acc = toxic.abc[0]
    for i, x in enumerate(inputs):
        acc = acc + toxic.abc[i + 1] * FR(int(x))
    return acc


def proof_a(r):
    return mult_g1(r)


def proof_b(s):
    return mult_g2(s)


def proof_c(toxic, inputs, r, s):
    lx = input_scalar(toxic, inputs)
    c = (r * s - toxic.alpha * toxic.beta - toxic.gamma * lx) / toxic.delta
    return mult_g1(c)


def _random_scalar():
    return FR(secrets.randbelow(CURVE_ORDER - 1) + 1)


def prove(toxic, inputs, r=None, s=None):
    r = FR(r) if r is not None else _random_scalar()
    s = FR(s) if s is not None else _random_scalar()
    return Proof(a=proof_a(r), b=proof_b(s), c=proof_c(toxic, inputs, r, s))
