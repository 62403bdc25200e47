"""
Development key ceremony
========================

Builds a Groth16 verifying key from known "toxic waste" for local networks
and tests. Whoever holds the toxic waste can produce a verifying proof for
any public inputs (see ``proving.prove``), so keys made here must never back
a deployment that claims soundness.

  alpha, beta, gamma, delta : FR scalars
  abc[i]                    : the per-input scalars behind gamma_abc[i]

  vk.alpha        = alpha · G1
  vk.beta/gamma/delta = beta/gamma/delta · G2
  vk.gamma_abc[i] = abc[i] · G1

Usage:
    >>> vk, toxic = setup(num_public_inputs=24, seed=42)
    >>> len(vk.gamma_abc)
    25
"""

import hashlib
import secrets

from zkclear.groth16.codec import BLOCK_PUBLIC_INPUTS
from zkclear.groth16.curve import CURVE_ORDER, FR, G1, G2, scalar_mul, scalar_mul_g2
from zkclear.groth16.verifying import VerifyingKey


class ToxicWaste:

    def __init__(self, alpha, beta, gamma, delta, abc):
        self.alpha = alpha
        self.beta = beta
        self.gamma = gamma
        self.delta = delta
        self.abc = abc

    @property
    def num_public_inputs(self):
        return len(self.abc) - 1


def _scalar(seed, label):
    if seed is None:
        return FR(secrets.randbelow(CURVE_ORDER - 1) + 1)
    h = hashlib.sha256(f"{seed}:{label}".encode()).digest()
    val = int.from_bytes(h, "big") % CURVE_ORDER
    return FR(val or 1)


def toxic_waste(num_public_inputs=BLOCK_PUBLIC_INPUTS, seed=None):
    return ToxicWaste(
        alpha=_scalar(seed, "alpha"),
        beta=_scalar(seed, "beta"),
        gamma=_scalar(seed, "gamma"),
        delta=_scalar(seed, "delta"),
        abc=[_scalar(seed, f"abc{i}") for i in range(num_public_inputs + 1)],
    )


def sigma1(toxic):
    return mult_g1(toxic.alpha), [mult_g1(k) for k in toxic.abc]


def sigma2(toxic):
    return mult_g2(toxic.beta), mult_g2(toxic.gamma), mult_g2(toxic.delta)


def mult_g1(k):
    return scalar_mul(G1, k)


def mult_g2(k):
    return scalar_mul_g2(G2, k)


def verifying_key(toxic):
    alpha, gamma_abc = sigma1(toxic)
    beta, gamma, delta = sigma2(toxic)
    return VerifyingKey(alpha=alpha, beta=beta, gamma=gamma, delta=delta,
                        gamma_abc=gamma_abc)


def setup(num_public_inputs=BLOCK_PUBLIC_INPUTS, seed=None):
    toxic = toxic_waste(num_public_inputs, seed)
    return verifying_key(toxic), toxic
