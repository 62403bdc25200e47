"""
Groth16 verifier
================

**Equation**
    e(A, B) = e(alpha, beta) · e(vk_x, gamma) · e(C, delta)

  with vk_x = gamma_abc[0] + Σ inputs[i] · gamma_abc[i+1].

  It is evaluated as one multi-pairing check over four pairs, in this order:

    e(A, B) · e(-alpha, beta) · e(-vk_x, gamma) · e(-C, delta) == 1

**Outcomes**
  - wrong number of public inputs      -> InvalidPublicInputs
  - no key / gamma_abc too short        -> InvalidVerifyingKey
  - proof does not satisfy the equation -> False
  - proof points malformed              -> False

Usage:
    >>> engine = Groth16Engine(owner="0xowner..")
    >>> engine.set_verifying_key("0xowner..", vk)
    >>> engine.verify(decode_proof(proof_bytes), block_public_inputs(prev, new, wr))
"""

import logging
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Tuple

from zkclear.access import Owned
from zkclear.errors import InvalidPublicInputs, InvalidVerifyingKey
from zkclear.groth16 import curve
from zkclear.groth16.codec import BLOCK_PUBLIC_INPUTS

logger = logging.getLogger(__name__)

add = curve.add
mult = curve.scalar_mul
neg = curve.negate


@dataclass(frozen=True)
class VerifyingKey:
    alpha: Tuple[int, int]
    beta: Tuple[Tuple[int, int], Tuple[int, int]]
    gamma: Tuple[Tuple[int, int], Tuple[int, int]]
    delta: Tuple[Tuple[int, int], Tuple[int, int]]
    gamma_abc: Tuple[Tuple[int, int], ...]

    def __post_init__(self):
        object.__setattr__(self, "gamma_abc", tuple(tuple(p) for p in self.gamma_abc))

    def validate_points(self):
        """Raise InvalidVerifyingKey unless every point is a valid group element."""
        if not curve.is_on_g1(self.alpha):
            raise InvalidVerifyingKey("alpha is not a G1 point")
        for name in ("beta", "gamma", "delta"):
            if not curve.is_on_g2(getattr(self, name)):
                raise InvalidVerifyingKey(f"{name} is not a G2 point")
        for i, p in enumerate(self.gamma_abc):
            if not curve.is_on_g1(p):
                raise InvalidVerifyingKey(f"gamma_abc[{i}] is not a G1 point")


def compute_vk_x(gamma_abc, inputs):
    vk_x = gamma_abc[0]
    for i, x in enumerate(inputs):
        vk_x = add(vk_x, mult(gamma_abc[i + 1], x))
    return vk_x


class Groth16Engine:

    def __init__(self, owner=None, num_public_inputs=BLOCK_PUBLIC_INPUTS, events=None,
                 guard=None, name="block", ownership=None):
        """``ownership`` shares an existing Owned (e.g. the state gate's) instead of a new one."""
        self.name = name
        self.num_public_inputs = num_public_inputs
        self.ownership = ownership if ownership is not None else Owned(owner, events=events)
        self._events = events
        self._guard = guard
        self._vk = None

    @property
    def verifying_key(self):
        return self._vk

    @property
    def has_key(self):
        return self._vk is not None

    def _check_key(self, vk):
        if vk is None:
            raise InvalidVerifyingKey("verifying key is not set")
        if len(vk.gamma_abc) < self.num_public_inputs + 1:
            raise InvalidVerifyingKey(
                f"gamma_abc needs at least {self.num_public_inputs + 1} points, "
                f"got {len(vk.gamma_abc)}"
            )

    def set_verifying_key(self, caller, vk):
        """Replace the active key as a whole. Owner only."""
        self.ownership.only_owner(caller)
        self._check_key(vk)
        vk.validate_points()
        with self._guard if self._guard is not None else nullcontext():
            self._vk = vk
        logger.info("%s verifying key set (%d gamma_abc points)", self.name, len(vk.gamma_abc))
        if self._events is not None:
            return self._events.emit("VerifyingKeySet", engine=self.name,
                              gamma_abc_length=len(vk.gamma_abc))

    def verify(self, proof, public_inputs):
        if len(public_inputs) != self.num_public_inputs:
            raise InvalidPublicInputs(
                f"expected {self.num_public_inputs} public inputs, got {len(public_inputs)}"
            )
        vk = self._vk
        self._check_key(vk)

        # -C must be the negation of a canonical point
        if not curve.is_on_g1(proof.c):
            logger.debug("%s proof rejected: C is not a G1 point", self.name)
            return False

        vk_x = compute_vk_x(vk.gamma_abc, public_inputs)
        ok = curve.pairing_check(
            [proof.a, neg(vk.alpha), neg(vk_x), neg(proof.c)],
            [proof.b, vk.beta, vk.gamma, vk.delta],
        )
        logger.debug("%s proof verification result: %s", self.name, ok)
        return ok
