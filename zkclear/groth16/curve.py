"""
BN254 curve primitives
======================

Group operations used by the Groth16 verifier: negation, addition and
scalar multiplication in G1, and the multi-pairing product check.

**Point encoding**
  Points are passed around in affine integer form, the same layout the
  proof wire format uses:
    - G1: (x, y)
    - G2: ((x_c0, x_c1), (y_c0, y_c1))   c0 + c1·i over FQ2
  The identity (point at infinity) is all-zero coordinates.

**Validation**
  Before a point takes part in a pairing it must have coordinates below the
  base field prime, lie on the curve (G1: y² = x³ + 3, G2: the twist), and
  for G2 also lie in the order-r subgroup. G1 has cofactor 1 so the curve
  equation is enough there.

Internally the arithmetic runs on py_ecc's optimized (projective) bn128
backend; results are normalized back to affine integers.

Usage:
    >>> P = scalar_mul(G1, 5)
    >>> add(P, negate(P)) == G1_IDENTITY
    True
    >>> pairing_check([G1, negate(G1)], [G2, G2])
    True
"""

import logging

from py_ecc import optimized_bn128 as bn128
from py_ecc.fields import bn128_FQ as FQ

logger = logging.getLogger(__name__)

FIELD_MODULUS = bn128.field_modulus
CURVE_ORDER = bn128.curve_order


class FR(FQ):
    field_modulus = bn128.curve_order


mult = bn128.multiply
pairing = bn128.pairing
final_exponentiate = bn128.final_exponentiate

G1_IDENTITY = (0, 0)
G2_IDENTITY = ((0, 0), (0, 0))


# ─────────────────────────────────────────────────────────────────────
# affine <-> projective
# ─────────────────────────────────────────────────────────────────────

def _check_coords(*coords):
    for c in coords:
        if not 0 <= c < FIELD_MODULUS:
            raise ValueError("coordinate is not a canonical base field element")


def _lift_g1(point):
    x, y = int(point[0]), int(point[1])
    _check_coords(x, y)
    if x == 0 and y == 0:
        return (bn128.FQ.one(), bn128.FQ.one(), bn128.FQ.zero())
    pt = (bn128.FQ(x), bn128.FQ(y), bn128.FQ.one())
    if not bn128.is_on_curve(pt, bn128.b):
        raise ValueError("point is not on G1")
    return pt


def _lift_g2(point):
    (x0, x1), (y0, y1) = point
    x0, x1, y0, y1 = int(x0), int(x1), int(y0), int(y1)
    _check_coords(x0, x1, y0, y1)
    if x0 == 0 and x1 == 0 and y0 == 0 and y1 == 0:
        return (bn128.FQ2.one(), bn128.FQ2.one(), bn128.FQ2.zero())
    pt = (bn128.FQ2([x0, x1]), bn128.FQ2([y0, y1]), bn128.FQ2.one())
    if not bn128.is_on_curve(pt, bn128.b2):
        raise ValueError("point is not on the G2 twist")
    if not bn128.is_inf(mult(pt, CURVE_ORDER)):
        raise ValueError("point is not in the G2 subgroup")
    return pt


def _lower_g1(pt):
    if bn128.is_inf(pt):
        return G1_IDENTITY
    x, y = bn128.normalize(pt)
    return (x.n, y.n)


def _lower_g2(pt):
    if bn128.is_inf(pt):
        return G2_IDENTITY
    x, y = bn128.normalize(pt)
    return ((int(x.coeffs[0]), int(x.coeffs[1])),
            (int(y.coeffs[0]), int(y.coeffs[1])))


G1 = _lower_g1(bn128.G1)
G2 = _lower_g2(bn128.G2)


def is_on_g1(point):
    try:
        _lift_g1(point)
    except ValueError:
        return False
    return True


def is_on_g2(point):
    try:
        _lift_g2(point)
    except ValueError:
        return False
    return True


# ─────────────────────────────────────────────────────────────────────
# group operations
# ─────────────────────────────────────────────────────────────────────

def negate(point):
    """-P = (x, p - y). The identity is its own negation."""
    x, y = int(point[0]), int(point[1])
    if x == 0 and y == 0:
        return G1_IDENTITY
    return (x, (FIELD_MODULUS - y) % FIELD_MODULUS)


def add(p1, p2):
    return _lower_g1(bn128.add(_lift_g1(p1), _lift_g1(p2)))


def scalar_mul(point, k):
    if isinstance(k, FR):
        k = int(k)
    return _lower_g1(mult(_lift_g1(point), int(k) % CURVE_ORDER))


def scalar_mul_g2(point, k):
    if isinstance(k, FR):
        k = int(k)
    return _lower_g2(mult(_lift_g2(point), int(k) % CURVE_ORDER))


def pairing_check(a, b):
    """True iff prod e(a[i], b[i]) is the identity of the target group.

    Malformed points (non-canonical, off the curve, outside the subgroup)
    make the check fail; they are never an exception.
    """
    if len(a) != len(b):
        raise ValueError(f"pairing check needs equal lengths, got {len(a)} and {len(b)}")
    try:
        pairs = [(_lift_g1(p), _lift_g2(q)) for p, q in zip(a, b)]
    except ValueError as exc:
        logger.debug("pairing check rejected a point: %s", exc)
        return False

    acc = bn128.FQ12.one()
    for p, q in pairs:
        acc = acc * pairing(q, p, final_exponentiate=False)
    return final_exponentiate(acc) == bn128.FQ12.one()
