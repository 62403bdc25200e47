"""
Verifying key text files
========================

The key exporter of the proving service writes one value per line:

    alpha_X: 0x...
    alpha_Y: 0x...
    beta_X: [0x..., 0x...]       (c0, c1)
    beta_Y: [0x..., 0x...]
    gamma_X / gamma_Y / delta_X / delta_Y   same form as beta
    gamma_abc[0]: (0x..., 0x...)
    gamma_abc[1]: (0x..., 0x...)
    ...

gamma_abc entries are ordered by index; the indices must run 0..n-1. The exporter may write more points
than the circuit needs; at least ``num_public_inputs + 1`` are required.
"""

import logging
import re

from zkclear.errors import InvalidVerifyingKey
from zkclear.groth16.codec import BLOCK_PUBLIC_INPUTS
from zkclear.groth16.verifying import VerifyingKey

logger = logging.getLogger(__name__)

_HEX = r"(0x[0-9a-fA-F]+)"
_GAMMA_ABC = re.compile(r"gamma_abc\[(\d+)\]:\s+\(" + _HEX + r",\s+" + _HEX + r"\)")


def _value(content, key):
    match = re.search(re.escape(key) + r"\s+" + _HEX, content)
    if not match:
        raise InvalidVerifyingKey(f"failed to extract {key}")
    return int(match.group(1), 16)


def _pair(content, key):
    match = re.search(re.escape(key) + r"\s+\[" + _HEX + r",\s+" + _HEX + r"\]", content)
    if not match:
        raise InvalidVerifyingKey(f"failed to extract {key}")
    return (int(match.group(1), 16), int(match.group(2), 16))


def _g2(content, name):
    return (_pair(content, f"{name}_X:"), _pair(content, f"{name}_Y:"))


def parse_verifying_key(content, num_public_inputs=BLOCK_PUBLIC_INPUTS):
    alpha = (_value(content, "alpha_X:"), _value(content, "alpha_Y:"))
    by_index = {}
    for match in _GAMMA_ABC.finditer(content):
        by_index[int(match.group(1))] = (int(match.group(2), 16), int(match.group(3), 16))
    if sorted(by_index) != list(range(len(by_index))):
        raise InvalidVerifyingKey("gamma_abc indices must run 0..n-1 without gaps")
    gamma_abc = [by_index[i] for i in range(len(by_index))]
    if len(gamma_abc) < num_public_inputs + 1:
        raise InvalidVerifyingKey(
            f"invalid gamma_abc length: expected at least {num_public_inputs + 1}, "
            f"got {len(gamma_abc)}"
        )
    logger.debug("parsed verifying key with %d gamma_abc points", len(gamma_abc))
    return VerifyingKey(
        alpha=alpha,
        beta=_g2(content, "beta"),
        gamma=_g2(content, "gamma"),
        delta=_g2(content, "delta"),
        gamma_abc=gamma_abc,
    )


def load_verifying_key(path, num_public_inputs=BLOCK_PUBLIC_INPUTS):
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()
    return parse_verifying_key(content, num_public_inputs)


def _hex(n):
    return "0x" + format(int(n), "064x")


def format_verifying_key(vk):
    lines = [
        f"alpha_X: {_hex(vk.alpha[0])}",
        f"alpha_Y: {_hex(vk.alpha[1])}",
    ]
    for name in ("beta", "gamma", "delta"):
        (x0, x1), (y0, y1) = getattr(vk, name)
        lines.append(f"{name}_X: [{_hex(x0)}, {_hex(x1)}]")
        lines.append(f"{name}_Y: [{_hex(y0)}, {_hex(y1)}]")
    for i, (x, y) in enumerate(vk.gamma_abc):
        lines.append(f"gamma_abc[{i}]: ({_hex(x)}, {_hex(y)})")
    return "\n".join(lines) + "\n"
