"""
롤업 데이터 직렬화/역직렬화 헬퍼
====================================

Converts rollup objects to JSON-safe values and back for the Flask surface.
Points follow the affine integer form of ``zkclear.groth16.curve``; field
elements travel as decimal strings, byte values as 0x-hex.
"""

from zkclear.groth16.codec import Proof, as_bytes32, decode_proof, encode_proof
from zkclear.groth16.verifying import VerifyingKey
from zkclear.rollup.withdrawal import WithdrawalClaim


# ─── bytes ───

def serialize_bytes(value):
    """bytes → 0x-hex"""
    if value is None:
        return None
    return "0x" + bytes(value).hex()


def deserialize_bytes(text):
    """0x-hex → bytes (empty for None)"""
    if not text:
        return b""
    if not isinstance(text, str):
        raise ValueError("expected a hex string")
    return bytes.fromhex(text[2:] if text.startswith("0x") else text)


def deserialize_root(text):
    """0x-hex → 32-byte root"""
    return as_bytes32(text)


# ─── G1 point ───

def serialize_g1(point):
    """G1 point → [str, str]"""
    return [str(int(point[0])), str(int(point[1]))]


def deserialize_g1(data):
    """[str, str] → G1 point"""
    return (int(data[0]), int(data[1]))


# ─── G2 point ───

def serialize_g2(point):
    """G2 point → [[str,str],[str,str]]"""
    return [
        [str(int(point[0][0])), str(int(point[0][1]))],
        [str(int(point[1][0])), str(int(point[1][1]))],
    ]


def deserialize_g2(data):
    """[[str,str],[str,str]] → G2 point"""
    return (
        (int(data[0][0]), int(data[0][1])),
        (int(data[1][0]), int(data[1][1])),
    )


# ─── verifying key ───

def serialize_vk(vk):
    return {
        "alpha": serialize_g1(vk.alpha),
        "beta": serialize_g2(vk.beta),
        "gamma": serialize_g2(vk.gamma),
        "delta": serialize_g2(vk.delta),
        "gamma_abc": [serialize_g1(p) for p in vk.gamma_abc],
    }


def deserialize_vk(data):
    try:
        return VerifyingKey(
            alpha=deserialize_g1(data["alpha"]),
            beta=deserialize_g2(data["beta"]),
            gamma=deserialize_g2(data["gamma"]),
            delta=deserialize_g2(data["delta"]),
            gamma_abc=[deserialize_g1(p) for p in data["gamma_abc"]],
        )
    except (KeyError, IndexError, TypeError) as exc:
        raise ValueError(f"malformed verifying key: {exc}") from exc


# ─── proof ───

def serialize_proof(proof):
    """Proof → {"a", "b", "c", "raw"}"""
    return {
        "a": serialize_g1(proof.a),
        "b": serialize_g2(proof.b),
        "c": serialize_g1(proof.c),
        "raw": serialize_bytes(encode_proof(proof)),
    }


def deserialize_proof(data):
    """Either the structured form or a raw 0x-hex string → Proof"""
    if isinstance(data, str):
        return decode_proof(deserialize_bytes(data))
    return Proof(
        a=deserialize_g1(data["a"]),
        b=deserialize_g2(data["b"]),
        c=deserialize_g1(data["c"]),
    )


# ─── withdrawal claim ───

def serialize_claim(claim):
    return {
        "user": claim.user,
        "asset_id": claim.asset_id,
        "amount": str(claim.amount),
        "chain_id": claim.chain_id,
    }


def deserialize_claim(data):
    try:
        return WithdrawalClaim(
            user=str(data["user"]),
            asset_id=int(data["asset_id"]),
            amount=int(data["amount"]),
            chain_id=int(data["chain_id"]),
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"malformed withdrawal claim: {exc}") from exc


# ─── events / block records ───

def _value(value):
    if isinstance(value, (bytes, bytearray)):
        return serialize_bytes(value)
    if isinstance(value, int) and not isinstance(value, bool) and value.bit_length() > 53:
        return str(value)
    return value


def serialize_event(event):
    return {
        "seq": event.seq,
        "name": event.name,
        "args": {k: _value(v) for k, v in event.args.items()},
    }


def serialize_block(record):
    if record is None:
        return None
    return dict(record)
