"""
Rollup Blueprint
================

JSON surface of one rollup node under ``/rollup``. The node is injected by
``app.py`` through ``init_rollup_bp``.

The calling principal is read from the ``X-Caller`` header; the service is
meant to sit behind a front end that authenticates it.
"""

import logging

from flask import Blueprint, jsonify, request

from zkclear.errors import ZKClearError
from zkclear.groth16.codec import ZERO_ROOT
from rollup_serializers import (
    deserialize_bytes,
    deserialize_claim,
    deserialize_root,
    deserialize_vk,
    serialize_block,
    serialize_bytes,
    serialize_event,
)

logger = logging.getLogger(__name__)

rollup_bp = Blueprint('rollup', __name__, url_prefix='/rollup')

# NODE는 app.py에서 주입
NODE = None


def init_rollup_bp(node):
    """app.py에서 노드를 주입받는다."""
    global NODE
    NODE = node


# ─── 헬퍼 ───

def caller():
    return request.headers.get("X-Caller", "")


def body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("request body must be a JSON object")
    return data


def field(data, name):
    if name not in data:
        raise ValueError(f"missing field {name!r}")
    return data[name]


def event_response(event, status=200):
    return jsonify(serialize_event(event)), status


@rollup_bp.errorhandler(ZKClearError)
def handle_rollup_error(exc):
    logger.info("request rejected: %s (%s)", exc.code, exc)
    return jsonify({"error": exc.code, "message": str(exc)}), exc.http_status


@rollup_bp.errorhandler(ValueError)
def handle_bad_request(exc):
    return jsonify({"error": "BadRequest", "message": str(exc)}), 400


# ──────────────────────────────────────────────────────────────
# State
# ──────────────────────────────────────────────────────────────

@rollup_bp.route("/state")
def state():
    gate = NODE.state_gate
    return jsonify({
        "state_root": serialize_bytes(gate.state_root),
        "withdrawals_root": serialize_bytes(gate.withdrawals_root),
        "sequencer": gate.sequencer,
        "owner": gate.owner,
        "blocks": NODE.store.block_count(),
        "unverified_mode": gate.unverified_mode,
    })


@rollup_bp.route("/blocks/<int:block_id>")
def get_block(block_id):
    record = NODE.state_gate.block(block_id)
    if record is None:
        return jsonify({"error": "NotFound", "message": f"block {block_id} not processed"}), 404
    return jsonify(serialize_block(record))


@rollup_bp.route("/blocks", methods=["POST"])
def submit_block():
    """블록 증명을 제출한다."""
    data = body()
    event = NODE.state_gate.submit_block_proof(
        caller(),
        int(field(data, "block_id")),
        deserialize_root(field(data, "prev_state_root")),
        deserialize_root(field(data, "new_state_root")),
        deserialize_root(field(data, "withdrawals_root")),
        deserialize_bytes(data.get("proof")),
    )
    return event_response(event, 201)


# ──────────────────────────────────────────────────────────────
# Administration
# ──────────────────────────────────────────────────────────────

@rollup_bp.route("/sequencer", methods=["POST"])
def set_sequencer():
    return event_response(NODE.state_gate.set_sequencer(caller(), field(body(), "sequencer")))


@rollup_bp.route("/owner", methods=["POST"])
def transfer_ownership():
    return event_response(NODE.state_gate.transfer_ownership(caller(), field(body(), "owner")))


@rollup_bp.route("/verifying-key", methods=["POST"])
def set_verifying_key():
    """검증 키를 교체한다. engine: block | withdrawal"""
    data = body()
    vk = deserialize_vk(field(data, "verifying_key"))
    return event_response(NODE.install_verifying_key(caller(), data.get("engine", "block"), vk))


# ──────────────────────────────────────────────────────────────
# Withdrawals
# ──────────────────────────────────────────────────────────────

@rollup_bp.route("/nullifiers/<nullifier>")
def nullifier_status(nullifier):
    return jsonify({
        "nullifier": serialize_bytes(deserialize_root(nullifier)),
        "used": NODE.state_gate.is_nullifier_used(nullifier),
    })


@rollup_bp.route("/withdrawals", methods=["POST"])
def withdraw():
    """출금을 요청한다."""
    data = body()
    event = NODE.withdrawal_gate.withdraw(
        caller(),
        deserialize_claim(field(data, "claim")),
        deserialize_bytes(data.get("merkle_proof")),
        deserialize_root(field(data, "nullifier")),
        deserialize_bytes(data.get("proof")),
        withdrawals_root=deserialize_root(data.get("withdrawals_root") or ZERO_ROOT),
    )
    return event_response(event, 201)


# ──────────────────────────────────────────────────────────────
# Deposits
# ──────────────────────────────────────────────────────────────

@rollup_bp.route("/assets", methods=["POST"])
def register_asset():
    data = body()
    event = NODE.deposits.register_asset(caller(), int(field(data, "asset_id")),
                                         field(data, "token"))
    return event_response(event, 201)


@rollup_bp.route("/deposits", methods=["POST"])
def deposit():
    data = body()
    amount = int(field(data, "amount"))
    tx_ref = deserialize_bytes(data.get("tx_ref"))
    if data.get("native"):
        event = NODE.deposits.deposit_native(caller(), amount,
                                             asset_id=int(data.get("asset_id", 0)), tx_ref=tx_ref)
    else:
        event = NODE.deposits.deposit(caller(), int(field(data, "asset_id")), amount, tx_ref=tx_ref)
    return event_response(event, 201)


@rollup_bp.route("/assets/<int:asset_id>/release", methods=["POST"])
def release(asset_id):
    """소유자가 escrow 에서 자금을 인출 (to 생략 시 호출자에게)"""
    data = body()
    event = NODE.deposits.release(caller(), asset_id, int(field(data, "amount")),
                                  to=data.get("to"))
    return event_response(event)


@rollup_bp.route("/assets/<int:asset_id>/balance")
def asset_balance(asset_id):
    return jsonify({"asset_id": asset_id, "balance": str(NODE.deposits.balance_of(asset_id))})


# ──────────────────────────────────────────────────────────────
# Events
# ──────────────────────────────────────────────────────────────

@rollup_bp.route("/events")
def events():
    name = request.args.get("name")
    return jsonify([serialize_event(e) for e in NODE.events.events(name)])
