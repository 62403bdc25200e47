import pytest

from zkclear.errors import (
    InvalidAmount,
    InvalidChainId,
    InvalidMerkleProof,
    InvalidProof,
    InvalidUser,
    InvalidVerifyingKey,
    InvalidWithdrawalsRoot,
    NullifierAlreadyUsed,
)
from zkclear.groth16.codec import ZERO_ROOT, encode_proof, withdrawal_public_inputs
from zkclear.groth16.proving import prove
from zkclear.rollup.merkle import build_proof, build_root
from zkclear.rollup.state_gate import StateTransitionGate
from zkclear.rollup.storage import RollupStore
from zkclear.rollup.withdrawal import WithdrawalClaim, WithdrawalGate

from conftest import H1, OTHER, OWNER, SEQUENCER, USER

CHAIN_ID = 31337

CLAIMS = [
    WithdrawalClaim(user=USER, asset_id=1, amount=100, chain_id=CHAIN_ID),
    WithdrawalClaim(user=OTHER, asset_id=1, amount=250, chain_id=CHAIN_ID),
    WithdrawalClaim(user=USER, asset_id=2, amount=7, chain_id=CHAIN_ID),
]
LEAVES = [c.leaf() for c in CLAIMS]
WITHDRAWALS_ROOT = build_root(LEAVES)

NULLIFIER = bytes([0xA1] * 32)
DUMMY_PROOF = b"\x01" * 256


class SpyEngine:
    """verify 호출을 기록하는 엔진"""

    name = "spy"

    def __init__(self, result=True):
        self.result = result
        self.calls = []

    def verify(self, proof, public_inputs):
        self.calls.append((proof, public_inputs))
        return self.result


class SpyInclusion:

    def __init__(self):
        self.calls = 0

    def __call__(self, leaf, proof, root):
        self.calls += 1
        return True


@pytest.fixture
def state_gate():
    gate = StateTransitionGate(RollupStore.memory(), SEQUENCER, OWNER, allow_unverified=True)
    gate.submit_block_proof(SEQUENCER, 1, ZERO_ROOT, H1, WITHDRAWALS_ROOT, b"\x01")
    return gate


@pytest.fixture
def spy():
    return SpyEngine()


@pytest.fixture
def gate(state_gate, spy):
    return WithdrawalGate(state_gate, engine=spy, chain_id=CHAIN_ID)


class TestCheapChecksFirst:
    def test_scenario_c_zero_amount(self, state_gate, spy):
        """amount == 0 이면 어떤 검증보다 먼저 InvalidAmount"""
        inclusion = SpyInclusion()
        gate = WithdrawalGate(state_gate, engine=spy, inclusion=inclusion)
        claim = WithdrawalClaim(user=USER, asset_id=1, amount=0, chain_id=CHAIN_ID)
        with pytest.raises(InvalidAmount):
            gate.withdraw(USER, claim, b"", NULLIFIER, DUMMY_PROOF)
        assert spy.calls == []
        assert inclusion.calls == 0
        assert not state_gate.is_nullifier_used(NULLIFIER)

    def test_scenario_d_wrong_user(self, gate, spy):
        with pytest.raises(InvalidUser):
            gate.withdraw(OTHER, CLAIMS[0], build_proof(LEAVES, 0), NULLIFIER, DUMMY_PROOF)
        assert spy.calls == []

    def test_wrong_chain(self, gate, spy):
        claim = WithdrawalClaim(user=USER, asset_id=1, amount=100, chain_id=1)
        with pytest.raises(InvalidChainId):
            gate.withdraw(USER, claim, b"", NULLIFIER, DUMMY_PROOF)
        assert spy.calls == []


class TestWithdraw:
    def test_success(self, gate, spy, state_gate):
        event = gate.withdraw(USER, CLAIMS[0], build_proof(LEAVES, 0), NULLIFIER, DUMMY_PROOF,
                              withdrawals_root=WITHDRAWALS_ROOT)
        assert event.name == "WithdrawalCompleted"
        assert (event["user"], event["asset_id"], event["amount"], event["nullifier"],
                event["withdrawals_root"]) == (USER, 1, 100, NULLIFIER, WITHDRAWALS_ROOT)
        assert state_gate.is_nullifier_used(NULLIFIER)
        _, inputs = spy.calls[0]
        assert inputs == withdrawal_public_inputs(WITHDRAWALS_ROOT, NULLIFIER, LEAVES[0])

    def test_zero_claimed_root_uses_recorded(self, gate):
        event = gate.withdraw(USER, CLAIMS[2], build_proof(LEAVES, 2), NULLIFIER, DUMMY_PROOF)
        assert event["withdrawals_root"] == WITHDRAWALS_ROOT

    def test_nullifier_reuse_with_other_fields(self, gate):
        """같은 nullifier 는 다른 claim 이라도 거부"""
        gate.withdraw(USER, CLAIMS[0], build_proof(LEAVES, 0), NULLIFIER, DUMMY_PROOF)
        with pytest.raises(NullifierAlreadyUsed):
            gate.withdraw(OTHER, CLAIMS[1], build_proof(LEAVES, 1), NULLIFIER, DUMMY_PROOF)
        with pytest.raises(NullifierAlreadyUsed):
            gate.withdraw(USER, CLAIMS[0], build_proof(LEAVES, 0), NULLIFIER, DUMMY_PROOF)

    def test_failing_subscriber_does_not_fail_withdraw(self, gate, state_gate):
        """구독자 예외가 나도 nullifier 소비와 이벤트 반환은 그대로"""
        def boom(event):
            raise RuntimeError("indexer down")

        gate.events.subscribe(boom)
        event = gate.withdraw(USER, CLAIMS[0], build_proof(LEAVES, 0), NULLIFIER, DUMMY_PROOF)
        assert event.name == "WithdrawalCompleted"
        assert state_gate.is_nullifier_used(NULLIFIER)
        with pytest.raises(NullifierAlreadyUsed):
            gate.withdraw(USER, CLAIMS[0], build_proof(LEAVES, 0), NULLIFIER, DUMMY_PROOF)

    def test_distinct_nullifiers(self, gate):
        gate.withdraw(USER, CLAIMS[0], build_proof(LEAVES, 0), NULLIFIER, DUMMY_PROOF)
        gate.withdraw(USER, CLAIMS[0], build_proof(LEAVES, 0), bytes([0xA2] * 32), DUMMY_PROOF)

    def test_root_mismatch(self, gate, spy):
        with pytest.raises(InvalidWithdrawalsRoot):
            gate.withdraw(USER, CLAIMS[0], build_proof(LEAVES, 0), NULLIFIER, DUMMY_PROOF,
                          withdrawals_root=bytes([9] * 32))
        assert spy.calls == []

    def test_bad_merkle_proof(self, gate, spy, state_gate):
        with pytest.raises(InvalidMerkleProof):
            gate.withdraw(USER, CLAIMS[0], build_proof(LEAVES, 1), NULLIFIER, DUMMY_PROOF)
        assert spy.calls == []
        assert not state_gate.is_nullifier_used(NULLIFIER)

    def test_tampered_amount_not_included(self, gate):
        claim = WithdrawalClaim(user=USER, asset_id=1, amount=101, chain_id=CHAIN_ID)
        with pytest.raises(InvalidMerkleProof):
            gate.withdraw(USER, claim, build_proof(LEAVES, 0), NULLIFIER, DUMMY_PROOF)

    def test_rejected_proof(self, state_gate):
        gate = WithdrawalGate(state_gate, engine=SpyEngine(result=False))
        with pytest.raises(InvalidProof):
            gate.withdraw(USER, CLAIMS[0], build_proof(LEAVES, 0), NULLIFIER, DUMMY_PROOF)
        assert not state_gate.is_nullifier_used(NULLIFIER)

    def test_malformed_proof(self, gate):
        with pytest.raises(InvalidProof):
            gate.withdraw(USER, CLAIMS[0], build_proof(LEAVES, 0), NULLIFIER, b"\x01" * 100)


class TestWithdrawalEngine:
    def test_verified_path(self, state_gate, withdrawal_engine, withdrawal_keys):
        _, toxic = withdrawal_keys
        gate = WithdrawalGate(state_gate, engine=withdrawal_engine, chain_id=CHAIN_ID)
        inputs = withdrawal_public_inputs(WITHDRAWALS_ROOT, NULLIFIER, LEAVES[1])
        zk_proof = encode_proof(prove(toxic, inputs, r=11, s=13))

        with pytest.raises(InvalidProof):
            gate.withdraw(OTHER, CLAIMS[1], build_proof(LEAVES, 1), bytes([0xA2] * 32), zk_proof)

        event = gate.withdraw(OTHER, CLAIMS[1], build_proof(LEAVES, 1), NULLIFIER, zk_proof)
        assert event["verified"] is True
        assert event["amount"] == 250


class TestUnverifiedWithdrawal:
    def test_engine_required_by_default(self, state_gate):
        gate = WithdrawalGate(state_gate)
        with pytest.raises(InvalidVerifyingKey):
            gate.withdraw(USER, CLAIMS[0], build_proof(LEAVES, 0), NULLIFIER, DUMMY_PROOF)

    def test_placeholder(self, state_gate):
        gate = WithdrawalGate(state_gate, allow_unverified=True)
        with pytest.raises(InvalidProof):
            gate.withdraw(USER, CLAIMS[0], build_proof(LEAVES, 0), NULLIFIER, b"")
        event = gate.withdraw(USER, CLAIMS[0], build_proof(LEAVES, 0), NULLIFIER, b"\x01")
        assert event["verified"] is False


class TestClaim:
    def test_leaf_ignores_address_case(self):
        upper = WithdrawalClaim(user="0x" + "AB" * 20, asset_id=1, amount=5, chain_id=1)
        lower = WithdrawalClaim(user="0x" + "ab" * 20, asset_id=1, amount=5, chain_id=1)
        assert upper.leaf() == lower.leaf()
        assert len(upper.leaf()) == 32

    def test_leaf_binds_fields(self):
        base = WithdrawalClaim(user=USER, asset_id=1, amount=5, chain_id=1)
        assert base.leaf() != WithdrawalClaim(user=USER, asset_id=1, amount=6, chain_id=1).leaf()
        assert base.leaf() != WithdrawalClaim(user=USER, asset_id=1, amount=5, chain_id=2).leaf()

    @pytest.mark.parametrize("fields", [
        dict(asset_id=-1, amount=5, chain_id=1),
        dict(asset_id=1 << 256, amount=5, chain_id=1),
        dict(asset_id=1, amount=5, chain_id=-1),
        dict(asset_id=1, amount=5, chain_id=1 << 256),
        dict(asset_id=1, amount=1 << 256, chain_id=1),
    ])
    def test_fields_must_fit_a_word(self, fields):
        with pytest.raises(ValueError):
            WithdrawalClaim(user=USER, **fields)

    def test_largest_word_accepted(self):
        top = (1 << 256) - 1
        claim = WithdrawalClaim(user=USER, asset_id=top, amount=top, chain_id=top)
        assert len(claim.leaf()) == 32
