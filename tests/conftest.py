import sys
import os
import hashlib
import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from zkclear.groth16.codec import ZERO_ROOT, block_public_inputs, encode_proof
from zkclear.groth16.proving import prove
from zkclear.groth16.setup import setup
from zkclear.groth16.verifying import Groth16Engine


# ── 테스트 상수 ──
OWNER = "0x" + "11" * 20
SEQUENCER = "0x" + "22" * 20
USER = "0x" + "33" * 20
OTHER = "0x" + "44" * 20

BLOCK_SEED = "zkclear-test-block"
WITHDRAWAL_SEED = "zkclear-test-withdrawal"

PROVER_R = 4106
PROVER_S = 4565


def root(label):
    """테스트용 32바이트 루트"""
    return hashlib.sha256(label.encode()).digest()


H1 = root("state-1")
H2 = root("state-2")
WR1 = root("withdrawals-1")


@pytest.fixture(scope="session")
def block_keys():
    """블록 회로 개발용 키 (vk, toxic)"""
    return setup(seed=BLOCK_SEED)


@pytest.fixture(scope="session")
def withdrawal_keys():
    """출금 회로 개발용 키 (vk, toxic)"""
    return setup(seed=WITHDRAWAL_SEED)


@pytest.fixture(scope="session")
def prove_block(block_keys):
    """(prev, new, wr) -> 256바이트 증명"""
    _, toxic = block_keys

    def _prove(prev, new, wr, r=PROVER_R, s=PROVER_S):
        return encode_proof(prove(toxic, block_public_inputs(prev, new, wr), r=r, s=s))

    return _prove


@pytest.fixture(scope="session")
def block_proof_1(prove_block):
    """genesis -> H1 블록 증명"""
    return prove_block(ZERO_ROOT, H1, WR1)


@pytest.fixture(scope="session")
def block_engine(block_keys):
    """키가 설정된 블록 엔진 (읽기 전용으로 사용)"""
    vk, _ = block_keys
    engine = Groth16Engine(OWNER, name="block")
    engine.set_verifying_key(OWNER, vk)
    return engine


@pytest.fixture(scope="session")
def withdrawal_engine(withdrawal_keys):
    vk, _ = withdrawal_keys
    engine = Groth16Engine(OWNER, name="withdrawal")
    engine.set_verifying_key(OWNER, vk)
    return engine
