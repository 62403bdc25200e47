import pytest

from zkclear.errors import InvalidProof, OwnableUnauthorizedAccount
from zkclear.config import RollupConfig
from zkclear.groth16.codec import ZERO_ROOT
from zkclear.groth16.keyfile import format_verifying_key
from zkclear.rollup.node import RollupNode

from conftest import H1, OTHER, OWNER, SEQUENCER, WR1


class TestRollupConfig:
    def test_defaults(self):
        config = RollupConfig(sequencer=SEQUENCER, owner=OWNER)
        assert config.db_path is None
        assert config.initial_state_root == ZERO_ROOT
        assert config.allow_unverified is False
        assert config.num_public_inputs == 24

    def test_validation(self):
        with pytest.raises(ValueError):
            RollupConfig(owner=OWNER)
        with pytest.raises(ValueError):
            RollupConfig(sequencer=SEQUENCER, owner=OWNER, num_public_inputs=0)
        with pytest.raises(ValueError):
            RollupConfig(sequencer=SEQUENCER, owner=OWNER, num_public_inputs=25)
        with pytest.raises(ValueError):
            RollupConfig(sequencer=SEQUENCER, owner=OWNER, log_level="LOUD")
        with pytest.raises(ValueError):
            RollupConfig(sequencer=SEQUENCER, owner=OWNER, initial_state_root=b"\x01")

    def test_from_env(self):
        env = {
            "ZKCLEAR_SEQUENCER": SEQUENCER,
            "ZKCLEAR_OWNER": OWNER,
            "ZKCLEAR_ALLOW_UNVERIFIED": "true",
            "ZKCLEAR_CHAIN_ID": "31337",
            "ZKCLEAR_INITIAL_STATE_ROOT": "0x" + "07" * 32,
            "ZKCLEAR_LOG_LEVEL": "debug",
        }
        config = RollupConfig.from_env(env)
        assert config.allow_unverified is True
        assert config.chain_id == 31337
        assert config.initial_state_root == bytes([7] * 32)
        assert config.log_level == "DEBUG"
        assert config.block_vk_path is None


class TestRollupNode:
    def test_from_config_with_key_file(self, tmp_path, block_keys, block_proof_1):
        vk, _ = block_keys
        vk_path = tmp_path / "block_vk.txt"
        vk_path.write_text(format_verifying_key(vk), encoding="utf-8")
        config = RollupConfig(sequencer=SEQUENCER, owner=OWNER, block_vk_path=str(vk_path),
                              db_path=str(tmp_path / "rollup.json"))
        node = RollupNode.from_config(config)
        assert not node.state_gate.unverified_mode
        assert node.withdrawal_gate.engine is None
        with pytest.raises(InvalidProof):
            node.state_gate.submit_block_proof(SEQUENCER, 1, ZERO_ROOT, H1, WR1, b"\x01")
        node.state_gate.submit_block_proof(SEQUENCER, 1, ZERO_ROOT, H1, WR1, block_proof_1)
        assert node.state_gate.state_root == H1
        node.close()

    def test_shared_guard_and_events(self):
        node = RollupNode.from_config(RollupConfig(sequencer=SEQUENCER, owner=OWNER,
                                                   allow_unverified=True))
        assert node.withdrawal_gate.guard is node.guard
        assert node.state_gate.events is node.events
        assert node.deposits.events is node.events

    def test_install_verifying_key(self, block_keys, block_proof_1):
        vk, _ = block_keys
        node = RollupNode.from_config(RollupConfig(sequencer=SEQUENCER, owner=OWNER,
                                                   allow_unverified=True))
        event = node.install_verifying_key(OWNER, "block", vk)
        assert event.name == "VerifyingKeySet"
        assert node.events.last("VerifierUpdated")["engine"] == "block"
        node.state_gate.submit_block_proof(SEQUENCER, 1, ZERO_ROOT, H1, WR1, block_proof_1)
        with pytest.raises(ValueError):
            node.install_verifying_key(OWNER, "deposit", vk)

    def test_engine_follows_ownership_transfer(self, block_keys):
        """게이트 소유권을 넘기면 검증키 교체 권한과 예치 관리 권한도 함께 이동"""
        vk, _ = block_keys
        node = RollupNode.from_config(RollupConfig(sequencer=SEQUENCER, owner=OWNER,
                                                   allow_unverified=True))
        node.install_verifying_key(OWNER, "block", vk)
        node.state_gate.transfer_ownership(OWNER, OTHER)

        with pytest.raises(OwnableUnauthorizedAccount):
            node.install_verifying_key(OWNER, "block", vk)
        assert node.install_verifying_key(OTHER, "block", vk).name == "VerifyingKeySet"
        with pytest.raises(OwnableUnauthorizedAccount):
            node.install_verifying_key(OWNER, "withdrawal", vk)

        token = "0x" + "77" * 20
        with pytest.raises(OwnableUnauthorizedAccount):
            node.deposits.register_asset(OWNER, 1, token)
        node.deposits.register_asset(OTHER, 1, token)

    def test_persisted_owner_loads_key_file(self, tmp_path, block_keys):
        vk, _ = block_keys
        vk_path = tmp_path / "block_vk.txt"
        vk_path.write_text(format_verifying_key(vk), encoding="utf-8")
        config = RollupConfig(sequencer=SEQUENCER, owner=OWNER, block_vk_path=str(vk_path),
                              db_path=str(tmp_path / "rollup.json"))
        node = RollupNode.from_config(config)
        node.state_gate.transfer_ownership(OWNER, OTHER)
        node.close()

        reopened = RollupNode.from_config(config)
        assert reopened.state_gate.owner == OTHER
        assert reopened.engine("block").ownership is reopened.state_gate.ownership
        with pytest.raises(OwnableUnauthorizedAccount):
            reopened.install_verifying_key(OWNER, "block", vk)
        reopened.install_verifying_key(OTHER, "block", vk)
        reopened.close()
