"""Configuration of a rollup node."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from zkclear.access import is_null_address
from zkclear.groth16.codec import BLOCK_PUBLIC_INPUTS, ZERO_ROOT, as_bytes32

ENV_PREFIX = "ZKCLEAR_"

_TRUE = ("1", "true", "yes", "on")


@dataclass
class RollupConfig:
    """Settings for ``RollupNode.from_config``.

    ``db_path=None`` keeps the store in memory. Without ``block_vk_path`` the
    node has no block engine and admits blocks only when
    ``allow_unverified`` is set.
    """

    sequencer: str = ""
    owner: str = ""
    db_path: Optional[str] = None
    initial_state_root: bytes = ZERO_ROOT
    allow_unverified: bool = False
    block_vk_path: Optional[str] = None
    withdrawal_vk_path: Optional[str] = None
    chain_id: Optional[int] = None
    num_public_inputs: int = BLOCK_PUBLIC_INPUTS
    log_level: str = "INFO"

    def __post_init__(self):
        if is_null_address(self.sequencer):
            raise ValueError("sequencer address is required")
        if is_null_address(self.owner):
            raise ValueError("owner address is required")
        self.initial_state_root = as_bytes32(self.initial_state_root)
        if self.num_public_inputs != BLOCK_PUBLIC_INPUTS:
            # block inputs are always the 8 words of each of the three roots
            raise ValueError(f"num_public_inputs must be {BLOCK_PUBLIC_INPUTS}, "
                             f"got {self.num_public_inputs}")
        if self.chain_id is not None and self.chain_id < 0:
            raise ValueError(f"chain_id must be >= 0, got {self.chain_id}")
        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Invalid log_level: {self.log_level}")

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ

        def get(name, default=None):
            value = env.get(ENV_PREFIX + name)
            return default if value in (None, "") else value

        chain_id = get("CHAIN_ID")
        return cls(
            sequencer=get("SEQUENCER", ""),
            owner=get("OWNER", ""),
            db_path=get("DB_PATH"),
            initial_state_root=get("INITIAL_STATE_ROOT", ZERO_ROOT),
            allow_unverified=get("ALLOW_UNVERIFIED", "false").lower() in _TRUE,
            block_vk_path=get("BLOCK_VK_PATH"),
            withdrawal_vk_path=get("WITHDRAWAL_VK_PATH"),
            chain_id=None if chain_id is None else int(chain_id),
            num_public_inputs=int(get("NUM_PUBLIC_INPUTS", BLOCK_PUBLIC_INPUTS)),
            log_level=get("LOG_LEVEL", "INFO"),
        )
