"""ZKClear settlement layer: Groth16 verification and rollup admission."""

__version__ = "0.1.0"
