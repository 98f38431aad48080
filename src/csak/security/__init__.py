"""Mnemonic handling and hierarchical deterministic key derivation."""
