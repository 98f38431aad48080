"""
csak - Cardano Swiss Army Knife

Command-line toolbox for Cardano key material and message signing.

Main Components:
- Security: BIP-39 mnemonics, Icarus seeds and CIP-1852 HD key derivation
- Core: Shelley addresses (CIP-19), networks, Ed25519 and Blake2b primitives
- Wallet: CIP-30 / CIP-8 COSE_Sign1 message signing and verification
- CLI: click + rich command-line interface

For detailed documentation, see: README.md and DESIGN.md
"""

__version__ = "0.1.0"
__author__ = "csak contributors"

__all__ = []
