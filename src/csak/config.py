"""
csak configuration

Protocol constants for CIP-1852 key derivation, Icarus master key generation,
CIP-19 address headers and CIP-8/CIP-30 message signing.

The derivation and signing core never reads the environment; only the CLI
consults the CSAK_* variables below.
"""

from __future__ import annotations

import os

# CIP-1852 derivation path: m / purpose' / coin_type' / account' / role / index
HARDENED_OFFSET = 0x80000000
PURPOSE = 1852  # CIP-1852 (Shelley)
COIN_TYPE = 1815  # Ada (Lovelace's birth year)
MAX_ACCOUNT_INDEX = HARDENED_OFFSET - 1

# Icarus master key generation (CIP-3)
ICARUS_PBKDF2_ITERATIONS = 4096
ICARUS_SEED_SIZE = 96

# Mnemonic policy
VALID_MNEMONIC_LENGTHS = (15, 24)
DEFAULT_MNEMONIC_LENGTH = 24
MNEMONIC_LANGUAGE = "english"

# Key and signature sizes (bytes)
PUBLIC_KEY_SIZE = 32
SIGNING_KEY_SIZE = 32
EXTENDED_SIGNING_KEY_SIZE = 64
CHAIN_CODE_SIZE = 32
SIGNATURE_SIZE = 64
KEY_HASH_SIZE = 28

# CIP-19 address header types (upper nibble of the header byte)
ADDRESS_TYPE_BASE = 0b0000
ADDRESS_TYPE_POINTER = 0b0100
ADDRESS_TYPE_ENTERPRISE = 0b0110
ADDRESS_TYPE_BYRON = 0b1000
ADDRESS_TYPE_REWARD = 0b1110

# COSE (RFC 8152) labels used by CIP-8 / CIP-30
COSE_HEADER_ALG = 1
COSE_HEADER_KID = 4
COSE_ALG_EDDSA = -8
COSE_KEY_KTY = 1
COSE_KEY_ALG = 3
COSE_KEY_CRV = -1
COSE_KEY_X = -2
COSE_KTY_OKP = 1
COSE_CRV_ED25519 = 6
COSE_SIGN1_TAG = 18
CIP8_ADDRESS_HEADER = "address"
CIP8_HASHED_HEADER = "hashed"

# CLI defaults
DEFAULT_NETWORK = "mainnet"
DEFAULT_LOG_LEVEL = os.getenv("CSAK_LOG_LEVEL", "WARNING").upper()
LOG_JSON = os.getenv("CSAK_LOG_JSON", "").lower() in ("1", "true", "yes")
