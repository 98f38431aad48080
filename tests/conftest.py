"""
Test configuration and fixtures
"""
import sys
from pathlib import Path

# Add project root and src to Python path
project_root = Path(__file__).parent.parent
src_path = project_root / "src"

sys.path.insert(0, str(project_root))
sys.path.insert(0, str(src_path))

import pytest

# 24-word BIP-39 phrase for all-zero entropy
ABANDON_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon abandon abandon art"
)

# 15-word phrase with published Icarus master keys (CIP-3)
ICARUS_MNEMONIC = "eight country switch draw meat scout mystery blade tip drift useless good keep usage title"


@pytest.fixture(scope="session")
def abandon_mnemonic() -> str:
    return ABANDON_MNEMONIC


@pytest.fixture(scope="session")
def icarus_mnemonic() -> str:
    return ICARUS_MNEMONIC


@pytest.fixture(scope="session")
def icarus_seed():
    from csak.security import mnemonic

    return bytes(mnemonic.to_seed(mnemonic.validate(ICARUS_MNEMONIC)))


@pytest.fixture(scope="session")
def icarus_account(icarus_seed):
    from csak.security.hd_wallet import derive_account

    return derive_account(icarus_seed, 0)
