import pytest

from csak.core.address import (
    Address,
    address_to_bytes,
    base_address,
    bech32_decode,
    bech32_encode,
    change_address,
    credential_id,
    decode_address,
    encode_address,
    enterprise_address,
    parse_address_bytes,
    payment_address,
    reward_address,
    stake_address,
)
from csak.core.crypto_utils import key_hash
from csak.core.exceptions import InvalidAddress, InvalidKeyLength, InvalidNetwork, UnsupportedAddressFormat
from csak.core.network import Network
from csak.security.hd_wallet import HDWallet, Role
from csak.security.mnemonic import Mnemonic

# Published CIP-19 test keys and the addresses they produce
ADDR_VK = "addr_vk1w0l2sr2zgfm26ztc6nl9xy8ghsk5sh6ldwemlpmp9xylzy4dtf7st80zhd"
STAKE_VK = "stake_vk1px4j0r2fk7ux5p23shz8f3y5y2qam7s954rgf3lg5merqcj6aetsft99wu"
MAINNET_BASE = (
    "addr1qx2fxv2umyhttkxyxp8x0dlpdt3k6cwng5pxj3jhsydzer3n0d3vllmyqwsx5wktcd8cc3sq835lu7drv2xwl2wywfgse35a3x"
)
MAINNET_ENTERPRISE = "addr1vx2fxv2umyhttkxyxp8x0dlpdt3k6cwng5pxj3jhsydzers66hrl8"
MAINNET_REWARD = "stake1uyehkck0lajq8gr28t9uxnuvgcqrc6070x3k9r8048z8y5gh6ffgw"
TESTNET_BASE = (
    "addr_test1qz2fxv2umyhttkxyxp8x0dlpdt3k6cwng5pxj3jhsydzer3n0d3vllmyqwsx5wktcd8cc3sq835lu7drv2xwl2wywfgs68faae"
)
TESTNET_ENTERPRISE = "addr_test1vz2fxv2umyhttkxyxp8x0dlpdt3k6cwng5pxj3jhsydzerspjrlsz"
TESTNET_REWARD = "stake_test1uqehkck0lajq8gr28t9uxnuvgcqrc6070x3k9r8048z8y5gssrtvn"

# Published 12-word wallet (entropy df9ed25ed146bf43336a5d7cf7395994), account 0
REFERENCE_WORDS = "test walk nut penalty hip pave soap entry language right filter choice"
REFERENCE_BASE = (
    "addr1qx2fxv2umyhttkxyxp8x0dlpdt3k6cwng5pxj3jhsydzer3jcu5d8ps7zex2k2xt3uqxgjqnnj83ws8lhrn648jjxtwqfjkjv7"
)
REFERENCE_BASE_TESTNET = (
    "addr_test1qz2fxv2umyhttkxyxp8x0dlpdt3k6cwng5pxj3jhsydzer3jcu5d8ps7zex2k2xt3uqxgjqnnj83ws8lhrn648jjxtwq2ytjqp"
)
REFERENCE_STAKE = "stake1uyevw2xnsc0pvn9t9r9c7qryfqfeerchgrlm3ea2nefr9hqxdekzz"
REFERENCE_STAKE_TESTNET = "stake_test1uqevw2xnsc0pvn9t9r9c7qryfqfeerchgrlm3ea2nefr9hqp8n5xl"


@pytest.fixture(scope="module")
def cip19_keys():
    _, payment = bech32_decode(ADDR_VK)
    _, stake = bech32_decode(STAKE_VK)
    return payment, stake


def test_cip19_mainnet_vectors(cip19_keys):
    payment, stake = cip19_keys
    assert str(base_address(payment, stake, Network.MAINNET)) == MAINNET_BASE
    assert str(enterprise_address(payment, Network.MAINNET)) == MAINNET_ENTERPRISE
    assert str(reward_address(stake, Network.MAINNET)) == MAINNET_REWARD


def test_cip19_testnet_vectors(cip19_keys):
    payment, stake = cip19_keys
    assert str(base_address(payment, stake, "testnet")) == TESTNET_BASE
    assert str(enterprise_address(payment, "preprod")) == TESTNET_ENTERPRISE
    assert str(reward_address(stake, "preview")) == TESTNET_REWARD


def test_decode_base_address(cip19_keys):
    payment, stake = cip19_keys
    address = decode_address(MAINNET_BASE)
    assert address.header == 0x01
    assert address.address_type == 0
    assert address.network_id == 1
    assert address.payment_hash == key_hash(payment)
    assert address.stake_hash == key_hash(stake)
    assert len(address.to_bytes()) == 57


def test_decode_reward_and_enterprise_headers():
    assert decode_address(MAINNET_REWARD).header == 0xE1
    assert decode_address(TESTNET_REWARD).header == 0xE0
    assert decode_address(MAINNET_ENTERPRISE).header == 0x61
    assert decode_address(TESTNET_ENTERPRISE).stake_hash is None


def test_encode_address_uses_header_prefix():
    raw = decode_address(TESTNET_BASE).to_bytes()
    assert encode_address(raw) == TESTNET_BASE


@pytest.fixture(scope="module")
def reference_account():
    # 12 words sits outside the CLI word-count policy, so skip validate()
    with HDWallet(Mnemonic(words=tuple(REFERENCE_WORDS.split()))) as wallet:
        yield wallet.derive_account(0)


def test_reference_mnemonic_mainnet_addresses(reference_account):
    assert str(payment_address(reference_account, Network.MAINNET)) == REFERENCE_BASE
    assert str(stake_address(reference_account, Network.MAINNET)) == REFERENCE_STAKE
    assert str(enterprise_address(reference_account.payment_key.public_key, Network.MAINNET)) == MAINNET_ENTERPRISE


def test_reference_mnemonic_testnet_addresses(reference_account):
    assert str(payment_address(reference_account, Network.PREPROD)) == REFERENCE_BASE_TESTNET
    assert str(stake_address(reference_account, Network.PREPROD)) == REFERENCE_STAKE_TESTNET


def test_account_addresses(icarus_account):
    base = payment_address(icarus_account, Network.MAINNET)
    stake = stake_address(icarus_account, Network.MAINNET)
    change = change_address(icarus_account, Network.MAINNET)
    assert str(base).startswith("addr1q")
    assert str(stake).startswith("stake1u")
    assert base.payment_hash == key_hash(icarus_account.payment_key.public_key)
    assert base.stake_hash == stake.payment_hash == key_hash(icarus_account.stake_key.public_key)
    assert change.payment_hash == key_hash(icarus_account.change_key.public_key)
    assert change.stake_hash == base.stake_hash


@pytest.mark.parametrize("name", ["preprod", "preview", "testnet"])
def test_test_networks_use_test_prefixes(icarus_account, name):
    assert str(payment_address(icarus_account, name)).startswith("addr_test1")
    assert str(stake_address(icarus_account, name)).startswith("stake_test1")


def test_round_trip_through_bech32(icarus_account):
    address = payment_address(icarus_account, Network.PREVIEW)
    assert decode_address(address.to_bech32()) == address


def test_address_to_bytes_accepts_all_forms():
    address = decode_address(MAINNET_BASE)
    raw = address.to_bytes()
    assert address_to_bytes(MAINNET_BASE) == raw
    assert address_to_bytes(raw.hex()) == raw
    assert address_to_bytes(raw) == raw
    assert address_to_bytes(address) == raw


def test_byron_header_is_unsupported():
    with pytest.raises(UnsupportedAddressFormat):
        parse_address_bytes(bytes([0x82]) + bytes(40))


def test_pointer_header_is_unsupported():
    with pytest.raises(UnsupportedAddressFormat):
        parse_address_bytes(bytes([0x41]) + bytes(31))


def test_wrong_length_is_invalid():
    with pytest.raises(InvalidAddress):
        parse_address_bytes(bytes([0x01]) + bytes(28))


def test_checksum_mismatch_is_invalid():
    last = MAINNET_ENTERPRISE[-1]
    tampered = MAINNET_ENTERPRISE[:-1] + ("q" if last != "q" else "p")
    with pytest.raises(InvalidAddress):
        decode_address(tampered)


def test_mixed_case_is_invalid():
    with pytest.raises(InvalidAddress):
        decode_address(MAINNET_ENTERPRISE[:10].upper() + MAINNET_ENTERPRISE[10:])


def test_prefix_must_match_header():
    raw = decode_address(MAINNET_BASE).to_bytes()
    with pytest.raises(InvalidAddress):
        decode_address(bech32_encode("stake", raw))


def test_key_hash_requires_32_byte_key():
    with pytest.raises(InvalidKeyLength):
        enterprise_address(bytes(31), Network.MAINNET)


def test_governance_credential_ids(icarus_account):
    drep = credential_id(Role.DREP, icarus_account.role_key(Role.DREP).public_key)
    cc_cold = credential_id(Role.CC_COLD, icarus_account.role_key(Role.CC_COLD).public_key)
    cc_hot = credential_id(Role.CC_HOT, icarus_account.role_key(Role.CC_HOT).public_key)
    assert drep.startswith("drep1")
    assert cc_cold.startswith("cc_cold1")
    assert cc_hot.startswith("cc_hot1")
    hrp, payload = bech32_decode(drep)
    assert hrp == "drep"
    assert payload == key_hash(icarus_account.role_key(Role.DREP).public_key)


def test_credential_id_rejects_non_governance_role(icarus_account):
    with pytest.raises(ValueError):
        credential_id(Role.EXTERNAL, icarus_account.payment_key.public_key)


def test_address_dataclass_hrp():
    assert Address(header=0xE0, payment_hash=bytes(28)).hrp == "stake_test"
    assert Address(header=0x61, payment_hash=bytes(28)).hrp == "addr"


class TestNetwork:
    """Network name resolution and metadata."""

    @pytest.mark.parametrize("name", ["mainnet", "MAINNET", " Mainnet "])
    def test_from_name_is_case_insensitive(self, name):
        assert Network.from_name(name) is Network.MAINNET

    def test_unknown_name_rejected(self):
        with pytest.raises(InvalidNetwork):
            Network.from_name("devnet")

    def test_network_ids_and_magic(self):
        assert Network.MAINNET.network_id == 1
        assert Network.MAINNET.protocol_magic == 764824073
        assert Network.PREPROD.network_id == 0
        assert Network.PREPROD.protocol_magic == 1
        assert Network.PREVIEW.protocol_magic == 2

    def test_names(self):
        assert Network.names() == ["mainnet", "preprod", "preview", "testnet"]

    @pytest.mark.parametrize("name", ["testnet", "TestNet", "preprod"])
    def test_testnet_is_an_alias_for_preprod(self, name):
        network = Network.from_name(name)
        assert network is Network.PREPROD
        assert network.label == "preprod"
        assert network.protocol_magic == 1

    def test_from_network_id(self):
        assert Network.from_network_id(1) is Network.MAINNET
        assert Network.from_network_id(0) is Network.PREPROD
        with pytest.raises(InvalidNetwork):
            Network.from_network_id(5)


def test_hrp_follows_network_prefixes(cip19_keys):
    payment, stake = cip19_keys
    for network in Network:
        assert base_address(payment, stake, network).hrp == network.address_prefix
        assert reward_address(stake, network).hrp == network.stake_prefix
