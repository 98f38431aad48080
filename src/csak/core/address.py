"""
Shelley address derivation (CIP-19) and governance credential ids (CIP-105).

Addresses are a header byte followed by one or two 28-byte Blake2b-224
credential hashes, rendered as bech32. Cardano addresses routinely exceed the
90-character limit of BIP-173, so decoding does its own length-unbounded
checksum verification on top of the ``bech32`` primitives.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

import bech32

from csak.config import (
    ADDRESS_TYPE_BASE,
    ADDRESS_TYPE_BYRON,
    ADDRESS_TYPE_ENTERPRISE,
    ADDRESS_TYPE_POINTER,
    ADDRESS_TYPE_REWARD,
    KEY_HASH_SIZE,
)
from csak.core.crypto_utils import key_hash
from csak.core.exceptions import InvalidAddress, UnsupportedAddressFormat
from csak.core.network import Network

logger = logging.getLogger(__name__)

# Header types this tool understands: base (0-3), enterprise (6-7), reward (14-15)
_BASE_TYPES = frozenset({0, 1, 2, 3})
_ENTERPRISE_TYPES = frozenset({6, 7})
_REWARD_TYPES = frozenset({14, 15})
_POINTER_TYPES = frozenset({ADDRESS_TYPE_POINTER, ADDRESS_TYPE_POINTER + 1})

_GOVERNANCE_PREFIXES = {
    3: "drep",
    4: "cc_cold",
    5: "cc_hot",
}


@dataclass(frozen=True)
class Address:
    """A parsed Shelley address."""

    header: int
    payment_hash: bytes
    stake_hash: Optional[bytes] = None

    @property
    def address_type(self) -> int:
        return self.header >> 4

    @property
    def network_id(self) -> int:
        return self.header & 0x0F

    @property
    def is_reward(self) -> bool:
        return self.address_type in _REWARD_TYPES

    @property
    def hrp(self) -> str:
        network = Network.MAINNET if self.network_id == 1 else Network.PREPROD
        return network.stake_prefix if self.is_reward else network.address_prefix

    def to_bytes(self) -> bytes:
        return bytes([self.header]) + self.payment_hash + (self.stake_hash or b"")

    def to_bech32(self) -> str:
        return bech32_encode(self.hrp, self.to_bytes())

    def __str__(self) -> str:
        return self.to_bech32()


def bech32_encode(hrp: str, payload: bytes) -> str:
    data = bech32.convertbits(payload, 8, 5)
    return bech32.bech32_encode(hrp, data)


def bech32_decode(text: str) -> tuple[str, bytes]:
    """
    Decode a bech32 string of any length.

    Raises:
        InvalidAddress: On mixed case, bad characters or a checksum mismatch
    """
    if not isinstance(text, str) or not text:
        raise InvalidAddress("Address is empty")
    if any(ord(char) < 33 or ord(char) > 126 for char in text):
        raise InvalidAddress("Address contains invalid characters")
    if text.lower() != text and text.upper() != text:
        raise InvalidAddress("Address mixes upper and lower case")

    text = text.lower()
    separator = text.rfind("1")
    if separator < 1 or separator + 7 > len(text):
        raise InvalidAddress("Address is missing a bech32 prefix or checksum")

    hrp = text[:separator]
    try:
        data = [bech32.CHARSET.index(char) for char in text[separator + 1:]]
    except ValueError as exc:
        raise InvalidAddress("Address contains characters outside the bech32 alphabet") from exc

    if not bech32.bech32_verify_checksum(hrp, data):
        raise InvalidAddress("Address checksum mismatch", details={"hrp": hrp})

    decoded = bech32.convertbits(data[:-6], 5, 8, False)
    if decoded is None:
        raise InvalidAddress("Address has invalid padding", details={"hrp": hrp})
    return hrp, bytes(decoded)


def parse_address_bytes(raw: bytes) -> Address:
    """
    Split raw address bytes into header and credentials.

    Raises:
        UnsupportedAddressFormat: For Byron, pointer and unknown header types
        InvalidAddress: If the length does not match the header type
    """
    if not raw:
        raise InvalidAddress("Address bytes are empty")

    header = raw[0]
    address_type = header >> 4
    if address_type == ADDRESS_TYPE_BYRON:
        raise UnsupportedAddressFormat("Byron addresses are not supported", details={"header": header})
    if address_type in _POINTER_TYPES:
        raise UnsupportedAddressFormat("Pointer addresses are not supported", details={"header": header})

    if address_type in _BASE_TYPES:
        expected = 1 + 2 * KEY_HASH_SIZE
    elif address_type in _ENTERPRISE_TYPES or address_type in _REWARD_TYPES:
        expected = 1 + KEY_HASH_SIZE
    else:
        raise UnsupportedAddressFormat(
            f"Unsupported address type {address_type}",
            details={"header": header},
        )

    if len(raw) != expected:
        raise InvalidAddress(
            f"Address of type {address_type} must be {expected} bytes (received {len(raw)} bytes)",
            details={"header": header},
        )

    payment = bytes(raw[1:1 + KEY_HASH_SIZE])
    stake = bytes(raw[1 + KEY_HASH_SIZE:]) or None
    return Address(header=header, payment_hash=payment, stake_hash=stake)


def decode_address(text: str) -> Address:
    """
    Parse a bech32 Shelley address and check its prefix against the header.

    Raises:
        InvalidAddress: Bad checksum, length or prefix
        UnsupportedAddressFormat: Header type not handled
    """
    hrp, raw = bech32_decode(text)
    address = parse_address_bytes(raw)
    if hrp != address.hrp:
        raise InvalidAddress(
            f"Address prefix '{hrp}' does not match its header (expected '{address.hrp}')",
            details={"hrp": hrp},
        )
    return address


def encode_address(raw: bytes) -> str:
    """Render raw address bytes as bech32 with the prefix implied by the header."""
    return parse_address_bytes(bytes(raw)).to_bech32()


def address_to_bytes(address: Union[str, bytes, Address]) -> bytes:
    """Raw address bytes from a bech32 string, hex string, raw bytes or Address."""
    if isinstance(address, Address):
        return address.to_bytes()
    if isinstance(address, (bytes, bytearray)):
        return parse_address_bytes(bytes(address)).to_bytes()
    try:
        raw = bytes.fromhex(address)
    except ValueError:
        return decode_address(address).to_bytes()
    return parse_address_bytes(raw).to_bytes()


def _network(network: Union[Network, str]) -> Network:
    if isinstance(network, Network):
        return network
    return Network.from_name(network)


def base_address(payment_key: bytes, stake_key: bytes, network: Union[Network, str]) -> Address:
    """Type 0 address: payment key hash + stake key hash."""
    network = _network(network)
    header = (ADDRESS_TYPE_BASE << 4) | network.network_id
    return Address(header=header, payment_hash=key_hash(payment_key), stake_hash=key_hash(stake_key))


def enterprise_address(public_key: bytes, network: Union[Network, str]) -> Address:
    """Type 6 address: payment key hash only."""
    network = _network(network)
    header = (ADDRESS_TYPE_ENTERPRISE << 4) | network.network_id
    return Address(header=header, payment_hash=key_hash(public_key))


def reward_address(stake_key: bytes, network: Union[Network, str]) -> Address:
    """Type 14 address: stake key hash."""
    network = _network(network)
    header = (ADDRESS_TYPE_REWARD << 4) | network.network_id
    return Address(header=header, payment_hash=key_hash(stake_key))


def payment_address(account_keys, network: Union[Network, str]) -> Address:
    """Base address of external key 0/0 delegated to staking key 2/0."""
    return base_address(account_keys.payment_key.public_key, account_keys.stake_key.public_key, network)


def change_address(account_keys, network: Union[Network, str]) -> Address:
    """Base address of internal key 1/0 delegated to staking key 2/0."""
    return base_address(account_keys.change_key.public_key, account_keys.stake_key.public_key, network)


def stake_address(account_keys, network: Union[Network, str]) -> Address:
    """Reward address of staking key 2/0."""
    return reward_address(account_keys.stake_key.public_key, network)


def credential_id(role: int, public_key: bytes) -> str:
    """
    CIP-105 bech32 identifier (``drep``, ``cc_cold``, ``cc_hot``) of a governance key.

    Raises:
        ValueError: If ``role`` is not a governance role
    """
    prefix = _GOVERNANCE_PREFIXES.get(int(role))
    if prefix is None:
        raise ValueError(f"Role {int(role)} has no governance credential id")
    return bech32_encode(prefix, key_hash(public_key))
