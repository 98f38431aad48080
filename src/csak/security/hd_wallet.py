"""
HD Wallet - CIP-1852 hierarchical deterministic keys for Cardano

Implements:
- BIP32-Ed25519 child key derivation (Khovratovich-Law, V2 / Icarus scheme)
- CIP-1852 paths: m / 1852' / 1815' / account' / role / index
- Icarus root keys from the 96-byte seed produced by csak.security.mnemonic

Hardened derivation needs the private parent (kL || kR); non-hardened
derivation works from either the private key or the public key alone and both
routes give the same child public key and chain code.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterable, Optional, Tuple, Union

from csak.config import (
    CHAIN_CODE_SIZE,
    COIN_TYPE,
    EXTENDED_SIGNING_KEY_SIZE,
    HARDENED_OFFSET,
    ICARUS_SEED_SIZE,
    MAX_ACCOUNT_INDEX,
    PUBLIC_KEY_SIZE,
    PURPOSE,
)
from csak.core.crypto_utils import point_add, require_length, scalar_mult_base, wipe
from csak.core.exceptions import DerivationError, HardenedDerivationError
from csak.security import mnemonic as mnemonic_provider

logger = logging.getLogger(__name__)

_MOD_256 = 1 << 256


class Role(IntEnum):
    """CIP-1852 role (chain) values."""

    EXTERNAL = 0  # payment addresses
    INTERNAL = 1  # change addresses
    STAKING = 2
    DREP = 3  # CIP-105
    CC_COLD = 4
    CC_HOT = 5

    @property
    def description(self) -> str:
        return _ROLE_DESCRIPTIONS[self]


_ROLE_DESCRIPTIONS = {
    Role.EXTERNAL: "External Chain (payment)",
    Role.INTERNAL: "Internal Chain (change)",
    Role.STAKING: "Staking Key",
    Role.DREP: "DRep Key (governance)",
    Role.CC_COLD: "CC Cold Key (governance)",
    Role.CC_HOT: "CC Hot Key (governance)",
}


@dataclass(frozen=True)
class DerivationPath:
    """Sequence of child indexes; hardened indexes carry the 2^31 offset."""

    segments: Tuple[int, ...] = ()

    @classmethod
    def parse(cls, path: str) -> "DerivationPath":
        """
        Parse a path such as ``m/1852'/1815'/0'/0/0`` (``h``/``H`` also mark hardened).

        Raises:
            DerivationError: If the path is malformed
        """
        parts = path.strip().split("/")
        if not parts or parts[0] != "m":
            raise DerivationError("Path must start with 'm'", details={"path": path})

        segments = []
        for part in parts[1:]:
            if not part:
                continue
            hardened = part[-1] in ("'", "h", "H")
            digits = part[:-1] if hardened else part
            if not digits.isdigit():
                raise DerivationError(f"Invalid path segment '{part}'", details={"path": path})
            index = int(digits)
            if index >= HARDENED_OFFSET:
                raise DerivationError(f"Path segment out of range: '{part}'", details={"path": path})
            segments.append(index + HARDENED_OFFSET if hardened else index)
        return cls(tuple(segments))

    @classmethod
    def cip1852(cls, account: int, role: Optional[int] = None, index: Optional[int] = None) -> "DerivationPath":
        segments = [PURPOSE + HARDENED_OFFSET, COIN_TYPE + HARDENED_OFFSET, account + HARDENED_OFFSET]
        if role is not None:
            segments.append(int(role))
            if index is not None:
                segments.append(index)
        return cls(tuple(segments))

    def child(self, index: int) -> "DerivationPath":
        return DerivationPath(self.segments + (index,))

    @property
    def depth(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        rendered = ["m"]
        for segment in self.segments:
            if segment >= HARDENED_OFFSET:
                rendered.append(f"{segment - HARDENED_OFFSET}'")
            else:
                rendered.append(str(segment))
        return "/".join(rendered)


class ExtendedKey:
    """
    Extended Ed25519 key: private part kL || kR (optional), public key A and chain code.

    Private material is kept in a bytearray that :meth:`wipe` zeroes; use the
    key as a context manager to wipe on every exit path.
    """

    __slots__ = ("chain_code", "public_key", "path", "_private")

    def __init__(
        self,
        chain_code: bytes,
        public_key: bytes,
        private_key: Optional[bytearray] = None,
        path: DerivationPath = DerivationPath(),
    ):
        require_length("Chain code", chain_code, CHAIN_CODE_SIZE)
        require_length("Public key", public_key, PUBLIC_KEY_SIZE)
        if private_key is not None:
            require_length("Extended private key", private_key, EXTENDED_SIGNING_KEY_SIZE)
        self.chain_code = bytes(chain_code)
        self.public_key = bytes(public_key)
        self.path = path
        self._private = private_key

    @property
    def is_private(self) -> bool:
        return self._private is not None

    @property
    def private_key(self) -> bytes:
        """The 64-byte extended private key kL || kR."""
        if self._private is None:
            raise DerivationError("Public-only key has no private part")
        return bytes(self._private)

    @property
    def signing_scalar(self) -> bytes:
        """kL, the 32-byte Ed25519 scalar."""
        return self.private_key[:32]

    def public(self) -> "ExtendedKey":
        """Public-only copy of this key (same public key and chain code)."""
        return ExtendedKey(self.chain_code, self.public_key, None, self.path)

    def derive_child(self, segment: int, hardened: bool = False) -> "ExtendedKey":
        return derive_child(self, segment, hardened)

    def wipe(self) -> None:
        wipe(self._private)
        self._private = None

    def __enter__(self) -> "ExtendedKey":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __repr__(self) -> str:
        kind = "private" if self.is_private else "public"
        return f"ExtendedKey({kind}, path={self.path}, public_key={self.public_key.hex()})"


def root_key(seed: Union[bytes, bytearray]) -> ExtendedKey:
    """
    Build the Icarus root key from a 96-byte seed.

    kL is clamped (lowest 3 bits cleared, highest 3 bits set to 010); the last
    32 bytes of the seed are the chain code.
    """
    require_length("Seed", seed, ICARUS_SEED_SIZE)
    private = bytearray(seed[:64])
    private[0] &= 0b11111000
    private[31] &= 0b00011111
    private[31] |= 0b01000000
    public_key = scalar_mult_base(private[:32])
    return ExtendedKey(bytes(seed[64:96]), public_key, private, DerivationPath())


def _hmac512(key: bytes, data: bytes) -> bytes:
    return hmac.new(key, data, hashlib.sha512).digest()


def derive_child(key: ExtendedKey, segment: int, hardened: bool = False) -> ExtendedKey:
    """
    Derive one child of ``key``.

    Args:
        key: Parent extended key (private or public-only)
        segment: Child index; values >= 2^31 are already hardened
        hardened: Apply the hardened offset to ``segment``

    Raises:
        DerivationError: If the index is out of range
        HardenedDerivationError: If a hardened child is requested from a public-only key
    """
    if not 0 <= segment < (1 << 32):
        raise DerivationError(f"Child index out of range: {segment}")
    if hardened:
        if segment >= HARDENED_OFFSET:
            raise DerivationError(f"Hardened child index out of range: {segment}")
        segment += HARDENED_OFFSET
    is_hardened = segment >= HARDENED_OFFSET
    if is_hardened and not key.is_private:
        raise HardenedDerivationError(
            "Hardened derivation requires a private parent key",
            details={"path": str(key.path), "index": segment},
        )

    index_bytes = segment.to_bytes(4, "little")
    if is_hardened:
        data = bytes(key._private) + index_bytes
        z = _hmac512(key.chain_code, b"\x00" + data)
        chain_code = _hmac512(key.chain_code, b"\x01" + data)[32:]
    else:
        data = key.public_key + index_bytes
        z = _hmac512(key.chain_code, b"\x02" + data)
        chain_code = _hmac512(key.chain_code, b"\x03" + data)[32:]

    zl = int.from_bytes(z[:28], "little")
    zr = int.from_bytes(z[32:], "little")

    if key.is_private:
        kl = int.from_bytes(key._private[:32], "little")
        kr = int.from_bytes(key._private[32:], "little")
        child_private = bytearray(
            ((8 * zl + kl) % _MOD_256).to_bytes(32, "little")
            + ((zr + kr) % _MOD_256).to_bytes(32, "little")
        )
        child_public = scalar_mult_base(child_private[:32])
    else:
        child_private = None
        child_public = point_add(key.public_key, scalar_mult_base((8 * zl).to_bytes(32, "little")))

    return ExtendedKey(chain_code, child_public, child_private, key.path.child(segment))


def derive_path(key: ExtendedKey, path: Union[DerivationPath, str, Iterable[int]]) -> ExtendedKey:
    """Derive along every segment of ``path`` starting from ``key``."""
    if isinstance(path, str):
        path = DerivationPath.parse(path)
    segments = path.segments if isinstance(path, DerivationPath) else tuple(path)
    current = key
    try:
        for segment in segments:
            child = derive_child(current, segment)
            if current is not key:
                current.wipe()
            current = child
    except Exception:
        if current is not key:
            current.wipe()
        raise
    return current


@dataclass
class AccountKeys:
    """The six CIP-1852 role keys (index 0) under one account node."""

    account_index: int
    account_key: ExtendedKey = field(repr=False)
    roles: Dict[Role, ExtendedKey] = field(default_factory=dict, repr=False)

    def role_key(self, role: Role) -> ExtendedKey:
        return self.roles[Role(role)]

    def key(self, role: Role, index: int = 0) -> ExtendedKey:
        """Derive a fresh key at ``role/index`` (non-hardened) below the account node."""
        with derive_child(self.account_key, int(Role(role))) as chain:
            return derive_child(chain, index)

    def path(self, role: Role, index: int = 0) -> DerivationPath:
        return DerivationPath.cip1852(self.account_index, role, index)

    @property
    def payment_key(self) -> ExtendedKey:
        return self.roles[Role.EXTERNAL]

    @property
    def change_key(self) -> ExtendedKey:
        return self.roles[Role.INTERNAL]

    @property
    def stake_key(self) -> ExtendedKey:
        return self.roles[Role.STAKING]

    def public(self) -> "AccountKeys":
        """Public-only view of the account (no private material)."""
        return AccountKeys(
            account_index=self.account_index,
            account_key=self.account_key.public(),
            roles={role: key.public() for role, key in self.roles.items()},
        )

    def wipe(self) -> None:
        self.account_key.wipe()
        for key in self.roles.values():
            key.wipe()

    def __enter__(self) -> "AccountKeys":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()


def derive_account(seed: Union[bytes, bytearray], account_index: int) -> AccountKeys:
    """
    Derive the account node m/1852'/1815'/account' and its six role keys.

    Raises:
        DerivationError: If ``account_index`` is outside [0, 2^31)
    """
    if not isinstance(account_index, int) or not 0 <= account_index <= MAX_ACCOUNT_INDEX:
        raise DerivationError(f"Account index must be between 0 and {MAX_ACCOUNT_INDEX}")

    with root_key(seed) as root:
        with derive_child(root, PURPOSE, hardened=True) as purpose:
            with derive_child(purpose, COIN_TYPE, hardened=True) as coin:
                account = derive_child(coin, account_index, hardened=True)

    roles: Dict[Role, ExtendedKey] = {}
    try:
        for role in Role:
            with derive_child(account, int(role)) as chain:
                roles[role] = derive_child(chain, 0)
    except Exception:
        account.wipe()
        for key in roles.values():
            key.wipe()
        raise

    logger.debug(
        "Derived account keys",
        extra={"event": "hd.account_derived", "account": account_index},
    )
    return AccountKeys(account_index=account_index, account_key=account, roles=roles)


class HDWallet:
    """
    Hierarchical Deterministic Wallet (CIP-1852, Icarus master key).

    Holds the mnemonic and the stretched seed for the lifetime of one command;
    call :meth:`wipe` (or use the wallet as a context manager) when done.
    """

    def __init__(
        self,
        mnemonic: Union[str, mnemonic_provider.Mnemonic, None] = None,
        passphrase: str = "",
    ):
        """
        Initialize HD wallet from mnemonic or generate a new 24-word one.

        Raises:
            MnemonicError: If the mnemonic is invalid
        """
        if mnemonic is None:
            self.mnemonic = mnemonic_provider.generate()
        elif isinstance(mnemonic, mnemonic_provider.Mnemonic):
            self.mnemonic = mnemonic
        else:
            self.mnemonic = mnemonic_provider.validate(mnemonic)

        self.seed: Optional[bytearray] = mnemonic_provider.to_seed(self.mnemonic, passphrase)

    def derive_account(self, account_index: int = 0) -> AccountKeys:
        if self.seed is None:
            raise DerivationError("Wallet seed has been wiped")
        return derive_account(self.seed, account_index)

    def root_key(self) -> ExtendedKey:
        if self.seed is None:
            raise DerivationError("Wallet seed has been wiped")
        return root_key(self.seed)

    def wipe(self) -> None:
        wipe(self.seed)
        self.seed = None

    def __enter__(self) -> "HDWallet":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()
