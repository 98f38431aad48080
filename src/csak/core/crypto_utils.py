"""Utility helpers for Ed25519 keys, extended (BIP32-Ed25519) signing and Blake2b hashing."""

from __future__ import annotations

import hashlib

import nacl.bindings
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519
from nacl.exceptions import CryptoError

from csak.config import (
    EXTENDED_SIGNING_KEY_SIZE,
    KEY_HASH_SIZE,
    PUBLIC_KEY_SIZE,
    SIGNATURE_SIZE,
    SIGNING_KEY_SIZE,
)
from csak.core.exceptions import InvalidKeyLength, KeyMaterialError

_SCALAR_PADDING = bytes(32)


def blake2b_160(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=20).digest()


def blake2b_224(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=KEY_HASH_SIZE).digest()


def blake2b_256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


def require_length(kind: str, data: bytes, *expected: int) -> bytes:
    """Raise InvalidKeyLength unless ``data`` has one of the expected sizes."""
    if len(data) not in expected:
        raise InvalidKeyLength(kind, len(data), expected)
    return data


def key_hash(public_key: bytes) -> bytes:
    """Blake2b-224 credential hash of a 32-byte Ed25519 public key."""
    require_length("Public key", public_key, PUBLIC_KEY_SIZE)
    return blake2b_224(bytes(public_key))


def wipe(buffer: bytearray | None) -> None:
    """Overwrite a mutable secret buffer with zeros."""
    if buffer is None:
        return
    for i in range(len(buffer)):
        buffer[i] = 0


def _reduce_scalar(scalar: bytes) -> bytes:
    return nacl.bindings.crypto_core_ed25519_scalar_reduce(bytes(scalar) + _SCALAR_PADDING)


def scalar_mult_base(scalar: bytes) -> bytes:
    """
    Multiply the Ed25519 base point by a 32-byte little-endian scalar, without clamping.

    Raises:
        KeyMaterialError: If the scalar is zero modulo the group order
    """
    try:
        return nacl.bindings.crypto_scalarmult_ed25519_base_noclamp(_reduce_scalar(scalar))
    except CryptoError as exc:
        raise KeyMaterialError("Scalar does not produce a usable public key") from exc


def point_add(p: bytes, q: bytes) -> bytes:
    """Add two encoded Ed25519 points."""
    try:
        return nacl.bindings.crypto_core_ed25519_add(bytes(p), bytes(q))
    except CryptoError as exc:
        raise KeyMaterialError("Invalid Ed25519 point") from exc


def is_valid_public_key(public_key: bytes) -> bool:
    if len(public_key) != PUBLIC_KEY_SIZE:
        return False
    return nacl.bindings.crypto_core_ed25519_is_valid_point(bytes(public_key))


def public_key_from_seed(seed: bytes) -> bytes:
    """Public key of a standard 32-byte Ed25519 private key (RFC 8032 seed)."""
    require_length("Private key", seed, SIGNING_KEY_SIZE)
    private_key = ed25519.Ed25519PrivateKey.from_private_bytes(bytes(seed))
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def public_key_from_signing_key(signing_key: bytes) -> bytes:
    """
    Derive the public key for a signing key.

    32-byte keys are standard Ed25519 seeds; 64-byte keys are extended keys
    (kL || kR) whose public key is kL * B.
    """
    require_length("Private key", signing_key, SIGNING_KEY_SIZE, EXTENDED_SIGNING_KEY_SIZE)
    if len(signing_key) == EXTENDED_SIGNING_KEY_SIZE:
        return scalar_mult_base(signing_key[:32])
    return public_key_from_seed(signing_key)


def sign_extended(extended_key: bytes, message: bytes) -> bytes:
    """
    Ed25519 signature with an extended key: kL is used directly as the secret
    scalar and kR replaces the hashed-seed nonce prefix.
    """
    require_length("Extended private key", extended_key, EXTENDED_SIGNING_KEY_SIZE)
    kl = bytes(extended_key[:32])
    kr = bytes(extended_key[32:64])
    public_key = scalar_mult_base(kl)

    r = nacl.bindings.crypto_core_ed25519_scalar_reduce(hashlib.sha512(kr + message).digest())
    big_r = nacl.bindings.crypto_scalarmult_ed25519_base_noclamp(r)
    h = nacl.bindings.crypto_core_ed25519_scalar_reduce(
        hashlib.sha512(big_r + public_key + message).digest()
    )
    s = nacl.bindings.crypto_core_ed25519_scalar_add(
        r, nacl.bindings.crypto_core_ed25519_scalar_mul(h, _reduce_scalar(kl))
    )
    return big_r + s


def sign_message(signing_key: bytes, message: bytes) -> bytes:
    """Sign ``message`` with a 32-byte seed or a 64-byte extended key."""
    require_length("Private key", signing_key, SIGNING_KEY_SIZE, EXTENDED_SIGNING_KEY_SIZE)
    if len(signing_key) == EXTENDED_SIGNING_KEY_SIZE:
        return sign_extended(signing_key, message)
    private_key = ed25519.Ed25519PrivateKey.from_private_bytes(bytes(signing_key))
    return private_key.sign(message)


def verify_signature(public_key: bytes, message: bytes, signature: bytes) -> bool:
    """Return True only when ``signature`` is a valid Ed25519 signature of ``message``."""
    if len(public_key) != PUBLIC_KEY_SIZE or len(signature) != SIGNATURE_SIZE:
        return False
    try:
        ed25519.Ed25519PublicKey.from_public_bytes(bytes(public_key)).verify(
            bytes(signature), message
        )
        return True
    except (InvalidSignature, ValueError):
        return False
