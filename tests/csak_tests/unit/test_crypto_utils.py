"""
Tests for Ed25519 and Blake2b helpers.

Tests cover:
- Blake2b digests at the sizes Cardano uses
- Standard (RFC 8032) and extended-key signing
- Signature verification failure modes
- Key length validation and buffer wiping
"""

from __future__ import annotations

import hashlib

import pytest

from csak.core.crypto_utils import (
    blake2b_160,
    blake2b_224,
    blake2b_256,
    is_valid_public_key,
    key_hash,
    public_key_from_seed,
    public_key_from_signing_key,
    require_length,
    sign_extended,
    sign_message,
    verify_signature,
    wipe,
)
from csak.core.exceptions import InvalidKeyLength

# RFC 8032 section 7.1, test 1
RFC8032_SECRET = bytes.fromhex("9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60")
RFC8032_PUBLIC = bytes.fromhex("d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a")
RFC8032_SIGNATURE = bytes.fromhex(
    "e5564300c360ac729086e2cc806e828a84877f1eb8e5d974d873e065224901555"
    "fb8821590a33bacc61e39701cf9b46bd25bf5f0595bbe24655141438e7a100b"
)


def _expand_seed(seed: bytes) -> bytes:
    digest = bytearray(hashlib.sha512(seed).digest())
    digest[0] &= 248
    digest[31] &= 127
    digest[31] |= 64
    return bytes(digest)


class TestBlake2b:
    """Blake2b digests."""

    def test_digest_sizes(self):
        assert len(blake2b_160(b"data")) == 20
        assert len(blake2b_224(b"data")) == 28
        assert len(blake2b_256(b"data")) == 32

    def test_known_empty_digest(self):
        assert blake2b_256(b"").hex() == "0e5751c026e543b2e8ab2eb06099daa1d1e5df47778f7787faab45cdf12fe3a8"

    def test_key_hash_is_blake2b_224(self):
        assert key_hash(RFC8032_PUBLIC) == hashlib.blake2b(RFC8032_PUBLIC, digest_size=28).digest()


class TestSigning:
    """Standard and extended Ed25519 signing."""

    def test_rfc8032_vector(self):
        assert public_key_from_seed(RFC8032_SECRET) == RFC8032_PUBLIC
        assert sign_message(RFC8032_SECRET, b"") == RFC8032_SIGNATURE
        assert verify_signature(RFC8032_PUBLIC, b"", RFC8032_SIGNATURE)

    def test_extended_key_matches_standard_signing(self):
        """An expanded seed signs exactly like the seed itself."""
        extended = _expand_seed(RFC8032_SECRET)
        assert public_key_from_signing_key(extended) == RFC8032_PUBLIC
        assert sign_extended(extended, b"") == RFC8032_SIGNATURE
        message = b"cardano"
        assert sign_message(extended, message) == sign_message(RFC8032_SECRET, message)

    def test_hd_key_signature_verifies(self, icarus_account):
        key = icarus_account.payment_key
        signature = sign_message(key.private_key, b"hello")
        assert len(signature) == 64
        assert verify_signature(key.public_key, b"hello", signature)

    def test_public_key_from_hd_private_key(self, icarus_account):
        key = icarus_account.stake_key
        assert public_key_from_signing_key(key.private_key) == key.public_key

    def test_rejects_wrong_key_length(self):
        with pytest.raises(InvalidKeyLength):
            sign_message(bytes(48), b"message")
        with pytest.raises(InvalidKeyLength):
            public_key_from_signing_key(bytes(31))


class TestVerification:
    """Verification never raises for bad signatures."""

    def test_flipped_bit_fails(self):
        tampered = bytearray(RFC8032_SIGNATURE)
        tampered[10] ^= 0x01
        assert not verify_signature(RFC8032_PUBLIC, b"", bytes(tampered))

    def test_wrong_message_fails(self):
        assert not verify_signature(RFC8032_PUBLIC, b"other", RFC8032_SIGNATURE)

    def test_wrong_lengths_fail(self):
        assert not verify_signature(RFC8032_PUBLIC[:31], b"", RFC8032_SIGNATURE)
        assert not verify_signature(RFC8032_PUBLIC, b"", RFC8032_SIGNATURE[:63])

    def test_point_validation(self):
        assert is_valid_public_key(RFC8032_PUBLIC)
        assert not is_valid_public_key(bytes(31))


def test_require_length_reports_sizes():
    with pytest.raises(InvalidKeyLength) as excinfo:
        require_length("Public key", bytes(10), 32)
    assert excinfo.value.actual == 10
    assert "32 bytes" in str(excinfo.value)


def test_wipe_zeroes_buffer():
    buffer = bytearray(b"secret")
    wipe(buffer)
    assert buffer == bytearray(6)
    wipe(None)
