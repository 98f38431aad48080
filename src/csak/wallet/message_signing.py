"""
CIP-30 ``signData`` message signing and verification.

Builds and reads CIP-8 COSE_Sign1 envelopes that bind an Ed25519 public key
and a Shelley address to a payload. In hashed mode (used by hardware wallets)
the envelope carries the Blake2b-224 digest of the payload instead of the
payload itself.

Both operations are single-shot and stateless. A signature that parses but
does not verify is reported as ``VerificationResult.valid == False``; only
structural problems raise.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from hmac import compare_digest
from typing import Optional, Union

from csak.config import (
    CIP8_ADDRESS_HEADER,
    CIP8_HASHED_HEADER,
    COSE_ALG_EDDSA,
    COSE_HEADER_ALG,
    COSE_HEADER_KID,
    EXTENDED_SIGNING_KEY_SIZE,
    PUBLIC_KEY_SIZE,
    SIGNATURE_SIZE,
    SIGNING_KEY_SIZE,
)
from csak.core.address import Address, address_to_bytes, parse_address_bytes
from csak.core.crypto_utils import (
    blake2b_224,
    key_hash,
    public_key_from_signing_key,
    require_length,
    sign_message,
    verify_signature,
)
from csak.core.exceptions import AddressError, InvalidKeyLength, MalformedEnvelope, SigningError
from csak.wallet.cose import CoseSign1, decode_cose_key, encode_cose_key, encode_protected_header, sig_structure

logger = logging.getLogger(__name__)

MESSAGE_FORMATS = ("text", "hex", "base64")

# Credential bit per header type: payment credential is a script for odd types
_SCRIPT_PAYMENT_TYPES = frozenset({1, 3, 7, 15})


@dataclass(frozen=True)
class SignatureEnvelope:
    """A signed COSE_Sign1 message plus the signer's public key."""

    message: CoseSign1
    public_key: bytes

    @property
    def signature(self) -> bytes:
        return self.message.signature

    @property
    def payload(self) -> bytes:
        return self.message.payload or b""

    @property
    def is_hashed(self) -> bool:
        return bool(self.message.unprotected.get(CIP8_HASHED_HEADER, False))

    @property
    def address(self) -> bytes:
        return self.message.protected_header()[CIP8_ADDRESS_HEADER]

    def to_cbor(self) -> bytes:
        return self.message.to_bytes()

    def to_hex(self) -> str:
        return self.to_cbor().hex()

    def cose_key(self) -> bytes:
        return encode_cose_key(self.public_key)

    def cose_key_hex(self) -> str:
        return self.cose_key().hex()


def sign(
    address: Union[bytes, str, Address],
    payload: bytes,
    signing_key: bytes,
    public_key: bytes,
    hashed: bool = False,
    embed_public_key: bool = False,
) -> SignatureEnvelope:
    """
    Sign ``payload`` on behalf of ``address``.

    Args:
        address: Raw, hex or bech32 Shelley address bound into the protected header
        payload: Message bytes
        signing_key: 32-byte Ed25519 seed or 64-byte extended key (kL || kR)
        public_key: Public key matching ``signing_key``
        hashed: Sign the Blake2b-224 digest of the payload instead of the payload
        embed_public_key: Also place the public key in the unprotected ``kid`` header

    Raises:
        InvalidKeyLength: If a key has the wrong size
        SigningError: If ``public_key`` does not belong to ``signing_key``
        AddressError: If the address cannot be parsed
    """
    require_length("Private key", signing_key, SIGNING_KEY_SIZE, EXTENDED_SIGNING_KEY_SIZE)
    require_length("Public key", public_key, PUBLIC_KEY_SIZE)
    if not compare_digest(public_key_from_signing_key(signing_key), bytes(public_key)):
        raise SigningError("Public key does not match the signing key")

    address_bytes = address_to_bytes(address)
    protected = encode_protected_header(address_bytes)
    signed_payload = blake2b_224(bytes(payload)) if hashed else bytes(payload)

    unprotected = {CIP8_HASHED_HEADER: bool(hashed)}
    if embed_public_key:
        unprotected[COSE_HEADER_KID] = bytes(public_key)

    signature = sign_message(signing_key, sig_structure(protected, signed_payload))
    logger.debug(
        "Signed message",
        extra={"event": "cip30.signed", "hashed": bool(hashed), "payload_size": len(payload)},
    )
    return SignatureEnvelope(
        message=CoseSign1(
            protected=protected,
            unprotected=unprotected,
            payload=signed_payload,
            signature=signature,
        ),
        public_key=bytes(public_key),
    )


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of :func:`verify`. ``message`` is the payload as carried (digest when hashed)."""

    valid: bool
    is_hashed: bool
    address: bytes
    message: bytes
    public_key: bytes
    signature: bytes
    protected_header: bytes
    key_matches_address: Optional[bool] = None

    @property
    def address_bech32(self) -> Optional[str]:
        try:
            return parse_address_bytes(self.address).to_bech32()
        except AddressError:
            return None

    def matches_payload(self, original: bytes) -> bool:
        """True when ``original`` is the payload this envelope carries (or its digest)."""
        expected = blake2b_224(bytes(original)) if self.is_hashed else bytes(original)
        return compare_digest(expected, self.message)

    def message_as(self, fmt: str = "text") -> str:
        """
        Render the carried message as ``text``, ``hex`` or ``base64``.

        A hashed envelope only carries a digest, so ``text`` falls back to hex.
        """
        fmt = fmt.lower()
        if fmt not in MESSAGE_FORMATS:
            raise ValueError(f"Invalid format '{fmt}'. Use 'text', 'hex' or 'base64'")
        if fmt == "hex" or (fmt == "text" and self.is_hashed):
            return self.message.hex()
        if fmt == "base64":
            return base64.b64encode(self.message).decode("ascii")
        return self.message.decode("utf-8", errors="replace")


def _key_from_override(public_key: bytes) -> bytes:
    public_key = bytes(public_key)
    if len(public_key) == PUBLIC_KEY_SIZE:
        return public_key
    # CBOR map major type: the override is a COSE_Key
    if public_key and public_key[0] & 0xE0 == 0xA0:
        return decode_cose_key(public_key)
    raise InvalidKeyLength("Public key", len(public_key), (PUBLIC_KEY_SIZE,))


def _key_from_headers(message: CoseSign1, protected: dict) -> bytes:
    kid = message.unprotected.get(COSE_HEADER_KID, protected.get(COSE_HEADER_KID))
    if kid is None:
        raise MalformedEnvelope("No public key supplied and none embedded in the envelope")
    if not isinstance(kid, bytes) or len(kid) != PUBLIC_KEY_SIZE:
        raise MalformedEnvelope("Embedded public key must be a 32-byte string")
    return kid


def _key_matches_address(public_key: bytes, address: bytes) -> Optional[bool]:
    try:
        parsed = parse_address_bytes(address)
    except AddressError:
        return None
    if parsed.address_type in _SCRIPT_PAYMENT_TYPES:
        return False
    return compare_digest(key_hash(public_key), parsed.payment_hash)


def verify(
    envelope: Union[bytes, str],
    public_key: Optional[bytes] = None,
) -> VerificationResult:
    """
    Verify a COSE_Sign1 envelope.

    Args:
        envelope: Envelope bytes or their hex encoding
        public_key: Raw 32-byte key or COSE_Key overriding any embedded ``kid``

    Raises:
        MalformedEnvelope: If the envelope cannot be parsed or lacks required fields
        InvalidKeyLength: If the override key has the wrong size
    """
    if isinstance(envelope, str):
        try:
            envelope = bytes.fromhex(envelope.strip())
        except ValueError as exc:
            raise MalformedEnvelope("Signature envelope is not valid hex") from exc

    message = CoseSign1.from_bytes(envelope)
    protected = message.protected_header()

    if protected.get(COSE_HEADER_ALG) is None:
        raise MalformedEnvelope("Protected header is missing the algorithm (1)")
    if protected.get(COSE_HEADER_ALG) != COSE_ALG_EDDSA:
        raise MalformedEnvelope(f"Unsupported algorithm {protected.get(COSE_HEADER_ALG)}")
    address = protected.get(CIP8_ADDRESS_HEADER)
    if not isinstance(address, bytes):
        raise MalformedEnvelope("Protected header is missing the address")
    if message.payload is None:
        raise MalformedEnvelope("Detached payloads are not supported")
    if len(message.signature) != SIGNATURE_SIZE:
        raise MalformedEnvelope(
            f"Signature must be {SIGNATURE_SIZE} bytes (received {len(message.signature)} bytes)"
        )

    hashed = message.unprotected.get(CIP8_HASHED_HEADER, False)
    if not isinstance(hashed, bool):
        raise MalformedEnvelope("Unprotected 'hashed' header must be a boolean")

    if public_key is not None:
        key = _key_from_override(public_key)
    else:
        key = _key_from_headers(message, protected)

    valid = verify_signature(key, sig_structure(message.protected, message.payload), message.signature)
    logger.debug("Verified message", extra={"event": "cip30.verified", "valid": valid, "hashed": hashed})

    return VerificationResult(
        valid=valid,
        is_hashed=hashed,
        address=address,
        message=message.payload,
        public_key=key,
        signature=message.signature,
        protected_header=message.protected,
        key_matches_address=_key_matches_address(key, address),
    )
