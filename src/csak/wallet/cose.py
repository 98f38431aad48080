"""
Minimal COSE (RFC 8152) structures used by CIP-8 / CIP-30 message signing.

Only what a single-signer Ed25519 envelope needs: COSE_Sign1 encoding and
parsing, the Sig_structure that is actually signed, and OKP COSE_Key maps.
"""

from __future__ import annotations

import io
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import cbor2
from cbor2 import CBORDecodeError, CBORDecoder, CBORTag

from csak.config import (
    CIP8_ADDRESS_HEADER,
    COSE_ALG_EDDSA,
    COSE_CRV_ED25519,
    COSE_HEADER_ALG,
    COSE_KEY_ALG,
    COSE_KEY_CRV,
    COSE_KEY_KTY,
    COSE_KEY_X,
    COSE_KTY_OKP,
    COSE_SIGN1_TAG,
    PUBLIC_KEY_SIZE,
)
from csak.core.crypto_utils import require_length
from csak.core.exceptions import MalformedEnvelope

SIGNATURE1_CONTEXT = "Signature1"


def _loads(data: bytes, what: str) -> Any:
    """Decode exactly one CBOR data item; trailing bytes are an error."""
    fp = io.BytesIO(bytes(data))
    try:
        item = CBORDecoder(fp).decode()
    except (CBORDecodeError, ValueError, EOFError) as exc:
        raise MalformedEnvelope(f"{what} is not valid CBOR") from exc
    if fp.read(1):
        raise MalformedEnvelope(f"{what} has trailing bytes after the CBOR item")
    return item


def encode_protected_header(address: bytes) -> bytes:
    """CBOR bytes of ``{1: -8, "address": address}``."""
    return cbor2.dumps({COSE_HEADER_ALG: COSE_ALG_EDDSA, CIP8_ADDRESS_HEADER: bytes(address)})


def sig_structure(protected: bytes, payload: bytes, external_aad: bytes = b"") -> bytes:
    """The to-be-signed Sig_structure for a COSE_Sign1 message."""
    return cbor2.dumps([SIGNATURE1_CONTEXT, bytes(protected), bytes(external_aad), bytes(payload)])


def encode_cose_key(public_key: bytes) -> bytes:
    """OKP / Ed25519 COSE_Key map holding ``public_key``."""
    require_length("Public key", public_key, PUBLIC_KEY_SIZE)
    return cbor2.dumps(
        {
            COSE_KEY_KTY: COSE_KTY_OKP,
            COSE_KEY_ALG: COSE_ALG_EDDSA,
            COSE_KEY_CRV: COSE_CRV_ED25519,
            COSE_KEY_X: bytes(public_key),
        }
    )


def decode_cose_key(data: bytes) -> bytes:
    """
    Extract the public key from an OKP COSE_Key.

    Raises:
        MalformedEnvelope: If the map is unparsable or not an Ed25519 OKP key
        InvalidKeyLength: If the embedded key is not 32 bytes
    """
    cose_key = _loads(data, "COSE_Key")
    if not isinstance(cose_key, Mapping):
        raise MalformedEnvelope("COSE_Key must be a CBOR map")
    if cose_key.get(COSE_KEY_KTY) != COSE_KTY_OKP:
        raise MalformedEnvelope("COSE_Key is not an OKP key")
    crv = cose_key.get(COSE_KEY_CRV)
    if crv is not None and crv != COSE_CRV_ED25519:
        raise MalformedEnvelope("COSE_Key curve is not Ed25519")
    x = cose_key.get(COSE_KEY_X)
    if not isinstance(x, bytes):
        raise MalformedEnvelope("COSE_Key has no public key (-2)")
    return require_length("Public key", x, PUBLIC_KEY_SIZE)


@dataclass(frozen=True)
class CoseSign1:
    """``[protected, unprotected, payload, signature]``"""

    protected: bytes
    unprotected: Dict[Any, Any] = field(default_factory=dict)
    payload: Optional[bytes] = None
    signature: bytes = b""

    def protected_header(self) -> Dict[Any, Any]:
        if not self.protected:
            return {}
        header = _loads(self.protected, "Protected header")
        if not isinstance(header, Mapping):
            raise MalformedEnvelope("Protected header must be a CBOR map")
        return dict(header)

    def to_bytes(self, tagged: bool = False) -> bytes:
        message = [self.protected, dict(self.unprotected), self.payload, self.signature]
        if tagged:
            return cbor2.dumps(CBORTag(COSE_SIGN1_TAG, message))
        return cbor2.dumps(message)

    @classmethod
    def from_bytes(cls, data: bytes) -> "CoseSign1":
        """
        Parse a COSE_Sign1 message (tag 18 optional).

        Raises:
            MalformedEnvelope: If the structure is not a four element COSE_Sign1
        """
        message = _loads(data, "Signature envelope")
        if isinstance(message, CBORTag):
            if message.tag != COSE_SIGN1_TAG:
                raise MalformedEnvelope(f"Unexpected CBOR tag {message.tag}")
            message = message.value

        # cbor2 6 decodes tagged arrays as tuples and maps as frozendicts
        if not isinstance(message, (list, tuple)) or len(message) != 4:
            raise MalformedEnvelope("COSE_Sign1 must be an array of four elements")

        protected, unprotected, payload, signature = message
        if not isinstance(protected, bytes):
            raise MalformedEnvelope("Protected header must be a byte string")
        if not isinstance(unprotected, Mapping):
            raise MalformedEnvelope("Unprotected header must be a map")
        if payload is not None and not isinstance(payload, bytes):
            raise MalformedEnvelope("Payload must be a byte string")
        if not isinstance(signature, bytes):
            raise MalformedEnvelope("Signature must be a byte string")

        return cls(protected=protected, unprotected=dict(unprotected), payload=payload, signature=signature)
