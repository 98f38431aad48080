"""
Exception hierarchy for csak.

Every core contract validates its inputs at the boundary and raises one of
these typed errors. The CLI layer converts them into a diagnostic message and
a non-zero exit code. A signature that parses but does not verify is *not* an
error: it is reported as ``VerificationResult.valid == False``.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class CsakError(Exception):
    """Base exception for all csak errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error (never key material)
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ==================== Mnemonic Errors ====================


class MnemonicError(CsakError):
    """Raised when a mnemonic phrase is rejected."""
    pass


class InvalidWordCount(MnemonicError):
    """Raised when a mnemonic does not have exactly 15 or 24 words."""

    def __init__(self, word_count: int, allowed: tuple[int, ...]) -> None:
        allowed_text = " or ".join(str(n) for n in allowed)
        super().__init__(
            f"Mnemonic must contain exactly {allowed_text} words (received {word_count} words)",
            details={"word_count": word_count, "allowed": list(allowed)},
        )
        self.word_count = word_count


class UnknownMnemonicWord(MnemonicError):
    """Raised when a word is not part of the BIP-39 dictionary."""

    def __init__(self, word: str, position: int) -> None:
        super().__init__(
            f"Unknown mnemonic word '{word}' at position {position}",
            details={"word": word, "position": position},
        )
        self.word = word
        self.position = position


class InvalidMnemonicChecksum(MnemonicError):
    """Raised when every word is known but the BIP-39 checksum does not hold."""
    pass


# ==================== Network Errors ====================


class InvalidNetwork(CsakError):
    """Raised when a network name or tag is not recognized."""

    def __init__(self, name: Any) -> None:
        super().__init__(
            f"Invalid network '{name}'. Use 'mainnet', 'preprod', 'testnet' or 'preview'",
            details={"network": str(name)},
        )


# ==================== Key Errors ====================


class KeyMaterialError(CsakError):
    """Raised when key bytes cannot be used."""
    pass


class InvalidKeyLength(KeyMaterialError):
    """Raised when a key or signature does not have the required size."""

    def __init__(self, kind: str, actual: int, expected: tuple[int, ...]) -> None:
        expected_text = " or ".join(str(n) for n in expected)
        super().__init__(
            f"{kind} must be {expected_text} bytes (received {actual} bytes)",
            details={"kind": kind, "actual": actual, "expected": list(expected)},
        )
        self.kind = kind
        self.actual = actual


class DerivationError(KeyMaterialError):
    """Raised when a child key cannot be derived."""
    pass


class HardenedDerivationError(DerivationError):
    """Raised when hardened derivation is attempted from a public-only key."""
    pass


# ==================== Address Errors ====================


class AddressError(CsakError):
    """Raised when an address cannot be built or parsed."""
    pass


class InvalidAddress(AddressError):
    """Raised when an address string or byte sequence is malformed."""
    pass


class UnsupportedAddressFormat(AddressError):
    """Raised when an address uses a header type this tool does not handle."""
    pass


# ==================== Signature Envelope Errors ====================


class EnvelopeError(CsakError):
    """Raised when a CIP-30 signature envelope cannot be produced or read."""
    pass


class MalformedEnvelope(EnvelopeError):
    """Raised when an envelope is structurally unparsable."""
    pass


class SigningError(EnvelopeError):
    """Raised when a payload cannot be signed with the supplied keys."""
    pass
