"""
Mnemonic / seed provider.

Turns a BIP-39 word phrase into the 96-byte Icarus root seed used by Cardano
wallets (CIP-3). Dictionary and checksum validation are delegated to the
``mnemonic`` reference implementation; this module owns the word-count policy
and the entropy-to-seed stretch.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple, Union

from bip_utils import Bip39MnemonicGenerator, Bip39WordsNum
from mnemonic import Mnemonic as Bip39Dictionary

from csak.config import (
    DEFAULT_MNEMONIC_LENGTH,
    ICARUS_PBKDF2_ITERATIONS,
    ICARUS_SEED_SIZE,
    MNEMONIC_LANGUAGE,
    VALID_MNEMONIC_LENGTHS,
)
from csak.core.exceptions import InvalidMnemonicChecksum, InvalidWordCount, UnknownMnemonicWord

logger = logging.getLogger(__name__)

_WORDS_NUM = {
    15: Bip39WordsNum.WORDS_NUM_15,
    24: Bip39WordsNum.WORDS_NUM_24,
}

_dictionary: Optional[Bip39Dictionary] = None


def _get_dictionary() -> Bip39Dictionary:
    global _dictionary
    if _dictionary is None:
        _dictionary = Bip39Dictionary(MNEMONIC_LANGUAGE)
    return _dictionary


@dataclass(frozen=True)
class Mnemonic:
    """A validated BIP-39 phrase. Build instances through :func:`validate`."""

    words: Tuple[str, ...] = field(repr=False)

    @property
    def phrase(self) -> str:
        return " ".join(self.words)

    @property
    def word_count(self) -> int:
        return len(self.words)

    def entropy(self) -> bytes:
        """Raw BIP-39 entropy encoded by the phrase (checksum bits stripped)."""
        return bytes(_get_dictionary().to_entropy(list(self.words)))


def _split_words(words: Union[str, Iterable[str]]) -> list[str]:
    if isinstance(words, str):
        candidates = words.split()
    else:
        candidates = []
        for item in words:
            candidates.extend(str(item).split())
    return [word.strip().lower() for word in candidates if word.strip()]


def validate(words: Union[str, Iterable[str]]) -> Mnemonic:
    """
    Validate a mnemonic phrase.

    The word count is checked before any dictionary lookup or hashing.

    Args:
        words: Whitespace separated phrase or a sequence of words

    Returns:
        Validated Mnemonic

    Raises:
        InvalidWordCount: If the phrase is not exactly 15 or 24 words long
        UnknownMnemonicWord: If a word is not in the BIP-39 dictionary
        InvalidMnemonicChecksum: If the phrase checksum does not match
    """
    word_list = _split_words(words)
    if len(word_list) not in VALID_MNEMONIC_LENGTHS:
        raise InvalidWordCount(len(word_list), VALID_MNEMONIC_LENGTHS)

    dictionary = _get_dictionary()
    known_words = set(dictionary.wordlist)
    for position, word in enumerate(word_list, start=1):
        if word not in known_words:
            raise UnknownMnemonicWord(word, position)

    if not dictionary.check(" ".join(word_list)):
        raise InvalidMnemonicChecksum("Invalid mnemonic phrase: checksum mismatch")

    return Mnemonic(words=tuple(word_list))


def generate(word_count: int = DEFAULT_MNEMONIC_LENGTH) -> Mnemonic:
    """
    Generate a fresh random mnemonic.

    Raises:
        InvalidWordCount: If ``word_count`` is not 15 or 24
    """
    if word_count not in _WORDS_NUM:
        raise InvalidWordCount(word_count, VALID_MNEMONIC_LENGTHS)
    phrase = Bip39MnemonicGenerator().FromWordsNumber(_WORDS_NUM[word_count])
    logger.debug("Generated mnemonic", extra={"event": "mnemonic.generated", "words": word_count})
    return validate(str(phrase))


def to_seed(mnemonic: Mnemonic, passphrase: Optional[str] = "") -> bytearray:
    """
    Stretch a mnemonic into the 96-byte Icarus seed.

    PBKDF2-HMAC-SHA512 with the passphrase as password, the BIP-39 entropy as
    salt, 4096 iterations and a 96-byte output (kL || kR || chain code before
    clamping). The result is a mutable buffer so callers can wipe it.
    """
    password = (passphrase or "").encode("utf-8")
    stretched = hashlib.pbkdf2_hmac(
        "sha512",
        password,
        mnemonic.entropy(),
        ICARUS_PBKDF2_ITERATIONS,
        ICARUS_SEED_SIZE,
    )
    return bytearray(stretched)
