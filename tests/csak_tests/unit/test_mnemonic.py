import pytest

from csak.core.exceptions import InvalidMnemonicChecksum, InvalidWordCount, UnknownMnemonicWord
from csak.security import mnemonic
from csak.security.hd_wallet import root_key

CIP3_MASTER_KEY = (
    "c065afd2832cd8b087c4d9ab7011f481ee1e0721e78ea5dd609f3ab3f156d245"
    "d176bd8fd4ec60b4731c3918a2a72a0226c0cd119ec35b47e4d55884667f552a"
    "23f7fdcd4a10c6cd2c7393ac61d877873e248f417634aa3d812af327ffe9d620"
)
CIP3_MASTER_KEY_FOO = (
    "70531039904019351e1afb361cd1b312a4d0565d4ff9f8062d38acf4b15cce41"
    "d7b5738d9c893feea55512a3004acb0d222c35d3e3d5cde943a15a9824cbac59"
    "443cf67e589614076ba01e354b1a432e0e6db3b59e37fc56b5fb0222970a010e"
)


def _master_key_hex(phrase: str, passphrase: str = "") -> str:
    seed = mnemonic.to_seed(mnemonic.validate(phrase), passphrase)
    with root_key(seed) as key:
        return (key.private_key + key.chain_code).hex()


def test_accepts_24_and_15_word_phrases(abandon_mnemonic, icarus_mnemonic):
    assert mnemonic.validate(abandon_mnemonic).word_count == 24
    assert mnemonic.validate(icarus_mnemonic).word_count == 15


def test_accepts_word_sequences_and_normalizes_case(abandon_mnemonic):
    words = [word.upper() for word in abandon_mnemonic.split()]
    parsed = mnemonic.validate(words)
    assert parsed.phrase == abandon_mnemonic


@pytest.mark.parametrize("count", [12, 14, 16, 23, 25])
def test_rejects_wrong_word_count(abandon_mnemonic, count):
    words = (abandon_mnemonic.split() * 2)[:count]
    with pytest.raises(InvalidWordCount) as excinfo:
        mnemonic.validate(words)
    assert excinfo.value.word_count == count


def test_word_count_checked_before_dictionary(monkeypatch):
    def _fail():
        raise AssertionError("dictionary must not be consulted")

    monkeypatch.setattr(mnemonic, "_get_dictionary", _fail)
    with pytest.raises(InvalidWordCount):
        mnemonic.validate(["notaword"] * 14)


def test_unknown_word_reports_position(abandon_mnemonic):
    words = abandon_mnemonic.split()
    words[2] = "cardanox"
    with pytest.raises(UnknownMnemonicWord) as excinfo:
        mnemonic.validate(words)
    assert excinfo.value.word == "cardanox"
    assert excinfo.value.position == 3


def test_checksum_mismatch_rejected():
    with pytest.raises(InvalidMnemonicChecksum):
        mnemonic.validate(["abandon"] * 24)


def test_seed_is_96_bytes_and_deterministic(icarus_mnemonic):
    phrase = mnemonic.validate(icarus_mnemonic)
    first = mnemonic.to_seed(phrase)
    second = mnemonic.to_seed(mnemonic.validate(icarus_mnemonic))
    assert isinstance(first, bytearray)
    assert len(first) == 96
    assert first == second


def test_passphrase_changes_seed(icarus_mnemonic):
    phrase = mnemonic.validate(icarus_mnemonic)
    assert mnemonic.to_seed(phrase, "") != mnemonic.to_seed(phrase, "foo")
    assert mnemonic.to_seed(phrase, "foo") != mnemonic.to_seed(phrase, " foo ")


def test_entropy_of_abandon_phrase_is_zero(abandon_mnemonic):
    assert mnemonic.validate(abandon_mnemonic).entropy() == bytes(32)


def test_icarus_master_key_vector(icarus_mnemonic):
    assert _master_key_hex(icarus_mnemonic) == CIP3_MASTER_KEY


def test_icarus_master_key_vector_with_passphrase(icarus_mnemonic):
    assert _master_key_hex(icarus_mnemonic, "foo") == CIP3_MASTER_KEY_FOO


@pytest.mark.parametrize("count", [15, 24])
def test_generate_produces_valid_phrase(count):
    generated = mnemonic.generate(count)
    assert generated.word_count == count
    assert mnemonic.validate(generated.phrase) == generated


def test_generate_rejects_unsupported_length():
    with pytest.raises(InvalidWordCount):
        mnemonic.generate(12)


def test_repr_hides_words(abandon_mnemonic):
    assert "abandon" not in repr(mnemonic.validate(abandon_mnemonic))
