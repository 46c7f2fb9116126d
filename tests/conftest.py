"""Pytest configuration and fixtures for llaman tests."""

import string

import pytest

from llaman.tokenizer import NondeterministicTokenizer, TokenizerVocabulary


class ScriptedRandom:
    """Random source replaying fixed draws, for testing without numpy RNG."""

    def __init__(self, randoms: list[float] | None = None, index: int = 0) -> None:
        self._randoms = list(randoms or [0.0])
        self._index = index
        self.calls = 0

    def random(self) -> float:
        value = self._randoms[self.calls % len(self._randoms)]
        self.calls += 1
        return value

    def integers(self, high: int) -> int:
        self.calls += 1
        return min(self._index, high - 1)


@pytest.fixture
def ab_vocab() -> TokenizerVocabulary:
    """Provide the smallest ambiguous vocabulary: 'ab' or 'a' + 'b'."""
    return TokenizerVocabulary(tokens=["a", "b", "ab"])


@pytest.fixture
def ab_tokenizer(ab_vocab) -> NondeterministicTokenizer:
    return NondeterministicTokenizer(ab_vocab)


@pytest.fixture
def text_vocab() -> TokenizerVocabulary:
    """Provide a vocabulary covering printable ASCII plus some words."""
    words = [
        "he", "ll", "llo", "hello", "wo", "wor", "world", " world",
        "th", "the", " the", "qu", "quick", " quick", "br", "brown",
        " brown", "fox", " fox", "ab", "abc", "abcd", "abcdefgh",
    ]
    singles = list(dict.fromkeys(string.printable.replace("\x0b", "").replace("\x0c", "")))
    return TokenizerVocabulary(tokens=singles + words, model_type="test")


@pytest.fixture
def text_tokenizer(text_vocab) -> NondeterministicTokenizer:
    return NondeterministicTokenizer(text_vocab)


@pytest.fixture
def special_vocab() -> TokenizerVocabulary:
    """Provide a vocabulary with BOS/EOS and a chat delimiter."""
    tokens = ["<s>", "</s>", "<|im_start|>", "<", "s", ">", "/", "|", "i", "m", "_"]
    tokens += ["t", "a", "r", "h", "e", "l", "o", "he", "llo", " "]
    return TokenizerVocabulary(
        tokens=tokens,
        bos_token_id=0,
        eos_token_id=1,
        special_token_ids=[2],
    )


@pytest.fixture
def special_tokenizer(special_vocab) -> NondeterministicTokenizer:
    return NondeterministicTokenizer(special_vocab)


@pytest.fixture
def vocab_file(tmp_path, text_vocab):
    """Write the text vocabulary to a JSON file and return its path."""
    path = tmp_path / "vocab.json"
    text_vocab.save_json(path)
    return path


@pytest.fixture
def scripted_random():
    """Provide a factory for scripted random sources."""
    return ScriptedRandom
