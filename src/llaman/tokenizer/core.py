"""Nondeterministic tokenizer.

The same text usually has many valid tokenizations under a vocabulary.
This tokenizer walks the text left to right and, at every position, picks
one of the tokens that match there according to a selection strategy. It
does no backtracking and no lookahead, so the result is greedy by strategy
rather than globally optimal.

Example:
    >>> tokenizer = NondeterministicTokenizer({"tokens": ["a", "b", "ab"]})
    >>> tokenizer.tokenize("ab", strategy="longest")
    [2]
    >>> tokenizer.tokenize("ab", strategy="shortest")
    [0, 1]
    >>> tokenizer.detokenize([0, 1])
    'ab'
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

import numpy as np
from pydantic import BaseModel, Field, computed_field

from llaman.tokenizer.special import Segment, build_special_index, split_special
from llaman.tokenizer.trie import TokenMatch, TokenTrie
from llaman.tokenizer.vocab import TokenizerVocabulary, load_vocabulary

logger = logging.getLogger(__name__)

DEFAULT_IDEAL_LENGTH = 4


class Strategy(str, Enum):
    """How to pick among the tokens matching at a position."""

    RANDOM = "random"  # uniform over all candidates
    SHORTEST = "shortest"  # uniform over the shortest candidates
    LONGEST = "longest"  # uniform over the longest candidates
    IDEAL_LENGTH = "ideal-length"  # weighted towards ideal_length


class TokenizationError(ValueError):
    """Raised in strict mode when no token covers a character."""

    def __init__(self, position: int, char: str) -> None:
        super().__init__(f"No valid token at position {position} for character {char!r}")
        self.position = position
        self.char = char


class RandomSource(Protocol):
    """Random number source driving token selection.

    ``numpy.random.Generator`` satisfies this protocol.
    """

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        ...

    def integers(self, high: int) -> int:
        """Uniform integer in [0, high)."""
        ...


def default_rng(seed: int | None = None) -> RandomSource:
    """Fresh generator; seeded generators repeat their draws exactly."""
    return np.random.default_rng(seed)


@dataclass
class TokenizeOptions:
    """Options for a tokenization call.

    Attributes:
        strategy: Candidate selection strategy (a ``Strategy`` or its value).
        ideal_length: Target token length for the ideal-length strategy.
        seed: Seed for a call-local generator. Same seed and input give the
            same tokens.
        add_bos: Prepend the vocabulary's BOS token.
        add_eos: Append the vocabulary's EOS token.
        preserve_special_tokens: Keep special token text as single IDs.
            When off, special text is split into plain tokens.
        strict: Raise ``TokenizationError`` instead of skipping characters
            no token covers.
    """

    strategy: Strategy | str = Strategy.RANDOM
    ideal_length: float = DEFAULT_IDEAL_LENGTH
    seed: int | None = None
    add_bos: bool = False
    add_eos: bool = False
    preserve_special_tokens: bool = True
    strict: bool = False

    def __post_init__(self) -> None:
        try:
            self.strategy = Strategy(self.strategy)
        except ValueError:
            known = ", ".join(s.value for s in Strategy)
            raise ValueError(f"Unknown strategy: '{self.strategy}'. Available: {known}") from None
        if self.ideal_length < 0:
            raise ValueError(f"ideal_length must be >= 0, got {self.ideal_length}")
        if self.seed is not None and self.seed < 0:
            raise ValueError(f"seed must be >= 0, got {self.seed}")


class TokenizationResult(BaseModel):
    """Token IDs plus a record of any characters that had to be skipped.

    Attributes:
        text: The input text.
        token_ids: Selected token IDs in order.
        skipped_positions: Offsets of characters no token covered.
    """

    text: str = Field(description="Input text")
    token_ids: list[int] = Field(default_factory=list, description="Token IDs")
    skipped_positions: list[int] = Field(
        default_factory=list, description="Offsets of uncovered characters"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_lossless(self) -> bool:
        """Whether detokenizing reproduces the input text."""
        return not self.skipped_positions

    @computed_field  # type: ignore[prop-decorator]
    @property
    def token_count(self) -> int:
        return len(self.token_ids)


def weighted_index(weights: np.ndarray, rng: RandomSource) -> int:
    """Draw an index with probability proportional to ``weights``.

    Walks the normalized cumulative weights in order and returns the first
    index whose cumulative weight exceeds one uniform draw.
    """
    cumulative = np.cumsum(weights / weights.sum())
    index = int(np.searchsorted(cumulative, rng.random(), side="right"))
    # Float rounding can leave the last cumulative value just under 1.0
    return min(index, len(weights) - 1)


def select_candidate(
    candidates: Sequence[TokenMatch],
    strategy: Strategy,
    rng: RandomSource,
    ideal_length: float = DEFAULT_IDEAL_LENGTH,
) -> TokenMatch:
    """Pick one candidate according to ``strategy``.

    Args:
        candidates: Non-empty list of tokens matching at a position.
        strategy: Selection strategy.
        rng: Random source for the draw.
        ideal_length: Target length for ``Strategy.IDEAL_LENGTH``.

    Returns:
        The selected candidate.
    """
    strategy = Strategy(strategy)
    if strategy is Strategy.SHORTEST:
        shortest = min(c.length for c in candidates)
        pool = [c for c in candidates if c.length == shortest]
        return pool[int(rng.integers(len(pool)))]

    if strategy is Strategy.LONGEST:
        longest = max(c.length for c in candidates)
        pool = [c for c in candidates if c.length == longest]
        return pool[int(rng.integers(len(pool)))]

    if strategy is Strategy.IDEAL_LENGTH:
        lengths = np.array([c.length for c in candidates], dtype=np.float64)
        weights = 1.0 / (1.0 + np.abs(lengths - ideal_length))
        return candidates[weighted_index(weights, rng)]

    return candidates[int(rng.integers(len(candidates)))]


class NondeterministicTokenizer:
    """Tokenizer producing one of many valid tokenizations per call.

    The vocabulary, its trie and the special-token index are built once
    and only read afterwards, so one instance can serve concurrent calls.
    Each call gets its own random generator.

    Args:
        vocabulary: A ``TokenizerVocabulary`` or a mapping with the same
            fields (validated on construction).
        rng_factory: Creates the generator for unseeded calls. Defaults to
            an unseeded numpy generator.

    Example:
        >>> tokenizer = NondeterministicTokenizer.from_file("vocab.json")
        >>> ids = tokenizer.tokenize("Hello, world!", strategy="random", seed=42)
        >>> tokenizer.detokenize(ids)
        'Hello, world!'
    """

    def __init__(
        self,
        vocabulary: TokenizerVocabulary | Mapping[str, Any],
        rng_factory: Callable[[], RandomSource] | None = None,
    ) -> None:
        if not isinstance(vocabulary, TokenizerVocabulary):
            vocabulary = TokenizerVocabulary.model_validate(vocabulary)
        self._vocabulary = vocabulary
        self._rng_factory = rng_factory or default_rng
        self._trie = TokenTrie.from_tokens(vocabulary.tokens)
        self._special = build_special_index(vocabulary)
        self._special_ids = set(vocabulary.special_token_ids)
        for token_id in (vocabulary.bos_token_id, vocabulary.eos_token_id):
            if token_id is not None:
                self._special_ids.add(token_id)

        self._token_index: dict[str, int] = {}
        for token_id, text in enumerate(vocabulary.tokens):
            self._token_index.setdefault(text, token_id)

        logger.debug(
            "Built tokenizer: %d tokens, %d special, max token length %d",
            vocabulary.vocab_size,
            len(self._special),
            self._trie.max_depth,
        )

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        rng_factory: Callable[[], RandomSource] | None = None,
    ) -> NondeterministicTokenizer:
        """Load a tokenizer from a vocabulary JSON file.

        Raises:
            pydantic.ValidationError: If the file is not a valid vocabulary.
        """
        vocabulary = load_vocabulary(path)
        logger.info("Loaded vocabulary with %d tokens from %s", vocabulary.vocab_size, path)
        return cls(vocabulary, rng_factory=rng_factory)

    @property
    def vocabulary(self) -> TokenizerVocabulary:
        return self._vocabulary

    @property
    def trie(self) -> TokenTrie:
        return self._trie

    @property
    def vocab_size(self) -> int:
        return self._vocabulary.vocab_size

    @property
    def bos_token_id(self) -> int | None:
        return self._vocabulary.bos_token_id

    @property
    def eos_token_id(self) -> int | None:
        return self._vocabulary.eos_token_id

    @property
    def special_tokens(self) -> dict[str, int]:
        """Special token text to ID, in matching priority order."""
        return dict(self._special)

    def __len__(self) -> int:
        return self.vocab_size

    def __repr__(self) -> str:
        return f"NondeterministicTokenizer(vocab_size={self.vocab_size}, special={len(self._special)})"

    def find_valid_tokens(self, text: str, start: int = 0) -> list[TokenMatch]:
        """All vocabulary tokens matching ``text`` at ``start``, shortest first.

        Returns an empty list when no token covers the character at
        ``start`` or ``start`` is outside the text.
        """
        if not 0 <= start < len(text):
            return []
        return self._trie.find(text, start)

    def make_rng(self, seed: int | None = None) -> RandomSource:
        """Generator for one call: seeded if ``seed`` is given."""
        if seed is not None:
            return default_rng(seed)
        return self._rng_factory()

    def _options(
        self, options: TokenizeOptions | Strategy | str | None, overrides: dict[str, Any]
    ) -> TokenizeOptions:
        if options is None:
            return TokenizeOptions(**overrides)
        if isinstance(options, (Strategy, str)):
            return TokenizeOptions(strategy=options, **overrides)
        if overrides:
            return replace(options, **overrides)
        return options

    def tokenize_detailed(
        self,
        text: str,
        options: TokenizeOptions | Strategy | str | None = None,
        *,
        rng: RandomSource | None = None,
        **overrides: Any,
    ) -> TokenizationResult:
        """Tokenize ``text`` and report any uncovered characters.

        Args:
            text: Input text.
            options: A ``TokenizeOptions``, or just a strategy.
            rng: Explicit random source. Takes precedence over the seed.
            **overrides: ``TokenizeOptions`` fields overriding ``options``.

        Returns:
            TokenizationResult with the IDs and skipped positions.

        Raises:
            TokenizationError: In strict mode, when a character has no token.
            ValueError: If BOS/EOS is requested but the vocabulary lacks it.
        """
        opts = self._options(options, overrides)
        source = rng if rng is not None else self.make_rng(opts.seed)

        if opts.preserve_special_tokens and self._special:
            segments = split_special(text, self._special)
        else:
            segments = [Segment(text, 0)] if text else []

        token_ids: list[int] = []
        skipped: list[int] = []
        for segment in segments:
            if segment.token_id is not None:
                token_ids.append(segment.token_id)
            else:
                self._tokenize_span(segment, opts, source, token_ids, skipped)

        if opts.add_bos:
            if self.bos_token_id is None:
                raise ValueError("add_bos requested but the vocabulary has no bos_token_id")
            token_ids.insert(0, self.bos_token_id)
        if opts.add_eos:
            if self.eos_token_id is None:
                raise ValueError("add_eos requested but the vocabulary has no eos_token_id")
            token_ids.append(self.eos_token_id)

        if skipped:
            logger.warning(
                "Tokenization dropped %d uncovered character(s); output will not round-trip",
                len(skipped),
            )
        return TokenizationResult(text=text, token_ids=token_ids, skipped_positions=skipped)

    def _tokenize_span(
        self,
        segment: Segment,
        opts: TokenizeOptions,
        rng: RandomSource,
        token_ids: list[int],
        skipped: list[int],
    ) -> None:
        text = segment.text
        pos = 0
        while pos < len(text):
            candidates = self._trie.find(text, pos)
            if not opts.preserve_special_tokens and self._special_ids:
                plain = [c for c in candidates if c.token_id not in self._special_ids]
                # A special ID is only used where no plain token covers the position
                candidates = plain or candidates
            if not candidates:
                offset = segment.start + pos
                if opts.strict:
                    raise TokenizationError(offset, text[pos])
                logger.warning("No valid token at position %d for character %r", offset, text[pos])
                skipped.append(offset)
                pos += 1
                continue

            chosen = select_candidate(candidates, opts.strategy, rng, opts.ideal_length)  # type: ignore[arg-type]
            token_ids.append(chosen.token_id)
            pos += chosen.length

    def tokenize(
        self,
        text: str,
        options: TokenizeOptions | Strategy | str | None = None,
        *,
        rng: RandomSource | None = None,
        **overrides: Any,
    ) -> list[int]:
        """Tokenize ``text`` into token IDs. See ``tokenize_detailed``."""
        return self.tokenize_detailed(text, options, rng=rng, **overrides).token_ids

    def detokenize(self, token_ids: Sequence[int]) -> str:
        """Concatenate token texts. Unknown IDs contribute nothing."""
        return "".join(self.get_token(token_id) or "" for token_id in token_ids)

    def get_token(self, token_id: int) -> str | None:
        """Token text for ``token_id``, or None when out of range."""
        if 0 <= token_id < self.vocab_size:
            return self._vocabulary.tokens[token_id]
        return None

    def get_token_id(self, text: str) -> int | None:
        """First token ID whose text is ``text``, or None."""
        return self._token_index.get(text)
