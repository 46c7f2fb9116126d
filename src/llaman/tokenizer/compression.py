"""Text compression on top of the nondeterministic tokenizer.

Compression here means choosing a tokenization with few tokens: the
``longest`` strategy gives the fewest, ``shortest`` the most, and the
factor and gradient variants sit anywhere in between.

Example:
    >>> result = compress(tokenizer, "hello world")
    >>> print(result)
    11 chars -> 3 tokens (3.67 chars/token)
    >>> decompress(tokenizer, result.tokens)
    'hello world'
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import numpy as np
from pydantic import BaseModel, Field, computed_field, model_validator

from llaman.tokenizer.core import (
    DEFAULT_IDEAL_LENGTH,
    NondeterministicTokenizer,
    RandomSource,
    Strategy,
    TokenizeOptions,
    weighted_index,
)

logger = logging.getLogger(__name__)

# Only this many leading vocabulary entries are scanned for token lengths
VOCAB_SAMPLE_SIZE = 10_000

# Segments above this many chars per token count as highly compressible
COMPRESSIBLE_RATIO = 5.0


class CompressionResult(BaseModel):
    """A tokenization together with its compression figures.

    Attributes:
        text: Original text.
        tokens: Token IDs (the compressed representation).
        token_strings: Text of each token.
        token_count: Number of tokens, computed.
        char_count: Number of characters in ``text``, computed.
        compression_ratio: Characters per token, computed.
        avg_token_length: Mean token length in characters, computed.
    """

    text: str = Field(description="Original text")
    tokens: list[int] = Field(default_factory=list, description="Token IDs")
    token_strings: list[str] = Field(default_factory=list, description="Token texts")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def token_count(self) -> int:
        return len(self.tokens)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def char_count(self) -> int:
        return len(self.text)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def compression_ratio(self) -> float:
        """Characters per token; 0.0 when there are no tokens."""
        if not self.tokens:
            return 0.0
        return self.char_count / self.token_count

    @computed_field  # type: ignore[prop-decorator]
    @property
    def avg_token_length(self) -> float:
        if not self.token_strings:
            return 0.0
        return sum(len(t) for t in self.token_strings) / len(self.token_strings)

    def __str__(self) -> str:
        return (
            f"{self.char_count} chars -> {self.token_count} tokens "
            f"({self.compression_ratio:.2f} chars/token)"
        )

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(indent=indent)

    def save_json(self, path: str | Path, indent: int | None = 2) -> None:
        Path(path).write_text(self.to_json(indent=indent), encoding="utf-8")


class CompressionComparison(BaseModel):
    """Most and least compressed tokenizations of the same text."""

    text: str = Field(description="Original text")
    most_compressed: CompressionResult = Field(description="Longest-token tokenization")
    least_compressed: CompressionResult = Field(description="Shortest-token tokenization")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def improvement_factor(self) -> float:
        """How many times fewer tokens the most compressed form uses."""
        if not self.most_compressed.token_count:
            return 1.0
        return self.least_compressed.token_count / self.most_compressed.token_count


class CompressionStats(BaseModel):
    """Best and worst case compression of a text.

    Attributes:
        total_chars: Characters in the text.
        min_tokens: Token count with the longest strategy.
        max_tokens: Token count with the shortest strategy.
        best_ratio: Characters per token at ``min_tokens``.
        worst_ratio: Characters per token at ``max_tokens``.
        token_length_distribution: Token length -> count, for the longest
            tokenization.
    """

    total_chars: int
    min_tokens: int
    max_tokens: int
    best_ratio: float
    worst_ratio: float
    token_length_distribution: dict[int, int] = Field(default_factory=dict)


class CompressibleSegment(BaseModel):
    """A window of text that compresses unusually well."""

    start: int
    end: int
    text: str
    compression_ratio: float


class SelectiveSegment(BaseModel):
    """A span of text with its own tokenization strategy.

    Attributes:
        start: Start offset (inclusive).
        end: End offset (exclusive).
        strategy: Strategy for this span.
        ideal_length: Target length when ``strategy`` is ideal-length.
    """

    start: int = Field(ge=0)
    end: int = Field(ge=0)
    strategy: Strategy
    ideal_length: float = Field(default=DEFAULT_IDEAL_LENGTH, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> SelectiveSegment:
        if self.end < self.start:
            raise ValueError(f"segment end {self.end} before start {self.start}")
        return self


def _result(tokenizer: NondeterministicTokenizer, text: str, tokens: list[int]) -> CompressionResult:
    return CompressionResult(
        text=text,
        tokens=tokens,
        token_strings=[tokenizer.get_token(t) or "" for t in tokens],
    )


def compress(
    tokenizer: NondeterministicTokenizer,
    text: str,
    *,
    seed: int | None = None,
    rng: RandomSource | None = None,
    preserve_special_tokens: bool = True,
) -> CompressionResult:
    """Tokenize with the longest strategy, minimising the token count."""
    options = TokenizeOptions(
        strategy=Strategy.LONGEST, seed=seed, preserve_special_tokens=preserve_special_tokens
    )
    return _result(tokenizer, text, tokenizer.tokenize(text, options, rng=rng))


def decompress(tokenizer: NondeterministicTokenizer, tokens: Sequence[int]) -> str:
    """Turn token IDs back into text (same as ``detokenize``)."""
    return tokenizer.detokenize(tokens)


def vocabulary_length_range(
    tokenizer: NondeterministicTokenizer, sample_size: int = VOCAB_SAMPLE_SIZE
) -> tuple[int, int]:
    """Shortest and longest non-empty token among the first ``sample_size`` tokens."""
    sample = tokenizer.vocabulary.tokens[:sample_size]
    lengths = np.fromiter((len(t) for t in sample if t), dtype=np.int64)
    if lengths.size == 0:
        return 1, 1
    return int(lengths.min()), int(lengths.max())


def compress_with_factor(
    tokenizer: NondeterministicTokenizer,
    text: str,
    factor: float,
    *,
    seed: int | None = None,
    rng: RandomSource | None = None,
    sample_size: int = VOCAB_SAMPLE_SIZE,
) -> CompressionResult:
    """Compress with a tunable strength.

    The ideal token length is interpolated between the shortest and longest
    token lengths of the vocabulary sample, then the ideal-length strategy
    is used.

    Args:
        tokenizer: Tokenizer to use.
        text: Text to compress.
        factor: 0.0 favours the shortest tokens, 1.0 the longest.
        seed: Seed for reproducible output.
        rng: Explicit random source.
        sample_size: Vocabulary entries to scan for lengths.

    Raises:
        ValueError: If ``factor`` is outside [0, 1].
    """
    if not 0.0 <= factor <= 1.0:
        raise ValueError(f"factor must be in [0, 1], got {factor}")

    min_length, max_length = vocabulary_length_range(tokenizer, sample_size)
    ideal_length = min_length + factor * (max_length - min_length)
    logger.debug(
        "Compression factor %.2f -> ideal length %.2f (range %d-%d)",
        factor,
        ideal_length,
        min_length,
        max_length,
    )

    options = TokenizeOptions(strategy=Strategy.IDEAL_LENGTH, ideal_length=ideal_length, seed=seed)
    return _result(tokenizer, text, tokenizer.tokenize(text, options, rng=rng))


def compress_with_gradient(
    tokenizer: NondeterministicTokenizer,
    text: str,
    gradient: float,
    *,
    seed: int | None = None,
    rng: RandomSource | None = None,
) -> CompressionResult:
    """Compress with an exponential bias on token length.

    Each candidate is weighted ``exp(gradient * length * 2)``, which bends
    the choice more sharply than the ideal-length weighting. Special tokens
    get no treatment here; the text is walked character by character.

    Args:
        tokenizer: Tokenizer to use.
        text: Text to compress.
        gradient: -1.0 strongly favours short tokens, +1.0 long ones,
            0.0 is uniform.
        seed: Seed for reproducible output.
        rng: Explicit random source.

    Raises:
        ValueError: If ``gradient`` is outside [-1, 1].
    """
    if not -1.0 <= gradient <= 1.0:
        raise ValueError(f"gradient must be in [-1, 1], got {gradient}")

    source = rng if rng is not None else tokenizer.make_rng(seed)
    tokens: list[int] = []
    pos = 0

    while pos < len(text):
        candidates = tokenizer.find_valid_tokens(text, pos)
        if not candidates:
            logger.warning("No valid token at position %d for character %r", pos, text[pos])
            pos += 1
            continue

        lengths = np.array([c.length for c in candidates], dtype=np.float64)
        exponents = gradient * lengths * 2.0
        # Shifting by the max keeps exp() finite for long tokens
        weights = np.exp(exponents - exponents.max())
        chosen = candidates[weighted_index(weights, source)]

        tokens.append(chosen.token_id)
        pos += chosen.length

    return _result(tokenizer, text, tokens)


def compare_compression(
    tokenizer: NondeterministicTokenizer,
    text: str,
    *,
    seed: int | None = None,
) -> CompressionComparison:
    """Compare the longest and shortest tokenizations of ``text``."""
    most = compress(tokenizer, text, seed=seed)
    least = _result(
        tokenizer, text, tokenizer.tokenize(text, strategy=Strategy.SHORTEST, seed=seed)
    )
    return CompressionComparison(text=text, most_compressed=most, least_compressed=least)


def find_compressible_segments(
    tokenizer: NondeterministicTokenizer,
    text: str,
    min_segment_length: int = 10,
    min_ratio: float = COMPRESSIBLE_RATIO,
) -> list[CompressibleSegment]:
    """Find windows of ``text`` that compress to very few tokens.

    Every window of at least ``min_segment_length`` characters is compressed
    and kept when its ratio exceeds ``min_ratio``. Quadratic in the text
    length; meant for short texts.

    Returns:
        Segments sorted by compression ratio, best first.
    """
    if min_segment_length < 1:
        raise ValueError(f"min_segment_length must be >= 1, got {min_segment_length}")

    segments: list[CompressibleSegment] = []
    for start in range(len(text) - min_segment_length):
        for end in range(start + min_segment_length, len(text) + 1):
            window = text[start:end]
            result = compress(tokenizer, window)
            if result.compression_ratio > min_ratio:
                segments.append(
                    CompressibleSegment(
                        start=start,
                        end=end,
                        text=window,
                        compression_ratio=result.compression_ratio,
                    )
                )

    segments.sort(key=lambda s: s.compression_ratio, reverse=True)
    return segments


def selective_compress(
    tokenizer: NondeterministicTokenizer,
    text: str,
    segments: Sequence[SelectiveSegment | Mapping[str, Any]],
    default_strategy: Strategy | str = Strategy.LONGEST,
    *,
    seed: int | None = None,
) -> CompressionResult:
    """Compress spans of ``text`` with different strategies.

    Each segment is tokenized on its own with its strategy; text between
    and after segments uses ``default_strategy``. Results are concatenated
    in text order.

    Raises:
        ValueError: If segments overlap or run past the end of ``text``.
    """
    ordered = sorted(
        (s if isinstance(s, SelectiveSegment) else SelectiveSegment.model_validate(s) for s in segments),
        key=lambda s: s.start,
    )
    default = TokenizeOptions(strategy=default_strategy)
    source = tokenizer.make_rng(seed)

    tokens: list[int] = []
    last = 0
    for segment in ordered:
        if segment.start < last:
            raise ValueError(f"segment [{segment.start}, {segment.end}) overlaps a previous segment")
        if segment.end > len(text):
            raise ValueError(f"segment [{segment.start}, {segment.end}) exceeds text length {len(text)}")

        if last < segment.start:
            tokens.extend(tokenizer.tokenize(text[last : segment.start], default, rng=source))

        options = TokenizeOptions(strategy=segment.strategy, ideal_length=segment.ideal_length)
        tokens.extend(tokenizer.tokenize(text[segment.start : segment.end], options, rng=source))
        last = segment.end

    if last < len(text):
        tokens.extend(tokenizer.tokenize(text[last:], default, rng=source))

    return _result(tokenizer, text, tokens)


def get_compression_stats(
    tokenizer: NondeterministicTokenizer,
    text: str,
    *,
    seed: int | None = None,
) -> CompressionStats:
    """Best and worst case token counts for ``text``."""
    longest = tokenizer.tokenize(text, strategy=Strategy.LONGEST, seed=seed)
    shortest = tokenizer.tokenize(text, strategy=Strategy.SHORTEST, seed=seed)

    distribution = Counter(
        len(token) for token in (tokenizer.get_token(t) for t in longest) if token
    )

    return CompressionStats(
        total_chars=len(text),
        min_tokens=len(longest),
        max_tokens=len(shortest),
        best_ratio=len(text) / len(longest) if longest else 0.0,
        worst_ratio=len(text) / len(shortest) if shortest else 0.0,
        token_length_distribution=dict(sorted(distribution.items())),
    )
