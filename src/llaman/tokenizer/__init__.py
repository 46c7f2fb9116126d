"""Nondeterministic tokenizer and compression utilities.

Quick Start:
    >>> from llaman.tokenizer import NondeterministicTokenizer, compress
    >>>
    >>> tokenizer = NondeterministicTokenizer.from_file("vocab.json")
    >>> ids = tokenizer.tokenize("Hello, world!", strategy="random", seed=42)
    >>> tokenizer.detokenize(ids)
    'Hello, world!'
    >>>
    >>> print(compress(tokenizer, "Hello, world!"))
"""

from llaman.tokenizer.compression import (
    CompressibleSegment,
    CompressionComparison,
    CompressionResult,
    CompressionStats,
    SelectiveSegment,
    compare_compression,
    compress,
    compress_with_factor,
    compress_with_gradient,
    decompress,
    find_compressible_segments,
    get_compression_stats,
    selective_compress,
    vocabulary_length_range,
)
from llaman.tokenizer.core import (
    NondeterministicTokenizer,
    RandomSource,
    Strategy,
    TokenizationError,
    TokenizationResult,
    TokenizeOptions,
    default_rng,
    select_candidate,
)
from llaman.tokenizer.formatters import (
    format_comparison,
    format_compression,
    format_inspection,
    format_stats,
    log_compression_report,
)
from llaman.tokenizer.inspector import TokenInfo, TokenInspection, TokenInspector
from llaman.tokenizer.special import Segment, build_special_index, split_special
from llaman.tokenizer.trie import TokenMatch, TokenTrie
from llaman.tokenizer.vocab import TokenizerVocabulary, load_vocabulary

__all__ = [
    # Tokenizer
    "NondeterministicTokenizer",
    "TokenizeOptions",
    "TokenizationResult",
    "TokenizationError",
    "Strategy",
    "RandomSource",
    "default_rng",
    "select_candidate",
    # Vocabulary and trie
    "TokenizerVocabulary",
    "load_vocabulary",
    "TokenTrie",
    "TokenMatch",
    "Segment",
    "build_special_index",
    "split_special",
    # Compression
    "CompressionResult",
    "CompressionComparison",
    "CompressionStats",
    "CompressibleSegment",
    "SelectiveSegment",
    "compress",
    "decompress",
    "compress_with_factor",
    "compress_with_gradient",
    "compare_compression",
    "find_compressible_segments",
    "selective_compress",
    "get_compression_stats",
    "vocabulary_length_range",
    # Inspector
    "TokenInspector",
    "TokenInspection",
    "TokenInfo",
    # Formatters
    "format_compression",
    "format_comparison",
    "format_stats",
    "format_inspection",
    "log_compression_report",
]
