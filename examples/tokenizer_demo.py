"""Nondeterministic tokenization example.

This example shows how to:
1. Tokenize the same text several ways
2. Keep special tokens atomic
3. Trade token count against token length with compression

Run with:
    python examples/tokenizer_demo.py
"""

import logging
import string

from llaman.tokenizer import (
    NondeterministicTokenizer,
    TokenInspector,
    TokenizerVocabulary,
    compare_compression,
    compress,
    compress_with_factor,
    compress_with_gradient,
    format_comparison,
    format_inspection,
    format_stats,
    get_compression_stats,
    selective_compress,
)

TEXT = "the quick brown fox jumps over the lazy dog"


def build_vocabulary() -> TokenizerVocabulary:
    """A toy vocabulary: every printable character plus a few words."""
    words = ["th", "the", " the", "qu", "quick", " quick", "brown", " brown", "fox", " fox"]
    words += ["ju", "jump", "jumps", " jumps", "ov", "over", " over", "la", "lazy", " lazy"]
    words += [" dog", "do", "og"]
    tokens = ["<s>", "</s>"] + list(string.printable[:95]) + words
    return TokenizerVocabulary(tokens=tokens, bos_token_id=0, eos_token_id=1, model_type="toy")


def demo_strategies(tokenizer: NondeterministicTokenizer):
    print("=== Strategies ===\n")
    inspector = TokenInspector(tokenizer)
    for strategy in ("longest", "shortest", "ideal-length"):
        print(f"{strategy}:")
        print(format_inspection(inspector.inspect(TEXT, strategy=strategy, seed=0)))

    print("\nrandom, five seeds:")
    for inspection in inspector.sample(TEXT, n=5, seed=100):
        print(f"  {inspection.visualize()}")


def demo_special_tokens(tokenizer: NondeterministicTokenizer):
    print("\n=== Special Tokens ===\n")
    text = "<s>the fox</s>"
    print(f"preserved: {tokenizer.tokenize(text, strategy='shortest')}")
    print(f"split:     {tokenizer.tokenize(text, strategy='shortest', preserve_special_tokens=False)}")


def demo_compression(tokenizer: NondeterministicTokenizer):
    print("\n=== Compression ===\n")
    print(compress(tokenizer, TEXT))
    for factor in (0.0, 0.5, 1.0):
        print(f"factor {factor}:   {compress_with_factor(tokenizer, TEXT, factor, seed=7)}")
    for gradient in (-1.0, 0.0, 1.0):
        print(f"gradient {gradient:+}: {compress_with_gradient(tokenizer, TEXT, gradient, seed=7)}")

    segments = [{"start": 4, "end": 15, "strategy": "shortest"}]
    print(f"selective: {selective_compress(tokenizer, TEXT, segments, seed=7)}")

    print()
    print(format_comparison(compare_compression(tokenizer, TEXT)))
    print()
    print(format_stats(get_compression_stats(tokenizer, TEXT)))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    tokenizer = NondeterministicTokenizer(build_vocabulary())
    demo_strategies(tokenizer)
    demo_special_tokens(tokenizer)
    demo_compression(tokenizer)
