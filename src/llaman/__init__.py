"""llaman - Grammar compiler and nondeterministic tokenizer for constrained decoding.

Two independent pieces:

- ``llaman.grammar``: declare grammars with combinators and compile them to
  the BNF-like notation constrained decoding engines read.
- ``llaman.tokenizer``: trie-based tokenizer that can produce many valid
  tokenizations of the same text, plus compression helpers.

Example:
    >>> from llaman import compile_grammar, seq, choice, repeat0, repeat1, char_range
    >>> print(compile_grammar({
    ...     "root": lambda r: seq(r.number, repeat0(choice(seq("+", r.number), seq("-", r.number)))),
    ...     "number": repeat1(char_range("0", "9")),
    ... }))
    root ::= number ("+" number | "-" number)*
    number ::= [0-9]+
"""

from llaman.grammar import (
    Grammar,
    GrammarError,
    GrammarOptions,
    char_range,
    char_set,
    choice,
    compile_grammar,
    optional,
    ref,
    repeat,
    repeat0,
    repeat1,
    seq,
    stringify,
)
from llaman.tokenizer import (
    NondeterministicTokenizer,
    Strategy,
    TokenizeOptions,
    TokenizerVocabulary,
    compare_compression,
    compress,
    compress_with_factor,
    compress_with_gradient,
    decompress,
    load_vocabulary,
    selective_compress,
)

__version__ = "0.1.0"

__all__ = [
    # Grammar
    "Grammar",
    "GrammarError",
    "GrammarOptions",
    "compile_grammar",
    "stringify",
    "seq",
    "choice",
    "repeat",
    "repeat0",
    "repeat1",
    "optional",
    "char_range",
    "char_set",
    "ref",
    # Tokenizer
    "NondeterministicTokenizer",
    "TokenizerVocabulary",
    "TokenizeOptions",
    "Strategy",
    "load_vocabulary",
    # Compression
    "compress",
    "decompress",
    "compress_with_factor",
    "compress_with_gradient",
    "compare_compression",
    "selective_compress",
]
