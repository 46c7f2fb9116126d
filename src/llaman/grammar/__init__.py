"""Grammar DSL compiling to BNF-like grammar notation."""

from llaman.grammar.compiler import (
    Grammar,
    GrammarCompiler,
    GrammarOptions,
    Rules,
    compile_grammar,
    stringify,
)
from llaman.grammar.rules import (
    Choice,
    GrammarError,
    Named,
    Optional,
    Range,
    Repeat,
    Repeat0,
    Repeat1,
    Rule,
    RuleLike,
    Sequence,
    char_range,
    char_set,
    choice,
    collect_references,
    optional,
    ref,
    repeat,
    repeat0,
    repeat1,
    seq,
)

__all__ = [
    # Compiler
    "Grammar",
    "GrammarCompiler",
    "GrammarOptions",
    "GrammarError",
    "Rules",
    "compile_grammar",
    "stringify",
    # Rule variants
    "Rule",
    "RuleLike",
    "Sequence",
    "Choice",
    "Repeat",
    "Repeat0",
    "Repeat1",
    "Optional",
    "Range",
    "Named",
    # Combinators
    "seq",
    "choice",
    "repeat",
    "repeat0",
    "repeat1",
    "optional",
    "char_range",
    "char_set",
    "ref",
    "collect_references",
]
