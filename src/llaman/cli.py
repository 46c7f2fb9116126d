"""Command line interface for the tokenizer and grammar compiler.

Usage:
    # Tokenize with a strategy (default: random)
    llaman tokenize vocab.json "Hello, world!" --strategy longest

    # Compress, optionally with a factor or gradient
    llaman compress vocab.json "Hello, world!" --factor 0.7 --seed 42

    # Compare longest vs shortest tokenizations
    llaman compare vocab.json "Hello, world!"

    # Print the example arithmetic grammar
    llaman grammar --prefix calc
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from llaman.grammar import GrammarError, GrammarOptions, char_range, choice, compile_grammar
from llaman.grammar import optional, repeat0, repeat1, seq
from llaman.tokenizer import (
    NondeterministicTokenizer,
    Strategy,
    TokenInspector,
    TokenizationError,
    TokenizeOptions,
    compare_compression,
    compress,
    compress_with_factor,
    compress_with_gradient,
    format_comparison,
    format_compression,
    format_inspection,
    format_stats,
    get_compression_stats,
)

logger = logging.getLogger(__name__)


def arithmetic_grammar() -> dict:
    """Integer arithmetic with + - * / and operator precedence."""
    return {
        "root": lambda r: seq(r.term, repeat0(choice(seq(r.ws, r.addop, r.ws, r.term)))),
        "term": lambda r: seq(r.number, repeat0(choice(seq(r.ws, r.mulop, r.ws, r.number)))),
        "number": seq(optional("-"), repeat1(char_range("0", "9"))),
        "addop": choice("+", "-"),
        "mulop": choice("*", "/"),
        "ws": repeat0(choice(" ")),
    }


def _add_vocab_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("vocab", help="Path to vocabulary JSON file")
    parser.add_argument("text", help="Text to process")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible output")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="llaman",
        description="Nondeterministic tokenization and grammar compilation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s tokenize vocab.json "Hello, world!" --strategy ideal-length --ideal-length 3
  %(prog)s tokenize vocab.json "Hello" --samples 5
  %(prog)s compress vocab.json "Hello, world!" --gradient -0.5
  %(prog)s stats vocab.json "Hello, world!"
  %(prog)s grammar --prefix calc
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    tokenize = commands.add_parser("tokenize", help="Tokenize text")
    _add_vocab_arguments(tokenize)
    tokenize.add_argument(
        "--strategy",
        choices=[s.value for s in Strategy],
        default=Strategy.RANDOM.value,
        help="Selection strategy (default: random)",
    )
    tokenize.add_argument(
        "--ideal-length",
        type=float,
        default=4,
        help="Target token length for ideal-length (default: 4)",
    )
    tokenize.add_argument(
        "--samples", type=int, default=1, help="Number of tokenizations to draw (default: 1)"
    )
    tokenize.add_argument("--bos", action="store_true", help="Prepend the BOS token")
    tokenize.add_argument("--eos", action="store_true", help="Append the EOS token")
    tokenize.add_argument(
        "--no-special",
        action="store_true",
        help="Split special token text like ordinary text",
    )
    tokenize.add_argument(
        "--strict", action="store_true", help="Fail on characters no token covers"
    )

    compress_cmd = commands.add_parser("compress", help="Compress text into few tokens")
    _add_vocab_arguments(compress_cmd)
    strength = compress_cmd.add_mutually_exclusive_group()
    strength.add_argument("--factor", type=float, help="Compression factor in [0, 1]")
    strength.add_argument("--gradient", type=float, help="Length bias in [-1, 1]")

    compare = commands.add_parser("compare", help="Compare longest vs shortest tokenization")
    _add_vocab_arguments(compare)

    stats = commands.add_parser("stats", help="Compression statistics")
    _add_vocab_arguments(stats)

    grammar = commands.add_parser("grammar", help="Print the example arithmetic grammar")
    grammar.add_argument("--prefix", help="Prefix for production names")
    grammar.add_argument("--inline", action="store_true", help="Inline compilation mode")

    return parser


def _run_tokenize(tokenizer: NondeterministicTokenizer, args: argparse.Namespace) -> int:
    options = TokenizeOptions(
        strategy=args.strategy,
        ideal_length=args.ideal_length,
        add_bos=args.bos,
        add_eos=args.eos,
        preserve_special_tokens=not args.no_special,
        strict=args.strict,
    )
    inspections = TokenInspector(tokenizer).sample(
        args.text, n=args.samples, options=options, seed=args.seed
    )

    if args.json:
        print(json.dumps([i.model_dump() for i in inspections], indent=2))
    else:
        for inspection in inspections:
            print(format_inspection(inspection))
            print("  ids:", [t.token_id for t in inspection.tokens])
    return 0


def _run_compress(tokenizer: NondeterministicTokenizer, args: argparse.Namespace) -> int:
    if args.factor is not None:
        result = compress_with_factor(tokenizer, args.text, args.factor, seed=args.seed)
    elif args.gradient is not None:
        result = compress_with_gradient(tokenizer, args.text, args.gradient, seed=args.seed)
    else:
        result = compress(tokenizer, args.text, seed=args.seed)

    print(result.to_json() if args.json else format_compression(result))
    return 0


def _run_compare(tokenizer: NondeterministicTokenizer, args: argparse.Namespace) -> int:
    comparison = compare_compression(tokenizer, args.text, seed=args.seed)
    print(comparison.model_dump_json(indent=2) if args.json else format_comparison(comparison))
    return 0


def _run_stats(tokenizer: NondeterministicTokenizer, args: argparse.Namespace) -> int:
    stats = get_compression_stats(tokenizer, args.text, seed=args.seed)
    print(stats.model_dump_json(indent=2) if args.json else format_stats(stats))
    return 0


def _run_grammar(args: argparse.Namespace) -> int:
    options = GrammarOptions(inline=args.inline, prefix=args.prefix)
    try:
        print(compile_grammar(arithmetic_grammar(), options))
    except GrammarError as e:
        logger.error("Error: %s", e)
        return 1
    return 0


HANDLERS = {
    "tokenize": _run_tokenize,
    "compress": _run_compress,
    "compare": _run_compare,
    "stats": _run_stats,
}


def main(argv: list[str] | None = None) -> int:
    """Run the command line interface."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s"
    )

    if args.command == "grammar":
        return _run_grammar(args)

    try:
        tokenizer = NondeterministicTokenizer.from_file(args.vocab)
    except FileNotFoundError:
        logger.error("Error: vocabulary file not found: %s", args.vocab)
        return 1
    except ValidationError as e:
        logger.error("Error: invalid vocabulary file %s\n%s", args.vocab, e)
        return 1

    try:
        return HANDLERS[args.command](tokenizer, args)
    except (TokenizationError, ValueError) as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
