"""Grammar compilation example.

This example shows how to:
1. Declare rules with combinators
2. Use mutual recursion through the rules view
3. Namespace a grammar with a prefix
4. Build a grammar incrementally with the Grammar container

Run with:
    python examples/grammar_demo.py
"""

from llaman.grammar import (
    Grammar,
    GrammarOptions,
    char_range,
    char_set,
    choice,
    compile_grammar,
    optional,
    repeat,
    repeat0,
    repeat1,
    seq,
)


def demo_json_grammar():
    """A compact JSON grammar with mutually recursive value/object/array."""
    print("=== JSON Grammar ===\n")

    rules = {
        "root": lambda r: r.value,
        "value": lambda r: choice(r.object, r.array, r.string, r.number, "true", "false", "null"),
        "object": lambda r: seq(
            "{", r.ws, optional(seq(r.member, repeat0(seq(",", r.ws, r.member)))), "}", r.ws
        ),
        "member": lambda r: seq(r.string, ":", r.ws, r.value),
        "array": lambda r: seq(
            "[", r.ws, optional(seq(r.value, repeat0(seq(",", r.ws, r.value)))), "]", r.ws
        ),
        "string": lambda r: seq('\\"', repeat0(char_set("abcdefghijklmnopqrstuvwxyz ")), '\\"', r.ws),
        "number": seq(optional("-"), repeat1(char_range("0", "9"))),
        "ws": repeat0(char_set(" \t\n")),
    }
    print(compile_grammar(rules))


def demo_prefix():
    """Two grammars sharing one file without name clashes."""
    print("\n=== Prefixed Grammars ===\n")

    date = {
        "root": lambda r: seq(r.year, "-", r.month, "-", r.day),
        "year": repeat(char_range("0", "9"), 4, 4),
        "month": seq(char_range("0", "1"), char_range("0", "9")),
        "day": seq(char_range("0", "3"), char_range("0", "9")),
    }
    print(compile_grammar(date, GrammarOptions(prefix="date")))
    print(compile_grammar({"root": choice("yes", "no")}, prefix="answer"))


def demo_container():
    """Build a grammar rule by rule and inspect its references."""
    print("\n=== Grammar Container ===\n")

    g = Grammar()
    g["digit"] = char_range("0", "9")

    @g.rule
    def integer(r):
        return repeat1(r.digit)

    @g.rule
    def root(r):
        return seq(r.integer, optional(seq(".", r.integer)))

    print(g.compile())
    print(f"\nReferences: {g.references()}")
    print(f"Undefined:  {g.undefined_references()}")

    print("\nInlined:")
    print(g.compile(inline=True))


if __name__ == "__main__":
    demo_json_grammar()
    demo_prefix()
    demo_container()
