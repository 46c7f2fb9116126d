"""Compile rule definitions into grammar notation text.

The output is one production per line, ``name ::= body``, in the order the
rules were declared. It is the BNF-like format read by constrained
decoding engines (e.g. llama.cpp's ``--grammar-file``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, replace
from typing import Union

from llaman.grammar.rules import (
    Choice,
    GrammarError,
    Named,
    Optional,
    Range,
    Repeat,
    Repeat0,
    Repeat1,
    RuleLike,
    Sequence,
    collect_references,
    is_rule,
)

logger = logging.getLogger(__name__)


def _quote(text: str, escape: bool) -> str:
    if escape:
        text = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def stringify(rule: RuleLike, escape_literals: bool = False) -> str:
    """Render a rule in grammar notation.

    Literals are double quoted. Embedded quotes are left as-is unless
    ``escape_literals`` is set, because consumers differ on what they accept.

    Raises:
        TypeError: If ``rule`` is not a known rule variant.
    """
    if isinstance(rule, str):
        return _quote(rule, escape_literals)
    if isinstance(rule, Sequence):
        return " ".join(stringify(item, escape_literals) for item in rule.items)
    if isinstance(rule, Choice):
        return "(" + " | ".join(stringify(item, escape_literals) for item in rule.items) + ")"
    if isinstance(rule, Repeat):
        return f"{stringify(rule.rule, escape_literals)}{{{rule.min},{rule.max}}}"
    if isinstance(rule, Repeat0):
        return f"{stringify(rule.rule, escape_literals)}*"
    if isinstance(rule, Repeat1):
        return f"{stringify(rule.rule, escape_literals)}+"
    if isinstance(rule, Optional):
        return f"{stringify(rule.rule, escape_literals)}?"
    if isinstance(rule, Range):
        if rule.chars is not None:
            return "[" + "".join(rule.chars) + "]"
        return f"[{rule.min_char}-{rule.max_char}]"
    if isinstance(rule, Named):
        return rule.name
    raise TypeError(f"Cannot stringify {type(rule).__name__}: not a grammar rule")


@dataclass
class GrammarOptions:
    """Options for grammar compilation.

    Attributes:
        inline: Hand builders the referenced rule bodies instead of name
            references. Cyclic grammars cannot be compiled this way.
        prefix: Prepended to every production name as ``<prefix>-<name>``
            so several grammars can share one file.
        escape_literals: Backslash-escape quotes and backslashes in literals.
        strict: Fail on references to productions this grammar lacks.
    """

    inline: bool = False
    prefix: str | None = None
    escape_literals: bool = False
    strict: bool = False

    def __post_init__(self) -> None:
        if self.prefix is not None and not self.prefix:
            self.prefix = None

    def production_name(self, name: str) -> str:
        if self.prefix:
            return f"{self.prefix}-{name}"
        return name


class Rules:
    """Read-only view of a grammar's rules handed to builder functions.

    Supports both ``rules["expr"]`` and ``rules.expr``, plus ``in``,
    ``len()`` and iteration over rule names. It has no public methods, so
    every public attribute name (``items``, ``keys``, ...) is a rule lookup.
    """

    def __init__(self, names: list[str], lookup: Callable[[str], RuleLike]) -> None:
        self._names = names
        self._lookup = lookup

    def __getitem__(self, name: str) -> RuleLike:
        if name not in self._names:
            known = ", ".join(self._names)
            raise KeyError(f"Unknown rule '{name}'. Defined: {known}")
        return self._lookup(name)

    def __getattr__(self, name: str) -> RuleLike:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError as e:
            raise AttributeError(str(e)) from None

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)


Builder = Callable[[Rules], RuleLike]
Definition = Union[RuleLike, Builder]


class GrammarCompiler:
    """Resolves a mapping of rule definitions and renders the productions."""

    def __init__(self, definitions: Mapping[str, Definition], options: GrammarOptions) -> None:
        self.definitions = dict(definitions)
        self.options = options
        self._bodies: dict[str, RuleLike] = {}
        self._resolving: list[str] = []

        names = list(self.definitions)
        if options.inline:
            self.rules = Rules(names, self._resolve)
        else:
            placeholders = {name: Named(options.production_name(name)) for name in names}
            self.rules = Rules(names, placeholders.__getitem__)

    def _resolve(self, name: str) -> RuleLike:
        if name in self._bodies:
            return self._bodies[name]
        if name in self._resolving:
            cycle = " -> ".join([*self._resolving, name])
            raise GrammarError(f"Cyclic rule in inline mode: {cycle}")

        self._resolving.append(name)
        try:
            body = self._evaluate(name, self.definitions[name])
        finally:
            self._resolving.pop()

        self._bodies[name] = body
        return body

    def _evaluate(self, name: str, definition: Definition) -> RuleLike:
        if is_rule(definition):
            return definition  # type: ignore[return-value]
        if callable(definition):
            body = definition(self.rules)
            if not is_rule(body):
                raise GrammarError(
                    f"Builder for '{name}' returned {type(body).__name__}, expected a rule"
                )
            return body
        raise GrammarError(f"Invalid definition for '{name}': {type(definition).__name__}")

    def bodies(self) -> dict[str, RuleLike]:
        """Evaluate every definition, keyed by unprefixed rule name."""
        return {name: self._resolve(name) for name in self.definitions}

    def compile(self) -> str:
        bodies = self.bodies()

        if self.options.strict:
            produced = {self.options.production_name(name) for name in bodies}
            missing = sorted(
                {ref for body in bodies.values() for ref in collect_references(body)} - produced
            )
            if missing:
                raise GrammarError(f"Undefined rule references: {', '.join(missing)}")

        lines = [
            f"{self.options.production_name(name)} ::= "
            f"{stringify(body, self.options.escape_literals)}"
            for name, body in bodies.items()
        ]
        logger.debug(
            "Compiled %d productions (inline=%s, prefix=%r)",
            len(lines),
            self.options.inline,
            self.options.prefix,
        )
        return "\n".join(lines)


def compile_grammar(
    rules: Mapping[str, Definition],
    options: GrammarOptions | None = None,
    **kwargs: object,
) -> str:
    """Compile a mapping of rule definitions into grammar text.

    Each definition is a literal string, a rule, or a function receiving a
    :class:`Rules` view and returning a rule. In the default reference mode
    that view yields ``Named`` placeholders, which is what makes mutual
    recursion possible.

    Args:
        rules: Ordered mapping of rule name to definition.
        options: Compilation options. Keyword arguments override its fields.

    Returns:
        Newline-joined productions, no trailing newline.

    Example:
        >>> compile_grammar({
        ...     "root": lambda r: seq("(", r.list, ")"),
        ...     "list": lambda r: choice("x", seq("x", ",", r.list)),
        ... })
        'root ::= "(" list ")"\\nlist ::= ("x" | "x" "," list)'
    """
    options = replace(options, **kwargs) if options else GrammarOptions(**kwargs)  # type: ignore[arg-type]
    return GrammarCompiler(rules, options).compile()


class Grammar:
    """Ordered container of rule definitions.

    Example:
        >>> g = Grammar()
        >>> g["digit"] = char_range("0", "9")
        >>> @g.rule
        ... def number(r):
        ...     return repeat1(r.digit)
        >>> print(g.compile())
        digit ::= [0-9]
        number ::= digit+
    """

    def __init__(
        self,
        rules: Mapping[str, Definition] | None = None,
        options: GrammarOptions | None = None,
    ) -> None:
        self._definitions: dict[str, Definition] = dict(rules or {})
        self.options = options or GrammarOptions()

    def add(self, name: str, definition: Definition) -> Named:
        """Add a rule and return a reference to its production."""
        if name in self._definitions:
            raise ValueError(f"Rule '{name}' already exists.")
        self._definitions[name] = definition
        return Named(self.options.production_name(name))

    def rule(self, fn: Builder | None = None, *, name: str | None = None):
        """Decorator registering a builder function under its own name."""

        def register(builder: Builder) -> Builder:
            self.add(name or builder.__name__, builder)
            return builder

        if fn is not None:
            return register(fn)
        return register

    def __setitem__(self, name: str, definition: Definition) -> None:
        self._definitions[name] = definition

    def __getitem__(self, name: str) -> Definition:
        return self._definitions[name]

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    @property
    def names(self) -> list[str]:
        return list(self._definitions)

    def references(self) -> dict[str, list[str]]:
        """Production names referenced by each rule (reference mode)."""
        compiler = GrammarCompiler(self._definitions, replace(self.options, inline=False))
        return {
            name: collect_references(body) for name, body in compiler.bodies().items()
        }

    def undefined_references(self) -> list[str]:
        """References that no production of this grammar satisfies."""
        produced = {self.options.production_name(name) for name in self._definitions}
        refs = {ref for names in self.references().values() for ref in names}
        return sorted(refs - produced)

    def compile(self, **overrides: object) -> str:
        return compile_grammar(self._definitions, self.options, **overrides)

    def __str__(self) -> str:
        return self.compile()
