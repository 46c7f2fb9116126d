"""Rule algebra for declaring grammars.

A rule is one of a small closed set of frozen dataclasses. Bare strings are
literals and may be used anywhere a rule is expected. Rules are built once
through the combinator functions, stringified by the compiler and thrown
away; nothing here is mutable.

Example:
    >>> from llaman.grammar import seq, choice, optional, repeat1, char_range
    >>> digit = char_range("0", "9")
    >>> number = seq(optional("-"), repeat1(digit))
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


class GrammarError(ValueError):
    """Raised when a grammar cannot be compiled."""


@dataclass(frozen=True)
class Sequence:
    """Concatenation of rules, rendered space separated."""

    items: tuple[RuleLike, ...] = ()


@dataclass(frozen=True)
class Choice:
    """Alternation between rules. Order is kept in the output."""

    items: tuple[RuleLike, ...] = ()


@dataclass(frozen=True)
class Repeat:
    """Bounded repetition between ``min`` and ``max`` times (inclusive)."""

    rule: RuleLike
    min: int
    max: int

    def __post_init__(self) -> None:
        if self.min < 0 or self.max < 0:
            raise ValueError(f"repeat bounds must be >= 0, got {{{self.min},{self.max}}}")
        if self.min > self.max:
            raise ValueError(f"repeat min must be <= max, got {{{self.min},{self.max}}}")


@dataclass(frozen=True)
class Repeat0:
    """Zero or more repetitions."""

    rule: RuleLike


@dataclass(frozen=True)
class Repeat1:
    """One or more repetitions."""

    rule: RuleLike


@dataclass(frozen=True)
class Optional:
    """Zero or one occurrence."""

    rule: RuleLike


@dataclass(frozen=True)
class Range:
    """A single character drawn from a range or an explicit set.

    Either give ``min_char`` and ``max_char`` (rendered ``[a-z]``) or
    ``chars`` (rendered by plain concatenation, ``[abc]``). Characters in
    the set form are kept in input order without de-duplication.
    """

    min_char: str | None = None
    max_char: str | None = None
    chars: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        has_pair = self.min_char is not None or self.max_char is not None
        if has_pair == (self.chars is not None):
            raise ValueError("Range takes exactly one of min_char/max_char or chars")
        if has_pair:
            if self.min_char is None or self.max_char is None:
                raise ValueError("Range needs both min_char and max_char")
            if len(self.min_char) != 1 or len(self.max_char) != 1:
                raise ValueError(
                    f"Range bounds must be single characters, got {self.min_char!r}-{self.max_char!r}"
                )

    @property
    def is_set(self) -> bool:
        return self.chars is not None


@dataclass(frozen=True)
class Named:
    """Reference to another production by name. Rendered unquoted."""

    name: str


Rule = Sequence | Choice | Repeat | Repeat0 | Repeat1 | Optional | Range | Named
RuleLike = Rule | str

RULE_TYPES = (Sequence, Choice, Repeat, Repeat0, Repeat1, Optional, Range, Named)


def is_rule(value: object) -> bool:
    """Return True for a rule variant or a bare literal string."""
    return isinstance(value, (str, *RULE_TYPES))


def _check(rule: object) -> RuleLike:
    if not is_rule(rule):
        raise TypeError(f"Expected a rule or string literal, got {type(rule).__name__}")
    return rule  # type: ignore[return-value]


# --- Combinators ---


def seq(*rules: RuleLike) -> Sequence:
    """Match every rule, one after another."""
    return Sequence(tuple(_check(r) for r in rules))


def choice(*rules: RuleLike) -> Choice:
    """Match exactly one of the given rules."""
    return Choice(tuple(_check(r) for r in rules))


def repeat(rule: RuleLike, min: int, max: int) -> Repeat:
    """Match between ``min`` and ``max`` occurrences of ``rule``."""
    return Repeat(_check(rule), min, max)


def repeat0(rule: RuleLike) -> Repeat0:
    """Match zero or more occurrences of ``rule``."""
    return Repeat0(_check(rule))


def repeat1(rule: RuleLike) -> Repeat1:
    """Match one or more occurrences of ``rule``."""
    return Repeat1(_check(rule))


def optional(rule: RuleLike) -> Optional:
    """Match zero or one occurrence of ``rule``."""
    return Optional(_check(rule))


def char_range(min_char: str, max_char: str) -> Range:
    """Match one character between ``min_char`` and ``max_char``."""
    return Range(min_char=min_char, max_char=max_char)


def char_set(chars: Iterable[str]) -> Range:
    """Match one character out of ``chars``.

    ``chars`` may be a string (each character is one member) or any
    iterable of strings.
    """
    return Range(chars=tuple(chars))


def ref(name: str) -> Named:
    """Reference a production by its final (already prefixed) name."""
    return Named(name)


def iter_children(rule: RuleLike) -> tuple[RuleLike, ...]:
    """Return the direct sub-rules of ``rule``."""
    if isinstance(rule, (Sequence, Choice)):
        return rule.items
    if isinstance(rule, (Repeat, Repeat0, Repeat1, Optional)):
        return (rule.rule,)
    return ()


def collect_references(rule: RuleLike) -> list[str]:
    """Names of every ``Named`` reference inside ``rule``, in first-seen order."""
    seen: dict[str, None] = {}
    stack = [rule]
    while stack:
        node = stack.pop()
        if isinstance(node, Named):
            seen.setdefault(node.name, None)
        stack.extend(reversed(iter_children(node)))
    return list(seen)
