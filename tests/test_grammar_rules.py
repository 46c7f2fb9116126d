"""Tests for the grammar rule algebra and stringification."""

import pytest

from llaman.grammar import (
    Choice,
    Named,
    Range,
    Repeat,
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
    stringify,
)


class TestCombinators:
    """Tests for the combinator functions."""

    def test_seq_builds_sequence(self):
        """seq should keep its items in order."""
        rule = seq("a", "b", "c")
        assert isinstance(rule, Sequence)
        assert rule.items == ("a", "b", "c")

    def test_choice_builds_choice(self):
        rule = choice("x", "y")
        assert isinstance(rule, Choice)
        assert rule.items == ("x", "y")

    def test_rules_are_immutable(self):
        """Rules are frozen once built."""
        rule = seq("a")
        with pytest.raises(AttributeError):
            rule.items = ("b",)

    def test_rules_compare_by_value(self):
        assert seq("a", repeat0("b")) == seq("a", repeat0("b"))
        assert hash(choice("a", "b")) == hash(choice("a", "b"))

    def test_rejects_non_rule(self):
        """Passing something that is not a rule should fail at build time."""
        with pytest.raises(TypeError):
            seq("a", 42)
        with pytest.raises(TypeError):
            repeat1(None)

    def test_repeat_bounds_validated(self):
        """Negative or inverted bounds are rejected."""
        with pytest.raises(ValueError):
            repeat("a", 3, 1)
        with pytest.raises(ValueError):
            repeat("a", -1, 2)

    def test_repeat_equal_bounds_allowed(self):
        assert repeat("a", 2, 2) == Repeat("a", 2, 2)

    def test_char_range_needs_single_chars(self):
        with pytest.raises(ValueError):
            char_range("aa", "z")

    def test_range_needs_exactly_one_form(self):
        with pytest.raises(ValueError):
            Range()
        with pytest.raises(ValueError):
            Range(min_char="a", max_char="z", chars=("x",))
        with pytest.raises(ValueError):
            Range(min_char="a")

    def test_char_set_from_string(self):
        """A string is split into its characters."""
        rule = char_set("abc")
        assert rule.is_set
        assert rule.chars == ("a", "b", "c")

    def test_ref_is_named(self):
        assert ref("value") == Named("value")


class TestStringify:
    """Tests for rendering rules in grammar notation."""

    def test_literal_quoted(self):
        assert stringify("hello") == '"hello"'

    def test_sequence_space_separated(self):
        assert stringify(seq("a", "b", "c")) == '"a" "b" "c"'

    def test_choice_parenthesized(self):
        assert stringify(choice("x", "y")) == '("x" | "y")'

    def test_postfix_operators(self):
        assert stringify(repeat0("a")) == '"a"*'
        assert stringify(repeat1("a")) == '"a"+'
        assert stringify(optional("a")) == '"a"?'

    def test_bounded_repeat(self):
        assert stringify(repeat("a", 2, 5)) == '"a"{2,5}'

    def test_nested_repeat_of_choice(self):
        assert stringify(repeat1(choice("0", "1"))) == '("0" | "1")+'

    def test_range_forms(self):
        assert stringify(char_range("a", "z")) == "[a-z]"
        assert stringify(char_set("abc")) == "[abc]"

    def test_char_set_keeps_order_and_duplicates(self):
        assert stringify(char_set("cab a")) == "[cab a]"

    def test_named_unquoted(self):
        assert stringify(Named("expr")) == "expr"

    def test_empty_sequence_and_choice(self):
        assert stringify(seq()) == ""
        assert stringify(choice()) == "()"

    def test_quotes_left_alone_by_default(self):
        assert stringify('say "hi"') == '"say "hi""'

    def test_escape_literals(self):
        assert stringify('say "hi"', escape_literals=True) == '"say \\"hi\\""'
        assert stringify("a\\b", escape_literals=True) == '"a\\\\b"'

    def test_unknown_type_raises(self):
        with pytest.raises(TypeError):
            stringify(3.14)


class TestCollectReferences:
    """Tests for reference collection."""

    def test_first_seen_order(self):
        rule = seq(Named("b"), choice(Named("a"), repeat0(Named("b"))), Named("c"))
        assert collect_references(rule) == ["b", "a", "c"]

    def test_no_references(self):
        assert collect_references(seq("a", char_range("0", "9"))) == []
