"""Tests for the llaman command line interface."""

import json

import pytest

from llaman.cli import arithmetic_grammar, build_parser, main
from llaman.grammar import compile_grammar


class TestParser:
    """Tests for argument parsing."""

    def test_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_rejects_unknown_strategy(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["tokenize", "v.json", "x", "--strategy", "greedy"])

    def test_factor_and_gradient_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(
                ["compress", "v.json", "x", "--factor", "0.5", "--gradient", "0.5"]
            )


class TestGrammarCommand:
    """Tests for the grammar subcommand."""

    def test_prints_arithmetic_grammar(self, capsys):
        assert main(["grammar"]) == 0
        output = capsys.readouterr().out
        assert output.splitlines()[0].startswith("root ::= term")
        assert "number ::= " in output

    def test_prefix(self, capsys):
        assert main(["grammar", "--prefix", "calc"]) == 0
        assert "calc-root ::= calc-term" in capsys.readouterr().out

    def test_inline(self, capsys):
        """Inline mode substitutes rule bodies for references."""
        assert main(["grammar", "--inline"]) == 0
        first = capsys.readouterr().out.splitlines()[0]
        assert first.startswith('root ::= "-"? [0-9]+')
        assert "term" not in first

    def test_arithmetic_grammar_is_closed(self):
        output = compile_grammar(arithmetic_grammar(), strict=True)
        assert len(output.splitlines()) == len(arithmetic_grammar())


class TestVocabularyCommands:
    """Tests for the tokenize, compress, compare and stats subcommands."""

    def test_tokenize_json(self, vocab_file, capsys):
        code = main(["tokenize", str(vocab_file), "hello world", "--strategy", "longest", "--json"])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert len(data) == 1
        assert [t["token"] for t in data[0]["tokens"]] == ["hello", " world"]
        assert data[0]["round_trips"] is True

    def test_tokenize_samples(self, vocab_file, capsys):
        code = main(["tokenize", str(vocab_file), "hello", "--samples", "3", "--seed", "1"])
        assert code == 0
        assert capsys.readouterr().out.count("ids:") == 3

    def test_compress(self, vocab_file, capsys):
        assert main(["compress", str(vocab_file), "hello world"]) == 0
        assert "Tokens: 2" in capsys.readouterr().out

    def test_compress_factor_json(self, vocab_file, capsys):
        code = main(["compress", str(vocab_file), "hello", "--factor", "0.5", "--seed", "2", "--json"])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert "".join(data["token_strings"]) == "hello"

    def test_compress_invalid_factor(self, vocab_file):
        assert main(["compress", str(vocab_file), "hello", "--factor", "2"]) == 1

    def test_compare(self, vocab_file, capsys):
        assert main(["compare", str(vocab_file), "hello world"]) == 0
        assert "Improvement factor: 5.50x" in capsys.readouterr().out

    def test_stats_json(self, vocab_file, capsys):
        assert main(["stats", str(vocab_file), "hello world", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["min_tokens"] == 2
        assert data["max_tokens"] == 11

    def test_strict_failure(self, vocab_file):
        assert main(["tokenize", str(vocab_file), "héllo", "--strict"]) == 1

    def test_missing_vocabulary(self, tmp_path):
        assert main(["compress", str(tmp_path / "missing.json"), "hello"]) == 1

    def test_invalid_vocabulary(self, tmp_path):
        path = tmp_path / "vocab.json"
        path.write_text('{"model_type": "llama"}')
        assert main(["compress", str(path), "hello"]) == 1
