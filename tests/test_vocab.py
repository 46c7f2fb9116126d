"""Tests for vocabulary loading and validation."""

import json

import pytest
from pydantic import ValidationError

from llaman.tokenizer import TokenizerVocabulary, load_vocabulary


class TestTokenizerVocabulary:
    """Tests for TokenizerVocabulary model."""

    def test_minimal_vocabulary(self):
        vocab = TokenizerVocabulary(tokens=["a", "b"])
        assert vocab.vocab_size == 2
        assert vocab.bos_token_id is None
        assert vocab.special_token_ids == []

    def test_tokens_required(self):
        """A record without tokens is rejected."""
        with pytest.raises(ValidationError):
            TokenizerVocabulary.model_validate({"model_type": "llama"})

    def test_bos_out_of_range(self):
        with pytest.raises(ValidationError, match="bos_token_id"):
            TokenizerVocabulary(tokens=["a"], bos_token_id=3)

    def test_special_id_out_of_range(self):
        with pytest.raises(ValidationError):
            TokenizerVocabulary(tokens=["a"], special_token_ids=[-1])

    def test_to_json_omits_unset_fields(self):
        data = json.loads(TokenizerVocabulary(tokens=["a"]).to_json())
        assert data == {"tokens": ["a"], "special_token_ids": []}


class TestLoadVocabulary:
    """Tests for load_vocabulary."""

    def test_round_trip(self, tmp_path, special_vocab):
        path = tmp_path / "vocab.json"
        special_vocab.save_json(path)
        assert load_vocabulary(path) == special_vocab

    def test_reads_model_extract(self, tmp_path):
        """Extra fields from the extraction script are ignored."""
        path = tmp_path / "vocab.json"
        path.write_text(
            json.dumps({
                "tokens": ["<s>", "</s>", "a"],
                "merges": ["a b"],
                "bos_token_id": 0,
                "eos_token_id": 1,
                "model_type": "llama",
                "vocab_size": 3,
            })
        )
        vocab = load_vocabulary(path)
        assert vocab.model_type == "llama"
        assert vocab.merges == ["a b"]
        assert vocab.eos_token_id == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_vocabulary(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "vocab.json"
        path.write_text("{not json")
        with pytest.raises(ValidationError):
            load_vocabulary(path)
