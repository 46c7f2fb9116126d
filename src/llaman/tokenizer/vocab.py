"""Vocabulary records for the nondeterministic tokenizer.

A vocabulary is the JSON document extracted from a model file: an ordered
list of token strings whose index is the token ID, plus a few optional
fields. Loading validates the record with pydantic; a document without
``tokens`` is rejected before any tokenizer is built.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator


class TokenizerVocabulary(BaseModel):
    """Token list and metadata for a tokenizer.

    Attributes:
        tokens: Token strings indexed by token ID.
        merges: BPE merge rules, kept for completeness. Unused here.
        bos_token_id: Beginning-of-sequence token ID.
        eos_token_id: End-of-sequence token ID.
        model_type: Model architecture name.
        special_token_ids: IDs whose text is matched atomically.

    Example:
        >>> vocab = TokenizerVocabulary(tokens=["<s>", "a", "b", "ab"], bos_token_id=0)
        >>> vocab.vocab_size
        4
    """

    tokens: list[str] = Field(description="Token strings indexed by token ID")
    merges: list[str] | None = Field(default=None, description="BPE merge rules")
    bos_token_id: int | None = Field(default=None, description="Beginning-of-sequence token ID")
    eos_token_id: int | None = Field(default=None, description="End-of-sequence token ID")
    model_type: str | None = Field(default=None, description="Model architecture")
    special_token_ids: list[int] = Field(
        default_factory=list, description="Token IDs preserved as atomic spans"
    )

    @model_validator(mode="after")
    def _check_ids(self) -> TokenizerVocabulary:
        size = len(self.tokens)
        named = {"bos_token_id": self.bos_token_id, "eos_token_id": self.eos_token_id}
        for field_name, token_id in named.items():
            if token_id is not None and not 0 <= token_id < size:
                raise ValueError(f"{field_name}={token_id} outside vocabulary of {size} tokens")
        for token_id in self.special_token_ids:
            if not 0 <= token_id < size:
                raise ValueError(f"special token id {token_id} outside vocabulary of {size} tokens")
        return self

    @property
    def vocab_size(self) -> int:
        return len(self.tokens)

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(indent=indent, exclude_none=True)

    def save_json(self, path: str | Path, indent: int | None = 2) -> None:
        """Write the vocabulary as JSON."""
        Path(path).write_text(self.to_json(indent=indent), encoding="utf-8")


def load_vocabulary(path: str | Path) -> TokenizerVocabulary:
    """Load and validate a vocabulary JSON file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        pydantic.ValidationError: If the record is malformed, e.g. has no
            ``tokens`` field.
    """
    content = Path(path).read_text(encoding="utf-8")
    return TokenizerVocabulary.model_validate_json(content)
