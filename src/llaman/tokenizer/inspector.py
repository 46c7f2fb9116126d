"""TokenInspector - Utilities for looking at nondeterministic tokenizations.

This module shows how a text was split into tokens, draws several
tokenizations of the same text side by side, and searches the vocabulary.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, Field, computed_field

from llaman.tokenizer.core import NondeterministicTokenizer, TokenizeOptions

# Vocabulary scans stop after this many entries
SCAN_LIMIT = 100_000


class TokenInfo(BaseModel):
    """Information about a single token.

    Attributes:
        token: The token text.
        token_id: The token's ID in the vocabulary.
        char_length: Number of characters in the token.
        is_special: Whether this is a special token (BOS, EOS, etc.).
    """

    token: str = Field(description="Token text")
    token_id: int = Field(description="Token ID in vocabulary")
    char_length: int = Field(description="Number of characters")
    is_special: bool = Field(default=False, description="Is a special token")

    def __str__(self) -> str:
        special = " [SPECIAL]" if self.is_special else ""
        return f"[{self.token_id}] '{self.token}' ({self.char_length}c){special}"


class TokenInspection(BaseModel):
    """Result of inspecting one tokenization.

    Attributes:
        text: The original input text.
        tokens: List of token information.
        skipped_positions: Offsets of characters no token covered.
    """

    text: str = Field(description="Original input text")
    tokens: list[TokenInfo] = Field(default_factory=list, description="Token information")
    skipped_positions: list[int] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def token_count(self) -> int:
        return len(self.tokens)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def round_trips(self) -> bool:
        """Whether the token texts rebuild the input exactly."""
        return "".join(t.token for t in self.tokens) == self.text

    def __str__(self) -> str:
        """Human-readable token breakdown."""
        return "".join(f"[{t.token}]" for t in self.tokens)

    def visualize(self, separator: str = "|") -> str:
        """Text with token boundaries marked by ``separator``."""
        return separator.join(t.token for t in self.tokens)

    def to_table(self) -> str:
        """Format as a table showing token details."""
        lines = ["Pos | ID      | Token          | Chars"]
        lines.append("-" * 45)
        for i, t in enumerate(self.tokens):
            token_repr = repr(t.token)
            if len(token_repr) > 14:
                token_repr = token_repr[:11] + "..."
            lines.append(f"{i:3} | {t.token_id:7} | {token_repr:14} | {t.char_length}")
        return "\n".join(lines)


class TokenInspector:
    """Inspect tokenizations and search the vocabulary.

    Example:
        >>> inspector = TokenInspector(tokenizer)
        >>> inspection = inspector.inspect("hello world", strategy="longest")
        >>> print(inspection.visualize())
        hello| |world
        >>> for sample in inspector.sample("hello", n=3, seed=1):
        ...     print(sample.visualize())
    """

    def __init__(self, tokenizer: NondeterministicTokenizer) -> None:
        self._tokenizer = tokenizer
        self._special_ids = set(tokenizer.special_tokens.values())
        for token_id in (tokenizer.bos_token_id, tokenizer.eos_token_id):
            if token_id is not None:
                self._special_ids.add(token_id)

    def _info(self, token_id: int) -> TokenInfo:
        text = self._tokenizer.get_token(token_id) or ""
        return TokenInfo(
            token=text,
            token_id=token_id,
            char_length=len(text),
            is_special=token_id in self._special_ids,
        )

    def inspect(
        self, text: str, options: TokenizeOptions | str | None = None, **overrides: Any
    ) -> TokenInspection:
        """Tokenize ``text`` once and describe every token."""
        result = self._tokenizer.tokenize_detailed(text, options, **overrides)
        return TokenInspection(
            text=text,
            tokens=[self._info(t) for t in result.token_ids],
            skipped_positions=result.skipped_positions,
        )

    def sample(
        self,
        text: str,
        n: int = 5,
        options: TokenizeOptions | str | None = None,
        seed: int | None = None,
        **overrides: Any,
    ) -> list[TokenInspection]:
        """Draw ``n`` tokenizations of ``text``.

        With a seed, draw ``i`` uses ``seed + i`` so the whole batch is
        reproducible while the draws still differ from each other.
        """
        return [
            self.inspect(
                text, options, seed=None if seed is None else seed + i, **overrides
            )
            for i in range(n)
        ]

    def count_tokens(self, text: str, strategy: str = "longest") -> int:
        return len(self._tokenizer.tokenize(text, strategy=strategy))

    def find_token(self, query: str, limit: int = 50) -> list[TokenInfo]:
        """Find tokens whose text contains ``query``."""
        results = []
        for token_id, token in enumerate(self._tokenizer.vocabulary.tokens[:SCAN_LIMIT]):
            if query in token:
                results.append(self._info(token_id))
                if len(results) >= limit:
                    break
        return results

    def vocab_search(self, pattern: str, limit: int = 50) -> list[TokenInfo]:
        """Search the vocabulary with a regular expression."""
        regex = re.compile(pattern)
        results = []
        for token_id, token in enumerate(self._tokenizer.vocabulary.tokens[:SCAN_LIMIT]):
            if regex.search(token):
                results.append(self._info(token_id))
                if len(results) >= limit:
                    break
        return results
