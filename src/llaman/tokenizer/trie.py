"""Prefix trie over vocabulary strings."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import NamedTuple


class TokenMatch(NamedTuple):
    """A vocabulary token matching the text at some position."""

    token_id: int
    length: int
    text: str


@dataclass
class TrieNode:
    children: dict[str, TrieNode] = field(default_factory=dict)
    # IDs of tokens ending exactly here; more than one only for duplicate tokens
    token_ids: list[int] = field(default_factory=list)


class TokenTrie:
    """Character trie mapping every vocabulary token to its ID.

    Built once from the token list and never modified afterwards.

    Example:
        >>> trie = TokenTrie.from_tokens(["a", "b", "ab"])
        >>> [m.token_id for m in trie.find("abc", 0)]
        [0, 2]
    """

    def __init__(self) -> None:
        self.root = TrieNode()
        self.max_depth = 0

    @classmethod
    def from_tokens(cls, tokens: Iterable[str]) -> TokenTrie:
        trie = cls()
        for token_id, text in enumerate(tokens):
            trie.insert(text, token_id)
        return trie

    def insert(self, text: str, token_id: int) -> None:
        # An empty token would match without consuming input
        if not text:
            return
        node = self.root
        for char in text:
            node = node.children.setdefault(char, TrieNode())
        node.token_ids.append(token_id)
        self.max_depth = max(self.max_depth, len(text))

    def find(self, text: str, start: int = 0) -> list[TokenMatch]:
        """Return every token that matches ``text`` starting at ``start``.

        Matches come shortest first; tokens with identical text keep their
        vocabulary order. The walk stops at the first character that no
        token continues with, or at the end of the text.
        """
        matches: list[TokenMatch] = []
        node = self.root
        pos = start

        while pos < len(text):
            node = node.children.get(text[pos])
            if node is None:
                break
            pos += 1
            for token_id in node.token_ids:
                matches.append(TokenMatch(token_id, pos - start, text[start:pos]))

        return matches

    def __contains__(self, text: object) -> bool:
        if not isinstance(text, str) or not text:
            return False
        node: TrieNode | None = self.root
        for char in text:
            node = node.children.get(char)
            if node is None:
                return False
        return bool(node.token_ids)
