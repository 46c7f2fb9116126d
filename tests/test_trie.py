"""Tests for the token trie and special-token splitting."""

from llaman.tokenizer import (
    Segment,
    TokenizerVocabulary,
    TokenMatch,
    TokenTrie,
    build_special_index,
    split_special,
)


class TestTokenTrie:
    """Tests for TokenTrie."""

    def test_matches_shortest_first(self):
        trie = TokenTrie.from_tokens(["abc", "a", "ab"])
        assert trie.find("abcd") == [
            TokenMatch(1, 1, "a"),
            TokenMatch(2, 2, "ab"),
            TokenMatch(0, 3, "abc"),
        ]

    def test_find_from_offset(self):
        trie = TokenTrie.from_tokens(["a", "b", "ab"])
        assert [m.token_id for m in trie.find("aab", 1)] == [0, 2]

    def test_no_match(self):
        trie = TokenTrie.from_tokens(["a"])
        assert trie.find("xyz") == []
        assert trie.find("a", 1) == []

    def test_stops_at_end_of_text(self):
        trie = TokenTrie.from_tokens(["abc"])
        assert trie.find("ab") == []

    def test_empty_tokens_skipped(self):
        """An empty token never matches."""
        trie = TokenTrie.from_tokens(["", "a"])
        assert trie.find("a") == [TokenMatch(1, 1, "a")]
        assert "" not in trie

    def test_duplicate_tokens_keep_order(self):
        trie = TokenTrie.from_tokens(["x", "x"])
        assert [m.token_id for m in trie.find("x")] == [0, 1]

    def test_max_depth_and_contains(self):
        trie = TokenTrie.from_tokens(["a", "hello"])
        assert trie.max_depth == 5
        assert "hello" in trie
        assert "hell" not in trie


class TestSpecialTokens:
    """Tests for special-token segmentation."""

    def test_registration_order(self, special_vocab):
        index = build_special_index(special_vocab)
        assert list(index.items()) == [("<|im_start|>", 2), ("<s>", 0), ("</s>", 1)]

    def test_duplicate_text_first_id_wins(self):
        vocab = TokenizerVocabulary(tokens=["<s>", "<s>"], bos_token_id=0, special_token_ids=[1])
        assert build_special_index(vocab) == {"<s>": 1}

    def test_split(self):
        segments = split_special("<s>hi</s>", {"<s>": 0, "</s>": 1})
        assert segments == [
            Segment("<s>", 0, 0),
            Segment("hi", 3),
            Segment("</s>", 5, 1),
        ]
        assert [s.is_special for s in segments] == [True, False, True]
        assert segments[-1].end == 9

    def test_earliest_match_wins(self):
        segments = split_special("xabc", {"bc": 1, "ab": 2})
        assert [s.text for s in segments] == ["x", "ab", "c"]

    def test_longer_match_wins_at_same_position(self):
        segments = split_special("<|im|>", {"<|": 1, "<|im|>": 2})
        assert segments == [Segment("<|im|>", 0, 2)]

    def test_repeated_special(self):
        segments = split_special("<s><s>", {"<s>": 0})
        assert [s.token_id for s in segments] == [0, 0]

    def test_no_specials(self):
        assert split_special("plain", {}) == [Segment("plain", 0)]
        assert split_special("", {"<s>": 0}) == []
