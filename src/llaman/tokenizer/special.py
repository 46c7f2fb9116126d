"""Special-token segmentation.

Special tokens (BOS/EOS markers, chat delimiters, ...) must survive
tokenization as single IDs. Before the per-character algorithm runs, the
text is cut into alternating normal and special spans.

Overlap policy: the earliest match wins. Among matches starting at the same
position the longer special text wins, then registration order.
"""

from __future__ import annotations

from dataclasses import dataclass

from llaman.tokenizer.vocab import TokenizerVocabulary


@dataclass(frozen=True)
class Segment:
    """A span of input text.

    Attributes:
        text: The span's text.
        start: Offset of the span in the full input.
        token_id: The special token ID, or None for normal text.
    """

    text: str
    start: int
    token_id: int | None = None

    @property
    def is_special(self) -> bool:
        return self.token_id is not None

    @property
    def end(self) -> int:
        return self.start + len(self.text)


def build_special_index(vocabulary: TokenizerVocabulary) -> dict[str, int]:
    """Map special token text to ID, in registration order.

    Registration order is ``special_token_ids`` first, then BOS, then EOS.
    Empty token texts are skipped; for duplicate texts the first ID wins.
    """
    ordered = list(vocabulary.special_token_ids)
    for token_id in (vocabulary.bos_token_id, vocabulary.eos_token_id):
        if token_id is not None:
            ordered.append(token_id)

    index: dict[str, int] = {}
    for token_id in ordered:
        text = vocabulary.tokens[token_id]
        if text and text not in index:
            index[text] = token_id
    return index


def _find_all(text: str, needle: str) -> list[int]:
    """Leftmost non-overlapping occurrences of ``needle``."""
    positions = []
    pos = text.find(needle)
    while pos != -1:
        positions.append(pos)
        pos = text.find(needle, pos + len(needle))
    return positions


def split_special(text: str, index: dict[str, int]) -> list[Segment]:
    """Split ``text`` into normal and special segments.

    Args:
        text: Input text.
        index: Special token text to ID, as built by ``build_special_index``.

    Returns:
        Segments in text order covering the whole input. Empty normal spans
        are omitted.
    """
    if not text:
        return []
    if not index:
        return [Segment(text, 0)]

    candidates: list[tuple[int, int, int, str, int]] = []
    for order, (special, token_id) in enumerate(index.items()):
        for pos in _find_all(text, special):
            candidates.append((pos, -len(special), order, special, token_id))
    candidates.sort()

    segments: list[Segment] = []
    cursor = 0
    for pos, _, _, special, token_id in candidates:
        if pos < cursor:
            continue
        if pos > cursor:
            segments.append(Segment(text[cursor:pos], cursor))
        segments.append(Segment(special, pos, token_id))
        cursor = pos + len(special)

    if cursor < len(text):
        segments.append(Segment(text[cursor:], cursor))
    return segments
