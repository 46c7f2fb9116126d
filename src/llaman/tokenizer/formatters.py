"""Formatters for compression and tokenization results.

Plain-text reports for the command line and for logs. The ``log_*``
functions write through this module's logger; nothing here configures
logging handlers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from llaman.tokenizer.compression import (
        CompressionComparison,
        CompressionResult,
        CompressionStats,
    )
    from llaman.tokenizer.inspector import TokenInspection

# Ratio interpretation thresholds (chars per token)
STRONG_RATIO = 4.0
MODERATE_RATIO = 2.0


def _get_ratio_label(ratio: float) -> str:
    if ratio >= STRONG_RATIO:
        return "STRONG"
    elif ratio >= MODERATE_RATIO:
        return "MODERATE"
    else:
        return "WEAK"


def _make_bar(fraction: float, width: int = 20) -> str:
    """Create an ASCII bar for a value in [0, 1]."""
    fraction = min(max(fraction, 0.0), 1.0)
    filled = int(fraction * width)
    return "[" + "#" * filled + "-" * (width - filled) + "]"


def _preview(tokens: list[str], limit: int = 10) -> str:
    shown = ", ".join(repr(t) for t in tokens[:limit])
    if len(tokens) > limit:
        shown += ", ..."
    return f"[{shown}]"


def format_compression(result: CompressionResult, max_tokens: int = 10) -> str:
    """Format a compression result as a short multi-line report.

    Args:
        result: The compression result.
        max_tokens: Token strings to show in the preview.

    Returns:
        Report text.
    """
    label = _get_ratio_label(result.compression_ratio)
    lines = [
        f"Text: {result.text!r}",
        f"Characters: {result.char_count}",
        f"Tokens: {result.token_count}",
        f"Ratio: {result.compression_ratio:.2f} chars/token ({label})",
        f"Avg token length: {result.avg_token_length:.2f}",
        f"Tokens: {_preview(result.token_strings, max_tokens)}",
    ]
    return "\n".join(lines)


def format_comparison(comparison: CompressionComparison) -> str:
    """Format most vs least compressed tokenizations side by side."""
    most = comparison.most_compressed
    least = comparison.least_compressed
    worst = max(least.token_count, 1)

    lines = [
        f"Text: {comparison.text!r} ({len(comparison.text)} chars)",
        "=" * 60,
        f"Most compressed:  {most.token_count:5d} tokens "
        f"{_make_bar(most.token_count / worst)} {most.compression_ratio:.2f} chars/token",
        f"Least compressed: {least.token_count:5d} tokens "
        f"{_make_bar(least.token_count / worst)} {least.compression_ratio:.2f} chars/token",
        "-" * 60,
        f"Improvement factor: {comparison.improvement_factor:.2f}x",
    ]
    return "\n".join(lines)


def format_stats(stats: CompressionStats) -> str:
    """Format compression statistics with a token length histogram."""
    lines = [
        f"Total characters: {stats.total_chars}",
        f"Token count range: {stats.min_tokens} - {stats.max_tokens}",
        f"Best ratio: {stats.best_ratio:.2f} chars/token",
        f"Worst ratio: {stats.worst_ratio:.2f} chars/token",
    ]

    if stats.token_length_distribution:
        lines.append("Token length distribution:")
        peak = max(stats.token_length_distribution.values())
        for length, count in sorted(stats.token_length_distribution.items()):
            lines.append(f"  {length:3d} chars: {count:4d} {_make_bar(count / peak, width=30)}")

    return "\n".join(lines)


def format_inspection(inspection: TokenInspection, separator: str = "|") -> str:
    """One tokenization as boundary-marked text plus a summary line."""
    status = "ok" if inspection.round_trips else "LOSSY"
    return (
        f"{inspection.visualize(separator)}\n"
        f"  {inspection.token_count} tokens, round-trip {status}"
    )


def log_compression_report(
    result: CompressionResult,
    comparison: CompressionComparison | None = None,
) -> None:
    """Log a compression report, optionally with a strategy comparison."""
    logger.info("\n%s", format_compression(result))
    if comparison is not None:
        logger.info("\n%s", format_comparison(comparison))
