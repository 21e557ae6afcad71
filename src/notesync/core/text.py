"""Text helpers for note display.

Pure functions, no state:
- generate_summary: Short extractive summary of a note body
- extract_key_topics: Most frequent meaningful words
"""

from __future__ import annotations

import re
from collections import Counter

COMMON_WORDS = frozenset({
    "this", "that", "these", "those", "there", "their", "they", "them",
    "with", "from", "have", "having", "been", "were", "would", "could",
    "should", "about", "which", "when", "what", "where", "who", "whom",
    "whose", "your", "yours", "some", "will", "just", "very", "really",
})

_MARKDOWN_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"#{1,6}\s+"), ""),  # headers
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),  # bold
    (re.compile(r"\*(.*?)\*"), r"\1"),  # italic
    (re.compile(r"\[(.*?)\]\((.*?)\)"), r"\1"),  # links
    (re.compile(r"^\s*[-*+]\s+", re.MULTILINE), ""),  # list markers
    (re.compile(r"^\s*\d+\.\s+", re.MULTILINE), ""),  # numbered lists
)


def strip_markdown(text: str) -> str:
    """Remove light markdown formatting."""
    for pattern, replacement in _MARKDOWN_RULES:
        text = pattern.sub(replacement, text)
    return text


def _truncate(text: str, max_length: int) -> str:
    return text[:max_length] + "..." if len(text) > max_length else text


def generate_summary(text: str, max_length: int = 150) -> str:
    """Generate a short summary of a note body.

    Picks the first sentence, one from the middle, and the last one.

    Args:
        text: Note content.
        max_length: Maximum summary length before truncation.

    Returns:
        Summary text, with "..." appended when truncated.
    """
    plain = strip_markdown(text)
    sentences = [s for s in re.split(r"[.!?]+", plain) if s.strip()]

    if len(sentences) <= 3:
        return _truncate(plain, max_length)

    key_points = [sentences[0]]
    if len(sentences) > 4:
        key_points.append(sentences[len(sentences) // 2])
    key_points.append(sentences[-1])

    return _truncate(". ".join(key_points).strip(), max_length)


def extract_key_topics(text: str, max_topics: int = 5) -> list[str]:
    """Extract the most frequent meaningful words.

    Words of four letters or fewer and common words are ignored.
    Ties keep first-seen order.
    """
    words = [
        word
        for word in re.split(r"\W+", text.lower())
        if len(word) > 3 and word not in COMMON_WORDS
    ]
    return [word for word, _ in Counter(words).most_common(max_topics)]
