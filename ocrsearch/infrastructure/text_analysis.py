# ocrsearch/infrastructure/text_analysis.py

import re
from typing import Iterable, List, Optional, Tuple


HIGHLIGHT_PRE_TAG   = ">>>"
HIGHLIGHT_POST_TAG  = "<<<"
FRAGMENT_SIZE       = 150
SNIPPET_UNAVAILABLE = "N/A"

# Lucene's default English stop set, as used by the `english` analyzer.
ENGLISH_STOP_WORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "but", "by", "for", "if",
    "in", "into", "is", "it", "no", "not", "of", "on", "or", "such", "that",
    "the", "their", "then", "there", "these", "they", "this", "to", "was",
    "will", "with",
})

_WORD_PATTERN = re.compile(r"\w+(?:['’]\w+)*")
_WHITESPACE_PATTERN = re.compile(r"\s+")

# (part, highlighted) pieces of a fragment, in reading order.
Segment = Tuple[str, bool]


def _normalize(word: str) -> str:
    word = word.lower().replace("’", "'")
    if word.endswith("'s"):
        word = word[:-2]
    return word


def analyze(text: str) -> List[str]:
    """
    English analysis for the `text` field:
    lowercase → split on non-word characters → drop possessive 's → drop stop words.
    """
    tokens = []
    for match in _WORD_PATTERN.finditer(text):
        token = _normalize(match.group())
        if token and token not in ENGLISH_STOP_WORDS:
            tokens.append(token)
    return tokens


def highlight_segments(
    text: str,
    terms: Iterable[str],
    fragment_size: int = FRAGMENT_SIZE,
) -> Optional[List[Segment]]:
    """
    Cut a single fragment of roughly `fragment_size` characters around the
    first matching term and split it into (part, highlighted) segments,
    one highlighted segment per matched word inside the fragment.

    Returns None when no term occurs in the text.
    """
    wanted = set(terms)
    matches = [
        m for m in _WORD_PATTERN.finditer(text)
        if _normalize(m.group()) in wanted
    ]
    if not matches:
        return None

    first = matches[0]
    # Centre the first match inside the window, then clamp to the text.
    start = max(0, first.start() - max(0, fragment_size - len(first.group())) // 2)
    end = min(len(text), start + fragment_size)
    start = max(0, end - fragment_size)

    # Do not cut words in half at the window edges.
    while start > 0 and not text[start - 1].isspace() and start < first.start():
        start += 1
    while end < len(text) and not text[end].isspace() and end > first.end():
        end -= 1

    segments = []
    cursor = start
    for m in matches:
        if m.start() < start or m.end() > end:
            continue
        segments.append((text[cursor:m.start()], False))
        segments.append((m.group(), True))
        cursor = m.end()
    segments.append((text[cursor:end], False))

    return _collapse_whitespace(segments)


def render_snippet(
    segments: Iterable[Segment],
    pre_tag: str = HIGHLIGHT_PRE_TAG,
    post_tag: str = HIGHLIGHT_POST_TAG,
) -> str:
    """Join segments into one string with highlighted parts wrapped in tags."""
    return "".join(
        f"{pre_tag}{part}{post_tag}" if highlighted else part
        for part, highlighted in segments
    )


def _collapse_whitespace(segments: List[Segment]) -> List[Segment]:
    # OCR output is full of line breaks; a fragment reads as one line.
    collapsed = [(_WHITESPACE_PATTERN.sub(" ", part), highlighted) for part, highlighted in segments]
    if not collapsed[0][1]:
        collapsed[0] = (collapsed[0][0].lstrip(), False)
    if not collapsed[-1][1]:
        collapsed[-1] = (collapsed[-1][0].rstrip(), False)
    return [(part, highlighted) for part, highlighted in collapsed if part]
