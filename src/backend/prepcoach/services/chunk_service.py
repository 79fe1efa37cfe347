"""Sentence-aligned text chunking.

Text is split on terminal punctuation and sentences are packed greedily into
chunks of at most ``max_words`` words. A sentence is never split, so a single
sentence longer than the limit becomes its own oversized chunk.
"""

import re

DEFAULT_MAX_WORDS = 500

# A run of non-terminal characters plus any terminal punctuation that follows.
# Punctuation opening a sentence ("...and then") stays with it, and trailing
# text without a terminator still forms the last sentence.
_SENTENCE_RE = re.compile(r"\s*[.!?]*[^.!?]+[.!?]*")


def split_sentences(text: str) -> list[str]:
    """Split text into trimmed sentence-like units, in order."""
    units = _SENTENCE_RE.findall(text) or [text]
    return [unit.strip() for unit in units if unit.strip()]


def count_words(text: str) -> int:
    return len(text.split())


def chunk_text(text: str, max_words: int = DEFAULT_MAX_WORDS) -> list[str]:
    """Pack sentences into chunks of at most ``max_words`` words.

    Output is a pure function of (text, max_words).
    """
    if max_words < 1:
        raise ValueError("max_words must be at least 1")

    chunks: list[str] = []
    current: list[str] = []
    word_count = 0

    for sentence in split_sentences(text):
        sentence_words = count_words(sentence)
        if current and word_count + sentence_words > max_words:
            chunks.append(" ".join(current))
            current = []
            word_count = 0
        current.append(sentence)
        word_count += sentence_words

    if current:
        chunks.append(" ".join(current))

    return [chunk for chunk in chunks if chunk.strip()]
