"""
Line, sentence and word boundary detection for chunking.
"""

import re
from typing import List

# Split after ., ! or ? when followed by whitespace
SENTENCE_SPLIT_PATTERN = re.compile(r'(?<=[.!?])\s+')
LINE_SPLIT_PATTERN = re.compile(r'\r\n|\r|\n')


def split_lines(text: str) -> List[str]:
    """Split on any line break, dropping blank lines."""
    return [line for line in LINE_SPLIT_PATTERN.split(text) if line.strip()]


def split_sentences(text: str) -> List[str]:
    """Split a line into sentences after terminal punctuation."""
    return [s for s in SENTENCE_SPLIT_PATTERN.split(text.strip()) if s]


def split_words(text: str) -> List[str]:
    """Split on runs of whitespace."""
    return text.split()
