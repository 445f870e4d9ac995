"""
Size-bounded text chunking.

Splits text into chunks no longer than a character budget while respecting
natural boundaries, coarsest first:

    lines -> sentences -> words -> the raw token

Guarantees:
    - A text that fits the budget is returned unchanged as a single chunk
    - Every chunk is non-empty and chunk order follows the text
    - No non-whitespace character is dropped; only separators are normalized
      (blank lines vanish, sentence/word gaps become one space)
    - Every chunk fits the budget except a single word longer than it,
      which is emitted verbatim
"""

from typing import Callable, List, Optional, Tuple

from .boundary_detector import split_lines, split_sentences, split_words
from .models import BoundaryType, ChunkingConfigurationError, TextChunk

LINE_JOINER = "\n"
INLINE_JOINER = " "

_Piece = Tuple[str, BoundaryType]


def chunk_text(text: str, max_size: int) -> List[str]:
    """Split ``text`` into ordered chunks of at most ``max_size`` characters.

    Args:
        text: Source text
        max_size: Character budget per chunk (>= 1)

    Returns:
        Ordered list of chunk strings
    """
    return [chunk.text for chunk in create_chunks(text, max_size)]


def create_chunks(text: str, max_size: int) -> List[TextChunk]:
    """Same as chunk_text but returns indexed TextChunk objects."""
    if max_size < 1:
        raise ChunkingConfigurationError(f"max_size must be >= 1, got {max_size}")

    if len(text) <= max_size:
        return [TextChunk(index=0, text=text, boundary_type=BoundaryType.WHOLE_TEXT)]

    pieces = _pack(split_lines(text), LINE_JOINER, BoundaryType.LINE_END,
                   max_size, _split_long_line)
    if not pieces:
        # Only whitespace: nothing to split on, keep the input as is
        return [TextChunk(index=0, text=text, boundary_type=BoundaryType.FORCED_SIZE)]

    return [
        TextChunk(index=i, text=piece, boundary_type=boundary)
        for i, (piece, boundary) in enumerate(pieces)
    ]


def join_chunks(parts: List[str], joiner: str = LINE_JOINER) -> str:
    """Reassemble translated chunks in order."""
    return joiner.join(parts)


def _split_long_line(line: str, max_size: int) -> List[_Piece]:
    return _pack(split_sentences(line), INLINE_JOINER, BoundaryType.SENTENCE_END,
                 max_size, _split_long_sentence)


def _split_long_sentence(sentence: str, max_size: int) -> List[_Piece]:
    return _pack(split_words(sentence), INLINE_JOINER, BoundaryType.WORD_END,
                 max_size, _emit_verbatim)


def _emit_verbatim(token: str, max_size: int) -> List[_Piece]:
    return [(token, BoundaryType.FORCED_SIZE)]


def _pack(
    units: List[str],
    joiner: str,
    boundary: BoundaryType,
    max_size: int,
    split_oversized: Callable[[str, int], List[_Piece]],
) -> List[_Piece]:
    """Greedily accumulate units into buffers that fit ``max_size``.

    A unit that alone exceeds the budget flushes the buffer and is handed to
    the next, finer splitter.
    """
    pieces: List[_Piece] = []
    buffer: Optional[str] = None

    for unit in units:
        if len(unit) > max_size:
            if buffer is not None:
                pieces.append((buffer, boundary))
                buffer = None
            pieces.extend(split_oversized(unit, max_size))
            continue

        if buffer is None:
            buffer = unit
        elif len(buffer) + len(joiner) + len(unit) <= max_size:
            buffer = buffer + joiner + unit
        else:
            pieces.append((buffer, boundary))
            buffer = unit

    if buffer is not None:
        pieces.append((buffer, boundary))

    return pieces
