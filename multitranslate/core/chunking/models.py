"""
Data models for text chunking.

Provides enums, dataclasses, and exceptions for the chunking system.
"""

from dataclasses import dataclass
from enum import Enum


class BoundaryType(Enum):
    """Boundary at which a chunk was closed."""
    WHOLE_TEXT = "whole_text"
    LINE_END = "line_end"
    SENTENCE_END = "sentence_end"
    WORD_END = "word_end"
    FORCED_SIZE = "forced_size"


class ChunkStatus(Enum):
    """Status of a text chunk in the translation pipeline."""
    CREATED = "created"
    TRANSLATED = "translated"
    FAILED = "failed"


class ChunkingError(Exception):
    """Base exception for chunking operations."""
    pass


class ChunkingConfigurationError(ChunkingError, ValueError):
    """Invalid chunking configuration."""
    pass


@dataclass
class TextChunk:
    """A bounded piece of source text, translated independently.

    Attributes:
        index: Position in the original text (0-based)
        text: Chunk content, never empty
        boundary_type: How the chunk was closed
        status: Pipeline status
    """
    index: int
    text: str
    boundary_type: BoundaryType = BoundaryType.LINE_END
    status: ChunkStatus = ChunkStatus.CREATED

    @property
    def character_count(self) -> int:
        return len(self.text)

    def is_oversized(self, max_size: int) -> bool:
        """True for an indivisible token longer than the budget."""
        return len(self.text) > max_size
