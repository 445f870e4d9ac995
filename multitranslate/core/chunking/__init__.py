"""
Chunking module for text processing.

Splits source text into translation-sized chunks along line, sentence and
word boundaries.
"""
from multitranslate.core.chunking.text_chunker import chunk_text, create_chunks, join_chunks
from multitranslate.core.chunking.models import (
    BoundaryType,
    ChunkStatus,
    ChunkingError,
    ChunkingConfigurationError,
    TextChunk,
)

__all__ = [
    'chunk_text',
    'create_chunks',
    'join_chunks',
    'BoundaryType',
    'ChunkStatus',
    'ChunkingError',
    'ChunkingConfigurationError',
    'TextChunk',
]
