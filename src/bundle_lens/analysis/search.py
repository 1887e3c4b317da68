"""Chunk search and filtering."""

from __future__ import annotations

from bundle_lens.analysis.classify import get_chunk_load_type
from bundle_lens.types import ChunkSummary, LoadSummary, LoadType


def _contains_term(chunk: ChunkSummary, term: str) -> bool:
    lowered = term.lower()
    return any(lowered in path.lower() for path in chunk.included_inputs)


def find_chunks_with_search_term(chunks: list[ChunkSummary], term: str) -> list[ChunkSummary]:
    if not term:
        return []
    return [chunk for chunk in chunks if _contains_term(chunk, term)]


def filter_chunks(
    chunks: list[ChunkSummary],
    term: str,
    type_filters: dict[LoadType, bool],
    summary: LoadSummary | None,
) -> list[ChunkSummary]:
    """Apply a module search and initial/lazy toggles to a chunk list."""

    return [
        chunk
        for chunk in chunks
        if (not term or _contains_term(chunk, term))
        and type_filters.get(get_chunk_load_type(chunk, summary), False)
    ]
