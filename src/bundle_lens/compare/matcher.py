"""Pairing chunks across two builds by weighted similarity."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass

from bundle_lens.config import MatchingConfig
from bundle_lens.types import ChunkComparison, ChunkMatch, ChunkSummary, MatchType

logger = logging.getLogger(__name__)

SIZE_POINTS = 25
CONTENT_POINTS = 25
ENTRY_POINTS = 20
CLASSIFICATION_POINTS = 20
FILENAME_POINTS = 10

_HASH_SUFFIX = re.compile(r"-[a-f0-9]{6,}\.")
_PREFIX_SPLIT = re.compile(r"[-.]")


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def size_similarity(size_a: int, size_b: int) -> int:
    if size_a == 0 and size_b == 0:
        return SIZE_POINTS
    if size_a == 0 or size_b == 0:
        return 0
    ratio = min(size_a, size_b) / max(size_a, size_b)
    return _round_half_up(ratio * SIZE_POINTS)


def content_similarity(files_a: tuple[str, ...], files_b: tuple[str, ...]) -> int:
    """Jaccard overlap of included inputs, scaled to 25 points."""
    if not files_a and not files_b:
        return CONTENT_POINTS
    if not files_a or not files_b:
        return 0
    set_a, set_b = set(files_a), set(files_b)
    jaccard = len(set_a & set_b) / len(set_a | set_b)
    return _round_half_up(jaccard * CONTENT_POINTS)


def entry_point_similarity(entry_a: str, entry_b: str) -> int:
    if not entry_a and not entry_b:
        return ENTRY_POINTS
    if not entry_a or not entry_b:
        return 0
    if entry_a == entry_b:
        return ENTRY_POINTS

    parts_a = entry_a.split("/")
    parts_b = entry_b.split("/")
    if parts_a[-1] == parts_b[-1]:
        return 15
    if set(parts_a) & set(parts_b):
        return 10
    return 0


def classification_similarity(chunk_a: ChunkSummary, chunk_b: ChunkSummary) -> int:
    return CLASSIFICATION_POINTS if chunk_a.is_entry == chunk_b.is_entry else 0


def strip_hash(filename: str) -> str:
    """`chunk-abc123.js` -> `chunk.js`."""
    return _HASH_SUFFIX.sub(".", filename, count=1)


def filename_similarity(name_a: str, name_b: str) -> int:
    if name_a == name_b:
        return FILENAME_POINTS

    clean_a = strip_hash(name_a)
    clean_b = strip_hash(name_b)
    if clean_a == clean_b:
        return 8

    prefix_a = _PREFIX_SPLIT.split(clean_a)[0]
    prefix_b = _PREFIX_SPLIT.split(clean_b)[0]
    if prefix_a == prefix_b and len(prefix_a) > 2:
        return 5
    return 0


def calculate_chunk_similarity(chunk_a: ChunkSummary, chunk_b: ChunkSummary) -> int:
    """Similarity score in [0, 100].

    Components: size 25, content 25, entry point 20, classification 20,
    filename 10.
    """

    return (
        size_similarity(chunk_a.bytes, chunk_b.bytes)
        + content_similarity(chunk_a.included_inputs, chunk_b.included_inputs)
        + entry_point_similarity(chunk_a.entry_point, chunk_b.entry_point)
        + classification_similarity(chunk_a, chunk_b)
        + filename_similarity(chunk_a.output_file, chunk_b.output_file)
    )


@dataclass(slots=True)
class _Pair:
    left_index: int
    right_index: int
    score: int


def match_chunks_between_builds(
    left_chunks: list[ChunkSummary],
    right_chunks: list[ChunkSummary],
    config: MatchingConfig | None = None,
) -> ChunkComparison:
    """Greedy one-to-one pairing of chunks from two builds.

    Every left/right pair is scored, pairs are visited from the highest
    score down, and a pair is accepted when both sides are still free and
    the score reaches `min_match_score`. Equal scores are ordered by output
    file names, so shuffling either input list does not change which pairs
    are matched. Unclaimed left chunks were removed, unclaimed right chunks
    were added.
    """

    cfg = config or MatchingConfig()
    pairs = [
        _Pair(i, j, calculate_chunk_similarity(left, right))
        for i, left in enumerate(left_chunks)
        for j, right in enumerate(right_chunks)
    ]
    pairs.sort(
        key=lambda pair: (
            -pair.score,
            left_chunks[pair.left_index].output_file,
            right_chunks[pair.right_index].output_file,
            pair.left_index,
            pair.right_index,
        )
    )

    matched: list[ChunkMatch] = []
    claimed_left: set[int] = set()
    claimed_right: set[int] = set()
    for pair in pairs:
        if pair.score < cfg.min_match_score:
            break
        if pair.left_index in claimed_left or pair.right_index in claimed_right:
            continue
        match_type: MatchType = "good" if pair.score >= cfg.good_match_score else "weak"
        matched.append(
            ChunkMatch(
                left_chunk=left_chunks[pair.left_index],
                right_chunk=right_chunks[pair.right_index],
                similarity_score=pair.score,
                match_type=match_type,
            )
        )
        claimed_left.add(pair.left_index)
        claimed_right.add(pair.right_index)

    unmatched_left = [c for i, c in enumerate(left_chunks) if i not in claimed_left]
    unmatched_right = [c for j, c in enumerate(right_chunks) if j not in claimed_right]
    total = sum(m.similarity_score for m in matched) / len(matched) if matched else 0.0

    logger.debug(
        "Matched %d chunk pairs (%d removed, %d added)",
        len(matched),
        len(unmatched_left),
        len(unmatched_right),
    )
    return ChunkComparison(
        matched_chunks=matched,
        unmatched_left=unmatched_left,
        unmatched_right=unmatched_right,
        total_similarity_score=total,
    )


def describe_match_type(match_type: MatchType) -> str:
    return {"good": "Good match", "weak": "Weak match"}.get(match_type, "Unknown")
