"""Shared result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

LoadType = Literal["initial", "lazy"]
MatchType = Literal["good", "weak"]


@dataclass(frozen=True, slots=True)
class ChunkSummary:
    """A browser-visible output file as seen by the analyser."""

    output_file: str
    bytes: int
    entry_point: str
    is_entry: bool
    included_inputs: tuple[str, ...] = ()


@dataclass(slots=True)
class ClassifiedChunks:
    """Outputs reachable from the initial output, split by how they load."""

    initial: ChunkSummary | None
    initial_chunks: list[ChunkSummary] = field(default_factory=list)
    lazy: list[ChunkSummary] = field(default_factory=list)


@dataclass(slots=True)
class LoadBucket:
    outputs: list[str]
    total_bytes: int


@dataclass(slots=True)
class LoadSummary:
    """Headline initial vs lazy totals."""

    initial: LoadBucket
    lazy: LoadBucket


@dataclass(slots=True)
class OutputLoadClassification:
    kind: LoadType
    importers: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ManifestReport:
    """Everything a consumer needs to render a manifest, computed once."""

    initial_output: str
    summary: LoadSummary
    chunks: list[ChunkSummary]
    initial_chunks: list[ChunkSummary]
    lazy_chunks: list[ChunkSummary]
    initial_chunk: ChunkSummary | None


@dataclass(frozen=True, slots=True)
class InclusionPathStep:
    from_module: str
    to_module: str
    kind: str | None


@dataclass(slots=True)
class InclusionPathResult:
    """Outcome of a path search.

    `path` is empty both when the target is the entry and when no path
    exists; use `found` to tell them apart.
    """

    found: bool
    path: list[InclusionPathStep] = field(default_factory=list)


@dataclass(slots=True)
class AnnotatedInclusionStep:
    file: str
    import_statement: str
    is_dynamic_import: bool
    importer_chunk_type: LoadType | None
    importer_chunk: str | None = None


@dataclass(frozen=True, slots=True)
class ReverseDependency:
    importer: str
    kind: str | None
    external: bool = False
    original: str | None = None


@dataclass(slots=True)
class ImportSource:
    importer: str
    import_statement: str
    chunk_type: LoadType
    is_dynamic_import: bool
    chunk_output_file: str | None = None
    chunk_size: int | None = None


@dataclass(slots=True)
class DynamicCreatedChunk:
    chunk: ChunkSummary
    dynamic_import_path: str
    import_statement: str


@dataclass(slots=True)
class ModuleDetails:
    bytes: int
    format: str | None
    loader: str | None
    imports_count: int


@dataclass(slots=True)
class ChunkMatch:
    left_chunk: ChunkSummary
    right_chunk: ChunkSummary
    similarity_score: int
    match_type: MatchType


@dataclass(slots=True)
class ChunkComparison:
    """Result of pairing the chunks of two builds."""

    matched_chunks: list[ChunkMatch]
    unmatched_left: list[ChunkSummary]
    unmatched_right: list[ChunkSummary]
    total_similarity_score: float
