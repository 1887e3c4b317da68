"""Who imports a module, and which lazy chunks a module creates."""

from __future__ import annotations

import re

from bundle_lens.manifest.model import DYNAMIC_IMPORT, Manifest
from bundle_lens.types import (
    ChunkSummary,
    DynamicCreatedChunk,
    ImportSource,
    LoadType,
    ReverseDependency,
)

_QUOTES = re.compile(r"^[\"']|[\"']$")


def find_reverse_dependencies(manifest: Manifest, target_input: str) -> list[ReverseDependency]:
    """Every direct importer of `target_input`, in input insertion order."""

    dependencies: list[ReverseDependency] = []
    for input_path, record in manifest.inputs.items():
        for edge in record.imports:
            if edge.path == target_input:
                dependencies.append(
                    ReverseDependency(
                        importer=input_path,
                        kind=edge.kind,
                        external=edge.external,
                        original=edge.original,
                    )
                )
    return dependencies


def get_import_sources(
    manifest: Manifest,
    target_input: str,
    chunks: list[ChunkSummary],
    initial_outputs: list[str] | set[str],
) -> list[ImportSource]:
    """Direct importers of a module, each tagged with the chunk it lives in.

    Importers found in an initial output come first; order is otherwise
    stable. Importers no chunk contains are reported as lazy with no chunk.
    """

    initial = set(initial_outputs)
    sources: list[ImportSource] = []
    for dependency in find_reverse_dependencies(manifest, target_input):
        chunk = next(
            (c for c in chunks if dependency.importer in c.included_inputs),
            None,
        )
        chunk_type: LoadType = "lazy"
        if chunk is not None and chunk.output_file in initial:
            chunk_type = "initial"
        sources.append(
            ImportSource(
                importer=dependency.importer,
                import_statement=dependency.original or target_input,
                chunk_type=chunk_type,
                is_dynamic_import=dependency.kind == DYNAMIC_IMPORT,
                chunk_output_file=chunk.output_file if chunk is not None else None,
                chunk_size=chunk.bytes if chunk is not None else None,
            )
        )
    return sorted(sources, key=lambda source: source.chunk_type != "initial")


def get_chunks_created_by_file(
    manifest: Manifest, file_path: str, chunks: list[ChunkSummary]
) -> list[DynamicCreatedChunk]:
    """Chunks that the dynamic imports of `file_path` most likely produced."""

    record = manifest.inputs.get(file_path)
    if record is None:
        return []

    created: list[DynamicCreatedChunk] = []
    for edge in record.imports:
        if not edge.is_dynamic:
            continue
        import_path = _QUOTES.sub("", edge.path)
        needle = import_path.replace("./", "", 1)
        for chunk in chunks:
            if needle in chunk.entry_point or any(needle in path for path in chunk.included_inputs):
                created.append(
                    DynamicCreatedChunk(
                        chunk=chunk,
                        dynamic_import_path=import_path,
                        import_statement=edge.original or edge.path,
                    )
                )
    return created
