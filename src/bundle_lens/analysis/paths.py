"""Inclusion path search over the input and output import graphs."""

from __future__ import annotations

from collections import deque

from bundle_lens.analysis.entry import pick_initial_output
from bundle_lens.manifest.model import ImportEdge, Manifest
from bundle_lens.manifest.outputs import infer_entry_for_output
from bundle_lens.types import (
    AnnotatedInclusionStep,
    ChunkSummary,
    InclusionPathResult,
    InclusionPathStep,
    LoadSummary,
    LoadType,
)


def _rebuild_path(
    parents: dict[str, tuple[str, str | None]], start: str, target: str
) -> list[InclusionPathStep]:
    steps: list[InclusionPathStep] = []
    current = target
    while current != start:
        previous, kind = parents[current]
        steps.append(InclusionPathStep(from_module=previous, to_module=current, kind=kind))
        current = previous
    steps.reverse()
    return steps


def find_inclusion_path(
    manifest: Manifest,
    entry_input: str,
    target_input: str,
    *,
    include_dynamic: bool = False,
) -> InclusionPathResult:
    """Shortest chain of input-level imports from `entry_input` to `target_input`.

    Dynamic imports are skipped unless `include_dynamic` is set, which gives
    "eager-only" reasoning by default. A target that is the entry itself is
    found with an empty path; an unreachable target is not found, also with
    an empty path.
    """

    if entry_input == target_input:
        return InclusionPathResult(found=True)

    queue: deque[str] = deque([entry_input])
    visited = {entry_input}
    parents: dict[str, tuple[str, str | None]] = {}

    while queue:
        current = queue.popleft()
        record = manifest.inputs.get(current)
        if record is None:
            continue
        for edge in record.imports:
            if edge.is_dynamic and not include_dynamic:
                continue
            target = edge.path
            if target in visited:
                continue
            visited.add(target)
            parents[target] = (current, edge.kind)
            if target == target_input:
                return InclusionPathResult(
                    found=True, path=_rebuild_path(parents, entry_input, target)
                )
            queue.append(target)

    return InclusionPathResult(found=False)


def find_output_inclusion_path(
    manifest: Manifest, entry_output: str, target_output: str
) -> InclusionPathResult:
    """Shortest chain of static output-to-output imports."""

    if entry_output == target_output:
        return InclusionPathResult(found=True)

    queue: deque[str] = deque([entry_output])
    visited = {entry_output}
    parents: dict[str, tuple[str, str | None]] = {}

    while queue:
        current = queue.popleft()
        output = manifest.outputs.get(current)
        if output is None:
            continue
        for edge in output.imports:
            if edge.external or edge.is_dynamic:
                continue
            target = edge.path
            if target not in manifest.outputs or target in visited:
                continue
            visited.add(target)
            parents[target] = (current, edge.kind)
            if target == target_output:
                return InclusionPathResult(
                    found=True, path=_rebuild_path(parents, entry_output, target)
                )
            queue.append(target)

    return InclusionPathResult(found=False)


def get_inclusion_path(
    manifest: Manifest,
    target_input: str,
    chunks: list[ChunkSummary],
    summary: LoadSummary | None = None,
) -> list[AnnotatedInclusionStep]:
    """Explain why `target_input` is in the bundle, one import statement per step.

    The search starts at the entry input of the picked initial output and
    follows dynamic imports too. Each step records the importing file, the
    import text as written, whether it was a dynamic import and whether the
    importer sits in an initial or lazy chunk. When `summary` is given its
    initial outputs decide the chunk type; otherwise the entry chunks of the
    chosen entry input count as initial.

    Importers that no chunk contains (inlined or tree-shaken modules) keep
    `importer_chunk` and `importer_chunk_type` empty. An empty list means no
    entry could be determined or the target is unreachable.
    """

    initial_output = pick_initial_output(manifest)
    if initial_output is None:
        return []
    entry_input = manifest.outputs[initial_output].entry_point or infer_entry_for_output(
        manifest, initial_output
    )
    if not entry_input:
        return []

    if summary is not None:
        initial_outputs = set(summary.initial.outputs)
    else:
        initial_outputs = {
            chunk.output_file
            for chunk in chunks
            if chunk.is_entry and chunk.entry_point == entry_input
        }

    result = find_inclusion_path(manifest, entry_input, target_input, include_dynamic=True)
    if not result.found:
        return []

    steps: list[AnnotatedInclusionStep] = []
    for step in result.path:
        record = manifest.inputs.get(step.from_module)
        if record is None:
            continue
        edge = _first_edge_to(record.imports, step.to_module)
        if edge is None:
            continue

        chunk = _chunk_containing(chunks, step.from_module)
        chunk_type: LoadType | None = None
        if chunk is not None:
            chunk_type = "initial" if chunk.output_file in initial_outputs else "lazy"

        steps.append(
            AnnotatedInclusionStep(
                file=step.from_module,
                import_statement=edge.original or edge.path,
                is_dynamic_import=edge.is_dynamic,
                importer_chunk_type=chunk_type,
                importer_chunk=chunk.output_file if chunk is not None else None,
            )
        )
    return steps


def _first_edge_to(edges: list[ImportEdge], target: str) -> ImportEdge | None:
    return next((edge for edge in edges if edge.path == target), None)


def _chunk_containing(chunks: list[ChunkSummary], input_path: str) -> ChunkSummary | None:
    return next((chunk for chunk in chunks if input_path in chunk.included_inputs), None)


def find_best_chunk_for_file(
    file_path: str,
    chunks: list[ChunkSummary],
    manifest: Manifest | None = None,
    current_chunk: ChunkSummary | None = None,
) -> ChunkSummary | None:
    """Chunk that contains `file_path`, or failing that one of its imports.

    Barrel files are often merged away, so their imports are the next best
    hint. Falls back to `current_chunk`.
    """

    direct = _chunk_containing(chunks, file_path)
    if direct is not None:
        return direct

    if manifest is not None:
        record = manifest.inputs.get(file_path)
        if record is not None:
            for edge in record.imports:
                chunk = _chunk_containing(chunks, edge.path)
                if chunk is not None:
                    return chunk

    return current_chunk
