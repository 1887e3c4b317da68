"""Initial vs lazy classification of output chunks."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterator
from dataclasses import replace
from typing import Literal

from bundle_lens.analysis.entry import pick_initial_output
from bundle_lens.config import ClassifierConfig
from bundle_lens.errors import InitialOutputNotFoundError
from bundle_lens.manifest.model import (
    DYNAMIC_IMPORT,
    IMPORT_STATEMENT,
    REQUIRE_CALL,
    ImportEdge,
    Manifest,
)
from bundle_lens.manifest.outputs import (
    build_chunk_summary,
    create_chunk_summaries,
    get_entry_outputs,
    is_likely_server_output,
    is_platform_output,
    is_relevant_output,
    is_script_output,
    sort_by_size,
)
from bundle_lens.types import (
    ChunkSummary,
    ClassifiedChunks,
    LoadBucket,
    LoadSummary,
    LoadType,
    ManifestReport,
    OutputLoadClassification,
)

logger = logging.getLogger(__name__)

_EAGER_KINDS = frozenset({IMPORT_STATEMENT, REQUIRE_CALL})

_WalkMode = Literal["initial", "lazy"]


def classify_chunks_from_initial(
    manifest: Manifest,
    initial_output: str,
    *,
    config: ClassifierConfig | None = None,
) -> ClassifiedChunks:
    """Breadth-first classification of every output reachable from `initial_output`.

    Each queued output carries the kind of the edge that reached it, not the
    kind of the edge that reached its parent. Outputs reached by a dynamic
    import are lazy, everything else is initial. The first dequeue of an
    output decides its class, so the shortest inclusion reason wins.
    """

    root = manifest.outputs.get(initial_output)
    if root is None:
        return ClassifiedChunks(initial=None)

    initial_chunk = build_chunk_summary(manifest, initial_output)
    visited = {initial_output}
    initial_chunks: list[ChunkSummary] = []
    lazy: list[ChunkSummary] = []

    queue: deque[tuple[str, str | None]] = deque(
        (edge.path, edge.kind) for edge in _followable(manifest, root.imports, config)
    )
    while queue:
        output_file, kind = queue.popleft()
        if output_file in visited:
            continue
        visited.add(output_file)

        chunk = build_chunk_summary(manifest, output_file)
        if chunk is None:
            continue
        if kind == DYNAMIC_IMPORT:
            lazy.append(chunk)
        else:
            initial_chunks.append(chunk)

        for edge in _followable(manifest, manifest.outputs[output_file].imports, config):
            if edge.path not in visited:
                queue.append((edge.path, edge.kind))

    initial_files = {chunk.output_file for chunk in initial_chunks}
    initial_files.add(initial_output)
    lazy = [chunk for chunk in lazy if chunk.output_file not in initial_files]

    logger.debug(
        "Classified from %s: %d initial, %d lazy",
        initial_output,
        len(initial_chunks),
        len(lazy),
    )
    return ClassifiedChunks(
        initial=initial_chunk,
        initial_chunks=sort_by_size(initial_chunks),
        lazy=sort_by_size(lazy),
    )


def _followable(
    manifest: Manifest,
    edges: list[ImportEdge],
    config: ClassifierConfig | None,
) -> Iterator[ImportEdge]:
    for edge in edges:
        if edge.external or edge.path not in manifest.outputs:
            continue
        if not is_platform_output(edge.path, config):
            continue
        yield edge


def classify_initial(
    manifest: Manifest,
    initial_output: str,
    *,
    config: ClassifierConfig | None = None,
) -> tuple[list[str], list[str]]:
    """Split relevant outputs into initial and lazy lists for headline totals.

    Walks from `initial_output` in initial mode, following static imports and
    require calls. A dynamic import switches its whole subtree to lazy mode,
    and in lazy mode every edge kind stays lazy, even towards outputs that a
    separate static path also reaches. Outputs that end up in both lists are
    kept as initial only.
    """

    relevant = {file for file in manifest.outputs if is_relevant_output(file, config)}
    initial_set: dict[str, None] = {}
    lazy_set: dict[str, None] = {}
    visited: set[tuple[str, _WalkMode]] = set()

    if initial_output in relevant:
        initial_set[initial_output] = None

    # Explicit stack of edge iterators so the visit order matches a recursive walk.
    stack: list[tuple[_WalkMode, Iterator[ImportEdge]]] = []

    def enter(file: str, mode: _WalkMode) -> None:
        if (file, mode) in visited:
            return
        visited.add((file, mode))
        output = manifest.outputs.get(file)
        if output is None:
            return
        stack.append((mode, iter(output.imports)))

    enter(initial_output, "initial")
    while stack:
        mode, edges = stack[-1]
        edge = next(edges, None)
        if edge is None:
            stack.pop()
            continue
        if edge.external or edge.path not in relevant:
            continue
        if mode == "initial":
            if edge.kind == DYNAMIC_IMPORT:
                lazy_set[edge.path] = None
                enter(edge.path, "lazy")
            elif edge.kind in _EAGER_KINDS:
                initial_set[edge.path] = None
                enter(edge.path, "initial")
        else:
            lazy_set[edge.path] = None
            enter(edge.path, "lazy")

    lazy = [file for file in lazy_set if file not in initial_set]
    return list(initial_set), lazy


def summarize_initial(
    manifest: Manifest,
    preferred_entry_input: str | None = None,
    *,
    initial_output: str | None = None,
    config: ClassifierConfig | None = None,
) -> LoadSummary:
    """Headline split of the bundle into initial and lazy byte totals.

    `initial_output` skips entry selection when the caller already picked one.

    Raises:
        InitialOutputNotFoundError: when no initial output can be picked.
    """

    if initial_output is None:
        initial_output = pick_initial_output(manifest, preferred_entry_input, classifier=config)
    if initial_output is None:
        raise InitialOutputNotFoundError()

    initial, lazy = classify_initial(manifest, initial_output, config=config)
    initial_outputs = list(dict.fromkeys([initial_output, *initial]))
    return LoadSummary(
        initial=LoadBucket(
            outputs=initial_outputs,
            total_bytes=_total_bytes(manifest, initial_outputs),
        ),
        lazy=LoadBucket(outputs=lazy, total_bytes=_total_bytes(manifest, lazy)),
    )


def _total_bytes(manifest: Manifest, files: list[str]) -> int:
    total = 0
    for file in files:
        output = manifest.outputs.get(file)
        if output is not None:
            total += output.bytes
    return total


def compute_initial_outputs_set(
    manifest: Manifest, *, config: ClassifierConfig | None = None
) -> set[str]:
    """Outputs statically reachable from any browser entry output."""

    entries = [
        file
        for file, output in manifest.outputs.items()
        if output.entry_point and is_platform_output(file, config)
    ]
    visited = set(entries)
    queue: deque[str] = deque(entries)
    while queue:
        current = queue.popleft()
        for edge in manifest.outputs[current].imports:
            if edge.external or edge.is_dynamic:
                continue
            target = edge.path
            if target not in manifest.outputs or not is_platform_output(target, config):
                continue
            if target not in visited:
                visited.add(target)
                queue.append(target)
    return visited


def get_initial_eager_outputs(
    manifest: Manifest,
    entry_input: str | None = None,
    *,
    browser_only: bool = True,
    config: ClassifierConfig | None = None,
) -> list[ChunkSummary]:
    """Script outputs downloaded eagerly, largest first.

    Starts from every browser entry output, or only from the script outputs
    built from `entry_input` when one is given, and follows static imports.
    With `browser_only` off, server bundles are kept in the result. Chunks
    found through `entry_input` are attributed to that entry.
    """

    def keep(file: str) -> bool:
        if not is_script_output(file, config):
            return False
        return not (browser_only and is_likely_server_output(file, config))

    if entry_input is None:
        starts = get_entry_outputs(manifest, config)
    else:
        starts = [
            file
            for file, output in manifest.outputs.items()
            if output.entry_point == entry_input and is_script_output(file, config)
        ]

    visited = dict.fromkeys(starts)
    queue: deque[str] = deque(starts)
    while queue:
        current = queue.popleft()
        for edge in manifest.outputs[current].imports:
            if edge.external or edge.is_dynamic:
                continue
            if edge.path not in manifest.outputs or not keep(edge.path):
                continue
            if edge.path not in visited:
                visited[edge.path] = None
                queue.append(edge.path)

    summaries: list[ChunkSummary] = []
    for file in visited:
        if not keep(file):
            continue
        chunk = build_chunk_summary(manifest, file)
        if chunk is None:
            continue
        if entry_input is not None:
            chunk = replace(chunk, entry_point=entry_input)
        summaries.append(chunk)
    return sort_by_size(summaries)


def list_dynamic_importing_outputs(manifest: Manifest, target_output: str) -> list[str]:
    importers: list[str] = []
    for file, output in manifest.outputs.items():
        for edge in output.imports:
            if edge.is_dynamic and edge.path == target_output:
                importers.append(file)
    return importers


def classify_output_load_type(
    manifest: Manifest,
    output_file: str,
    *,
    config: ClassifierConfig | None = None,
) -> OutputLoadClassification:
    """Initial if statically reachable from an entry, else lazy with its dynamic importers."""

    if output_file in compute_initial_outputs_set(manifest, config=config):
        return OutputLoadClassification(kind="initial")
    return OutputLoadClassification(
        kind="lazy",
        importers=list_dynamic_importing_outputs(manifest, output_file),
    )


def get_chunk_load_type(chunk: ChunkSummary, summary: LoadSummary | None) -> LoadType:
    if summary is None:
        return "initial"
    return "initial" if chunk.output_file in summary.initial.outputs else "lazy"


def analyse_manifest(
    manifest: Manifest,
    preferred_entry_input: str | None = None,
    *,
    config: ClassifierConfig | None = None,
) -> ManifestReport:
    """Run every classification step once and return a ready-to-render report.

    Raises:
        InitialOutputNotFoundError: when no initial output can be picked.
    """

    initial_output = pick_initial_output(manifest, preferred_entry_input, classifier=config)
    if initial_output is None:
        raise InitialOutputNotFoundError("Could not determine an initial output bundle")

    summary = summarize_initial(manifest, initial_output=initial_output, config=config)
    initial_chunks = create_chunk_summaries(manifest, summary.initial.outputs)
    lazy_chunks = create_chunk_summaries(manifest, summary.lazy.outputs)
    chunks = sort_by_size([*initial_chunks, *lazy_chunks])

    initial_chunk: ChunkSummary | None = None
    entry_file = next(
        (file for file in summary.initial.outputs if manifest.outputs[file].entry_point),
        None,
    )
    if entry_file is not None:
        initial_chunk = next(
            (chunk for chunk in chunks if chunk.output_file == entry_file),
            None,
        ) or build_chunk_summary(manifest, entry_file)

    return ManifestReport(
        initial_output=initial_output,
        summary=summary,
        chunks=chunks,
        initial_chunks=initial_chunks,
        lazy_chunks=lazy_chunks,
        initial_chunk=initial_chunk,
    )
