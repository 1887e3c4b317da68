"""Output filtering and chunk summary construction."""

from __future__ import annotations

import re
from collections import deque
from functools import lru_cache

from bundle_lens.config import ClassifierConfig
from bundle_lens.manifest.model import Manifest
from bundle_lens.types import ChunkSummary

_DEFAULT_CONFIG = ClassifierConfig()


@lru_cache(maxsize=64)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, flags=re.IGNORECASE)


def is_script_output(file: str, config: ClassifierConfig | None = None) -> bool:
    """Return True for browser-runnable JavaScript outputs.

    `.mjs` files are left out on purpose: they are usually consumed by Node
    or SSR rather than downloaded by a browser.
    """

    cfg = config or _DEFAULT_CONFIG
    return bool(_compile(cfg.script_pattern).search(file))


def is_likely_server_output(file: str, config: ClassifierConfig | None = None) -> bool:
    """Best-effort check for server-only bundles (`server/`, `*.server.*`)."""

    cfg = config or _DEFAULT_CONFIG
    lower = file.lower()
    return any(_compile(pattern).search(lower) for pattern in cfg.server_patterns)


def is_platform_output(file: str, config: ClassifierConfig | None = None) -> bool:
    return is_script_output(file, config) and not is_likely_server_output(file, config)


def is_relevant_output(file: str, config: ClassifierConfig | None = None) -> bool:
    """Outputs that count towards load totals: browser JS and stylesheets."""

    cfg = config or _DEFAULT_CONFIG
    if file.endswith(cfg.source_map_suffix):
        return False
    is_stylesheet = bool(_compile(cfg.stylesheet_pattern).search(file))
    return (is_stylesheet or is_script_output(file, cfg)) and not is_likely_server_output(
        file, cfg
    )


def get_entry_outputs(manifest: Manifest, config: ClassifierConfig | None = None) -> list[str]:
    """Browser script outputs built directly from an entry source file."""

    return [
        file
        for file, output in manifest.outputs.items()
        if output.entry_point and is_platform_output(file, config)
    ]


def get_entry_inputs(manifest: Manifest) -> list[str]:
    seen: dict[str, None] = {}
    for output in manifest.outputs.values():
        if output.entry_point:
            seen.setdefault(output.entry_point, None)
    return list(seen)


def infer_entry_for_output(manifest: Manifest, target_output: str) -> str | None:
    """Walk static edges backwards to the nearest output with an entry point."""

    parents: dict[str, list[str]] = {}
    for file, output in manifest.outputs.items():
        for edge in output.imports:
            if edge.external or edge.is_dynamic:
                continue
            if edge.path not in manifest.outputs:
                continue
            parents.setdefault(edge.path, []).append(file)

    queue: deque[str] = deque([target_output])
    seen = {target_output}
    while queue:
        current = queue.popleft()
        output = manifest.outputs.get(current)
        if output is not None and output.entry_point:
            return output.entry_point
        for parent in parents.get(current, []):
            if parent not in seen:
                seen.add(parent)
                queue.append(parent)
    return None


def build_chunk_summary(manifest: Manifest, output_file: str) -> ChunkSummary | None:
    output = manifest.outputs.get(output_file)
    if output is None:
        return None
    entry_point = output.entry_point or infer_entry_for_output(manifest, output_file) or ""
    return ChunkSummary(
        output_file=output_file,
        bytes=output.bytes,
        entry_point=entry_point,
        is_entry=bool(output.entry_point),
        included_inputs=tuple(output.inputs),
    )


def sort_by_size(chunks: list[ChunkSummary]) -> list[ChunkSummary]:
    """Largest first; equal sizes keep their relative order."""
    return sorted(chunks, key=lambda chunk: chunk.bytes, reverse=True)


def create_chunk_summaries(manifest: Manifest, output_files: list[str]) -> list[ChunkSummary]:
    summaries = [build_chunk_summary(manifest, file) for file in output_files]
    return sort_by_size([summary for summary in summaries if summary is not None])


def compute_all_output_summaries(
    manifest: Manifest, config: ClassifierConfig | None = None
) -> list[ChunkSummary]:
    """Every browser script output, initial and lazy alike, in manifest order."""

    summaries: list[ChunkSummary] = []
    for file in manifest.outputs:
        if not is_platform_output(file, config):
            continue
        summary = build_chunk_summary(manifest, file)
        if summary is not None:
            summaries.append(summary)
    return summaries
